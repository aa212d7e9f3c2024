"""
Database services for match sessions and the match clock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.common.timeutils import parse_datetime, utcnow
from matchnarrator.domain.errors import BadRequestError, ForbiddenError, NotFoundError
from matchnarrator.domain.models import MatchPeriod, MatchStatus, UserRole
from matchnarrator.domain.timer import MatchClock, TimerState

from ..schema import (
    FixtureMatch,
    MatchEvent,
    MatchRosterPlayer,
    MatchSession,
    PlayerSeason,
    Season,
    Team,
    TeamSeason,
    User,
)
from ..serializers import event_to_dict, match_to_dict, roster_to_dict, row_to_dict

logger = logging.getLogger(__name__)

DEFAULT_CLOCK = MatchClock()


# --- Clock state mapping ---------------------------------------------------


def timer_state(match: MatchSession) -> TimerState:
    return TimerState(
        status=MatchStatus(match.status),
        period=MatchPeriod(match.current_period),
        elapsed_seconds=match.elapsed_seconds or 0,
        is_running=bool(match.is_timer_running),
        started_at=match.timer_started_at,
        first_half_added_time=match.first_half_added_time or 0,
        second_half_added_time=match.second_half_added_time or 0,
    )


def _apply_state(match: MatchSession, state: TimerState) -> None:
    match.status = state.status
    match.current_period = state.period
    match.elapsed_seconds = state.elapsed_seconds
    match.is_timer_running = state.is_running
    match.timer_started_at = state.started_at
    match.first_half_added_time = state.first_half_added_time
    match.second_half_added_time = state.second_half_added_time


def _timer_result(message: str, state: TimerState) -> dict[str, Any]:
    return {
        "message": message,
        "status": state.status.value,
        "period": state.period.value,
        "elapsed_seconds": state.elapsed_seconds,
        "is_running": state.is_running,
    }


# --- Access ----------------------------------------------------------------


def ensure_access(match: MatchSession, user: User) -> None:
    if match.narrator_id != user.id and user.role != UserRole.SUPERADMIN:
        raise ForbiddenError("You do not have access to this match")


def get_match(session: Session, match_id: int, user: Optional[User] = None) -> MatchSession:
    """Loads a match; with a user, also enforces owner-or-superadmin access."""
    match = session.get(MatchSession, match_id)
    if match is None:
        raise NotFoundError.for_entity("Match", match_id)
    if user is not None:
        ensure_access(match, user)
    return match


# --- CRUD ------------------------------------------------------------------


def create_match(session: Session, narrator: User, data: dict[str, Any]) -> MatchSession:
    home_id, away_id = data["home_team_id"], data["away_team_id"]
    if session.get(Team, home_id) is None:
        raise NotFoundError(f"Home team with ID {home_id} not found")
    if session.get(Team, away_id) is None:
        raise NotFoundError(f"Away team with ID {away_id} not found")
    if home_id == away_id:
        raise BadRequestError("Home and away teams must be different")

    fixture_id = data.get("fixture_match_id")
    if fixture_id is not None and session.get(FixtureMatch, fixture_id) is None:
        raise NotFoundError.for_entity("Fixture", fixture_id)

    match_date = parse_datetime(data["match_date"])
    if match_date is None:
        raise BadRequestError(f"Invalid match date: {data['match_date']}")

    match = MatchSession(
        narrator_id=narrator.id,
        home_team_id=home_id,
        away_team_id=away_id,
        fixture_match_id=fixture_id,
        match_date=match_date,
        venue=data.get("venue"),
        status=MatchStatus.SETUP,
        current_period=MatchPeriod.FIRST_HALF,
        elapsed_seconds=0,
        is_timer_running=False,
    )
    session.add(match)
    session.commit()
    logger.info("Match session created", extra={"match_id": match.id, "narrator_id": narrator.id})
    return match


def _counts(session: Session, ids: list[int]) -> tuple[dict[int, int], dict[int, int]]:
    if not ids:
        return {}, {}
    roster = dict(
        session.execute(
            select(MatchRosterPlayer.match_session_id, func.count(MatchRosterPlayer.id))
            .where(MatchRosterPlayer.match_session_id.in_(ids))
            .group_by(MatchRosterPlayer.match_session_id)
        ).all()
    )
    events = dict(
        session.execute(
            select(MatchEvent.match_session_id, func.count(MatchEvent.id))
            .where(MatchEvent.match_session_id.in_(ids), MatchEvent.is_deleted.is_(False))
            .group_by(MatchEvent.match_session_id)
        ).all()
    )
    return roster, events


def list_matches(
    session: Session,
    user: User,
    *,
    status: Optional[MatchStatus] = None,
    include_all: bool = False,
) -> list[dict[str, Any]]:
    stmt = select(MatchSession).options(
        selectinload(MatchSession.narrator),
        selectinload(MatchSession.home_team),
        selectinload(MatchSession.away_team),
    )
    if not (include_all and user.role == UserRole.SUPERADMIN):
        stmt = stmt.where(MatchSession.narrator_id == user.id)
    if status is not None:
        stmt = stmt.where(MatchSession.status == status)
    matches = session.scalars(
        stmt.order_by(MatchSession.match_date.desc(), MatchSession.id.desc())
    ).all()

    roster, events = _counts(session, [m.id for m in matches])
    return [
        {
            **match_to_dict(m),
            "counts": {"roster": roster.get(m.id, 0), "events": events.get(m.id, 0)},
        }
        for m in matches
    ]


def get_match_detail(
    session: Session,
    match_id: int,
    user: User,
    *,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    roster = session.scalars(
        select(MatchRosterPlayer)
        .where(MatchRosterPlayer.match_session_id == match_id)
        .order_by(
            MatchRosterPlayer.is_home_team.desc(),
            MatchRosterPlayer.jersey_number,
            MatchRosterPlayer.id,
        )
        .options(selectinload(MatchRosterPlayer.player))
    ).all()
    events = session.scalars(
        select(MatchEvent)
        .where(MatchEvent.match_session_id == match_id, MatchEvent.is_deleted.is_(False))
        .order_by(MatchEvent.minute, MatchEvent.second, MatchEvent.created_at, MatchEvent.id)
        .options(selectinload(MatchEvent.roster_player))
    ).all()

    data = match_to_dict(match)
    data["roster"] = [roster_to_dict(r) for r in roster]
    data["events"] = [event_to_dict(e) for e in events]
    data["clock"] = clock.read(timer_state(match), now or utcnow()).to_dict()
    return data


def update_match(
    session: Session,
    match_id: int,
    user: User,
    data: dict[str, Any],
    *,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> MatchSession:
    match = get_match(session, match_id, user)
    if data.get("match_date"):
        match_date = parse_datetime(data["match_date"])
        if match_date is None:
            raise BadRequestError(f"Invalid match date: {data['match_date']}")
        match.match_date = match_date
    if "venue" in data:
        match.venue = data["venue"]
    if data.get("status"):
        previous = match.status
        state = clock.change_status(timer_state(match), MatchStatus(data["status"]), now or utcnow())
        _apply_state(match, state)
        logger.info(
            f"Match status {previous.value} -> {state.status.value}", extra={"match_id": match_id}
        )
    session.commit()
    return match


def delete_match(session: Session, match_id: int, user: User) -> dict[str, str]:
    match = get_match(session, match_id, user)
    session.delete(match)
    session.commit()
    logger.info("Match session deleted", extra={"match_id": match_id})
    return {"message": "Match deleted successfully"}


# --- Squad options ---------------------------------------------------------


def _team_season_for(session: Session, team_id: int, season_id: Optional[int]) -> Optional[TeamSeason]:
    stmt = select(TeamSeason).where(TeamSeason.team_id == team_id)
    if season_id is not None:
        return session.scalar(stmt.where(TeamSeason.season_id == season_id))
    # without a fixture: the team's most recent season assignment
    return session.scalar(
        stmt.join(Season, TeamSeason.season_id == Season.id)
        .order_by(Season.start_date.desc().nulls_last(), Season.id.desc())
        .limit(1)
    )


def squad_options(session: Session, match_id: int, user: User) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    season_id = match.fixture_match.season_id if match.fixture_match is not None else None
    in_roster = set(
        session.scalars(
            select(MatchRosterPlayer.player_id).where(MatchRosterPlayer.match_session_id == match_id)
        )
    )

    def _side(team: Team) -> dict[str, Any]:
        team_season = _team_season_for(session, team.id, season_id)
        players: list[dict[str, Any]] = []
        if team_season is not None:
            assignments = session.scalars(
                select(PlayerSeason)
                .where(PlayerSeason.team_season_id == team_season.id)
                .options(selectinload(PlayerSeason.player))
            ).all()
            assignments = sorted(
                assignments,
                key=lambda ps: (
                    ps.jersey_number is None,
                    ps.jersey_number or 0,
                    ps.player.last_name or "",
                ),
            )
            players = [
                {
                    "player": row_to_dict(ps.player),
                    "jersey_number": ps.jersey_number,
                    "in_roster": ps.player_id in in_roster,
                }
                for ps in assignments
            ]
        return {
            "team": row_to_dict(team),
            "team_season_id": team_season.id if team_season is not None else None,
            "season_id": team_season.season_id if team_season is not None else None,
            "players": players,
        }

    return {
        "match_id": match.id,
        "season_id": season_id,
        "home": _side(match.home_team),
        "away": _side(match.away_team),
    }


# --- Timer -----------------------------------------------------------------


def start_timer(
    session: Session,
    match_id: int,
    user: User,
    *,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    before = timer_state(match)
    try:
        state = clock.start(before, now or utcnow())
    except BadRequestError as e:
        logger.warning(f"Timer start rejected: {e.message}", extra={"match_id": match_id})
        raise
    _apply_state(match, state)
    session.commit()
    logger.info(
        "Timer started",
        extra={"match_id": match_id, "period": state.period.value, "from_status": before.status.value},
    )
    return _timer_result("Timer started", state)


def pause_timer(
    session: Session,
    match_id: int,
    user: User,
    *,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    try:
        state = clock.pause(timer_state(match), now or utcnow())
    except BadRequestError as e:
        logger.warning(f"Timer pause rejected: {e.message}", extra={"match_id": match_id})
        raise
    _apply_state(match, state)
    session.commit()
    logger.info("Timer paused", extra={"match_id": match_id, "elapsed": state.elapsed_seconds})
    return _timer_result("Timer paused", state)


def sync_elapsed(
    session: Session,
    match_id: int,
    user: User,
    seconds: int,
    *,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    state = clock.sync(timer_state(match), seconds, now or utcnow())
    _apply_state(match, state)
    session.commit()
    logger.info("Elapsed time synced", extra={"match_id": match_id, "elapsed": seconds})
    return _timer_result("Elapsed time updated", state)


def end_period(
    session: Session,
    match_id: int,
    user: User,
    *,
    force: bool = False,
    extra_time: bool = False,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    before = timer_state(match)
    try:
        state = clock.end_period(before, now or utcnow(), force=force, extra_time=extra_time)
    except BadRequestError as e:
        logger.warning(f"End of period rejected: {e.message}", extra={"match_id": match_id})
        raise
    _apply_state(match, state)
    session.commit()
    logger.info(
        f"Period {before.period.value} ended",
        extra={
            "match_id": match_id,
            "status": state.status.value,
            "next_period": state.period.value,
            "forced": force,
        },
    )
    return _timer_result("Period ended", state)


def update_added_time(
    session: Session,
    match_id: int,
    user: User,
    *,
    first_half_added_time: Optional[int] = None,
    second_half_added_time: Optional[int] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    for value in (first_half_added_time, second_half_added_time):
        if value is not None and value < 0:
            raise BadRequestError("Added time must be >= 0")
    if first_half_added_time is not None:
        match.first_half_added_time = first_half_added_time
    if second_half_added_time is not None:
        match.second_half_added_time = second_half_added_time
    session.commit()
    return {
        "message": "Added time updated",
        "first_half_added_time": match.first_half_added_time,
        "second_half_added_time": match.second_half_added_time,
    }


def read_clock(
    session: Session,
    match_id: int,
    user: User,
    *,
    clock: MatchClock = DEFAULT_CLOCK,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    match = get_match(session, match_id, user)
    return clock.read(timer_state(match), now or utcnow()).to_dict()
