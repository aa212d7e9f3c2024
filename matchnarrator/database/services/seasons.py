"""
Database services for seasons, their teams, squads, fixtures and standings.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.common.timeutils import parse_date, utcnow
from matchnarrator.domain.errors import BadRequestError, ConflictError, NotFoundError
from matchnarrator.domain.season_status import pick_current, status_of

from ..schema import (
    FixtureMatch,
    MatchEvent,
    MatchRosterPlayer,
    MatchSession,
    Player,
    PlayerSeason,
    Season,
    SeasonStanding,
    TeamSeason,
)
from ..serializers import (
    fixture_to_dict,
    match_to_dict,
    player_season_to_dict,
    row_to_dict,
    season_to_dict,
    standing_to_dict,
)
from .audit import write_audit
from .competitions import get_competition

logger = logging.getLogger(__name__)


def _with_status(season: Season, now: datetime) -> dict[str, Any]:
    data = season_to_dict(season)
    data["status"] = status_of(season, now).value
    return data


def get_season(session: Session, season_id: int) -> Season:
    season = session.get(Season, season_id)
    if season is None:
        raise NotFoundError.for_entity("Season", season_id)
    return season


def _season_date(data: dict[str, Any], field: str) -> Optional[date]:
    raw = data.get(field)
    parsed = parse_date(raw)
    if raw not in (None, "") and parsed is None:
        raise BadRequestError(f"Invalid date for {field}: {raw}")
    return parsed


def create_season(
    session: Session, data: dict[str, Any], actor_user_id: Optional[int] = None
) -> Season:
    get_competition(session, data["competition_id"])
    season = Season(
        name=data["name"],
        competition_id=data["competition_id"],
        start_date=_season_date(data, "start_date"),
        end_date=_season_date(data, "end_date"),
    )
    session.add(season)
    session.flush()
    write_audit(session, actor_user_id, "SEASON_CREATE", "Season", season.id, data)
    session.commit()
    logger.info(f"Season created: {season.name}", extra={"season_id": season.id})
    return season


def list_seasons(
    session: Session, competition_id: Optional[int] = None, now: Optional[datetime] = None
) -> list[dict[str, Any]]:
    now = now or utcnow()
    stmt = select(Season).options(selectinload(Season.competition))
    if competition_id is not None:
        stmt = stmt.where(Season.competition_id == competition_id)
    seasons = list(session.scalars(stmt.order_by(Season.created_at.desc(), Season.id.desc())))

    ids = [s.id for s in seasons]
    team_counts = dict(
        session.execute(
            select(TeamSeason.season_id, func.count(TeamSeason.id))
            .where(TeamSeason.season_id.in_(ids))
            .group_by(TeamSeason.season_id)
        ).all()
    ) if ids else {}
    fixture_counts = dict(
        session.execute(
            select(FixtureMatch.season_id, func.count(FixtureMatch.id))
            .where(FixtureMatch.season_id.in_(ids))
            .group_by(FixtureMatch.season_id)
        ).all()
    ) if ids else {}

    result = []
    for season in seasons:
        data = _with_status(season, now)
        data["counts"] = {
            "teams": team_counts.get(season.id, 0),
            "fixtures": fixture_counts.get(season.id, 0),
        }
        result.append(data)
    return result


def get_season_detail(
    session: Session, season_id: int, now: Optional[datetime] = None
) -> dict[str, Any]:
    season = session.scalar(
        select(Season)
        .where(Season.id == season_id)
        .options(
            selectinload(Season.competition),
            selectinload(Season.teams).selectinload(TeamSeason.team),
            selectinload(Season.teams)
            .selectinload(TeamSeason.players)
            .selectinload(PlayerSeason.player),
        )
    )
    if season is None:
        raise NotFoundError.for_entity("Season", season_id)
    data = _with_status(season, now or utcnow())
    data["teams"] = [
        {
            **row_to_dict(ts),
            "team": row_to_dict(ts.team),
            "players": [player_season_to_dict(ps) for ps in ts.players],
        }
        for ts in season.teams
    ]
    return data


def resolve_current_season(
    session: Session, competition_id: Optional[int] = None, now: Optional[datetime] = None
) -> Season:
    stmt = select(Season).options(selectinload(Season.competition))
    if competition_id is not None:
        stmt = stmt.where(Season.competition_id == competition_id)
    current = pick_current(session.scalars(stmt), now or utcnow())
    if current is None:
        if competition_id is not None:
            raise NotFoundError(f"No current season found for competition {competition_id}")
        raise NotFoundError("No current season found")
    return current


def current_season(
    session: Session, competition_id: Optional[int] = None, now: Optional[datetime] = None
) -> dict[str, Any]:
    now = now or utcnow()
    return _with_status(resolve_current_season(session, competition_id, now), now)


# --- Teams & squads --------------------------------------------------------


def season_teams(session: Session, season_id: int) -> list[dict[str, Any]]:
    get_season(session, season_id)
    rows = session.execute(
        select(TeamSeason, func.count(PlayerSeason.id))
        .outerjoin(PlayerSeason, PlayerSeason.team_season_id == TeamSeason.id)
        .where(TeamSeason.season_id == season_id)
        .group_by(TeamSeason.id)
        .options(selectinload(TeamSeason.team))
    ).all()
    teams = [
        {**row_to_dict(ts), "team": row_to_dict(ts.team), "counts": {"players": players}}
        for ts, players in rows
    ]
    return sorted(teams, key=lambda t: (t["team"]["name"] or "").lower())


def season_team_squad(session: Session, season_id: int, team_id: int) -> dict[str, Any]:
    season = get_season(session, season_id)
    team_season = session.scalar(
        select(TeamSeason)
        .where(TeamSeason.season_id == season_id, TeamSeason.team_id == team_id)
        .options(selectinload(TeamSeason.team))
    )
    if team_season is None:
        raise NotFoundError(f"Team {team_id} is not assigned to season {season_id}")

    players = session.scalars(
        select(PlayerSeason)
        .join(Player, PlayerSeason.player_id == Player.id)
        .where(PlayerSeason.team_season_id == team_season.id)
        .order_by(
            PlayerSeason.jersey_number.is_(None),
            PlayerSeason.jersey_number,
            Player.last_name,
        )
        .options(selectinload(PlayerSeason.player))
    ).all()

    return {
        "season": {
            "id": season.id,
            "name": season.name,
            "competition": row_to_dict(season.competition),
        },
        "team_season": {
            **row_to_dict(team_season),
            "team": row_to_dict(team_season.team),
            "players": [player_season_to_dict(ps) for ps in players],
        },
    }


# --- Fixtures & standings --------------------------------------------------


def season_fixtures(session: Session, season_id: int) -> list[dict[str, Any]]:
    get_season(session, season_id)
    fixtures = session.scalars(
        select(FixtureMatch)
        .where(FixtureMatch.season_id == season_id)
        .order_by(FixtureMatch.match_date, FixtureMatch.created_at, FixtureMatch.id)
        .options(selectinload(FixtureMatch.home_team), selectinload(FixtureMatch.away_team))
    ).all()
    return [fixture_to_dict(f) for f in fixtures]


def season_standings(session: Session, season_id: int) -> list[dict[str, Any]]:
    get_season(session, season_id)
    standings = session.scalars(
        select(SeasonStanding)
        .where(SeasonStanding.season_id == season_id)
        .order_by(SeasonStanding.group_name, SeasonStanding.rank)
        .options(selectinload(SeasonStanding.team))
    ).all()
    return [standing_to_dict(s) for s in standings]


def _season_sessions(session: Session, season_id: int) -> list[dict[str, Any]]:
    matches = session.scalars(
        select(MatchSession)
        .join(FixtureMatch, MatchSession.fixture_match_id == FixtureMatch.id)
        .where(FixtureMatch.season_id == season_id)
        .order_by(MatchSession.match_date, MatchSession.id)
        .options(
            selectinload(MatchSession.narrator),
            selectinload(MatchSession.home_team),
            selectinload(MatchSession.away_team),
        )
    ).all()
    ids = [m.id for m in matches]
    roster_counts: dict[int, int] = {}
    event_counts: dict[int, int] = {}
    if ids:
        roster_counts = dict(
            session.execute(
                select(MatchRosterPlayer.match_session_id, func.count(MatchRosterPlayer.id))
                .where(MatchRosterPlayer.match_session_id.in_(ids))
                .group_by(MatchRosterPlayer.match_session_id)
            ).all()
        )
        event_counts = dict(
            session.execute(
                select(MatchEvent.match_session_id, func.count(MatchEvent.id))
                .where(MatchEvent.match_session_id.in_(ids), MatchEvent.is_deleted.is_(False))
                .group_by(MatchEvent.match_session_id)
            ).all()
        )
    return [
        {
            **match_to_dict(m),
            "counts": {
                "roster": roster_counts.get(m.id, 0),
                "events": event_counts.get(m.id, 0),
            },
        }
        for m in matches
    ]


def full_season_data(
    session: Session, season_id: int, now: Optional[datetime] = None
) -> dict[str, Any]:
    season = get_season(session, season_id)
    teams = season_teams(session, season_id)
    fixtures = season_fixtures(session, season_id)
    standings = season_standings(session, season_id)
    sessions = _season_sessions(session, season_id)

    by_fixture: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for match in sessions:
        by_fixture[match["fixture_match_id"]].append(match)
    for fixture in fixtures:
        fixture["match_sessions"] = by_fixture.get(fixture["id"], [])

    return {
        "season": _with_status(season, now or utcnow()),
        "teams": teams,
        "fixtures": fixtures,
        "standings": standings,
        "summary": {
            "teams": len(teams),
            "fixtures": len(fixtures),
            "standings": len(standings),
            "match_sessions": len(sessions),
        },
    }


# --- Round availability ----------------------------------------------------


def availability_status(fixture: FixtureMatch, enabled: bool) -> dict[str, Any]:
    if not enabled:
        return {"status_short": "DIS", "status_long": "Disabled by admin", "is_finished": False}
    has_score = fixture.home_score is not None or fixture.away_score is not None
    if fixture.is_finished or has_score:
        return {"status_short": "FT", "status_long": "Match Finished", "is_finished": True}
    return {"status_short": "NS", "status_long": "Not Started", "is_finished": False}


def set_round_availability(
    session: Session,
    season_id: int,
    round_number: int,
    enabled: bool,
    actor_user_id: Optional[int] = None,
) -> dict[str, Any]:
    get_season(session, season_id)
    fixtures = session.scalars(
        select(FixtureMatch).where(
            FixtureMatch.season_id == season_id, FixtureMatch.round == round_number
        )
    ).all()
    for fixture in fixtures:
        for key, value in availability_status(fixture, enabled).items():
            setattr(fixture, key, value)

    result = {
        "season_id": season_id,
        "round": round_number,
        "enabled": enabled,
        "updated": len(fixtures),
    }
    write_audit(session, actor_user_id, "SEASON_ROUND_AVAILABILITY", "Season", season_id, result)
    session.commit()
    logger.info(
        f"Round {round_number} {'enabled' if enabled else 'disabled'}",
        extra={"season_id": season_id, "fixtures": len(fixtures)},
    )
    return result


# --- Update / delete -------------------------------------------------------


def update_season(
    session: Session,
    season_id: int,
    data: dict[str, Any],
    actor_user_id: Optional[int] = None,
) -> Season:
    season = get_season(session, season_id)
    if data.get("competition_id") is not None:
        get_competition(session, data["competition_id"])
        season.competition_id = data["competition_id"]
    if data.get("name"):
        season.name = data["name"]
    for field in ("start_date", "end_date"):
        if field in data:
            setattr(season, field, _season_date(data, field))
    write_audit(session, actor_user_id, "SEASON_UPDATE", "Season", season_id, data)
    session.commit()
    session.refresh(season)
    return season


def delete_season(
    session: Session, season_id: int, actor_user_id: Optional[int] = None
) -> dict[str, str]:
    season = get_season(session, season_id)
    counts = {
        "teams_count": session.scalar(
            select(func.count(TeamSeason.id)).where(TeamSeason.season_id == season_id)
        ),
        "standings_count": session.scalar(
            select(func.count(SeasonStanding.id)).where(SeasonStanding.season_id == season_id)
        ),
        "fixtures_count": session.scalar(
            select(func.count(FixtureMatch.id)).where(FixtureMatch.season_id == season_id)
        ),
        "sessions_count": session.scalar(
            select(func.count(MatchSession.id))
            .join(FixtureMatch, MatchSession.fixture_match_id == FixtureMatch.id)
            .where(FixtureMatch.season_id == season_id)
        ),
    }
    if sum(counts.values()) > 0:
        write_audit(session, actor_user_id, "SEASON_DELETE_BLOCKED", "Season", season_id, counts)
        session.commit()
        logger.warning("Season delete blocked", extra={"season_id": season_id, **counts})
        raise ConflictError(
            "Season cannot be deleted because it has related data "
            f"(teams: {counts['teams_count']}, standings: {counts['standings_count']}, "
            f"fixtures: {counts['fixtures_count']}, sessions: {counts['sessions_count']})",
            details=counts,
        )

    session.delete(season)
    write_audit(session, actor_user_id, "SEASON_DELETE", "Season", season_id, counts)
    session.commit()
    logger.info("Season deleted", extra={"season_id": season_id})
    return {"message": "Season deleted successfully"}
