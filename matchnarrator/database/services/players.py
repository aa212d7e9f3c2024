"""
Database services for players, squad assignments, bulk import and player summaries.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.common.text import normalize_key, split_full_name
from matchnarrator.common.timeutils import parse_date
from matchnarrator.domain.errors import BadRequestError, ConflictError, NotFoundError
from matchnarrator.domain.models import EventType, PlayerPosition, map_api_position

from ..schema import (
    FixtureMatch,
    MatchEvent,
    MatchRosterPlayer,
    MatchSession,
    Player,
    PlayerSeason,
    Season,
    Team,
    TeamSeason,
)
from ..serializers import player_season_to_dict, row_to_dict, team_season_to_dict
from .audit import write_audit

logger = logging.getLogger(__name__)

PLAYER_FIELDS = ("first_name", "last_name", "photo", "birth_date", "nationality", "position")


def _coerce(field: str, value: Any) -> Any:
    if field == "birth_date":
        return parse_date(value)
    if field == "position":
        if value in (None, ""):
            return None
        if isinstance(value, PlayerPosition):
            return value
        return map_api_position(str(value))
    return value


def _player_query():
    return select(Player).options(
        selectinload(Player.seasons)
        .selectinload(PlayerSeason.team_season)
        .selectinload(TeamSeason.team),
        selectinload(Player.seasons)
        .selectinload(PlayerSeason.team_season)
        .selectinload(TeamSeason.season)
        .selectinload(Season.competition),
    )


def _player_with_seasons(player: Player) -> dict[str, Any]:
    data = row_to_dict(player)
    data["seasons"] = [
        {
            **player_season_to_dict(ps, with_player=False),
            "team_season": team_season_to_dict(ps.team_season),
        }
        for ps in player.seasons
    ]
    return data


def get_player(session: Session, player_id: int) -> Player:
    player = session.get(Player, player_id)
    if player is None:
        raise NotFoundError.for_entity("Player", player_id)
    return player


def create_player(
    session: Session, data: dict[str, Any], actor_user_id: Optional[int] = None
) -> Player:
    player = Player(**{f: _coerce(f, data.get(f)) for f in PLAYER_FIELDS if f in data})
    if player.last_name is None:
        player.last_name = ""
    session.add(player)
    session.flush()
    write_audit(session, actor_user_id, "PLAYER_CREATE", "Player", player.id, data)
    session.commit()
    logger.info("Player created", extra={"player_id": player.id})
    return player


def list_players(session: Session) -> list[dict[str, Any]]:
    players = session.scalars(
        _player_query().order_by(Player.last_name, Player.first_name, Player.id)
    ).all()
    return [_player_with_seasons(p) for p in players]


def get_player_detail(session: Session, player_id: int) -> dict[str, Any]:
    player = session.scalar(_player_query().where(Player.id == player_id))
    if player is None:
        raise NotFoundError.for_entity("Player", player_id)
    return _player_with_seasons(player)


def update_player(
    session: Session, player_id: int, data: dict[str, Any], actor_user_id: Optional[int] = None
) -> Player:
    player = get_player(session, player_id)
    for field in PLAYER_FIELDS:
        if field in data:
            setattr(player, field, _coerce(field, data[field]))
    write_audit(session, actor_user_id, "PLAYER_UPDATE", "Player", player_id, data)
    session.commit()
    return player


def delete_player(
    session: Session, player_id: int, actor_user_id: Optional[int] = None
) -> dict[str, str]:
    player = get_player(session, player_id)
    appearances = session.scalar(
        select(func.count(MatchRosterPlayer.id)).where(MatchRosterPlayer.player_id == player_id)
    )
    if appearances:
        raise ConflictError(f"Player is part of {appearances} match roster(s)")
    session.delete(player)
    write_audit(session, actor_user_id, "PLAYER_DELETE", "Player", player_id, None)
    session.commit()
    logger.info("Player deleted", extra={"player_id": player_id})
    return {"message": "Player deleted successfully"}


def assign_to_team(
    session: Session,
    player_id: int,
    team_season_id: int,
    jersey_number: Optional[int] = None,
    actor_user_id: Optional[int] = None,
) -> dict[str, Any]:
    get_player(session, player_id)
    if session.get(TeamSeason, team_season_id) is None:
        raise NotFoundError.for_entity("TeamSeason", team_season_id)
    existing = session.scalar(
        select(PlayerSeason).where(
            PlayerSeason.player_id == player_id, PlayerSeason.team_season_id == team_season_id
        )
    )
    if existing is not None:
        raise ConflictError("Player is already assigned to this team season")

    assignment = PlayerSeason(
        player_id=player_id, team_season_id=team_season_id, jersey_number=jersey_number
    )
    session.add(assignment)
    session.flush()
    write_audit(
        session,
        actor_user_id,
        "PLAYER_ASSIGN_TEAM",
        "Player",
        player_id,
        {"team_season_id": team_season_id, "jersey_number": jersey_number},
    )
    session.commit()
    data = player_season_to_dict(assignment)
    data["team_season"] = team_season_to_dict(assignment.team_season)
    return data


# --- Upsert helpers shared with the import pipeline ------------------------


def normalize_player_names(item: dict[str, Any]) -> tuple[str, str]:
    """first/last from the item, falling back to splitting ``name``."""
    first = (item.get("first_name") or "").strip()
    last = (item.get("last_name") or "").strip()
    if (not first or not last) and item.get("name"):
        split_first, split_last = split_full_name(item["name"])
        first = first or split_first
        last = last or split_last
    return first, last


def find_or_create_player(
    session: Session, first_name: str, last_name: str, attrs: dict[str, Any]
) -> tuple[Player, bool]:
    player = session.scalar(
        select(Player)
        .where(Player.first_name == first_name, Player.last_name == last_name)
        .order_by(Player.id)
        .limit(1)
    )
    if player is not None:
        return player, False
    player = Player(
        first_name=first_name,
        last_name=last_name,
        photo=attrs.get("photo"),
        nationality=attrs.get("nationality"),
        birth_date=parse_date(attrs.get("birth_date")),
        position=_coerce("position", attrs.get("position")),
    )
    session.add(player)
    session.flush()
    return player, True


def ensure_assignment(
    session: Session, player_id: int, team_season_id: int, jersey_number: Optional[int]
) -> tuple[PlayerSeason, bool]:
    existing = session.scalar(
        select(PlayerSeason).where(
            PlayerSeason.player_id == player_id, PlayerSeason.team_season_id == team_season_id
        )
    )
    if existing is not None:
        return existing, False
    assignment = PlayerSeason(
        player_id=player_id, team_season_id=team_season_id, jersey_number=jersey_number
    )
    session.add(assignment)
    session.flush()
    return assignment, True


# --- Bulk import -----------------------------------------------------------


def bulk_import(
    session: Session, data: dict[str, Any], actor_user_id: Optional[int] = None
) -> dict[str, Any]:
    season_id = data["season_id"]
    if session.get(Season, season_id) is None:
        raise NotFoundError.for_entity("Season", season_id)
    teams = data.get("teams") or []
    if not teams:
        raise BadRequestError("teams array is required")

    team_seasons = session.scalars(
        select(TeamSeason)
        .where(TeamSeason.season_id == season_id)
        .options(selectinload(TeamSeason.team))
    ).all()
    by_id = {ts.id: ts for ts in team_seasons}
    by_name = {normalize_key(ts.team.name): ts for ts in team_seasons}

    results: list[dict[str, Any]] = []
    unresolved: list[str] = []
    for team_item in teams:
        team_season = None
        if team_item.get("team_season_id") is not None:
            team_season = by_id.get(team_item["team_season_id"])
        elif team_item.get("team_name"):
            team_season = by_name.get(normalize_key(team_item["team_name"]))
        if team_season is None:
            unresolved.append(
                str(team_item.get("team_name") or team_item.get("team_season_id") or "?")
            )
            continue

        cleared = 0
        if data.get("clear_existing_for_teams"):
            for assignment in list(team_season.players):
                session.delete(assignment)
                cleared += 1
            session.flush()
            session.expire(team_season, ["players"])

        created = assigned = updated = skipped = 0
        for item in team_item.get("players") or []:
            first, last = normalize_player_names(item)
            if not first:
                skipped += 1
                continue
            player, is_new = find_or_create_player(session, first, last, item)
            if is_new:
                created += 1
            assignment, is_assigned = ensure_assignment(
                session, player.id, team_season.id, item.get("jersey_number")
            )
            if is_assigned:
                assigned += 1
            elif item.get("jersey_number") is not None and assignment.jersey_number != item["jersey_number"]:
                assignment.jersey_number = item["jersey_number"]
                updated += 1

        results.append(
            {
                "team_season_id": team_season.id,
                "team_name": team_season.team.name,
                "cleared": cleared,
                "players_created": created,
                "assigned": assigned,
                "updated": updated,
                "skipped": skipped,
            }
        )

    summary = {
        "season_id": season_id,
        "teams": results,
        "unresolved_teams": unresolved,
        "totals": {
            "teams": len(results),
            "players_created": sum(r["players_created"] for r in results),
            "assigned": sum(r["assigned"] for r in results),
        },
    }
    write_audit(
        session,
        actor_user_id,
        "PLAYER_BULK_IMPORT",
        "Season",
        season_id,
        {"totals": summary["totals"], "unresolved_teams": unresolved},
    )
    session.commit()
    logger.info("Bulk player import finished", extra={"season_id": season_id, **summary["totals"]})
    return summary


# --- Summary ---------------------------------------------------------------


def player_summary(
    session: Session, player_id: int, season_id: Optional[int] = None
) -> dict[str, Any]:
    player = get_player(session, player_id)

    roster_stmt = select(MatchRosterPlayer).where(MatchRosterPlayer.player_id == player_id)
    if season_id is not None:
        roster_stmt = (
            roster_stmt.join(MatchSession, MatchRosterPlayer.match_session_id == MatchSession.id)
            .join(FixtureMatch, MatchSession.fixture_match_id == FixtureMatch.id)
            .where(FixtureMatch.season_id == season_id)
        )
    entries = session.scalars(roster_stmt).all()
    roster_ids = [e.id for e in entries]

    by_type: dict[str, int] = {}
    if roster_ids:
        by_type = {
            event_type.value: count
            for event_type, count in session.execute(
                select(MatchEvent.event_type, func.count(MatchEvent.id))
                .where(
                    MatchEvent.roster_player_id.in_(roster_ids),
                    MatchEvent.is_deleted.is_(False),
                )
                .group_by(MatchEvent.event_type)
            ).all()
        }

    teams = {
        t.id: t.name
        for t in session.scalars(select(Team).where(Team.id.in_({e.team_id for e in entries})))
    } if entries else {}

    return {
        "player": row_to_dict(player),
        "season_id": season_id,
        "appearances": len(entries),
        "starts": sum(1 for e in entries if e.is_starter),
        "matches": sorted({e.match_session_id for e in entries}),
        "teams": sorted(set(teams.values())),
        "events_by_type": by_type,
        "total_events": sum(by_type.values()),
        "goals": by_type.get(EventType.GOAL.value, 0),
        "yellow_cards": by_type.get(EventType.YELLOW_CARD.value, 0),
        "red_cards": by_type.get(EventType.RED_CARD.value, 0),
    }
