"""
Database services for the match roster (players on the field for one match session).
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.domain.errors import BadRequestError, ConflictError, NotFoundError
from matchnarrator.domain.models import FIELD_HEIGHT, FIELD_WIDTH, PlayerPosition

from ..schema import MatchRosterPlayer, Player, Team
from .matches import get_match

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("custom_name", "jersey_number", "is_starter", "position", "layout_x", "layout_y")


def _clamp(value: float, upper: int) -> float:
    return min(max(float(value), 0.0), float(upper))


def add_roster_player(session: Session, match_id: int, data: dict[str, Any]) -> MatchRosterPlayer:
    match = get_match(session, match_id)
    player_id, team_id = data["player_id"], data["team_id"]
    if session.get(Player, player_id) is None:
        raise NotFoundError.for_entity("Player", player_id)
    if session.get(Team, team_id) is None:
        raise NotFoundError.for_entity("Team", team_id)

    is_home = bool(data["is_home_team"])
    expected = match.home_team_id if is_home else match.away_team_id
    if team_id != expected:
        raise BadRequestError(f"Team ID does not match {'home' if is_home else 'away'} team")

    existing = session.scalar(
        select(MatchRosterPlayer).where(
            MatchRosterPlayer.match_session_id == match_id,
            MatchRosterPlayer.player_id == player_id,
        )
    )
    if existing is not None:
        raise ConflictError("Player is already in the roster")

    position = data.get("position")
    entry = MatchRosterPlayer(
        match_session_id=match_id,
        player_id=player_id,
        team_id=team_id,
        jersey_number=data["jersey_number"],
        is_home_team=is_home,
        custom_name=data.get("custom_name"),
        is_starter=True if data.get("is_starter") is None else bool(data["is_starter"]),
        position=PlayerPosition(position) if position else None,
    )
    session.add(entry)
    session.commit()
    logger.info("Roster player added", extra={"match_id": match_id, "roster_id": entry.id})
    return entry


def list_roster(session: Session, match_id: int) -> list[MatchRosterPlayer]:
    get_match(session, match_id)
    return list(
        session.scalars(
            select(MatchRosterPlayer)
            .where(MatchRosterPlayer.match_session_id == match_id)
            .order_by(
                MatchRosterPlayer.is_home_team.desc(),
                MatchRosterPlayer.jersey_number,
                MatchRosterPlayer.id,
            )
            .options(selectinload(MatchRosterPlayer.player))
        )
    )


def get_roster_player(session: Session, match_id: int, roster_id: int) -> MatchRosterPlayer:
    entry = session.scalar(
        select(MatchRosterPlayer).where(
            MatchRosterPlayer.id == roster_id, MatchRosterPlayer.match_session_id == match_id
        )
    )
    if entry is None:
        raise NotFoundError(f"Roster player with ID {roster_id} not found in match {match_id}")
    return entry


def update_roster_player(
    session: Session, match_id: int, roster_id: int, data: dict[str, Any]
) -> MatchRosterPlayer:
    entry = get_roster_player(session, match_id, roster_id)
    for field in UPDATABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "layout_x" and value is not None:
            value = _clamp(value, FIELD_WIDTH)
        elif field == "layout_y" and value is not None:
            value = _clamp(value, FIELD_HEIGHT)
        elif field == "position" and value:
            value = PlayerPosition(value)
        elif field in ("jersey_number", "is_starter") and value is None:
            continue
        setattr(entry, field, value)
    session.commit()
    return entry


def remove_roster_player(session: Session, match_id: int, roster_id: int) -> dict[str, str]:
    entry = get_roster_player(session, match_id, roster_id)
    session.delete(entry)
    session.commit()
    logger.info("Roster player removed", extra={"match_id": match_id, "roster_id": roster_id})
    return {"message": "Roster player removed successfully"}
