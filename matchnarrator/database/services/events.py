"""
Database services for match events: logging, filtering and soft delete / restore.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.common.timeutils import utcnow
from matchnarrator.domain.errors import BadRequestError, NotFoundError
from matchnarrator.domain.models import EventType, MatchPeriod, TeamSide

from ..schema import MatchEvent, MatchRosterPlayer
from .matches import get_match

logger = logging.getLogger(__name__)


def _check_roster_player(
    session: Session, match_id: int, roster_player_id: int, team_side: TeamSide
) -> MatchRosterPlayer:
    entry = session.scalar(
        select(MatchRosterPlayer).where(
            MatchRosterPlayer.id == roster_player_id,
            MatchRosterPlayer.match_session_id == match_id,
        )
    )
    if entry is None:
        raise NotFoundError(f"Roster player with ID {roster_player_id} not found in this match")
    if entry.is_home_team != (team_side == TeamSide.HOME):
        raise BadRequestError(
            f"Roster player {roster_player_id} does not belong to the {team_side.value} side"
        )
    return entry


def _check_time(minute: Optional[int], second: Optional[int]) -> None:
    if minute is not None and minute < 0:
        raise BadRequestError("minute must be >= 0")
    if second is not None and not 0 <= second <= 59:
        raise BadRequestError("second must be between 0 and 59")


def create_event(session: Session, match_id: int, data: dict[str, Any]) -> MatchEvent:
    get_match(session, match_id)
    team_side = TeamSide(data["team_side"])
    _check_time(data["minute"], data.get("second", 0))
    roster_player_id = data.get("roster_player_id")
    if roster_player_id is not None:
        _check_roster_player(session, match_id, roster_player_id, team_side)

    event = MatchEvent(
        match_session_id=match_id,
        roster_player_id=roster_player_id,
        team_side=team_side,
        event_type=EventType(data["event_type"]),
        period=MatchPeriod(data["period"]),
        minute=data["minute"],
        second=data.get("second", 0),
        payload=data.get("payload"),
        is_deleted=False,
    )
    session.add(event)
    session.commit()
    logger.info(
        f"Event logged: {event.event_type.value}",
        extra={"match_id": match_id, "event_id": event.id, "minute": event.minute},
    )
    return event


def list_events(
    session: Session,
    match_id: int,
    *,
    team_side: Optional[TeamSide] = None,
    event_type: Optional[EventType] = None,
    period: Optional[MatchPeriod] = None,
) -> list[MatchEvent]:
    get_match(session, match_id)
    stmt = select(MatchEvent).where(
        MatchEvent.match_session_id == match_id, MatchEvent.is_deleted.is_(False)
    )
    if team_side is not None:
        stmt = stmt.where(MatchEvent.team_side == team_side)
    if event_type is not None:
        stmt = stmt.where(MatchEvent.event_type == event_type)
    if period is not None:
        stmt = stmt.where(MatchEvent.period == period)
    stmt = stmt.order_by(
        MatchEvent.minute, MatchEvent.second, MatchEvent.created_at, MatchEvent.id
    ).options(selectinload(MatchEvent.roster_player))
    return list(session.scalars(stmt))


def get_event(session: Session, match_id: int, event_id: int) -> MatchEvent:
    """Returns the event even when soft-deleted."""
    event = session.scalar(
        select(MatchEvent).where(MatchEvent.id == event_id, MatchEvent.match_session_id == match_id)
    )
    if event is None:
        raise NotFoundError(f"Event with ID {event_id} not found in match {match_id}")
    return event


def _get_active_event(session: Session, match_id: int, event_id: int) -> MatchEvent:
    event = get_event(session, match_id, event_id)
    if event.is_deleted:
        raise NotFoundError(f"Event with ID {event_id} is deleted")
    return event


def update_event(session: Session, match_id: int, event_id: int, data: dict[str, Any]) -> MatchEvent:
    event = _get_active_event(session, match_id, event_id)
    _check_time(data.get("minute"), data.get("second"))

    team_side = TeamSide(data["team_side"]) if data.get("team_side") else event.team_side
    roster_player_id = data["roster_player_id"] if "roster_player_id" in data else event.roster_player_id
    if roster_player_id is not None and ("roster_player_id" in data or "team_side" in data):
        _check_roster_player(session, match_id, roster_player_id, team_side)

    if "roster_player_id" in data:
        event.roster_player_id = roster_player_id
    event.team_side = team_side
    if data.get("event_type"):
        event.event_type = EventType(data["event_type"])
    if data.get("period"):
        event.period = MatchPeriod(data["period"])
    if data.get("minute") is not None:
        event.minute = data["minute"]
    if data.get("second") is not None:
        event.second = data["second"]
    if "payload" in data:
        event.payload = data["payload"]
    session.commit()
    session.refresh(event)
    return event


def delete_event(
    session: Session, match_id: int, event_id: int, now: Optional[datetime] = None
) -> dict[str, str]:
    event = _get_active_event(session, match_id, event_id)
    event.is_deleted = True
    event.deleted_at = now or utcnow()
    session.commit()
    logger.info("Event soft-deleted", extra={"match_id": match_id, "event_id": event_id})
    return {"message": "Event deleted successfully"}


def restore_event(session: Session, match_id: int, event_id: int) -> dict[str, str]:
    event = get_event(session, match_id, event_id)
    if not event.is_deleted:
        raise NotFoundError(f"Event with ID {event_id} is not deleted")
    event.is_deleted = False
    event.deleted_at = None
    session.commit()
    logger.info("Event restored", extra={"match_id": match_id, "event_id": event_id})
    return {"message": "Event restored successfully"}


def last_deleted_event(session: Session, match_id: int) -> Optional[MatchEvent]:
    get_match(session, match_id)
    return session.scalar(
        select(MatchEvent)
        .where(MatchEvent.match_session_id == match_id, MatchEvent.is_deleted.is_(True))
        .order_by(MatchEvent.deleted_at.desc(), MatchEvent.id.desc())
        .limit(1)
        .options(selectinload(MatchEvent.roster_player))
    )
