"""
Export services: full match export and the teams catalogue dump.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.domain.models import EventType, TeamSide

from ..schema import MatchEvent, MatchRosterPlayer, Team
from ..serializers import narrator_to_dict, row_to_dict
from .matches import get_match

logger = logging.getLogger(__name__)


def _side_stats(events: list[dict[str, Any]]) -> dict[str, int]:
    def count(event_type: EventType) -> int:
        return sum(1 for e in events if e["event_type"] == event_type.value)

    return {
        "goals": count(EventType.GOAL),
        "yellow_cards": count(EventType.YELLOW_CARD),
        "red_cards": count(EventType.RED_CARD),
        "total_events": len(events),
    }


def export_match(session: Session, match_id: int, now: Optional[datetime] = None) -> dict[str, Any]:
    match = get_match(session, match_id)
    roster = session.scalars(
        select(MatchRosterPlayer)
        .where(MatchRosterPlayer.match_session_id == match_id)
        .order_by(MatchRosterPlayer.is_home_team.desc(), MatchRosterPlayer.jersey_number, MatchRosterPlayer.id)
    ).all()
    events = session.scalars(
        select(MatchEvent)
        .where(MatchEvent.match_session_id == match_id, MatchEvent.is_deleted.is_(False))
        .order_by(MatchEvent.minute, MatchEvent.second, MatchEvent.created_at, MatchEvent.id)
        .options(selectinload(MatchEvent.roster_player))
    ).all()

    roster_rows = [row_to_dict(r) for r in roster]
    event_rows = [row_to_dict(e) for e in events]
    home_events = [e for e in event_rows if e["team_side"] == TeamSide.HOME.value]
    away_events = [e for e in event_rows if e["team_side"] == TeamSide.AWAY.value]
    home_stats = _side_stats(home_events)
    away_stats = _side_stats(away_events)

    exported_at = (now or datetime.now(timezone.utc)).isoformat()
    logger.info("Match exported", extra={"match_id": match_id, "events": len(event_rows)})
    return {
        "match": {
            "id": match.id,
            "match_date": match.match_date.isoformat() if match.match_date else None,
            "venue": match.venue,
            "status": match.status.value,
            "current_period": match.current_period.value,
            "elapsed_seconds": match.elapsed_seconds,
            "first_half_added_time": match.first_half_added_time,
            "second_half_added_time": match.second_half_added_time,
            "created_at": match.created_at.isoformat() if match.created_at else None,
            "updated_at": match.updated_at.isoformat() if match.updated_at else None,
        },
        "narrator": narrator_to_dict(match.narrator),
        "teams": {"home": row_to_dict(match.home_team), "away": row_to_dict(match.away_team)},
        "roster": {
            "home": [r for r in roster_rows if r["is_home_team"]],
            "away": [r for r in roster_rows if not r["is_home_team"]],
        },
        "events": {"all": event_rows, "home": home_events, "away": away_events},
        "stats": {"home": home_stats, "away": away_stats},
        "score": {"home": home_stats["goals"], "away": away_stats["goals"]},
        "exported_at": exported_at,
    }


# --- Teams catalogue -------------------------------------------------------


def teams_catalogue(session: Session) -> list[dict[str, Any]]:
    teams = session.scalars(select(Team).order_by(Team.name, Team.id)).all()
    catalogue = []
    for t in teams:
        row = {"name": t.name, "shortName": t.short_name, "logo": t.logo, "city": t.city}
        catalogue.append({k: v for k, v in row.items() if v is not None})
    return catalogue


def export_teams(
    session: Session, output: Path, season_file: Optional[Path] = None
) -> dict[str, Any]:
    """Writes ``{"teams": [...]}`` to ``output``; optionally rewrites the teams of a
    manual-season JSON file into a sibling ``<name>.teams-updated.json``."""
    teams = teams_catalogue(session)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps({"teams": teams}, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    result: dict[str, Any] = {"teams": len(teams), "output": str(output), "season_output": None}

    if season_file is not None:
        document = json.loads(season_file.read_text(encoding="utf-8"))
        document["teams"] = teams
        target = season_file.with_name(f"{season_file.stem}.teams-updated.json")
        target.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        result["season_output"] = str(target)

    logger.info(f"Exported {len(teams)} teams to {output}")
    return result
