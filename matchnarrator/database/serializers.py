"""
Serializers
Wandelt ORM-Objekte in JSON-fähige dicts für API-Antworten und Exporte
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional

from sqlalchemy import inspect

from .schema import (
    AuditLog,
    Competition,
    FixtureMatch,
    MatchEvent,
    MatchRosterPlayer,
    MatchSession,
    Player,
    PlayerSeason,
    Season,
    SeasonStanding,
    Team,
    TeamSeason,
    User,
)


def _value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def row_to_dict(obj: Any, *, exclude: Iterable[str] = ()) -> Optional[dict[str, Any]]:
    """Column attributes of an ORM instance as a plain dict."""
    if obj is None:
        return None
    skip = set(exclude)
    return {
        attr.key: _value(getattr(obj, attr.key))
        for attr in inspect(obj).mapper.column_attrs
        if attr.key not in skip
    }


def user_to_dict(user: User) -> dict[str, Any]:
    return row_to_dict(user, exclude=("password_hash",))


def narrator_to_dict(user: Optional[User]) -> Optional[dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "email": user.email, "name": user.name, "role": _value(user.role)}


def team_to_dict(team: Optional[Team]) -> Optional[dict[str, Any]]:
    return row_to_dict(team)


def competition_to_dict(competition: Competition) -> dict[str, Any]:
    return row_to_dict(competition)


def season_to_dict(season: Season, *, with_competition: bool = True) -> dict[str, Any]:
    data = row_to_dict(season)
    if with_competition:
        data["competition"] = row_to_dict(season.competition)
    return data


def player_to_dict(player: Player) -> dict[str, Any]:
    return row_to_dict(player)


def player_season_to_dict(ps: PlayerSeason, *, with_player: bool = True) -> dict[str, Any]:
    data = row_to_dict(ps)
    if with_player:
        data["player"] = row_to_dict(ps.player)
    return data


def team_season_to_dict(ts: TeamSeason) -> dict[str, Any]:
    data = row_to_dict(ts)
    data["team"] = row_to_dict(ts.team)
    data["season"] = season_to_dict(ts.season) if ts.season is not None else None
    return data


def fixture_to_dict(fixture: FixtureMatch) -> dict[str, Any]:
    data = row_to_dict(fixture)
    data["home_team"] = row_to_dict(fixture.home_team)
    data["away_team"] = row_to_dict(fixture.away_team)
    return data


def standing_to_dict(standing: SeasonStanding) -> dict[str, Any]:
    data = row_to_dict(standing)
    data["team"] = row_to_dict(standing.team)
    return data


def roster_to_dict(entry: MatchRosterPlayer) -> dict[str, Any]:
    data = row_to_dict(entry)
    data["player"] = row_to_dict(entry.player)
    return data


def event_to_dict(event: MatchEvent) -> dict[str, Any]:
    data = row_to_dict(event)
    data["roster_player"] = row_to_dict(event.roster_player)
    return data


def match_to_dict(match: MatchSession) -> dict[str, Any]:
    data = row_to_dict(match)
    data["narrator"] = narrator_to_dict(match.narrator)
    data["home_team"] = row_to_dict(match.home_team)
    data["away_team"] = row_to_dict(match.away_team)
    return data


def audit_to_dict(entry: AuditLog) -> dict[str, Any]:
    return row_to_dict(entry)
