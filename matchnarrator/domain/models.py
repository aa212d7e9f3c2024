"""
Domain enumerations and shared constants for the narration console.
"""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "SUPERADMIN"
    NARRADOR = "NARRADOR"


class PlayerPosition(str, Enum):
    GK = "GK"  # Goalkeeper
    DF = "DF"  # Defender
    MF = "MF"  # Midfielder
    FW = "FW"  # Forward


class MatchStatus(str, Enum):
    SETUP = "SETUP"
    LIVE = "LIVE"
    HALFTIME = "HALFTIME"
    FINISHED = "FINISHED"


class MatchPeriod(str, Enum):
    FIRST_HALF = "FIRST_HALF"
    SECOND_HALF = "SECOND_HALF"
    EXTRA_TIME_FIRST = "EXTRA_TIME_FIRST"
    EXTRA_TIME_SECOND = "EXTRA_TIME_SECOND"
    PENALTIES = "PENALTIES"


class TeamSide(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"


class EventType(str, Enum):
    GOAL = "GOAL"
    FOUL = "FOUL"
    SAVE = "SAVE"
    OFFSIDE = "OFFSIDE"
    PASS = "PASS"
    SUBSTITUTION = "SUBSTITUTION"
    YELLOW_CARD = "YELLOW_CARD"
    RED_CARD = "RED_CARD"
    CORNER = "CORNER"
    FREEKICK = "FREEKICK"
    PENALTY = "PENALTY"
    SHOT = "SHOT"
    OTHER = "OTHER"


class SeasonStatus(str, Enum):
    CURRENT = "CURRENT"
    HISTORICAL = "HISTORICAL"
    UPCOMING = "UPCOMING"


# Allowed manual status changes (PATCH /matches/{id})
STATUS_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.SETUP: frozenset({MatchStatus.LIVE}),
    MatchStatus.LIVE: frozenset({MatchStatus.HALFTIME, MatchStatus.FINISHED}),
    MatchStatus.HALFTIME: frozenset({MatchStatus.LIVE}),
    MatchStatus.FINISHED: frozenset(),
}

# --- Console constants ---

HOTKEY_MAPPINGS: dict[str, EventType] = {
    "G": EventType.GOAL,
    "F": EventType.FOUL,
    "A": EventType.SAVE,
    "O": EventType.OFFSIDE,
    "P": EventType.PASS,
    "C": EventType.SUBSTITUTION,
    "Y": EventType.YELLOW_CARD,
    "R": EventType.RED_CARD,
    "S": EventType.SHOT,
    "K": EventType.CORNER,
}

HALF_DURATION_MINUTES = 45
EXTRA_TIME_DURATION_MINUTES = 15

FIELD_WIDTH = 800
FIELD_HEIGHT = 600

# --- Import constants (API-Football) ---

FINISHED_FIXTURE_STATUSES = frozenset({"FT", "AET", "PEN"})

API_POSITION_MAP: dict[str, PlayerPosition] = {
    "goalkeeper": PlayerPosition.GK,
    "defender": PlayerPosition.DF,
    "midfielder": PlayerPosition.MF,
    "attacker": PlayerPosition.FW,
    "forward": PlayerPosition.FW,
}


def map_api_position(value: str | None) -> PlayerPosition | None:
    """API-Football position name or a position code ("GK") -> PlayerPosition."""
    if not value:
        return None
    cleaned = value.strip()
    if cleaned.upper() in PlayerPosition.__members__:
        return PlayerPosition[cleaned.upper()]
    return API_POSITION_MAP.get(cleaned.lower())
