"""
Meta API Endpoints
Gemeinsame Konstanten für das Dashboard (Hotkeys, Spielfeld, Spielzeiten)
"""

import time

from fastapi import APIRouter, Depends

from matchnarrator.api.dependencies import get_settings
from matchnarrator.api.models import APIResponse, ok
from matchnarrator.core.config import Settings
from matchnarrator.domain.models import (
    FIELD_HEIGHT,
    FIELD_WIDTH,
    HOTKEY_MAPPINGS,
    STATUS_TRANSITIONS,
    EventType,
    MatchPeriod,
    MatchStatus,
    PlayerPosition,
    TeamSide,
)

router = APIRouter()


@router.get("/meta", response_model=APIResponse)
def get_meta(settings: Settings = Depends(get_settings)):
    start_time = time.time()
    data = {
        "hotkeys": {key: value.value for key, value in HOTKEY_MAPPINGS.items()},
        "field": {"width": FIELD_WIDTH, "height": FIELD_HEIGHT},
        "half_duration_minutes": settings.half_duration_minutes,
        "extra_time_duration_minutes": settings.extra_time_duration_minutes,
        "status_transitions": {
            status.value: sorted(t.value for t in targets) for status, targets in STATUS_TRANSITIONS.items()
        },
        "event_types": [e.value for e in EventType],
        "periods": [p.value for p in MatchPeriod],
        "statuses": [s.value for s in MatchStatus],
        "team_sides": [s.value for s in TeamSide],
        "positions": [p.value for p in PlayerPosition],
    }
    return ok(data, start_time)
