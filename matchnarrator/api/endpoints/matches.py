"""
Matches API Endpoints
API Routen für Spiel-Sessions und die Spieluhr
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import (
    get_current_user,
    get_db_session,
    get_match_clock,
    get_metrics,
)
from matchnarrator.api.models import (
    AddedTimeRequest,
    APIResponse,
    ElapsedRequest,
    EndPeriodRequest,
    MatchCreateRequest,
    MatchUpdateRequest,
    ok,
)
from matchnarrator.database.schema import User
from matchnarrator.database.serializers import match_to_dict
from matchnarrator.database.services import matches as match_service
from matchnarrator.domain.models import MatchStatus
from matchnarrator.domain.timer import MatchClock
from matchnarrator.monitoring.prometheus_metrics import PrometheusMetrics

router = APIRouter(prefix="/matches")


def _record(metrics: Optional[PrometheusMetrics], action: str) -> None:
    if metrics is not None:
        metrics.record_timer_action(action)


@router.post("", response_model=APIResponse, status_code=201)
def create_match(
    body: MatchCreateRequest,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    """Create a match session owned by the current user"""
    start_time = time.time()
    match = match_service.create_match(session, user, body.to_data())
    return ok(match_to_dict(match), start_time)


@router.get("", response_model=APIResponse)
def list_matches(
    status: Optional[MatchStatus] = None,
    include_all: Optional[str] = Query(default=None, alias="all"),
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    start_time = time.time()
    show_all = (include_all or "").lower() in ("1", "true")
    return ok(match_service.list_matches(session, user, status=status, include_all=show_all), start_time)


@router.get("/{match_id}", response_model=APIResponse)
def get_match(
    match_id: int,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
):
    """Match with teams, roster, events and the current clock reading"""
    start_time = time.time()
    return ok(match_service.get_match_detail(session, match_id, user, clock=clock), start_time)


@router.patch("/{match_id}", response_model=APIResponse)
def update_match(
    match_id: int,
    body: MatchUpdateRequest,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
):
    start_time = time.time()
    match = match_service.update_match(session, match_id, user, body.to_data(), clock=clock)
    return ok(match_to_dict(match), start_time)


@router.delete("/{match_id}", response_model=APIResponse)
def delete_match(
    match_id: int,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    start_time = time.time()
    return ok(match_service.delete_match(session, match_id, user), start_time)


@router.get("/{match_id}/squad-options", response_model=APIResponse)
def get_squad_options(
    match_id: int,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    """Season squads of both teams, flagged when already in the roster"""
    start_time = time.time()
    return ok(match_service.squad_options(session, match_id, user), start_time)


# --- Timer -----------------------------------------------------------------


@router.get("/{match_id}/timer", response_model=APIResponse)
def read_timer(
    match_id: int,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
):
    start_time = time.time()
    return ok(match_service.read_clock(session, match_id, user, clock=clock), start_time)


@router.post("/{match_id}/timer/start", response_model=APIResponse)
def start_timer(
    match_id: int,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    result = match_service.start_timer(session, match_id, user, clock=clock)
    _record(metrics, "start")
    return ok(result, start_time)


@router.post("/{match_id}/timer/pause", response_model=APIResponse)
def pause_timer(
    match_id: int,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    result = match_service.pause_timer(session, match_id, user, clock=clock)
    _record(metrics, "pause")
    return ok(result, start_time)


@router.post("/{match_id}/timer/end-period", response_model=APIResponse)
def end_period(
    match_id: int,
    body: Optional[EndPeriodRequest] = None,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    """End the current period; ``force`` skips the regulation-time check"""
    start_time = time.time()
    body = body or EndPeriodRequest()
    result = match_service.end_period(
        session, match_id, user, force=body.force, extra_time=body.extra_time, clock=clock
    )
    _record(metrics, "end_period")
    return ok(result, start_time)


@router.patch("/{match_id}/timer/elapsed", response_model=APIResponse)
def sync_elapsed(
    match_id: int,
    body: ElapsedRequest,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: MatchClock = Depends(get_match_clock),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    result = match_service.sync_elapsed(session, match_id, user, body.seconds, clock=clock)
    _record(metrics, "sync")
    return ok(result, start_time)


@router.patch("/{match_id}/timer/added-time", response_model=APIResponse)
def update_added_time(
    match_id: int,
    body: AddedTimeRequest,
    session: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    start_time = time.time()
    result = match_service.update_added_time(
        session,
        match_id,
        user,
        first_half_added_time=body.first_half_added_time,
        second_half_added_time=body.second_half_added_time,
    )
    return ok(result, start_time)
