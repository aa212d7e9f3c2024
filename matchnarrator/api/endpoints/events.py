"""
Events API Endpoints
Ereignis-Erfassung mit Soft-Delete und Wiederherstellung
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session, get_metrics
from matchnarrator.api.models import APIResponse, EventCreateRequest, EventUpdateRequest, ok
from matchnarrator.database.serializers import event_to_dict
from matchnarrator.database.services import events as event_service
from matchnarrator.domain.models import EventType, MatchPeriod, TeamSide
from matchnarrator.monitoring.prometheus_metrics import PrometheusMetrics

router = APIRouter(prefix="/matches/{match_id}/events", dependencies=[Depends(get_current_user)])


@router.post("", response_model=APIResponse, status_code=201)
def create_event(
    match_id: int,
    body: EventCreateRequest,
    session: Session = Depends(get_db_session),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    event = event_service.create_event(session, match_id, body.to_data())
    if metrics is not None:
        metrics.record_event_action("create", body.event_type.value)
    return ok(event_to_dict(event), start_time)


@router.get("", response_model=APIResponse)
def list_events(
    match_id: int,
    team_side: Optional[TeamSide] = Query(default=None, alias="teamSide"),
    event_type: Optional[EventType] = Query(default=None, alias="eventType"),
    period: Optional[MatchPeriod] = None,
    session: Session = Depends(get_db_session),
):
    """Non-deleted events ordered by match time"""
    start_time = time.time()
    events = event_service.list_events(
        session, match_id, team_side=team_side, event_type=event_type, period=period
    )
    return ok([event_to_dict(e) for e in events], start_time)


@router.get("/last-deleted", response_model=APIResponse)
def get_last_deleted_event(match_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    event = event_service.last_deleted_event(session, match_id)
    return ok(event_to_dict(event) if event is not None else None, start_time)


@router.get("/{event_id}", response_model=APIResponse)
def get_event(match_id: int, event_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(event_to_dict(event_service.get_event(session, match_id, event_id)), start_time)


@router.patch("/{event_id}", response_model=APIResponse)
def update_event(
    match_id: int,
    event_id: int,
    body: EventUpdateRequest,
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    event = event_service.update_event(session, match_id, event_id, body.to_data())
    return ok(event_to_dict(event), start_time)


@router.delete("/{event_id}", response_model=APIResponse)
def delete_event(
    match_id: int,
    event_id: int,
    session: Session = Depends(get_db_session),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    result = event_service.delete_event(session, match_id, event_id)
    if metrics is not None:
        metrics.record_event_action("delete")
    return ok(result, start_time)


@router.post("/{event_id}/restore", response_model=APIResponse)
def restore_event(
    match_id: int,
    event_id: int,
    session: Session = Depends(get_db_session),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    result = event_service.restore_event(session, match_id, event_id)
    if metrics is not None:
        metrics.record_event_action("restore")
    return ok(result, start_time)
