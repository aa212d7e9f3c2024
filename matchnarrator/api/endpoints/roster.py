"""
Roster API Endpoints
Spieler auf dem Feld für eine Spiel-Session
"""

import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session
from matchnarrator.api.models import APIResponse, RosterCreateRequest, RosterUpdateRequest, ok
from matchnarrator.database.serializers import roster_to_dict
from matchnarrator.database.services import roster as roster_service

router = APIRouter(prefix="/matches/{match_id}/roster", dependencies=[Depends(get_current_user)])


@router.post("", response_model=APIResponse, status_code=201)
def add_roster_player(match_id: int, body: RosterCreateRequest, session: Session = Depends(get_db_session)):
    start_time = time.time()
    entry = roster_service.add_roster_player(session, match_id, body.to_data())
    return ok(roster_to_dict(entry), start_time)


@router.get("", response_model=APIResponse)
def list_roster(match_id: int, session: Session = Depends(get_db_session)):
    """Home side first, then by jersey number"""
    start_time = time.time()
    return ok([roster_to_dict(r) for r in roster_service.list_roster(session, match_id)], start_time)


@router.get("/{roster_id}", response_model=APIResponse)
def get_roster_player(match_id: int, roster_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(roster_to_dict(roster_service.get_roster_player(session, match_id, roster_id)), start_time)


@router.patch("/{roster_id}", response_model=APIResponse)
def update_roster_player(
    match_id: int,
    roster_id: int,
    body: RosterUpdateRequest,
    session: Session = Depends(get_db_session),
):
    """Partial update; layoutX / layoutY are clamped to the field"""
    start_time = time.time()
    entry = roster_service.update_roster_player(session, match_id, roster_id, body.to_data())
    return ok(roster_to_dict(entry), start_time)


@router.delete("/{roster_id}", response_model=APIResponse)
def remove_roster_player(match_id: int, roster_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(roster_service.remove_roster_player(session, match_id, roster_id), start_time)
