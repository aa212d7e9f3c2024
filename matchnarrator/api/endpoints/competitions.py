"""
Competitions API Endpoints
API Routen für Wettbewerbe
"""

import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session, require_superadmin
from matchnarrator.api.models import (
    APIResponse,
    CompetitionRequest,
    CompetitionUpdateRequest,
    ok,
)
from matchnarrator.database.schema import User
from matchnarrator.database.serializers import competition_to_dict
from matchnarrator.database.services import competitions as competition_service

router = APIRouter(prefix="/competitions")


@router.post("", response_model=APIResponse, status_code=201)
def create_competition(
    body: CompetitionRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    competition = competition_service.create_competition(session, body.to_data(), admin.id)
    return ok(competition_to_dict(competition), start_time)


@router.get("", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def list_competitions(session: Session = Depends(get_db_session)):
    """Competitions, newest first, with season counts"""
    start_time = time.time()
    return ok(competition_service.list_competitions(session), start_time)


@router.get("/{competition_id}", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def get_competition(competition_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(competition_service.get_competition_detail(session, competition_id), start_time)


@router.patch("/{competition_id}", response_model=APIResponse)
def update_competition(
    competition_id: int,
    body: CompetitionUpdateRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    competition = competition_service.update_competition(
        session, competition_id, body.to_data(), admin.id
    )
    return ok(competition_to_dict(competition), start_time)


@router.delete("/{competition_id}", response_model=APIResponse)
def delete_competition(
    competition_id: int,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    return ok(competition_service.delete_competition(session, competition_id, admin.id), start_time)
