"""
Teams API Endpoints
API Routen für Team-bezogene Operationen
"""

import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session, require_superadmin
from matchnarrator.api.models import (
    APIResponse,
    TeamRequest,
    TeamSeasonAssignRequest,
    TeamUpdateRequest,
    ok,
)
from matchnarrator.database.schema import User
from matchnarrator.database.serializers import team_to_dict
from matchnarrator.database.services import teams as team_service

router = APIRouter(prefix="/teams")


@router.post("", response_model=APIResponse, status_code=201)
def create_team(
    body: TeamRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    return ok(team_to_dict(team_service.create_team(session, body.to_data(), admin.id)), start_time)


@router.get("", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def list_teams(session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(team_service.list_teams(session), start_time)


@router.get("/{team_id}", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def get_team(team_id: int, session: Session = Depends(get_db_session)):
    """Team with its seasons, squads and latest match sessions"""
    start_time = time.time()
    return ok(team_service.get_team_detail(session, team_id), start_time)


@router.patch("/{team_id}", response_model=APIResponse)
def update_team(
    team_id: int,
    body: TeamUpdateRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    team = team_service.update_team(session, team_id, body.to_data(), admin.id)
    return ok(team_to_dict(team), start_time)


@router.delete("/{team_id}", response_model=APIResponse)
def delete_team(
    team_id: int,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    return ok(team_service.delete_team(session, team_id, admin.id), start_time)


@router.post("/{team_id}/seasons", response_model=APIResponse, status_code=201)
def assign_team_to_season(
    team_id: int,
    body: TeamSeasonAssignRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    return ok(team_service.assign_to_season(session, team_id, body.season_id, admin.id), start_time)
