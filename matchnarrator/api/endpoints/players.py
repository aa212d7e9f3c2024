"""
Players API Endpoints
API Routen für Spieler, Kaderzuordnung und Spielerstatistiken
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session, require_superadmin
from matchnarrator.api.models import (
    APIResponse,
    BulkImportRequest,
    PlayerAssignRequest,
    PlayerRequest,
    PlayerUpdateRequest,
    ok,
)
from matchnarrator.database.schema import User
from matchnarrator.database.serializers import player_to_dict
from matchnarrator.database.services import players as player_service

router = APIRouter(prefix="/players")


@router.post("", response_model=APIResponse, status_code=201)
def create_player(
    body: PlayerRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    player = player_service.create_player(session, body.to_data(), admin.id)
    return ok(player_to_dict(player), start_time)


@router.post("/bulk-import", response_model=APIResponse)
def bulk_import_players(
    body: BulkImportRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    """Upsert players per team-season of a season and assign them"""
    start_time = time.time()
    return ok(player_service.bulk_import(session, body.to_data(), admin.id), start_time)


@router.get("", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def list_players(session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(player_service.list_players(session), start_time)


@router.get("/{player_id}", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def get_player(player_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(player_service.get_player_detail(session, player_id), start_time)


@router.get("/{player_id}/summary", response_model=APIResponse, dependencies=[Depends(get_current_user)])
def get_player_summary(
    player_id: int,
    season_id: Optional[int] = Query(default=None, alias="seasonId"),
    session: Session = Depends(get_db_session),
):
    """Appearances, starts and event counts of a player"""
    start_time = time.time()
    return ok(player_service.player_summary(session, player_id, season_id), start_time)


@router.patch("/{player_id}", response_model=APIResponse)
def update_player(
    player_id: int,
    body: PlayerUpdateRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    player = player_service.update_player(session, player_id, body.to_data(), admin.id)
    return ok(player_to_dict(player), start_time)


@router.delete("/{player_id}", response_model=APIResponse)
def delete_player(
    player_id: int,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    return ok(player_service.delete_player(session, player_id, admin.id), start_time)


@router.post("/{player_id}/assignments", response_model=APIResponse, status_code=201)
def assign_player_to_team(
    player_id: int,
    body: PlayerAssignRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    result = player_service.assign_to_team(
        session, player_id, body.team_season_id, body.jersey_number, admin.id
    )
    return ok(result, start_time)
