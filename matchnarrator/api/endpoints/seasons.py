"""
Seasons API Endpoints
API Routen für Saisons, Kader, Spielpläne und Tabellen
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session, require_superadmin
from matchnarrator.api.models import (
    APIResponse,
    RoundAvailabilityRequest,
    SeasonRequest,
    SeasonUpdateRequest,
    ok,
)
from matchnarrator.common.timeutils import utcnow
from matchnarrator.database.schema import Season, User
from matchnarrator.database.serializers import season_to_dict
from matchnarrator.database.services import seasons as season_service
from matchnarrator.domain.season_status import status_of

router = APIRouter(prefix="/seasons")
read_access = [Depends(get_current_user)]


def _season_out(season: Season) -> dict:
    data = season_to_dict(season)
    data["status"] = status_of(season, utcnow()).value
    return data


@router.post("", response_model=APIResponse, status_code=201)
def create_season(
    body: SeasonRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    season = season_service.create_season(session, body.to_data(), admin.id)
    return ok(_season_out(season), start_time)


@router.get("", response_model=APIResponse, dependencies=read_access)
def list_seasons(
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    """Seasons (newest first) with their computed status"""
    start_time = time.time()
    return ok(season_service.list_seasons(session, competition_id), start_time)


# --- Current season (registered before /{season_id}) -----------------------


def _current_id(session: Session, competition_id: Optional[int]) -> int:
    return season_service.resolve_current_season(session, competition_id).id


@router.get("/current", response_model=APIResponse, dependencies=read_access)
def get_current_season(
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    return ok(season_service.current_season(session, competition_id), start_time)


@router.get("/current/teams", response_model=APIResponse, dependencies=read_access)
def get_current_season_teams(
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    return ok(season_service.season_teams(session, _current_id(session, competition_id)), start_time)


@router.get("/current/teams/{team_id}/squad", response_model=APIResponse, dependencies=read_access)
def get_current_season_squad(
    team_id: int,
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    season_id = _current_id(session, competition_id)
    return ok(season_service.season_team_squad(session, season_id, team_id), start_time)


@router.get("/current/fixtures", response_model=APIResponse, dependencies=read_access)
def get_current_season_fixtures(
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    return ok(season_service.season_fixtures(session, _current_id(session, competition_id)), start_time)


@router.get("/current/standings", response_model=APIResponse, dependencies=read_access)
def get_current_season_standings(
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    return ok(season_service.season_standings(session, _current_id(session, competition_id)), start_time)


@router.get("/current/full", response_model=APIResponse, dependencies=read_access)
def get_current_season_full(
    competition_id: Optional[int] = Query(default=None, alias="competitionId"),
    session: Session = Depends(get_db_session),
):
    start_time = time.time()
    return ok(season_service.full_season_data(session, _current_id(session, competition_id)), start_time)


# --- Single season ---------------------------------------------------------


@router.get("/{season_id}", response_model=APIResponse, dependencies=read_access)
def get_season(season_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(season_service.get_season_detail(session, season_id), start_time)


@router.get("/{season_id}/teams", response_model=APIResponse, dependencies=read_access)
def get_season_teams(season_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(season_service.season_teams(session, season_id), start_time)


@router.get("/{season_id}/teams/{team_id}/squad", response_model=APIResponse, dependencies=read_access)
def get_season_squad(season_id: int, team_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(season_service.season_team_squad(session, season_id, team_id), start_time)


@router.get("/{season_id}/fixtures", response_model=APIResponse, dependencies=read_access)
def get_season_fixtures(season_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(season_service.season_fixtures(session, season_id), start_time)


@router.get("/{season_id}/standings", response_model=APIResponse, dependencies=read_access)
def get_season_standings(season_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(season_service.season_standings(session, season_id), start_time)


@router.get("/{season_id}/full", response_model=APIResponse, dependencies=read_access)
def get_season_full(season_id: int, session: Session = Depends(get_db_session)):
    """Season, teams, fixtures with their match sessions, standings and counts"""
    start_time = time.time()
    return ok(season_service.full_season_data(session, season_id), start_time)


@router.patch("/{season_id}/fixtures/round/{round_number}/availability", response_model=APIResponse)
def set_round_availability(
    season_id: int,
    round_number: int,
    body: RoundAvailabilityRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    result = season_service.set_round_availability(
        session, season_id, round_number, body.enabled, admin.id
    )
    return ok(result, start_time)


@router.patch("/{season_id}", response_model=APIResponse)
def update_season(
    season_id: int,
    body: SeasonUpdateRequest,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    season = season_service.update_season(session, season_id, body.to_data(), admin.id)
    return ok(_season_out(season), start_time)


@router.delete("/{season_id}", response_model=APIResponse)
def delete_season(
    season_id: int,
    session: Session = Depends(get_db_session),
    admin: User = Depends(require_superadmin),
):
    start_time = time.time()
    return ok(season_service.delete_season(session, season_id, admin.id), start_time)
