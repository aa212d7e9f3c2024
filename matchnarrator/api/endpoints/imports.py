"""
Import API Endpoints
API-Football Suche und Import sowie manueller Saison-Import
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import (
    get_db_session,
    get_football_collector,
    get_metrics,
    require_superadmin,
)
from matchnarrator.api.models import (
    APIResponse,
    ImportFullSeasonRequest,
    ImportLeagueRequest,
    ImportSquadRequest,
    ImportTeamsRequest,
    ManualSeasonRequest,
    ok,
)
from matchnarrator.data_collection.collectors import APIFootballCollector
from matchnarrator.database.services import imports as import_service
from matchnarrator.monitoring.prometheus_metrics import PrometheusMetrics

router = APIRouter(prefix="/import", dependencies=[Depends(require_superadmin)])


def _record(metrics: Optional[PrometheusMetrics], source: str, summary: dict) -> None:
    if metrics is None:
        return
    metrics.record_import(source, "teams", summary.get("teams", 0))
    metrics.record_import(source, "players", summary.get("players_assigned", 0))
    metrics.record_import(
        source, "fixtures", summary.get("fixtures_created", 0) + summary.get("fixtures_updated", 0)
    )
    metrics.record_import(source, "standings", summary.get("standings_upserted", 0))


# --- API-Football search ---------------------------------------------------


@router.get("/leagues", response_model=APIResponse)
async def search_leagues(
    q: Optional[str] = None,
    country: Optional[str] = None,
    collector: APIFootballCollector = Depends(get_football_collector),
):
    start_time = time.time()
    async with collector:
        leagues = await collector.search_leagues(q, country)
    return ok(leagues, start_time)


@router.get("/teams", response_model=APIResponse)
async def search_teams(
    league_id: int = Query(alias="leagueId"),
    season: int = Query(),
    collector: APIFootballCollector = Depends(get_football_collector),
):
    start_time = time.time()
    async with collector:
        teams = await collector.search_teams(league_id, season)
    return ok(teams, start_time)


@router.get("/squad", response_model=APIResponse)
async def search_squad(
    team_id: int = Query(alias="teamId"),
    season: Optional[int] = None,
    collector: APIFootballCollector = Depends(get_football_collector),
):
    start_time = time.time()
    async with collector:
        players = await collector.search_squad(team_id, season)
    return ok(players, start_time)


# --- Import into the database ----------------------------------------------


@router.post("/leagues", response_model=APIResponse)
def import_league(body: ImportLeagueRequest, session: Session = Depends(get_db_session)):
    """Find-or-create competition and season"""
    start_time = time.time()
    return ok(import_service.import_league(session, body.to_data()), start_time)


@router.post("/teams", response_model=APIResponse)
def import_teams(
    body: ImportTeamsRequest,
    session: Session = Depends(get_db_session),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    data = body.to_data()
    results = import_service.import_teams(session, body.season_id, data.get("teams", []))
    _record(metrics, "api_football", {"teams": sum(1 for r in results if r["is_new"])})
    return ok(results, start_time)


@router.post("/squad", response_model=APIResponse)
def import_squad(
    body: ImportSquadRequest,
    session: Session = Depends(get_db_session),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    data = body.to_data()
    results = import_service.import_squad(session, body.team_season_id, data.get("players", []))
    _record(metrics, "api_football", {"players_assigned": sum(1 for r in results if r["assigned"])})
    return ok(results, start_time)


@router.post("/full-season", response_model=APIResponse)
async def import_full_season(
    body: ImportFullSeasonRequest,
    session: Session = Depends(get_db_session),
    collector: APIFootballCollector = Depends(get_football_collector),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    """League, teams, squads, fixtures and standings in one run"""
    start_time = time.time()
    async with collector:
        result = await import_service.import_full_season(session, collector, body.model_dump())
    _record(metrics, "api_football", result["summary"])
    return ok(result, start_time)


@router.post("/manual-season", response_model=APIResponse)
def import_manual_season(
    body: ManualSeasonRequest,
    session: Session = Depends(get_db_session),
    metrics: Optional[PrometheusMetrics] = Depends(get_metrics),
):
    start_time = time.time()
    result = import_service.import_manual_season(session, body.to_data())
    _record(metrics, "manual", result["summary"])
    return ok(result, start_time)
