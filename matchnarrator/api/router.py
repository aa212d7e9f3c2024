"""
Aggregated API router for versioned endpoints.
"""

from fastapi import APIRouter

from matchnarrator.api.endpoints import (
    audit,
    auth,
    competitions,
    events,
    export,
    imports,
    matches,
    meta,
    players,
    roster,
    seasons,
    teams,
    users,
)

api_router = APIRouter()

# Register endpoint routers here to keep create_fastapi_app clean
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(competitions.router, tags=["competitions"])
api_router.include_router(seasons.router, tags=["seasons"])
api_router.include_router(teams.router, tags=["teams"])
api_router.include_router(players.router, tags=["players"])
api_router.include_router(matches.router, tags=["matches"])
api_router.include_router(roster.router, tags=["roster"])
api_router.include_router(events.router, tags=["events"])
api_router.include_router(export.router, tags=["export"])
api_router.include_router(imports.router, tags=["import"])
api_router.include_router(audit.router, tags=["audit"])
api_router.include_router(meta.router, tags=["meta"])
