"""
FastAPI Application Main
Hauptanwendung für die Match Narrator API
"""

import logging
import time
from collections import defaultdict
from contextlib import asynccontextmanager
from time import monotonic
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from matchnarrator.common.timeutils import utcnow
from matchnarrator.core.config import Settings
from matchnarrator.database.manager import DatabaseManager
from matchnarrator.domain.errors import NarratorError
from matchnarrator.monitoring.prometheus_metrics import PrometheusMetrics

from .models import APIResponse, HealthResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    body = APIResponse(success=False, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_fastapi_app(
    settings: Optional[Settings] = None,
    *,
    db_manager: Optional[DatabaseManager] = None,
    metrics: Optional[PrometheusMetrics] = None,
) -> FastAPI:
    """Factory function to create the FastAPI app.

    An injected DatabaseManager / PrometheusMetrics is used as-is and not closed
    on shutdown; otherwise the app owns its own instances.
    """
    settings = settings or Settings()
    owns_db = db_manager is None
    db = db_manager or DatabaseManager(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application Lifespan Management"""
        logger.info("Starting Match Narrator API")
        if db.engine is None:
            db.initialize()
        if settings.database_auto_create:
            db.create_tables()
        logger.info("Application startup complete")
        yield

        logger.info("Shutting down application")
        if owns_db:
            db.close()

    app = FastAPI(
        title="Match Narrator API",
        description="Live match narration: competitions, squads, match clock and event logging",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = db
    app.state.metrics = metrics or (PrometheusMetrics(settings, db) if settings.enable_metrics else None)

    # CORS Middleware (tighten in non-development)
    cors_origins = settings.cors_origins
    if settings.environment != "development":
        cors_origins = [o for o in cors_origins if o != "*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Simple in-memory rate limit (per-IP) if enabled
    if settings.rate_limit_requests_per_minute > 0:
        window_seconds = 60
        max_requests = settings.rate_limit_requests_per_minute
        buckets: dict[str, list[float]] = defaultdict(list)

        @app.middleware("http")
        async def rate_limit_middleware(request: Request, call_next):
            now = monotonic()
            client_ip = request.client.host if request.client else "unknown"
            times = buckets[client_ip]
            cutoff = now - window_seconds
            while times and times[0] < cutoff:
                times.pop(0)
            if len(times) >= max_requests:
                return _error_response(429, "Too many requests")
            times.append(now)
            return await call_next(request)

    @app.middleware("http")
    async def metrics_http_middleware(request: Request, call_next):
        start = time.time()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            if app.state.metrics is not None:
                route = request.scope.get("route")
                endpoint = getattr(route, "path", request.url.path)
                app.state.metrics.record_api_request(
                    method=request.method, endpoint=endpoint, status=status, duration=time.time() - start
                )

    @app.exception_handler(NarratorError)
    async def narrator_error_handler(request: Request, exc: NarratorError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(500, "Internal server error")

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Basic health check endpoint"""
        result = db.health_check()
        database = result.get("database", "unknown")
        return HealthResponse(
            status="healthy" if database == "healthy" else "unhealthy",
            timestamp=utcnow(),
            database=database,
        )

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics_endpoint():
        """Prometheus metrics"""
        if app.state.metrics is None:
            return PlainTextResponse("# metrics disabled\n", status_code=404)
        return PlainTextResponse(app.state.metrics.export_metrics())

    from matchnarrator.api.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    return app
