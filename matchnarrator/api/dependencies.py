"""
API Dependencies
Dependency Injection für FastAPI
"""

from typing import Iterator, Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from matchnarrator.core.config import APIConfig, Settings
from matchnarrator.core.security import decode_access_token
from matchnarrator.data_collection.collectors import APIFootballCollector
from matchnarrator.database.manager import DatabaseManager
from matchnarrator.database.schema import User
from matchnarrator.domain.errors import BadRequestError, ForbiddenError, UnauthorizedError
from matchnarrator.domain.models import UserRole
from matchnarrator.domain.timer import MatchClock
from matchnarrator.monitoring.prometheus_metrics import PrometheusMetrics

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_manager(request: Request) -> DatabaseManager:
    """Dependency für Database Manager (geteilt über App-Lebenszyklus)"""
    return request.app.state.db


def get_db_session(db_manager: DatabaseManager = Depends(get_db_manager)) -> Iterator[Session]:
    """Eine Session pro Request; Services committen selbst."""
    session = db_manager.get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_metrics(request: Request) -> Optional[PrometheusMetrics]:
    return getattr(request.app.state, "metrics", None)


def get_match_clock(settings: Settings = Depends(get_settings)) -> MatchClock:
    return MatchClock(settings.half_duration_minutes, settings.extra_time_duration_minutes)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """Aktueller Benutzer aus dem Bearer Token"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    claims = decode_access_token(credentials.credentials, settings)
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid token subject")
    user = session.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User no longer exists")
    return user


def require_superadmin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.SUPERADMIN:
        raise ForbiddenError("Insufficient role")
    return user


def get_football_collector(
    settings: Settings = Depends(get_settings),
    x_football_api_key: Optional[str] = Header(default=None),
) -> APIFootballCollector:
    """API-Football Collector; der Key kommt aus dem Header oder den Settings."""
    api_key = x_football_api_key or settings.football_api_key
    if not api_key:
        raise BadRequestError("API-Football key missing (x-football-api-key header or FOOTBALL_API_KEY)")
    return APIFootballCollector(APIConfig.api_football(api_key, settings))
