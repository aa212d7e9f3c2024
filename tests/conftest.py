"""Global pytest fixtures.

Centralizes:
 - an in-memory SQLite DatabaseManager per test
 - the FastAPI app / TestClient wired to that database
 - users with bearer tokens
 - a small catalogue (competition, season, two teams with squads)
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from matchnarrator.api.main import create_fastapi_app
from matchnarrator.core.config import Settings
from matchnarrator.core.security import create_access_token
from matchnarrator.database.manager import DatabaseManager
from matchnarrator.database.schema import Competition, Player, PlayerSeason, Season, Team, TeamSeason
from matchnarrator.database.services import users as user_service
from matchnarrator.domain.models import PlayerPosition, UserRole


# -------------------- Core Fixtures -------------------- #


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        enable_metrics=True,
        rate_limit_requests_per_minute=0,
        football_api_key=None,
    )


@pytest.fixture
def db_manager(settings):
    db = DatabaseManager(settings=settings)
    db.initialize()
    db.create_tables()
    yield db
    db.drop_tables()
    db.close()


@pytest.fixture
def session(db_manager):
    s = db_manager.get_session()
    yield s
    s.close()


@pytest.fixture
def app(settings, db_manager):
    return create_fastapi_app(settings, db_manager=db_manager)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


# -------------------- Users -------------------- #


@pytest.fixture
def admin(session):
    return user_service.create_user(
        session, email="admin@example.com", password="Admin123!", name="Admin", role=UserRole.SUPERADMIN
    )


@pytest.fixture
def narrator(session):
    return user_service.create_user(
        session, email="narrador@example.com", password="Narrador123!", name="Narrador"
    )


@pytest.fixture
def other_narrator(session):
    return user_service.create_user(
        session, email="otro@example.com", password="Otro12345!", name="Otro"
    )


def _headers(user, settings):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value, settings)}"}


@pytest.fixture
def admin_headers(admin, settings):
    return _headers(admin, settings)


@pytest.fixture
def narrator_headers(narrator, settings):
    return _headers(narrator, settings)


@pytest.fixture
def other_headers(other_narrator, settings):
    return _headers(other_narrator, settings)


# -------------------- Catalogue -------------------- #


@pytest.fixture
def catalogue(session):
    """Competition + season 2024 with Boca (2 players) and River (2 players)."""
    competition = Competition(name="Liga Profesional", country="Argentina")
    session.add(competition)
    session.flush()
    season = Season(
        competition_id=competition.id,
        name="2024",
        start_date=datetime(2024, 1, 15).date(),
        end_date=datetime(2024, 12, 15).date(),
    )
    boca = Team(name="Boca Juniors", short_name="BOCA", city="Buenos Aires")
    river = Team(name="River Plate", short_name="RIVER", city="Buenos Aires")
    session.add_all([season, boca, river])
    session.flush()

    boca_ts = TeamSeason(team_id=boca.id, season_id=season.id)
    river_ts = TeamSeason(team_id=river.id, season_id=season.id)
    session.add_all([boca_ts, river_ts])
    session.flush()

    players = {
        "romero": Player(first_name="Sergio", last_name="Romero", position=PlayerPosition.GK),
        "cavani": Player(first_name="Edinson", last_name="Cavani", position=PlayerPosition.FW),
        "armani": Player(first_name="Franco", last_name="Armani", position=PlayerPosition.GK),
        "borja": Player(first_name="Miguel", last_name="Borja", position=PlayerPosition.FW),
    }
    session.add_all(players.values())
    session.flush()
    session.add_all(
        [
            PlayerSeason(player_id=players["romero"].id, team_season_id=boca_ts.id, jersey_number=1),
            PlayerSeason(player_id=players["cavani"].id, team_season_id=boca_ts.id, jersey_number=10),
            PlayerSeason(player_id=players["armani"].id, team_season_id=river_ts.id, jersey_number=1),
            PlayerSeason(player_id=players["borja"].id, team_season_id=river_ts.id, jersey_number=9),
        ]
    )
    session.commit()
    return {
        "competition_id": competition.id,
        "season_id": season.id,
        "home_team_id": boca.id,
        "away_team_id": river.id,
        "home_team_season_id": boca_ts.id,
        "away_team_season_id": river_ts.id,
        "players": {key: p.id for key, p in players.items()},
    }
