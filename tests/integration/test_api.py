import pytest

pytestmark = pytest.mark.integration

API = "/api/v1"


def _data(response, status=200):
    assert response.status_code == status, response.text
    body = response.json()
    assert body["success"] is True
    return body["data"]


# -------------------- Auth -------------------- #


def test_login_returns_bearer_token(client, narrator):
    data = _data(
        client.post(f"{API}/auth/login", json={"email": "narrador@example.com", "password": "Narrador123!"})
    )
    assert data["token_type"] == "bearer"
    assert "password_hash" not in data["user"]

    me = _data(client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}))
    assert me["email"] == "narrador@example.com"
    assert me["role"] == "NARRADOR"


def test_login_with_wrong_password(client, narrator):
    response = client.post(f"{API}/auth/login", json={"email": "narrador@example.com", "password": "nope"})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid credentials"


def test_missing_or_bad_token_is_rejected(client):
    assert client.get(f"{API}/auth/me").status_code == 401
    bad = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401
    assert bad.json()["success"] is False


def test_catalogue_writes_need_superadmin(client, narrator_headers, admin_headers):
    denied = client.post(f"{API}/competitions", json={"name": "Copa"}, headers=narrator_headers)
    assert denied.status_code == 403
    assert denied.json()["error"] == "Insufficient role"

    created = _data(
        client.post(f"{API}/competitions", json={"name": "Copa", "country": "AR"}, headers=admin_headers),
        201,
    )
    listed = _data(client.get(f"{API}/competitions", headers=narrator_headers))
    assert [c["id"] for c in listed] == [created["id"]]


def test_audit_trail_is_superadmin_only(client, admin, admin_headers, narrator_headers):
    _data(client.post(f"{API}/teams", json={"name": "Huracán", "shortName": "HUR"}, headers=admin_headers), 201)
    items = _data(
        client.get(f"{API}/audit", params={"entityType": "Team", "take": 5}, headers=admin_headers)
    )["items"]
    assert [i["action"] for i in items] == ["TEAM_CREATE"]
    assert items[0]["actor_user_id"] == admin.id
    assert items[0]["payload"]["short_name"] == "HUR"
    assert client.get(f"{API}/audit", headers=narrator_headers).status_code == 403


def test_users_admin(client, admin_headers, narrator_headers):
    created = _data(
        client.post(
            f"{API}/users",
            json={"email": "nuevo@example.com", "password": "Nuevo123!", "name": "Nuevo"},
            headers=admin_headers,
        ),
        201,
    )
    assert created["role"] == "NARRADOR"
    assert client.get(f"{API}/users", headers=narrator_headers).status_code == 403
    duplicate = client.post(
        f"{API}/users",
        json={"email": "nuevo@example.com", "password": "Nuevo123!", "name": "Nuevo"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    _data(client.delete(f"{API}/users/{created['id']}", headers=admin_headers))


def test_meta_is_public(client):
    meta = _data(client.get(f"{API}/meta"))
    assert meta["hotkeys"]["G"] == "GOAL"
    assert meta["field"] == {"width": 800, "height": 600}
    assert meta["status_transitions"]["SETUP"] == ["LIVE"]
    assert meta["half_duration_minutes"] == 45


# -------------------- Match flow -------------------- #


@pytest.fixture
def match_id(client, narrator_headers, catalogue):
    data = _data(
        client.post(
            f"{API}/matches",
            json={
                "homeTeamId": catalogue["home_team_id"],
                "awayTeamId": catalogue["away_team_id"],
                "matchDate": "2024-09-21T20:00:00Z",
                "venue": "La Bombonera",
            },
            headers=narrator_headers,
        ),
        201,
    )
    assert data["status"] == "SETUP"
    return data["id"]


def test_match_belongs_to_its_narrator(client, match_id, other_headers, admin_headers):
    denied = client.get(f"{API}/matches/{match_id}", headers=other_headers)
    assert denied.status_code == 403
    assert _data(client.get(f"{API}/matches/{match_id}", headers=admin_headers))["id"] == match_id
    assert _data(client.get(f"{API}/matches", params={"all": "true"}, headers=admin_headers))[0]["id"] == match_id
    assert _data(client.get(f"{API}/matches", headers=other_headers)) == []


def test_full_narration_flow(client, match_id, narrator_headers, catalogue):
    base = f"{API}/matches/{match_id}"

    options = _data(client.get(f"{base}/squad-options", headers=narrator_headers))
    cavani = next(p for p in options["home"]["players"] if p["jersey_number"] == 10)

    entry = _data(
        client.post(
            f"{base}/roster",
            json={
                "playerId": cavani["player"]["id"],
                "teamId": catalogue["home_team_id"],
                "jerseyNumber": 10,
                "isHomeTeam": True,
            },
            headers=narrator_headers,
        ),
        201,
    )
    moved = _data(
        client.patch(f"{base}/roster/{entry['id']}", json={"layoutX": 1200, "layoutY": 300}, headers=narrator_headers)
    )
    assert (moved["layout_x"], moved["layout_y"]) == (800, 300)

    started = _data(client.post(f"{base}/timer/start", headers=narrator_headers))
    assert (started["status"], started["is_running"]) == ("LIVE", True)
    assert client.post(f"{base}/timer/start", headers=narrator_headers).status_code == 400

    goal = _data(
        client.post(
            f"{base}/events",
            json={
                "rosterPlayerId": entry["id"],
                "teamSide": "HOME",
                "eventType": "GOAL",
                "period": "FIRST_HALF",
                "minute": 12,
                "second": 30,
                "payload": {"x": 400, "y": 120},
            },
            headers=narrator_headers,
        ),
        201,
    )
    assert goal["roster_player"]["jersey_number"] == 10
    mistake = _data(
        client.post(
            f"{base}/events",
            json={"teamSide": "AWAY", "eventType": "GOAL", "period": "FIRST_HALF", "minute": 13},
            headers=narrator_headers,
        ),
        201,
    )

    _data(client.delete(f"{base}/events/{mistake['id']}", headers=narrator_headers))
    last = _data(client.get(f"{base}/events/last-deleted", headers=narrator_headers))
    assert last["id"] == mistake["id"]
    assert _data(client.get(f"{base}/events", params={"eventType": "GOAL"}, headers=narrator_headers))[0]["id"] == goal["id"]

    exported = _data(client.get(f"{base}/export", headers=narrator_headers))
    assert exported["score"] == {"home": 1, "away": 0}
    assert exported["teams"]["away"]["name"] == "River Plate"

    _data(client.post(f"{base}/events/{mistake['id']}/restore", headers=narrator_headers))
    assert _data(client.get(f"{base}/events/last-deleted", headers=narrator_headers)) is None
    assert _data(client.get(f"{base}/export", headers=narrator_headers))["score"] == {"home": 1, "away": 1}

    early = client.post(f"{base}/timer/end-period", headers=narrator_headers)
    assert early.status_code == 400
    ended = _data(client.post(f"{base}/timer/end-period", json={"force": True}, headers=narrator_headers))
    assert (ended["status"], ended["period"], ended["elapsed_seconds"]) == ("HALFTIME", "SECOND_HALF", 2700)

    _data(client.patch(f"{base}/timer/added-time", json={"firstHalfAddedTime": 3}, headers=narrator_headers))
    detail = _data(client.get(base, headers=narrator_headers))
    assert detail["first_half_added_time"] == 3
    assert detail["clock"]["display"] == "45:00"
    assert len(detail["events"]) == 2
    assert [r["jersey_number"] for r in detail["roster"]] == [10]


def test_sync_elapsed_and_validation(client, match_id, narrator_headers):
    base = f"{API}/matches/{match_id}"
    synced = _data(client.patch(f"{base}/timer/elapsed", json={"seconds": 600}, headers=narrator_headers))
    assert synced["elapsed_seconds"] == 600
    assert _data(client.get(f"{base}/timer", headers=narrator_headers))["display"] == "10:00"

    assert client.patch(f"{base}/timer/elapsed", json={"seconds": -1}, headers=narrator_headers).status_code == 422
    invalid_second = client.post(
        f"{base}/events",
        json={"teamSide": "HOME", "eventType": "FOUL", "period": "FIRST_HALF", "minute": 1, "second": 60},
        headers=narrator_headers,
    )
    assert invalid_second.status_code == 422


def test_invalid_status_transition(client, match_id, narrator_headers):
    response = client.patch(f"{API}/matches/{match_id}", json={"status": "FINISHED"}, headers=narrator_headers)
    assert response.status_code == 400
    assert "Invalid status transition" in response.json()["error"]


def test_unknown_match_is_404(client, narrator_headers):
    response = client.get(f"{API}/matches/9999/events", headers=narrator_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Match with ID 9999 not found"


# -------------------- Seasons & import -------------------- #


def test_round_availability_endpoint(client, admin_headers, narrator_headers, catalogue):
    season_id = catalogue["season_id"]
    result = _data(
        client.patch(
            f"{API}/seasons/{season_id}/fixtures/round/3/availability",
            json={"enabled": False},
            headers=admin_headers,
        )
    )
    assert result == {"season_id": season_id, "round": 3, "enabled": False, "updated": 0}
    forbidden = client.patch(
        f"{API}/seasons/{season_id}/fixtures/round/3/availability",
        json={"enabled": True},
        headers=narrator_headers,
    )
    assert forbidden.status_code == 403


def test_manual_season_import_endpoint(client, admin_headers, narrator_headers):
    document = {
        "competition": {"name": "Liga Regional"},
        "season": {"name": "2025", "startDate": "2025-02-01", "endDate": "2025-11-30"},
        "teams": [
            {"name": "Gimnasia", "shortName": "GIM", "players": [{"name": "Lucas Castro", "number": 8}]},
            {"name": "Estudiantes"},
        ],
        "fixtures": [{"homeTeam": "Gimnasia", "awayTeam": "Estudiantes", "matchDate": "2025-03-01T18:00:00Z"}],
        "standings": [{"team": "Estudiantes", "rank": 1, "points": 3}],
    }
    result = _data(client.post(f"{API}/import/manual-season", json=document, headers=admin_headers))
    assert result["summary"]["teams"] == 2
    assert result["summary"]["players_assigned"] == 1
    assert result["summary"]["fixtures_created"] == 1
    assert result["summary"]["standings_upserted"] == 1

    season_id = result["season"]["id"]
    full = _data(client.get(f"{API}/seasons/{season_id}/full", headers=narrator_headers))
    assert full["summary"]["fixtures"] == 1
    assert full["standings"][0]["team"]["name"] == "Estudiantes"

    missing = client.post(f"{API}/import/manual-season", json={"season": {"name": "x"}}, headers=admin_headers)
    assert missing.status_code == 400
    assert client.post(f"{API}/import/manual-season", json=document, headers=narrator_headers).status_code == 403


def test_api_football_search_needs_key(client, admin_headers):
    response = client.get(f"{API}/import/leagues", params={"q": "liga"}, headers=admin_headers)
    assert response.status_code == 400
    assert "API-Football key missing" in response.json()["error"]
