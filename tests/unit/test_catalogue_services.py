from datetime import datetime

import pytest

from matchnarrator.database.schema import AuditLog, FixtureMatch
from matchnarrator.database.services import audit as audit_service
from matchnarrator.database.services import competitions as competition_service
from matchnarrator.database.services import events as event_service
from matchnarrator.database.services import matches as match_service
from matchnarrator.database.services import players as player_service
from matchnarrator.database.services import roster as roster_service
from matchnarrator.database.services import seasons as season_service
from matchnarrator.database.services import teams as team_service
from matchnarrator.database.services import users as user_service
from matchnarrator.domain.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from matchnarrator.domain.models import PlayerPosition

NOW = datetime(2024, 6, 1, 12, 0)


def _fixture(session, catalogue, *, round_number=1, home_score=None, away_score=None):
    fixture = FixtureMatch(
        season_id=catalogue["season_id"],
        home_team_id=catalogue["home_team_id"],
        away_team_id=catalogue["away_team_id"],
        match_date=datetime(2024, 3, round_number, 20, 0),
        round=round_number,
        home_score=home_score,
        away_score=away_score,
    )
    session.add(fixture)
    session.commit()
    return fixture


# -------------------- Users -------------------- #


def test_user_email_is_unique_and_normalized(session, narrator):
    assert narrator.email == "narrador@example.com"
    with pytest.raises(ConflictError):
        user_service.create_user(session, email=" NARRADOR@example.com ", password="x", name="Dup")


def test_authenticate(session, narrator):
    assert user_service.authenticate(session, "Narrador@Example.com", "Narrador123!").id == narrator.id
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        user_service.authenticate(session, "narrador@example.com", "wrong")
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        user_service.authenticate(session, "nobody@example.com", "Narrador123!")


def test_delete_user_with_matches_is_blocked(session, narrator, catalogue):
    match_service.create_match(
        session,
        narrator,
        {
            "home_team_id": catalogue["home_team_id"],
            "away_team_id": catalogue["away_team_id"],
            "match_date": "2024-05-01T18:00:00",
        },
    )
    with pytest.raises(ConflictError):
        user_service.delete_user(session, narrator.id)


# -------------------- Competitions -------------------- #


def test_competition_lifecycle_is_audited(session, admin):
    competition = competition_service.create_competition(
        session, {"name": "Copa Argentina", "country": "Argentina"}, actor_user_id=admin.id
    )
    competition_service.update_competition(session, competition.id, {"logo": "copa.png"}, admin.id)
    assert competition_service.list_competitions(session)[0]["counts"] == {"seasons": 0}

    competition_service.delete_competition(session, competition.id, admin.id)
    actions = [
        row.action
        for row in audit_service.list_audit(session, entity_type="Competition", entity_id=competition.id)
    ]
    assert actions == ["COMPETITION_DELETE", "COMPETITION_UPDATE", "COMPETITION_CREATE"]
    with pytest.raises(NotFoundError):
        competition_service.get_competition(session, competition.id)


def test_competition_with_seasons_cannot_be_deleted(session, admin, catalogue):
    with pytest.raises(ConflictError) as excinfo:
        competition_service.delete_competition(session, catalogue["competition_id"], admin.id)
    assert excinfo.value.details["season_count"] == 1
    blocked = session.query(AuditLog).filter_by(action="COMPETITION_DELETE_BLOCKED").one()
    assert blocked.payload["season_count"] == 1
    assert blocked.actor_user_id == admin.id


def test_audit_take_is_clamped():
    assert audit_service.clamp_take(None) == 100
    assert audit_service.clamp_take(0) == 1
    assert audit_service.clamp_take(10_000) == 500


# -------------------- Seasons -------------------- #


def test_current_season_resolution(session, catalogue):
    current = season_service.current_season(session, now=NOW)
    assert current["id"] == catalogue["season_id"]
    assert current["status"] == "CURRENT"
    with pytest.raises(NotFoundError, match="No current season"):
        season_service.current_season(session, now=datetime(2030, 1, 1))


def test_season_listing_has_status_and_counts(session, catalogue):
    _fixture(session, catalogue)
    seasons = season_service.list_seasons(session, catalogue["competition_id"], now=datetime(2025, 2, 1))
    assert seasons[0]["status"] == "HISTORICAL"
    assert seasons[0]["counts"] == {"teams": 2, "fixtures": 1}
    assert seasons[0]["competition"]["name"] == "Liga Profesional"


def test_season_team_squad_is_ordered_by_jersey(session, catalogue):
    squad = season_service.season_team_squad(session, catalogue["season_id"], catalogue["away_team_id"])
    assert [p["jersey_number"] for p in squad["team_season"]["players"]] == [1, 9]
    with pytest.raises(NotFoundError):
        season_service.season_team_squad(session, catalogue["season_id"], 999)


def test_round_availability(session, admin, catalogue):
    played = _fixture(session, catalogue, round_number=1, home_score=2, away_score=0)
    pending = _fixture(session, catalogue, round_number=1)
    other_round = _fixture(session, catalogue, round_number=2)

    result = season_service.set_round_availability(session, catalogue["season_id"], 1, False, admin.id)
    assert result["updated"] == 2
    assert (played.status_short, pending.status_short) == ("DIS", "DIS")
    assert other_round.status_short is None

    season_service.set_round_availability(session, catalogue["season_id"], 1, True, admin.id)
    assert (played.status_short, played.is_finished) == ("FT", True)
    assert (pending.status_short, pending.is_finished) == ("NS", False)


def test_update_season_validates_dates(session, catalogue):
    season = season_service.update_season(session, catalogue["season_id"], {"end_date": "2024-11-30"})
    assert season.end_date.isoformat() == "2024-11-30"
    with pytest.raises(BadRequestError, match="end_date"):
        season_service.update_season(session, catalogue["season_id"], {"end_date": "soon"})


def test_create_season_rejects_unparseable_dates(session, catalogue):
    with pytest.raises(BadRequestError, match="start_date"):
        season_service.create_season(
            session,
            {"name": "2030", "competition_id": catalogue["competition_id"], "start_date": "not-a-date"},
        )
    season = season_service.create_season(
        session, {"name": "2030", "competition_id": catalogue["competition_id"], "end_date": ""}
    )
    assert season.end_date is None


def test_full_season_data(session, catalogue):
    _fixture(session, catalogue)
    data = season_service.full_season_data(session, catalogue["season_id"], now=NOW)
    assert data["summary"] == {"teams": 2, "fixtures": 1, "standings": 0, "match_sessions": 0}
    assert data["fixtures"][0]["match_sessions"] == []
    assert [t["team"]["name"] for t in data["teams"]] == ["Boca Juniors", "River Plate"]


def test_season_with_teams_cannot_be_deleted(session, catalogue):
    with pytest.raises(ConflictError, match="teams: 2"):
        season_service.delete_season(session, catalogue["season_id"])


# -------------------- Teams -------------------- #


def test_team_assignment_and_delete(session, admin, catalogue):
    team = team_service.create_team(session, {"name": "Racing Club", "short_name": "RAC"}, admin.id)
    assignment = team_service.assign_to_season(session, team.id, catalogue["season_id"], admin.id)
    assert assignment["season_id"] == catalogue["season_id"]
    with pytest.raises(ConflictError):
        team_service.assign_to_season(session, team.id, catalogue["season_id"], admin.id)

    team_service.delete_team(session, team.id, admin.id)
    with pytest.raises(NotFoundError):
        team_service.get_team(session, team.id)


def test_team_with_fixtures_cannot_be_deleted(session, catalogue):
    _fixture(session, catalogue)
    with pytest.raises(ConflictError, match="fixtures: 1"):
        team_service.delete_team(session, catalogue["home_team_id"])


# -------------------- Players -------------------- #


def test_create_player_maps_position(session):
    player = player_service.create_player(session, {"first_name": "Lionel", "position": "Attacker"})
    assert player.position == PlayerPosition.FW
    assert player.last_name == ""


def test_assign_player_twice_conflicts(session, catalogue):
    with pytest.raises(ConflictError):
        player_service.assign_to_team(
            session, catalogue["players"]["cavani"], catalogue["home_team_season_id"], 10
        )


def test_bulk_import_resolves_teams_by_name(session, admin, catalogue):
    summary = player_service.bulk_import(
        session,
        {
            "season_id": catalogue["season_id"],
            "teams": [
                {
                    "team_name": "boca juniors",
                    "players": [
                        {"name": "Edinson Cavani", "jersey_number": 9},
                        {"first_name": "Miguel", "last_name": "Merentiel", "jersey_number": 16},
                        {"last_name": "Nobody"},
                    ],
                },
                {"team_name": "Independiente", "players": []},
            ],
        },
        admin.id,
    )
    boca = summary["teams"][0]
    assert boca["players_created"] == 1
    assert boca["assigned"] == 1
    assert boca["updated"] == 1
    assert boca["skipped"] == 1
    assert summary["unresolved_teams"] == ["Independiente"]

    squad = season_service.season_team_squad(session, catalogue["season_id"], catalogue["home_team_id"])
    assert [p["jersey_number"] for p in squad["team_season"]["players"]] == [1, 9, 16]


def test_bulk_import_can_clear_existing_squad(session, catalogue):
    summary = player_service.bulk_import(
        session,
        {
            "season_id": catalogue["season_id"],
            "clear_existing_for_teams": True,
            "teams": [
                {
                    "team_season_id": catalogue["away_team_season_id"],
                    "players": [{"name": "Franco Armani", "jersey_number": 1}],
                }
            ],
        },
    )
    assert summary["teams"][0]["cleared"] == 2
    squad = season_service.season_team_squad(session, catalogue["season_id"], catalogue["away_team_id"])
    assert len(squad["team_season"]["players"]) == 1


def test_bulk_import_requires_teams(session, catalogue):
    with pytest.raises(BadRequestError):
        player_service.bulk_import(session, {"season_id": catalogue["season_id"], "teams": []})


def test_player_summary_and_delete_guard(session, narrator, catalogue):
    match = match_service.create_match(
        session,
        narrator,
        {
            "home_team_id": catalogue["home_team_id"],
            "away_team_id": catalogue["away_team_id"],
            "match_date": "2024-05-01T18:00:00",
        },
    )
    entry = roster_service.add_roster_player(
        session,
        match.id,
        {
            "player_id": catalogue["players"]["cavani"],
            "team_id": catalogue["home_team_id"],
            "is_home_team": True,
            "jersey_number": 10,
        },
    )
    for event_type in ("GOAL", "GOAL", "YELLOW_CARD"):
        event_service.create_event(
            session,
            match.id,
            {
                "team_side": "HOME",
                "event_type": event_type,
                "period": "FIRST_HALF",
                "minute": 10,
                "roster_player_id": entry.id,
            },
        )

    summary = player_service.player_summary(session, catalogue["players"]["cavani"])
    assert summary["appearances"] == 1
    assert summary["starts"] == 1
    assert summary["goals"] == 2
    assert summary["yellow_cards"] == 1
    assert summary["teams"] == ["Boca Juniors"]

    with pytest.raises(ConflictError):
        player_service.delete_player(session, catalogue["players"]["cavani"])
    player_service.delete_player(session, catalogue["players"]["borja"])
    with pytest.raises(NotFoundError):
        player_service.get_player(session, catalogue["players"]["borja"])
