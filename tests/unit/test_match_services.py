from datetime import datetime, timedelta

import pytest

from matchnarrator.database.services import events as event_service
from matchnarrator.database.services import export as export_service
from matchnarrator.database.services import matches as match_service
from matchnarrator.database.services import roster as roster_service
from matchnarrator.domain.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from matchnarrator.domain.models import MatchPeriod, MatchStatus, TeamSide

T0 = datetime(2024, 9, 21, 20, 0, 0)


@pytest.fixture
def match(session, narrator, catalogue):
    return match_service.create_match(
        session,
        narrator,
        {
            "home_team_id": catalogue["home_team_id"],
            "away_team_id": catalogue["away_team_id"],
            "match_date": "2024-09-21T20:00:00Z",
            "venue": "La Bombonera",
        },
    )


def _add(session, match, catalogue, key, *, home=True, jersey=1):
    return roster_service.add_roster_player(
        session,
        match.id,
        {
            "player_id": catalogue["players"][key],
            "team_id": catalogue["home_team_id"] if home else catalogue["away_team_id"],
            "is_home_team": home,
            "jersey_number": jersey,
        },
    )


# -------------------- Matches -------------------- #


def test_create_match_starts_in_setup(match):
    assert match.status == MatchStatus.SETUP
    assert match.current_period == MatchPeriod.FIRST_HALF
    assert match.elapsed_seconds == 0
    assert match.is_timer_running is False
    assert match.match_date == datetime(2024, 9, 21, 20, 0, 0)


def test_create_match_validates_teams(session, narrator, catalogue):
    with pytest.raises(BadRequestError, match="different"):
        match_service.create_match(
            session,
            narrator,
            {
                "home_team_id": catalogue["home_team_id"],
                "away_team_id": catalogue["home_team_id"],
                "match_date": "2024-09-21T20:00:00",
            },
        )
    with pytest.raises(NotFoundError, match="Away team"):
        match_service.create_match(
            session,
            narrator,
            {"home_team_id": catalogue["home_team_id"], "away_team_id": 999, "match_date": "2024-09-21"},
        )


def test_match_access_is_owner_or_superadmin(session, match, admin, other_narrator):
    assert match_service.get_match(session, match.id, admin) is match
    with pytest.raises(ForbiddenError):
        match_service.get_match(session, match.id, other_narrator)


def test_list_matches_scopes_to_narrator(session, match, narrator, admin, other_narrator):
    assert [m["id"] for m in match_service.list_matches(session, narrator)] == [match.id]
    assert match_service.list_matches(session, other_narrator) == []
    assert match_service.list_matches(session, admin) == []
    everything = match_service.list_matches(session, admin, include_all=True)
    assert [m["id"] for m in everything] == [match.id]
    assert everything[0]["counts"] == {"roster": 0, "events": 0}


def test_status_change_through_update(session, match, narrator):
    match_service.update_match(session, match.id, narrator, {"status": "LIVE"}, now=T0)
    assert match.status == MatchStatus.LIVE
    with pytest.raises(BadRequestError, match="Invalid status transition"):
        match_service.update_match(session, match.id, narrator, {"status": "SETUP"}, now=T0)


def test_timer_state_survives_in_database(session, match, narrator):
    match_service.start_timer(session, match.id, narrator, now=T0)
    session.expire_all()
    assert match_service.read_clock(session, match.id, narrator, now=T0 + timedelta(seconds=90))[
        "elapsed_seconds"
    ] == 90

    result = match_service.pause_timer(session, match.id, narrator, now=T0 + timedelta(seconds=120))
    assert result["elapsed_seconds"] == 120
    assert result["is_running"] is False
    with pytest.raises(BadRequestError):
        match_service.pause_timer(session, match.id, narrator, now=T0)


def test_end_period_and_added_time(session, match, narrator):
    match_service.start_timer(session, match.id, narrator, now=T0)
    with pytest.raises(BadRequestError):
        match_service.end_period(session, match.id, narrator, now=T0 + timedelta(minutes=10))

    result = match_service.end_period(
        session, match.id, narrator, force=True, now=T0 + timedelta(minutes=10)
    )
    assert result["status"] == "HALFTIME"
    assert result["period"] == "SECOND_HALF"
    assert result["elapsed_seconds"] == 45 * 60

    added = match_service.update_added_time(session, match.id, narrator, second_half_added_time=4)
    assert added["second_half_added_time"] == 4
    assert added["first_half_added_time"] == 0
    with pytest.raises(BadRequestError):
        match_service.update_added_time(session, match.id, narrator, first_half_added_time=-1)


def test_sync_elapsed(session, match, narrator):
    result = match_service.sync_elapsed(session, match.id, narrator, 300, now=T0)
    assert result["elapsed_seconds"] == 300
    assert match_service.get_match_detail(session, match.id, narrator, now=T0)["clock"]["display"] == "05:00"


def test_delete_match_removes_roster_and_events(session, match, narrator, catalogue):
    entry = _add(session, match, catalogue, "cavani", jersey=10)
    event_service.create_event(
        session,
        match.id,
        {"team_side": "HOME", "event_type": "GOAL", "period": "FIRST_HALF", "minute": 3,
         "roster_player_id": entry.id},
    )
    match_service.delete_match(session, match.id, narrator)
    with pytest.raises(NotFoundError):
        match_service.get_match(session, match.id)


def test_squad_options_marks_players_in_roster(session, match, narrator, catalogue):
    _add(session, match, catalogue, "cavani", jersey=10)
    options = match_service.squad_options(session, match.id, narrator)
    home = options["home"]
    assert home["team_season_id"] == catalogue["home_team_season_id"]
    assert [p["jersey_number"] for p in home["players"]] == [1, 10]
    assert [p["in_roster"] for p in home["players"]] == [False, True]
    assert options["away"]["players"][0]["in_roster"] is False


# -------------------- Roster -------------------- #


def test_roster_rejects_wrong_side_and_duplicates(session, match, catalogue):
    with pytest.raises(BadRequestError, match="home team"):
        roster_service.add_roster_player(
            session,
            match.id,
            {
                "player_id": catalogue["players"]["borja"],
                "team_id": catalogue["away_team_id"],
                "is_home_team": True,
                "jersey_number": 9,
            },
        )
    entry = _add(session, match, catalogue, "cavani", jersey=10)
    assert entry.is_starter is True
    with pytest.raises(ConflictError):
        _add(session, match, catalogue, "cavani", jersey=10)


def test_roster_layout_is_clamped_to_field(session, match, catalogue):
    entry = _add(session, match, catalogue, "romero")
    roster_service.update_roster_player(
        session, match.id, entry.id, {"layout_x": 950, "layout_y": -20, "position": "GK"}
    )
    assert entry.layout_x == 800
    assert entry.layout_y == 0
    assert entry.position.value == "GK"


def test_roster_listing_puts_home_first(session, match, catalogue):
    _add(session, match, catalogue, "borja", home=False, jersey=9)
    _add(session, match, catalogue, "cavani", jersey=10)
    _add(session, match, catalogue, "romero", jersey=1)
    listed = roster_service.list_roster(session, match.id)
    assert [(r.is_home_team, r.jersey_number) for r in listed] == [(True, 1), (True, 10), (False, 9)]


# -------------------- Events -------------------- #


def _event(session, match, **kw):
    data = {"team_side": "HOME", "event_type": "FOUL", "period": "FIRST_HALF", "minute": 1}
    data.update(kw)
    return event_service.create_event(session, match.id, data)


def test_event_must_reference_player_from_same_side(session, match, catalogue):
    away = _add(session, match, catalogue, "borja", home=False, jersey=9)
    with pytest.raises(BadRequestError, match="HOME"):
        _event(session, match, roster_player_id=away.id)
    with pytest.raises(NotFoundError):
        _event(session, match, roster_player_id=12345)
    with pytest.raises(BadRequestError, match="second"):
        _event(session, match, second=60)


def test_events_are_ordered_and_filtered(session, match):
    _event(session, match, minute=30, event_type="GOAL")
    _event(session, match, minute=5, second=10, team_side=TeamSide.AWAY)
    _event(session, match, minute=5, second=2)
    listed = event_service.list_events(session, match.id)
    assert [(e.minute, e.second) for e in listed] == [(5, 2), (5, 10), (30, 0)]
    away = event_service.list_events(session, match.id, team_side=TeamSide.AWAY)
    assert len(away) == 1


def test_soft_delete_and_restore(session, match):
    first = _event(session, match, minute=1)
    second = _event(session, match, minute=2)

    event_service.delete_event(session, match.id, first.id, now=T0)
    event_service.delete_event(session, match.id, second.id, now=T0 + timedelta(seconds=5))
    assert event_service.list_events(session, match.id) == []
    assert event_service.last_deleted_event(session, match.id).id == second.id

    with pytest.raises(NotFoundError, match="is deleted"):
        event_service.update_event(session, match.id, first.id, {"minute": 7})
    with pytest.raises(NotFoundError, match="is deleted"):
        event_service.delete_event(session, match.id, first.id)

    event_service.restore_event(session, match.id, second.id)
    assert [e.id for e in event_service.list_events(session, match.id)] == [second.id]
    assert event_service.last_deleted_event(session, match.id).id == first.id
    with pytest.raises(NotFoundError, match="not deleted"):
        event_service.restore_event(session, match.id, second.id)


def test_events_allowed_after_full_time(session, match, narrator):
    match_service.update_match(session, match.id, narrator, {"status": "LIVE"}, now=T0)
    match_service.update_match(session, match.id, narrator, {"status": "FINISHED"}, now=T0)
    event = _event(session, match, minute=93, event_type="RED_CARD")
    assert event.id is not None


def test_export_counts_only_active_events(session, match, catalogue):
    scorer = _add(session, match, catalogue, "cavani", jersey=10)
    _event(session, match, event_type="GOAL", minute=10, roster_player_id=scorer.id)
    _event(session, match, event_type="GOAL", minute=20, team_side=TeamSide.AWAY)
    cancelled = _event(session, match, event_type="GOAL", minute=30)
    _event(session, match, event_type="YELLOW_CARD", minute=31, team_side=TeamSide.AWAY)
    event_service.delete_event(session, match.id, cancelled.id)

    exported = export_service.export_match(session, match.id)
    assert exported["score"] == {"home": 1, "away": 1}
    assert exported["stats"]["away"] == {"goals": 1, "yellow_cards": 1, "red_cards": 0, "total_events": 2}
    assert len(exported["events"]["all"]) == 3
    assert [r["jersey_number"] for r in exported["roster"]["home"]] == [10]
    assert exported["narrator"]["email"] == "narrador@example.com"
    assert exported["teams"]["home"]["name"] == "Boca Juniors"
