from datetime import datetime, timedelta

import pytest

from matchnarrator.domain.errors import BadRequestError
from matchnarrator.domain.models import MatchPeriod, MatchStatus
from matchnarrator.domain.timer import MatchClock, TimerState

T0 = datetime(2024, 9, 21, 20, 0, 0)
clock = MatchClock()


def _setup_state(**kw):
    base = dict(status=MatchStatus.SETUP, period=MatchPeriod.FIRST_HALF)
    base.update(kw)
    return TimerState(**base)


def _live(elapsed, period=MatchPeriod.FIRST_HALF, started_at=T0):
    return TimerState(
        status=MatchStatus.LIVE,
        period=period,
        elapsed_seconds=elapsed,
        is_running=True,
        started_at=started_at,
    )


def test_period_marks():
    assert clock.kickoff_mark(MatchPeriod.SECOND_HALF) == 45 * 60
    assert clock.regulation_mark(MatchPeriod.SECOND_HALF) == 90 * 60
    assert clock.regulation_mark(MatchPeriod.EXTRA_TIME_FIRST) == 105 * 60
    assert clock.regulation_mark(MatchPeriod.EXTRA_TIME_SECOND) == 120 * 60
    assert clock.regulation_mark(MatchPeriod.PENALTIES) is None
    assert MatchClock(half_minutes=20, extra_minutes=5).regulation_mark(MatchPeriod.EXTRA_TIME_FIRST) == 45 * 60


def test_start_from_setup_goes_live():
    state = clock.start(_setup_state(), T0)
    assert state.status == MatchStatus.LIVE
    assert state.is_running is True
    assert state.started_at == T0
    assert state.elapsed_seconds == 0


def test_start_rejects_running_and_finished():
    with pytest.raises(BadRequestError, match="already running"):
        clock.start(_live(0), T0)
    with pytest.raises(BadRequestError, match="already finished"):
        clock.start(_setup_state(status=MatchStatus.FINISHED), T0)


def test_pause_folds_running_segment():
    state = clock.pause(_live(100), T0 + timedelta(seconds=65))
    assert state.elapsed_seconds == 165
    assert state.is_running is False
    assert state.started_at is None
    assert state.status == MatchStatus.LIVE


def test_pause_when_not_running():
    with pytest.raises(BadRequestError, match="not running"):
        clock.pause(_setup_state(), T0)


def test_start_pause_never_decreases_elapsed():
    state = clock.start(_setup_state(), T0)
    state = clock.pause(state, T0 + timedelta(seconds=30))
    state = clock.start(state, T0 + timedelta(seconds=100))
    state = clock.pause(state, T0 + timedelta(seconds=110))
    assert state.elapsed_seconds == 40


def test_sync_restarts_running_segment():
    now = T0 + timedelta(minutes=5)
    state = clock.sync(_live(10), 600, now)
    assert state.elapsed_seconds == 600
    assert state.started_at == now
    assert clock.live_elapsed(state, now + timedelta(seconds=5)) == 605

    paused = clock.sync(_setup_state(elapsed_seconds=50), 0, now)
    assert paused.elapsed_seconds == 0
    assert paused.started_at is None


def test_end_first_half_requires_regulation_mark():
    with pytest.raises(BadRequestError, match="use force"):
        clock.end_period(_live(44 * 60), T0)


def test_end_first_half_with_force():
    state = clock.end_period(_live(30 * 60), T0, force=True)
    assert state.status == MatchStatus.HALFTIME
    assert state.period == MatchPeriod.SECOND_HALF
    assert state.elapsed_seconds == 45 * 60
    assert state.is_running is False


def test_end_first_half_drops_stoppage_time():
    now = T0 + timedelta(minutes=3)
    state = clock.end_period(_live(45 * 60), now)
    assert state.period == MatchPeriod.SECOND_HALF
    assert state.elapsed_seconds == 45 * 60


def test_end_second_half_finishes_match_and_keeps_clock():
    state = clock.end_period(_live(92 * 60, MatchPeriod.SECOND_HALF), T0)
    assert state.status == MatchStatus.FINISHED
    assert state.elapsed_seconds == 92 * 60
    assert state.is_running is False


def test_extra_time_path_to_penalties():
    state = clock.end_period(_live(90 * 60, MatchPeriod.SECOND_HALF), T0, extra_time=True)
    assert (state.status, state.period) == (MatchStatus.HALFTIME, MatchPeriod.EXTRA_TIME_FIRST)
    assert state.elapsed_seconds == 90 * 60

    state = clock.end_period(_live(105 * 60, MatchPeriod.EXTRA_TIME_FIRST), T0)
    assert state.period == MatchPeriod.EXTRA_TIME_SECOND
    assert state.elapsed_seconds == 105 * 60

    state = clock.end_period(_live(120 * 60, MatchPeriod.EXTRA_TIME_SECOND), T0, extra_time=True)
    assert state.period == MatchPeriod.PENALTIES
    assert state.elapsed_seconds == 120 * 60

    state = clock.end_period(_live(120 * 60, MatchPeriod.PENALTIES), T0)
    assert state.status == MatchStatus.FINISHED


def test_end_period_only_while_live():
    with pytest.raises(BadRequestError, match="HALFTIME"):
        clock.end_period(_setup_state(status=MatchStatus.HALFTIME), T0, force=True)


def test_start_after_halftime_resumes_from_kickoff_mark():
    state = clock.end_period(_live(47 * 60), T0)
    state = clock.start(state, T0 + timedelta(minutes=15))
    assert state.status == MatchStatus.LIVE
    assert clock.live_elapsed(state, T0 + timedelta(minutes=16)) == 46 * 60


def test_change_status_follows_transition_table():
    state = clock.change_status(_setup_state(), MatchStatus.LIVE, T0)
    assert state.status == MatchStatus.LIVE
    with pytest.raises(BadRequestError, match="Invalid status transition"):
        clock.change_status(_setup_state(), MatchStatus.FINISHED, T0)
    with pytest.raises(BadRequestError):
        clock.change_status(_setup_state(status=MatchStatus.FINISHED), MatchStatus.LIVE, T0)


def test_change_status_leaving_live_stops_clock():
    state = clock.change_status(_live(60), MatchStatus.FINISHED, T0 + timedelta(seconds=30))
    assert state.status == MatchStatus.FINISHED
    assert state.is_running is False
    assert state.elapsed_seconds == 90


def test_reading_in_regulation_time():
    reading = clock.read(_live(0), T0 + timedelta(minutes=12, seconds=5))
    assert reading.elapsed_seconds == 725
    assert (reading.minute, reading.second) == (12, 5)
    assert reading.display == "12:05"
    assert reading.minute_label == "13'"
    assert reading.stoppage_seconds == 0


def test_reading_in_stoppage_time():
    state = TimerState(
        status=MatchStatus.LIVE,
        period=MatchPeriod.FIRST_HALF,
        elapsed_seconds=46 * 60 + 30,
        first_half_added_time=3,
    )
    reading = clock.read(state, T0)
    assert reading.regulation_mark_seconds == 45 * 60
    assert reading.stoppage_minutes == 1
    assert reading.display == "45:00 +01:30"
    assert reading.minute_label == "45+2'"
    assert reading.announced_added_time == 3
    assert reading.to_dict()["period"] == "FIRST_HALF"


def test_minute_label_counts_stoppage_minute_in_progress():
    reading = clock.read(_setup_state(status=MatchStatus.LIVE, elapsed_seconds=45 * 60 + 30), T0)
    assert reading.stoppage_minutes == 0
    assert reading.minute_label == "45+1'"


def test_reading_caps_minute_label_at_mark():
    reading = clock.read(_setup_state(status=MatchStatus.LIVE, elapsed_seconds=45 * 60), T0)
    assert reading.stoppage_seconds == 0
    assert reading.minute_label == "45'"
