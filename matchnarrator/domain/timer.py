"""
Match Clock
Zeitmessung und Perioden-Zustandsautomat einer Spielsitzung

The clock is server-side: while running, the stored ``elapsed_seconds`` is the
value at ``started_at`` and the live value is derived from the wall clock.
All functions are pure and return a new :class:`TimerState`; persistence is
done by the matches service.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from .errors import BadRequestError
from .models import (
    EXTRA_TIME_DURATION_MINUTES,
    HALF_DURATION_MINUTES,
    STATUS_TRANSITIONS,
    MatchPeriod,
    MatchStatus,
)


@dataclass(frozen=True)
class TimerState:
    status: MatchStatus
    period: MatchPeriod
    elapsed_seconds: int = 0
    is_running: bool = False
    started_at: Optional[datetime] = None
    first_half_added_time: int = 0
    second_half_added_time: int = 0


@dataclass(frozen=True)
class ClockReading:
    """Snapshot of the match clock.

    ``stoppage_minutes`` counts completed minutes beyond the regulation mark,
    while ``minute_label`` counts the minute in progress (football notation):
    at 45:30 the reading has ``stoppage_minutes == 0`` and ``minute_label == "45+1'"``.
    """

    elapsed_seconds: int
    minute: int
    second: int
    period: MatchPeriod
    status: MatchStatus
    is_running: bool
    regulation_mark_seconds: Optional[int]
    stoppage_seconds: int
    stoppage_minutes: int
    announced_added_time: Optional[int]
    display: str
    minute_label: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "elapsed_seconds": self.elapsed_seconds,
            "minute": self.minute,
            "second": self.second,
            "period": self.period.value,
            "status": self.status.value,
            "is_running": self.is_running,
            "regulation_mark_seconds": self.regulation_mark_seconds,
            "stoppage_seconds": self.stoppage_seconds,
            "stoppage_minutes": self.stoppage_minutes,
            "announced_added_time": self.announced_added_time,
            "display": self.display,
            "minute_label": self.minute_label,
        }


def _fmt(seconds: int) -> str:
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class MatchClock:
    """Period marks and timer transitions for one half/extra-time configuration."""

    def __init__(
        self,
        half_minutes: int = HALF_DURATION_MINUTES,
        extra_minutes: int = EXTRA_TIME_DURATION_MINUTES,
    ):
        half = half_minutes * 60
        extra = extra_minutes * 60
        # (kickoff, regulation end) per period, in match-clock seconds
        self._marks: dict[MatchPeriod, tuple[int, Optional[int]]] = {
            MatchPeriod.FIRST_HALF: (0, half),
            MatchPeriod.SECOND_HALF: (half, 2 * half),
            MatchPeriod.EXTRA_TIME_FIRST: (2 * half, 2 * half + extra),
            MatchPeriod.EXTRA_TIME_SECOND: (2 * half + extra, 2 * half + 2 * extra),
            MatchPeriod.PENALTIES: (2 * half + 2 * extra, None),
        }

    # --- marks -----------------------------------------------------------

    def kickoff_mark(self, period: MatchPeriod) -> int:
        return self._marks[period][0]

    def regulation_mark(self, period: MatchPeriod) -> Optional[int]:
        return self._marks[period][1]

    # --- readings --------------------------------------------------------

    @staticmethod
    def live_elapsed(state: TimerState, now: datetime) -> int:
        if not state.is_running or state.started_at is None:
            return state.elapsed_seconds
        running = int((now - state.started_at).total_seconds())
        return state.elapsed_seconds + max(0, running)

    def read(self, state: TimerState, now: datetime) -> ClockReading:
        elapsed = self.live_elapsed(state, now)
        mark = self.regulation_mark(state.period)
        stoppage = max(0, elapsed - mark) if mark is not None else 0

        if state.period == MatchPeriod.FIRST_HALF:
            announced: Optional[int] = state.first_half_added_time
        elif state.period == MatchPeriod.SECOND_HALF:
            announced = state.second_half_added_time
        else:
            announced = None

        if stoppage > 0:
            display = f"{_fmt(mark)} +{_fmt(stoppage)}"
            minute_label = f"{mark // 60}+{stoppage // 60 + 1}'"
        else:
            display = _fmt(elapsed)
            current = elapsed // 60 + 1
            if mark is not None:
                current = min(current, mark // 60)
            minute_label = f"{current}'"

        return ClockReading(
            elapsed_seconds=elapsed,
            minute=elapsed // 60,
            second=elapsed % 60,
            period=state.period,
            status=state.status,
            is_running=state.is_running,
            regulation_mark_seconds=mark,
            stoppage_seconds=stoppage,
            stoppage_minutes=stoppage // 60,
            announced_added_time=announced,
            display=display,
            minute_label=minute_label,
        )

    # --- transitions -----------------------------------------------------

    def start(self, state: TimerState, now: datetime) -> TimerState:
        if state.is_running:
            raise BadRequestError("Timer is already running")
        if state.status == MatchStatus.FINISHED:
            raise BadRequestError("Match is already finished")
        return replace(
            state,
            status=MatchStatus.LIVE,
            is_running=True,
            started_at=now,
        )

    def pause(self, state: TimerState, now: datetime) -> TimerState:
        if not state.is_running:
            raise BadRequestError("Timer is not running")
        return self._stopped(state, now)

    def sync(self, state: TimerState, seconds: int, now: datetime) -> TimerState:
        if seconds < 0:
            raise BadRequestError("Elapsed seconds must be >= 0")
        return replace(
            state,
            elapsed_seconds=seconds,
            started_at=now if state.is_running else None,
        )

    def end_period(
        self,
        state: TimerState,
        now: datetime,
        *,
        force: bool = False,
        extra_time: bool = False,
    ) -> TimerState:
        if state.status != MatchStatus.LIVE:
            raise BadRequestError(
                f"Cannot end a period while match is {state.status.value}"
            )

        elapsed = self.live_elapsed(state, now)
        mark = self.regulation_mark(state.period)
        if not force and mark is not None and elapsed < mark:
            raise BadRequestError(
                f"Period {state.period.value} runs until {_fmt(mark)}, clock is at "
                f"{_fmt(elapsed)}; use force to end it early"
            )

        next_period = self._next_period(state.period, extra_time)
        stopped = self._stopped(state, now)
        if next_period is None:
            return replace(stopped, status=MatchStatus.FINISHED)
        return replace(
            stopped,
            status=MatchStatus.HALFTIME,
            period=next_period,
            elapsed_seconds=self.kickoff_mark(next_period),
        )

    def change_status(
        self, state: TimerState, new_status: MatchStatus, now: datetime
    ) -> TimerState:
        """Manual status change along the transition table; leaving LIVE stops the clock."""
        if new_status == state.status:
            return state
        if new_status not in STATUS_TRANSITIONS[state.status]:
            raise BadRequestError(
                f"Invalid status transition from {state.status.value} to {new_status.value}"
            )
        base = self._stopped(state, now) if state.is_running else state
        return replace(base, status=new_status)

    # --- helpers ---------------------------------------------------------

    def _stopped(self, state: TimerState, now: datetime) -> TimerState:
        return replace(
            state,
            elapsed_seconds=self.live_elapsed(state, now),
            is_running=False,
            started_at=None,
        )

    @staticmethod
    def _next_period(period: MatchPeriod, extra_time: bool) -> Optional[MatchPeriod]:
        if period == MatchPeriod.FIRST_HALF:
            return MatchPeriod.SECOND_HALF
        if period == MatchPeriod.SECOND_HALF:
            return MatchPeriod.EXTRA_TIME_FIRST if extra_time else None
        if period == MatchPeriod.EXTRA_TIME_FIRST:
            return MatchPeriod.EXTRA_TIME_SECOND
        if period == MatchPeriod.EXTRA_TIME_SECOND:
            return MatchPeriod.PENALTIES if extra_time else None
        return None
