"""
Season status resolution (CURRENT / HISTORICAL / UPCOMING) from dates or the season name.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Optional, Protocol, TypeVar

from .models import SeasonStatus

_SINGLE_YEAR_RE = re.compile(r"^(\d{4})$")
_YEAR_RANGE_RE = re.compile(r"^(\d{4})\s*[-/]\s*(\d{2}|\d{4})$")


class SeasonLike(Protocol):
    name: str
    start_date: Optional[date]
    end_date: Optional[date]


S = TypeVar("S", bound=SeasonLike)


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def parse_season_years(name: Optional[str]) -> Optional[tuple[int, int]]:
    """"2024" -> (2024, 2024), "2023-24" / "2023/24" / "2023-2024" -> (2023, 2024)."""
    trimmed = (name or "").strip()
    single = _SINGLE_YEAR_RE.match(trimmed)
    if single:
        year = int(single.group(1))
        return year, year

    rng = _YEAR_RANGE_RE.match(trimmed)
    if not rng:
        return None
    start_year = int(rng.group(1))
    raw_end = rng.group(2)
    if len(raw_end) == 2:
        end_year = (start_year // 100) * 100 + int(raw_end)
    else:
        end_year = int(raw_end)
    return start_year, end_year


def resolve_season_status(
    name: Optional[str],
    start_date: Optional[date],
    end_date: Optional[date],
    now: date | datetime,
) -> SeasonStatus:
    today = _as_date(now)
    if start_date and end_date:
        start, end = _as_date(start_date), _as_date(end_date)
        if start <= today <= end:
            return SeasonStatus.CURRENT
        return SeasonStatus.HISTORICAL if today > end else SeasonStatus.UPCOMING

    years = parse_season_years(name)
    if years:
        start_year, end_year = years
        if start_year <= today.year <= end_year:
            return SeasonStatus.CURRENT
        return SeasonStatus.HISTORICAL if today.year > end_year else SeasonStatus.UPCOMING

    return SeasonStatus.HISTORICAL


def season_sort_score(
    name: Optional[str], start_date: Optional[date], end_date: Optional[date]
) -> int:
    """Ordinal of the date that best represents the end of the season (0 when unknown)."""
    if end_date:
        return _as_date(end_date).toordinal()
    if start_date:
        return _as_date(start_date).toordinal()
    years = parse_season_years(name)
    if years:
        return date(years[1], 12, 31).toordinal()
    return 0


def status_of(season: SeasonLike, now: date | datetime) -> SeasonStatus:
    return resolve_season_status(season.name, season.start_date, season.end_date, now)


def pick_current(seasons: Iterable[S], now: date | datetime) -> Optional[S]:
    """Most recent season whose status is CURRENT, or None."""
    current = [s for s in seasons if status_of(s, now) == SeasonStatus.CURRENT]
    if not current:
        return None
    return max(current, key=lambda s: season_sort_score(s.name, s.start_date, s.end_date))
