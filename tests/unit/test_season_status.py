from datetime import date, datetime
from types import SimpleNamespace

import pytest

from matchnarrator.domain.models import SeasonStatus
from matchnarrator.domain.season_status import (
    parse_season_years,
    pick_current,
    resolve_season_status,
    season_sort_score,
)

NOW = datetime(2024, 6, 1, 12, 0)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("2024", (2024, 2024)),
        ("2023-24", (2023, 2024)),
        ("2023/24", (2023, 2024)),
        ("2023-2024", (2023, 2024)),
        (" 2025 ", (2025, 2025)),
        ("Apertura", None),
        (None, None),
    ],
)
def test_parse_season_years(name, expected):
    assert parse_season_years(name) == expected


def test_status_from_dates():
    assert resolve_season_status("x", date(2024, 1, 1), date(2024, 12, 31), NOW) == SeasonStatus.CURRENT
    assert resolve_season_status("x", date(2023, 1, 1), date(2023, 12, 31), NOW) == SeasonStatus.HISTORICAL
    assert resolve_season_status("x", date(2025, 1, 1), date(2025, 12, 31), NOW) == SeasonStatus.UPCOMING


def test_dates_win_over_name():
    assert resolve_season_status("2024", date(2022, 1, 1), date(2022, 12, 31), NOW) == SeasonStatus.HISTORICAL


def test_status_from_name_when_dates_incomplete():
    assert resolve_season_status("2023-24", None, None, NOW) == SeasonStatus.CURRENT
    assert resolve_season_status("2024", date(2024, 1, 1), None, NOW) == SeasonStatus.CURRENT
    assert resolve_season_status("2021/22", None, None, NOW) == SeasonStatus.HISTORICAL
    assert resolve_season_status("2026", None, None, NOW) == SeasonStatus.UPCOMING


def test_unparseable_name_is_historical():
    assert resolve_season_status("Torneo Clausura", None, None, NOW) == SeasonStatus.HISTORICAL


def test_sort_score_prefers_end_then_start_then_name():
    assert season_sort_score("2020", date(2024, 1, 1), date(2024, 12, 1)) == date(2024, 12, 1).toordinal()
    assert season_sort_score("2020", date(2024, 1, 1), None) == date(2024, 1, 1).toordinal()
    assert season_sort_score("2023-24", None, None) == date(2024, 12, 31).toordinal()
    assert season_sort_score("n/a", None, None) == 0


def test_pick_current_takes_latest_current_season():
    seasons = [
        SimpleNamespace(name="2023-24", start_date=None, end_date=None),
        SimpleNamespace(name="2024", start_date=date(2024, 2, 1), end_date=date(2024, 11, 30)),
        SimpleNamespace(name="2022", start_date=None, end_date=None),
    ]
    assert pick_current(seasons, NOW) is seasons[0]
    assert pick_current(seasons[2:], NOW) is None
