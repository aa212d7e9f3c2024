"""
API-Football Collector
Sammelt Ligen, Teams, Kader, Spielpläne und Tabellen von v3.football.api-sports.io
"""

from typing import Any, Optional

import aiohttp

from matchnarrator.common.text import parse_round_number, split_full_name
from matchnarrator.core.config import APIConfig
from matchnarrator.domain.errors import BadRequestError
from matchnarrator.domain.models import FINISHED_FIXTURE_STATUSES

from .base import DataCollector


def is_finished_status(status_short: Optional[str]) -> bool:
    return bool(status_short) and status_short in FINISHED_FIXTURE_STATUSES


class APIFootballCollector(DataCollector):
    """Datensammler für API-Football"""

    def __init__(self, api_config: APIConfig, session: Optional[aiohttp.ClientSession] = None):
        super().__init__("api_football", api_config, session)

    async def _fetch(self, endpoint_key: str, params: Optional[dict[str, Any]] = None) -> dict:
        data = await self._make_request(self.api_config.endpoints[endpoint_key], params)
        errors = data.get("errors")
        # API-Football reports errors as a dict or list with HTTP 200
        if errors:
            first = next(iter(errors.values())) if isinstance(errors, dict) else errors[0]
            self.logger.warning(f"API-Football error on {endpoint_key}: {first}")
            raise BadRequestError(f"API Football: {first}")
        return data

    # --- Leagues -----------------------------------------------------------

    async def search_leagues(self, query: Optional[str] = None, country: Optional[str] = None) -> list[dict]:
        data = await self._fetch("leagues", {"search": query, "country": country})
        leagues = []
        for item in data.get("response") or []:
            league = item.get("league") or {}
            country_node = item.get("country") or {}
            seasons = sorted(
                (
                    {"year": s.get("year"), "current": bool(s.get("current"))}
                    for s in item.get("seasons") or []
                ),
                key=lambda s: s["year"] or 0,
                reverse=True,
            )
            leagues.append(
                {
                    "external_id": league.get("id"),
                    "name": league.get("name"),
                    "type": league.get("type"),
                    "logo": league.get("logo"),
                    "country": country_node.get("name"),
                    "country_code": country_node.get("code"),
                    "country_flag": country_node.get("flag"),
                    "seasons": seasons,
                }
            )
        return leagues

    # --- Teams & squads ----------------------------------------------------

    async def search_teams(self, league_id: Any, season: Any) -> list[dict]:
        data = await self._fetch("teams", {"league": league_id, "season": season})
        teams = []
        for item in data.get("response") or []:
            team = item.get("team") or {}
            venue = item.get("venue") or {}
            teams.append(
                {
                    "external_id": team.get("id"),
                    "name": team.get("name"),
                    "short_name": team.get("code") or None,
                    "logo": team.get("logo") or None,
                    "city": venue.get("city") or None,
                }
            )
        return teams

    async def search_squad(self, team_id: Any, season: Any = None) -> list[dict]:
        data = await self._fetch("squads", {"team": team_id, "season": season})
        response = data.get("response") or []
        if not response:
            return []
        players = []
        for p in response[0].get("players") or []:
            first_name, last_name = split_full_name(p.get("name"))
            players.append(
                {
                    "external_id": p.get("id"),
                    "name": p.get("name"),
                    "first_name": first_name,
                    "last_name": last_name,
                    "number": p.get("number"),
                    "position": p.get("position"),
                    "photo": p.get("photo"),
                    "age": p.get("age"),
                }
            )
        return players

    # --- Fixtures & standings ----------------------------------------------

    async def search_fixtures(self, league_id: Any, season: Any) -> list[dict]:
        raw: list[dict] = []
        page, total_pages = 1, 1
        while page <= total_pages:
            data = await self._fetch("fixtures", {"league": league_id, "season": season, "page": page})
            raw.extend(data.get("response") or [])
            total_pages = (data.get("paging") or {}).get("total") or page
            page += 1
        self.logger.info(f"Fetched {len(raw)} fixtures for league {league_id}/{season}")

        fixtures = []
        for item in raw:
            fixture = item.get("fixture") or {}
            status = fixture.get("status") or {}
            round_label = (item.get("league") or {}).get("round") or None
            goals = item.get("goals") or {}
            teams = item.get("teams") or {}
            fixtures.append(
                {
                    "external_id": fixture.get("id"),
                    "match_date": fixture.get("date"),
                    "venue": (fixture.get("venue") or {}).get("name") or None,
                    "round": parse_round_number(round_label),
                    "round_label": round_label,
                    "status_short": status.get("short") or None,
                    "status_long": status.get("long") or None,
                    "is_finished": is_finished_status(status.get("short")),
                    "home_score": goals.get("home"),
                    "away_score": goals.get("away"),
                    "home_team_external_id": (teams.get("home") or {}).get("id"),
                    "away_team_external_id": (teams.get("away") or {}).get("id"),
                }
            )
        return fixtures

    async def search_standings(self, league_id: Any, season: Any) -> list[dict]:
        data = await self._fetch("standings", {"league": league_id, "season": season})
        response = data.get("response") or []
        league_node = (response[0].get("league") if response else None) or {}
        rows = []
        for block in league_node.get("standings") or []:
            if not isinstance(block, list):
                continue
            for row in block:
                totals = row.get("all") or {}
                goals = totals.get("goals") or {}
                rows.append(
                    {
                        "group_name": row.get("group") or "",
                        "rank": row.get("rank") or 0,
                        "points": row.get("points") or 0,
                        "played": totals.get("played") or 0,
                        "won": totals.get("win") or 0,
                        "draw": totals.get("draw") or 0,
                        "lost": totals.get("lose") or 0,
                        "goals_for": goals.get("for") or 0,
                        "goals_against": goals.get("against") or 0,
                        "goals_diff": row.get("goalsDiff") or 0,
                        "form": row.get("form") or None,
                        "status": row.get("status") or None,
                        "description": row.get("description") or None,
                        "team_external_id": (row.get("team") or {}).get("id"),
                    }
                )
        return rows
