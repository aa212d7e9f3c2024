"""
Import services: upsert competition / season / team / squad / fixture / standing data
coming from API-Football or from a manual JSON document.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from matchnarrator.common.text import normalize_key
from matchnarrator.common.timeutils import parse_date, parse_datetime
from matchnarrator.domain.errors import BadRequestError, NarratorError, NotFoundError

from ..schema import Competition, FixtureMatch, Season, SeasonStanding, Team, TeamSeason
from ..serializers import player_to_dict, row_to_dict, season_to_dict
from .players import ensure_assignment, find_or_create_player, normalize_player_names
from .teams import ensure_team_season

if TYPE_CHECKING:
    from matchnarrator.data_collection.collectors import APIFootballCollector

logger = logging.getLogger(__name__)

FIXTURE_FIELDS = (
    "venue",
    "round",
    "round_label",
    "status_short",
    "status_long",
    "home_score",
    "away_score",
)
STANDING_FIELDS = (
    "rank",
    "points",
    "played",
    "won",
    "draw",
    "lost",
    "goals_for",
    "goals_against",
    "goals_diff",
    "form",
    "status",
    "description",
)


# --- Competition & season --------------------------------------------------


def _find_or_create_competition(session: Session, name: str, country=None, logo=None) -> tuple[Competition, bool]:
    competition = session.scalar(
        select(Competition).where(Competition.name == name).order_by(Competition.id).limit(1)
    )
    if competition is not None:
        return competition, False
    competition = Competition(name=name, country=country, logo=logo)
    session.add(competition)
    session.flush()
    return competition, True


def _find_season(session: Session, competition_id: int, name: str) -> Optional[Season]:
    return session.scalar(
        select(Season)
        .where(Season.competition_id == competition_id, Season.name == name)
        .order_by(Season.id)
        .limit(1)
    )


def import_league(session: Session, body: dict[str, Any]) -> dict[str, Any]:
    """Find-or-create the competition by name and its season spanning ``season_year``."""
    competition, _ = _find_or_create_competition(
        session, body["name"], body.get("country"), body.get("logo")
    )
    season = _find_season(session, competition.id, body["season_name"])
    if season is None:
        year = int(body["season_year"])
        season = Season(
            competition_id=competition.id,
            name=body["season_name"],
            start_date=date(year, 1, 1),
            end_date=date(year, 12, 31),
        )
        session.add(season)
    session.commit()
    logger.info(
        f"League imported: {competition.name} {season.name}",
        extra={"competition_id": competition.id, "season_id": season.id},
    )
    return {"competition": row_to_dict(competition), "season": season_to_dict(season)}


# --- Teams -----------------------------------------------------------------


def _import_teams(session: Session, season_id: int, teams: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if session.get(Season, season_id) is None:
        raise NotFoundError.for_entity("Season", season_id)
    results = []
    for item in teams:
        if not item.get("name"):
            continue
        team = session.scalar(select(Team).where(Team.name == item["name"]).order_by(Team.id).limit(1))
        is_new = team is None
        if is_new:
            team = Team(
                name=item["name"],
                short_name=item.get("short_name"),
                logo=item.get("logo"),
                city=item.get("city"),
            )
            session.add(team)
            session.flush()
        team_season = ensure_team_season(session, team.id, season_id)
        external_id = item.get("external_id")
        results.append(
            {
                "team": team,
                "team_season_id": team_season.id,
                "is_new": is_new,
                "external_id": external_id if isinstance(external_id, int) else None,
            }
        )
    return results


def _teams_out(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{**r, "team": row_to_dict(r["team"])} for r in results]


def import_teams(session: Session, season_id: int, teams: list[dict[str, Any]]) -> list[dict[str, Any]]:
    results = _import_teams(session, season_id, teams)
    session.commit()
    logger.info(
        f"Imported {len(results)} teams",
        extra={"season_id": season_id, "new_teams": sum(1 for r in results if r["is_new"])},
    )
    return _teams_out(results)


# --- Squads ----------------------------------------------------------------


def _import_squad(session: Session, team_season_id: int, players: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if session.get(TeamSeason, team_season_id) is None:
        raise NotFoundError.for_entity("TeamSeason", team_season_id)
    results = []
    for item in players:
        first, last = normalize_player_names(item)
        if not first:
            continue
        player, _ = find_or_create_player(session, first, last, item)
        _, assigned = ensure_assignment(session, player.id, team_season_id, item.get("number"))
        results.append({"player": player, "assigned": assigned})
    return results


def import_squad(session: Session, team_season_id: int, players: list[dict[str, Any]]) -> list[dict[str, Any]]:
    results = _import_squad(session, team_season_id, players)
    session.commit()
    logger.info(
        "Squad imported",
        extra={
            "team_season_id": team_season_id,
            "players": len(results),
            "assigned": sum(1 for r in results if r["assigned"]),
        },
    )
    return [{"player": player_to_dict(r["player"]), "assigned": r["assigned"]} for r in results]


# --- Fixtures & standings --------------------------------------------------


def _upsert_fixture(
    session: Session,
    season_id: int,
    home_team_id: int,
    away_team_id: int,
    item: dict[str, Any],
    external_id: Optional[int] = None,
) -> Optional[bool]:
    """Returns True when created, False when updated, None when skipped."""
    match_date = parse_datetime(item.get("match_date"))
    if match_date is None:
        return None

    existing = None
    if external_id is not None:
        existing = session.scalar(select(FixtureMatch).where(FixtureMatch.external_id == external_id))
    if existing is None:
        existing = session.scalar(
            select(FixtureMatch).where(
                FixtureMatch.season_id == season_id,
                FixtureMatch.home_team_id == home_team_id,
                FixtureMatch.away_team_id == away_team_id,
                FixtureMatch.match_date == match_date,
            )
        )

    created = existing is None
    fixture = existing or FixtureMatch(external_id=external_id)
    fixture.season_id = season_id
    fixture.home_team_id = home_team_id
    fixture.away_team_id = away_team_id
    fixture.match_date = match_date
    for field in FIXTURE_FIELDS:
        setattr(fixture, field, item.get(field))
    fixture.is_finished = bool(item.get("is_finished", False))
    if external_id is not None and fixture.external_id is None:
        fixture.external_id = external_id
    if created:
        session.add(fixture)
    session.flush()
    return created


def import_fixtures(
    session: Session,
    season_id: int,
    fixtures: list[dict[str, Any]],
    team_ids_by_external_id: dict[int, int],
) -> dict[str, int]:
    summary = {"created": 0, "updated": 0, "skipped": 0}
    for item in fixtures:
        home_id = team_ids_by_external_id.get(item.get("home_team_external_id"))
        away_id = team_ids_by_external_id.get(item.get("away_team_external_id"))
        if not home_id or not away_id or not item.get("external_id"):
            summary["skipped"] += 1
            continue
        outcome = _upsert_fixture(session, season_id, home_id, away_id, item, item["external_id"])
        if outcome is None:
            summary["skipped"] += 1
        else:
            summary["created" if outcome else "updated"] += 1
    return summary


def _upsert_standing(session: Session, season_id: int, team_id: int, row: dict[str, Any]) -> None:
    group_name = row.get("group_name") or ""
    standing = session.scalar(
        select(SeasonStanding).where(
            SeasonStanding.season_id == season_id,
            SeasonStanding.team_id == team_id,
            SeasonStanding.group_name == group_name,
        )
    )
    if standing is None:
        standing = SeasonStanding(season_id=season_id, team_id=team_id, group_name=group_name)
        session.add(standing)
    for field in STANDING_FIELDS:
        value = row.get(field)
        if value is None and field not in ("form", "status", "description"):
            value = 0
        setattr(standing, field, value)
    session.flush()


def import_standings(
    session: Session,
    season_id: int,
    rows: list[dict[str, Any]],
    team_ids_by_external_id: dict[int, int],
) -> dict[str, int]:
    summary = {"upserted": 0, "skipped": 0}
    for row in rows:
        team_id = team_ids_by_external_id.get(row.get("team_external_id"))
        if not team_id:
            summary["skipped"] += 1
            continue
        _upsert_standing(session, season_id, team_id, row)
        summary["upserted"] += 1
    return summary


# --- Full season from API-Football -----------------------------------------


def _committed(session: Session, step, *args):
    """Runs one import step and commits it, rolling back on failure."""
    try:
        result = step(session, *args)
        session.commit()
    except Exception:
        session.rollback()
        raise
    return result


async def import_full_season(
    session: Session, collector: "APIFootballCollector", body: dict[str, Any]
) -> dict[str, Any]:
    """League + teams, then squads / fixtures / standings (each on unless disabled).

    Database steps run in a worker thread so the event loop keeps serving
    requests while the collector pages through API-Football.
    """
    league = await asyncio.to_thread(import_league, session, body)
    season_id = league["season"]["id"]
    league_id, year = body["league_id"], body["season_year"]

    api_teams = await collector.search_teams(league_id, year)
    imported = await asyncio.to_thread(_committed, session, _import_teams, season_id, api_teams)
    team_ids = {r["external_id"]: r["team"].id for r in imported if r["external_id"] is not None}
    team_season_ids = {r["external_id"]: r["team_season_id"] for r in imported if r["external_id"] is not None}

    squad_teams = players_assigned = squad_errors = 0
    if body.get("include_squads", True) is not False:
        for api_team in api_teams:
            team_season_id = team_season_ids.get(api_team.get("external_id"))
            if team_season_id is None:
                continue
            try:
                squad = await collector.search_squad(api_team["external_id"], year)
                if not squad:
                    continue
                results = await asyncio.to_thread(
                    _committed, session, _import_squad, team_season_id, squad
                )
            except (NarratorError, SQLAlchemyError) as e:
                squad_errors += 1
                logger.warning(f"Squad import failed for team {api_team.get('name')}: {e}")
                continue
            squad_teams += 1
            players_assigned += sum(1 for r in results if r["assigned"])

    fixture_summary = {"created": 0, "updated": 0, "skipped": 0}
    if body.get("include_fixtures", True) is not False:
        fixtures = await collector.search_fixtures(league_id, year)
        fixture_summary = await asyncio.to_thread(
            _committed, session, import_fixtures, season_id, fixtures, team_ids
        )

    standings_summary = {"upserted": 0, "skipped": 0}
    if body.get("include_standings", True) is not False:
        rows = await collector.search_standings(league_id, year)
        standings_summary = await asyncio.to_thread(
            _committed, session, import_standings, season_id, rows, team_ids
        )

    summary = {
        "teams": len(imported),
        "squad_teams_processed": squad_teams,
        "players_assigned": players_assigned,
        "squad_errors": squad_errors,
        "fixtures_created": fixture_summary["created"],
        "fixtures_updated": fixture_summary["updated"],
        "fixtures_skipped": fixture_summary["skipped"],
        "standings_upserted": standings_summary["upserted"],
        "standings_skipped": standings_summary["skipped"],
    }
    logger.info("Full season import finished", extra={"season_id": season_id, **summary})
    return {
        "competition": league["competition"],
        "season": league["season"],
        "teams": _teams_out(imported),
        "summary": summary,
    }


# --- Manual season ---------------------------------------------------------


def import_manual_season(session: Session, body: dict[str, Any]) -> dict[str, Any]:
    competition_in = body.get("competition") or {}
    season_in = body.get("season") or {}
    if not competition_in.get("name") or not season_in.get("name"):
        raise BadRequestError("competition.name and season.name are required")
    teams_in = body.get("teams")
    if not isinstance(teams_in, list) or not teams_in:
        raise BadRequestError("teams array is required")

    competition, created = _find_or_create_competition(
        session, competition_in["name"], competition_in.get("country"), competition_in.get("logo")
    )
    if not created:
        if competition_in.get("country"):
            competition.country = competition_in["country"]
        if competition_in.get("logo"):
            competition.logo = competition_in["logo"]

    start_date = parse_date(season_in.get("start_date"))
    end_date = parse_date(season_in.get("end_date"))
    season = _find_season(session, competition.id, season_in["name"])
    if season is None:
        season = Season(
            competition_id=competition.id,
            name=season_in["name"],
            start_date=start_date,
            end_date=end_date,
        )
        session.add(season)
        session.flush()
    else:
        season.start_date = start_date or season.start_date
        season.end_date = end_date or season.end_date

    imported = _import_teams(session, season.id, teams_in)
    by_name = {
        normalize_key(r["team"].name): (r["team"].id, r["team_season_id"]) for r in imported
    }

    players_assigned = teams_with_players = 0
    for team_in in teams_in:
        players = team_in.get("players") or []
        info = by_name.get(normalize_key(team_in.get("name") or ""))
        if not players or info is None:
            continue
        results = _import_squad(session, info[1], players)
        if not results:
            continue
        players_assigned += sum(1 for r in results if r["assigned"])
        teams_with_players += 1

    fixtures_created = fixtures_updated = fixtures_skipped = 0
    for item in body.get("fixtures") or []:
        home = by_name.get(normalize_key(item.get("home_team") or ""))
        away = by_name.get(normalize_key(item.get("away_team") or ""))
        if home is None or away is None:
            fixtures_skipped += 1
            continue
        outcome = _upsert_fixture(session, season.id, home[0], away[0], item)
        if outcome is None:
            fixtures_skipped += 1
        elif outcome:
            fixtures_created += 1
        else:
            fixtures_updated += 1

    standings_upserted = standings_skipped = 0
    for row in body.get("standings") or []:
        info = by_name.get(normalize_key(row.get("team") or ""))
        if info is None:
            standings_skipped += 1
            continue
        _upsert_standing(session, season.id, info[0], row)
        standings_upserted += 1

    session.commit()
    summary = {
        "teams": len(imported),
        "teams_with_players": teams_with_players,
        "players_assigned": players_assigned,
        "fixtures_created": fixtures_created,
        "fixtures_updated": fixtures_updated,
        "fixtures_skipped": fixtures_skipped,
        "standings_upserted": standings_upserted,
        "standings_skipped": standings_skipped,
    }
    logger.info("Manual season import finished", extra={"season_id": season.id, **summary})
    return {
        "competition": row_to_dict(competition),
        "season": season_to_dict(season),
        "teams": _teams_out(imported),
        "summary": summary,
    }
