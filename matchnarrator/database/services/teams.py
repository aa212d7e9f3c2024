"""
Database services for teams and their season assignments.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.domain.errors import ConflictError, NotFoundError

from ..schema import (
    FixtureMatch,
    MatchSession,
    PlayerSeason,
    Season,
    SeasonStanding,
    Team,
    TeamSeason,
)
from ..serializers import player_season_to_dict, row_to_dict, season_to_dict, team_season_to_dict
from .audit import write_audit

logger = logging.getLogger(__name__)

TEAM_FIELDS = ("name", "short_name", "logo", "city")
LATEST_MATCHES = 10


def get_team(session: Session, team_id: int) -> Team:
    team = session.get(Team, team_id)
    if team is None:
        raise NotFoundError.for_entity("Team", team_id)
    return team


def create_team(session: Session, data: dict[str, Any], actor_user_id: Optional[int] = None) -> Team:
    team = Team(**{field: data.get(field) for field in TEAM_FIELDS})
    session.add(team)
    session.flush()
    write_audit(session, actor_user_id, "TEAM_CREATE", "Team", team.id, data)
    session.commit()
    logger.info(f"Team created: {team.name}", extra={"team_id": team.id})
    return team


def list_teams(session: Session) -> list[dict[str, Any]]:
    teams = session.scalars(select(Team).order_by(Team.name, Team.id)).all()

    def _count(column, group_col):
        return dict(session.execute(select(group_col, func.count(column)).group_by(group_col)).all())

    seasons = _count(TeamSeason.id, TeamSeason.team_id)
    home = _count(MatchSession.id, MatchSession.home_team_id)
    away = _count(MatchSession.id, MatchSession.away_team_id)
    return [
        {
            **row_to_dict(team),
            "counts": {
                "seasons": seasons.get(team.id, 0),
                "home_matches": home.get(team.id, 0),
                "away_matches": away.get(team.id, 0),
            },
        }
        for team in teams
    ]


def get_team_detail(session: Session, team_id: int) -> dict[str, Any]:
    team = session.scalar(
        select(Team)
        .where(Team.id == team_id)
        .options(
            selectinload(Team.seasons).selectinload(TeamSeason.season).selectinload(Season.competition),
            selectinload(Team.seasons).selectinload(TeamSeason.players).selectinload(PlayerSeason.player),
        )
    )
    if team is None:
        raise NotFoundError.for_entity("Team", team_id)

    def _latest(column):
        return [
            row_to_dict(m)
            for m in session.scalars(
                select(MatchSession)
                .where(column == team_id)
                .order_by(MatchSession.match_date.desc(), MatchSession.id.desc())
                .limit(LATEST_MATCHES)
            )
        ]

    data = row_to_dict(team)
    data["seasons"] = [
        {
            **row_to_dict(ts),
            "season": season_to_dict(ts.season),
            "players": [player_season_to_dict(ps) for ps in ts.players],
        }
        for ts in team.seasons
    ]
    data["home_matches"] = _latest(MatchSession.home_team_id)
    data["away_matches"] = _latest(MatchSession.away_team_id)
    return data


def update_team(
    session: Session, team_id: int, data: dict[str, Any], actor_user_id: Optional[int] = None
) -> Team:
    team = get_team(session, team_id)
    for field in TEAM_FIELDS:
        if field in data:
            setattr(team, field, data[field])
    write_audit(session, actor_user_id, "TEAM_UPDATE", "Team", team_id, data)
    session.commit()
    return team


def delete_team(session: Session, team_id: int, actor_user_id: Optional[int] = None) -> dict[str, str]:
    team = get_team(session, team_id)
    counts = {
        "match_count": session.scalar(
            select(func.count(MatchSession.id)).where(
                or_(MatchSession.home_team_id == team_id, MatchSession.away_team_id == team_id)
            )
        ),
        "fixture_count": session.scalar(
            select(func.count(FixtureMatch.id)).where(
                or_(FixtureMatch.home_team_id == team_id, FixtureMatch.away_team_id == team_id)
            )
        ),
    }
    if sum(counts.values()) > 0:
        write_audit(session, actor_user_id, "TEAM_DELETE_BLOCKED", "Team", team_id, counts)
        session.commit()
        logger.warning("Team delete blocked", extra={"team_id": team_id, **counts})
        raise ConflictError(
            "Team cannot be deleted because it has related data "
            f"(matches: {counts['match_count']}, fixtures: {counts['fixture_count']})",
            details=counts,
        )

    # season assignments (with their squads) and standings rows go with the team
    for team_season in list(team.seasons):
        session.delete(team_season)
    session.execute(delete(SeasonStanding).where(SeasonStanding.team_id == team_id))
    session.delete(team)
    write_audit(session, actor_user_id, "TEAM_DELETE", "Team", team_id, counts)
    session.commit()
    logger.info("Team deleted", extra={"team_id": team_id})
    return {"message": "Team deleted successfully"}


def assign_to_season(
    session: Session, team_id: int, season_id: int, actor_user_id: Optional[int] = None
) -> dict[str, Any]:
    get_team(session, team_id)
    if session.get(Season, season_id) is None:
        raise NotFoundError.for_entity("Season", season_id)
    existing = session.scalar(
        select(TeamSeason).where(TeamSeason.team_id == team_id, TeamSeason.season_id == season_id)
    )
    if existing is not None:
        raise ConflictError("Team is already assigned to this season")

    team_season = TeamSeason(team_id=team_id, season_id=season_id)
    session.add(team_season)
    session.flush()
    write_audit(
        session,
        actor_user_id,
        "TEAM_ASSIGN_SEASON",
        "Team",
        team_id,
        {"season_id": season_id, "team_season_id": team_season.id},
    )
    session.commit()
    return team_season_to_dict(team_season)


def ensure_team_season(session: Session, team_id: int, season_id: int) -> TeamSeason:
    """Find-or-create without audit; used by the import pipeline."""
    team_season = session.scalar(
        select(TeamSeason).where(TeamSeason.team_id == team_id, TeamSeason.season_id == season_id)
    )
    if team_season is None:
        team_season = TeamSeason(team_id=team_id, season_id=season_id)
        session.add(team_season)
        session.flush()
    return team_season
