"""
Database services for competitions.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from matchnarrator.domain.errors import ConflictError, NotFoundError

from ..schema import Competition, FixtureMatch, MatchSession, Season, TeamSeason
from ..serializers import competition_to_dict, row_to_dict
from .audit import write_audit

logger = logging.getLogger(__name__)


def get_competition(session: Session, competition_id: int) -> Competition:
    competition = session.get(Competition, competition_id)
    if competition is None:
        raise NotFoundError.for_entity("Competition", competition_id)
    return competition


def create_competition(
    session: Session, data: dict[str, Any], actor_user_id: Optional[int] = None
) -> Competition:
    competition = Competition(
        name=data["name"], country=data.get("country"), logo=data.get("logo")
    )
    session.add(competition)
    session.flush()
    write_audit(session, actor_user_id, "COMPETITION_CREATE", "Competition", competition.id, data)
    session.commit()
    logger.info(f"Competition created: {competition.name}", extra={"competition_id": competition.id})
    return competition


def list_competitions(session: Session) -> list[dict[str, Any]]:
    season_counts = (
        select(Season.competition_id, func.count(Season.id).label("seasons"))
        .group_by(Season.competition_id)
        .subquery()
    )
    rows = session.execute(
        select(Competition, func.coalesce(season_counts.c.seasons, 0))
        .outerjoin(season_counts, season_counts.c.competition_id == Competition.id)
        .order_by(Competition.created_at.desc(), Competition.id.desc())
    ).all()
    result = []
    for competition, seasons in rows:
        data = competition_to_dict(competition)
        data["counts"] = {"seasons": seasons}
        result.append(data)
    return result


def get_competition_detail(session: Session, competition_id: int) -> dict[str, Any]:
    competition = session.scalar(
        select(Competition)
        .where(Competition.id == competition_id)
        .options(
            selectinload(Competition.seasons)
            .selectinload(Season.teams)
            .selectinload(TeamSeason.team)
        )
    )
    if competition is None:
        raise NotFoundError.for_entity("Competition", competition_id)
    data = competition_to_dict(competition)
    data["seasons"] = [
        {
            **row_to_dict(season),
            "teams": [
                {**row_to_dict(ts), "team": row_to_dict(ts.team)} for ts in season.teams
            ],
        }
        for season in competition.seasons
    ]
    return data


def update_competition(
    session: Session,
    competition_id: int,
    data: dict[str, Any],
    actor_user_id: Optional[int] = None,
) -> Competition:
    competition = get_competition(session, competition_id)
    for field in ("name", "country", "logo"):
        if field in data:
            setattr(competition, field, data[field])
    write_audit(session, actor_user_id, "COMPETITION_UPDATE", "Competition", competition_id, data)
    session.commit()
    return competition


def delete_competition(
    session: Session, competition_id: int, actor_user_id: Optional[int] = None
) -> dict[str, str]:
    get_competition(session, competition_id)
    counts = {
        "season_count": session.scalar(
            select(func.count(Season.id)).where(Season.competition_id == competition_id)
        ),
        "fixture_count": session.scalar(
            select(func.count(FixtureMatch.id))
            .join(Season, FixtureMatch.season_id == Season.id)
            .where(Season.competition_id == competition_id)
        ),
        "match_session_count": session.scalar(
            select(func.count(MatchSession.id))
            .join(FixtureMatch, MatchSession.fixture_match_id == FixtureMatch.id)
            .join(Season, FixtureMatch.season_id == Season.id)
            .where(Season.competition_id == competition_id)
        ),
    }

    if sum(counts.values()) > 0:
        write_audit(
            session, actor_user_id, "COMPETITION_DELETE_BLOCKED", "Competition", competition_id, counts
        )
        session.commit()
        logger.warning("Competition delete blocked", extra={"competition_id": competition_id, **counts})
        raise ConflictError(
            "Competition cannot be deleted because it has related data "
            f"(seasons: {counts['season_count']}, fixtures: {counts['fixture_count']}, "
            f"sessions: {counts['match_session_count']})",
            details=counts,
        )

    session.delete(get_competition(session, competition_id))
    write_audit(session, actor_user_id, "COMPETITION_DELETE", "Competition", competition_id, counts)
    session.commit()
    logger.info("Competition deleted", extra={"competition_id": competition_id})
    return {"message": "Competition deleted successfully"}
