"""
Database Schema
SQLAlchemy Models für Wettbewerbe, Kader, Spielsitzungen und Ereignisse
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from matchnarrator.common.timeutils import utcnow
from matchnarrator.domain.models import (
    EventType,
    MatchPeriod,
    MatchStatus,
    PlayerPosition,
    TeamSide,
    UserRole,
)

Base = declarative_base()


def _enum(enum_cls):
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(_enum(UserRole), nullable=False, default=UserRole.NARRADOR)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    match_sessions = relationship("MatchSession", back_populates="narrator")


class Competition(Base):
    __tablename__ = "competitions"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    country = Column(String(100))
    logo = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    seasons = relationship("Season", back_populates="competition", order_by="Season.id")


class Season(Base):
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True)
    competition_id = Column(Integer, ForeignKey("competitions.id"), nullable=False)
    name = Column(String(50), nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    competition = relationship("Competition", back_populates="seasons")
    teams = relationship("TeamSeason", back_populates="season")
    fixtures = relationship("FixtureMatch", back_populates="season")
    standings = relationship("SeasonStanding", back_populates="season")


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    short_name = Column(String(50))
    logo = Column(Text)
    city = Column(String(100))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    seasons = relationship("TeamSeason", back_populates="team")
    home_matches = relationship(
        "MatchSession", foreign_keys="MatchSession.home_team_id", back_populates="home_team"
    )
    away_matches = relationship(
        "MatchSession", foreign_keys="MatchSession.away_team_id", back_populates="away_team"
    )


class TeamSeason(Base):
    __tablename__ = "team_seasons"
    __table_args__ = (UniqueConstraint("team_id", "season_id", name="uq_team_season"),)

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    team = relationship("Team", back_populates="seasons")
    season = relationship("Season", back_populates="teams")
    players = relationship(
        "PlayerSeason", back_populates="team_season", cascade="all, delete-orphan"
    )


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    photo = Column(Text)
    birth_date = Column(Date)
    nationality = Column(String(100))
    position = Column(_enum(PlayerPosition))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    seasons = relationship(
        "PlayerSeason", back_populates="player", cascade="all, delete-orphan"
    )


class PlayerSeason(Base):
    __tablename__ = "player_seasons"
    __table_args__ = (
        UniqueConstraint("player_id", "team_season_id", name="uq_player_team_season"),
    )

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    team_season_id = Column(
        Integer, ForeignKey("team_seasons.id", ondelete="CASCADE"), nullable=False
    )
    jersey_number = Column(Integer)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    player = relationship("Player", back_populates="seasons")
    team_season = relationship("TeamSeason", back_populates="players")


class FixtureMatch(Base):
    __tablename__ = "fixture_matches"

    id = Column(Integer, primary_key=True)
    external_id = Column(Integer, unique=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    match_date = Column(DateTime, nullable=False)
    venue = Column(String(200))
    round = Column(Integer)
    round_label = Column(String(100))
    status_short = Column(String(10))
    status_long = Column(String(100))
    home_score = Column(Integer)
    away_score = Column(Integer)
    is_finished = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    season = relationship("Season", back_populates="fixtures")
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])
    match_sessions = relationship("MatchSession", back_populates="fixture_match")


class SeasonStanding(Base):
    __tablename__ = "season_standings"
    __table_args__ = (
        UniqueConstraint("season_id", "team_id", "group_name", name="uq_season_standing"),
    )

    id = Column(Integer, primary_key=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    group_name = Column(String(100), nullable=False, default="")
    rank = Column(Integer, default=0)
    points = Column(Integer, default=0)
    played = Column(Integer, default=0)
    won = Column(Integer, default=0)
    draw = Column(Integer, default=0)
    lost = Column(Integer, default=0)
    goals_for = Column(Integer, default=0)
    goals_against = Column(Integer, default=0)
    goals_diff = Column(Integer, default=0)
    form = Column(String(20))
    status = Column(String(20))
    description = Column(String(200))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    season = relationship("Season", back_populates="standings")
    team = relationship("Team")


class MatchSession(Base):
    __tablename__ = "match_sessions"

    id = Column(Integer, primary_key=True)
    narrator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    fixture_match_id = Column(Integer, ForeignKey("fixture_matches.id"))
    match_date = Column(DateTime, nullable=False)
    venue = Column(String(200))

    # Clock state
    status = Column(_enum(MatchStatus), nullable=False, default=MatchStatus.SETUP)
    current_period = Column(_enum(MatchPeriod), nullable=False, default=MatchPeriod.FIRST_HALF)
    elapsed_seconds = Column(Integer, nullable=False, default=0)
    is_timer_running = Column(Boolean, nullable=False, default=False)
    timer_started_at = Column(DateTime)
    first_half_added_time = Column(Integer, nullable=False, default=0)
    second_half_added_time = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    narrator = relationship("User", back_populates="match_sessions")
    home_team = relationship("Team", foreign_keys=[home_team_id], back_populates="home_matches")
    away_team = relationship("Team", foreign_keys=[away_team_id], back_populates="away_matches")
    fixture_match = relationship("FixtureMatch", back_populates="match_sessions")
    roster = relationship(
        "MatchRosterPlayer",
        back_populates="match_session",
        cascade="all, delete-orphan",
    )
    events = relationship(
        "MatchEvent",
        back_populates="match_session",
        cascade="all, delete-orphan",
    )


class MatchRosterPlayer(Base):
    __tablename__ = "match_roster_players"
    __table_args__ = (
        UniqueConstraint("match_session_id", "player_id", name="uq_match_roster_player"),
    )

    id = Column(Integer, primary_key=True)
    match_session_id = Column(
        Integer, ForeignKey("match_sessions.id", ondelete="CASCADE"), nullable=False
    )
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    jersey_number = Column(Integer, nullable=False)
    custom_name = Column(String(200))
    is_home_team = Column(Boolean, nullable=False)
    is_starter = Column(Boolean, nullable=False, default=True)
    position = Column(_enum(PlayerPosition))
    # canvas position on the 800x600 field
    layout_x = Column(Float)
    layout_y = Column(Float)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    match_session = relationship("MatchSession", back_populates="roster")
    player = relationship("Player")
    team = relationship("Team")
    events = relationship("MatchEvent", back_populates="roster_player")


class MatchEvent(Base):
    __tablename__ = "match_events"

    id = Column(Integer, primary_key=True)
    match_session_id = Column(
        Integer, ForeignKey("match_sessions.id", ondelete="CASCADE"), nullable=False
    )
    roster_player_id = Column(
        Integer, ForeignKey("match_roster_players.id", ondelete="SET NULL")
    )
    team_side = Column(_enum(TeamSide), nullable=False)
    event_type = Column(_enum(EventType), nullable=False)
    period = Column(_enum(MatchPeriod), nullable=False)
    minute = Column(Integer, nullable=False)
    second = Column(Integer, nullable=False, default=0)
    payload = Column(JSON)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    match_session = relationship("MatchSession", back_populates="events")
    roster_player = relationship("MatchRosterPlayer", back_populates="events")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    actor_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    action = Column(String(64), nullable=False, index=True)
    entity_type = Column(String(64), nullable=False, index=True)
    entity_id = Column(String(64), index=True)
    payload = Column(JSON)
    created_at = Column(DateTime, default=utcnow, index=True)
