"""
API Models
Pydantic Models für API Requests und Responses
"""

import time
from datetime import datetime
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from matchnarrator.common.timeutils import utcnow
from matchnarrator.domain.models import (
    EventType,
    MatchPeriod,
    MatchStatus,
    PlayerPosition,
    TeamSide,
    UserRole,
)


class APIResponse(BaseModel):
    """Standard API Response Model"""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    execution_time_ms: Optional[float] = None
    timestamp: datetime = Field(default_factory=utcnow)


class RequestModel(BaseModel):
    """Request bodies accept camelCase (dashboard) and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_data(self) -> dict[str, Any]:
        """Only the fields the client actually sent, as snake_case."""
        return self.model_dump(exclude_unset=True, mode="json")


class HealthResponse(BaseModel):
    """Health check response model"""

    status: str
    timestamp: datetime
    database: Optional[str] = None


# --- Auth & users ----------------------------------------------------------


class LoginRequest(RequestModel):
    email: str
    password: str


class UserCreateRequest(RequestModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    role: UserRole = UserRole.NARRADOR


class UserUpdateRequest(RequestModel):
    email: Optional[str] = Field(default=None, min_length=3)
    password: Optional[str] = Field(default=None, min_length=6)
    name: Optional[str] = None
    role: Optional[UserRole] = None


# --- Competitions, seasons, teams, players ---------------------------------


class CompetitionRequest(RequestModel):
    name: str = Field(min_length=1)
    country: Optional[str] = None
    logo: Optional[str] = None


class CompetitionUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = None
    logo: Optional[str] = None


class SeasonRequest(RequestModel):
    name: str = Field(min_length=1)
    competition_id: int
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class SeasonUpdateRequest(RequestModel):
    name: Optional[str] = None
    competition_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class RoundAvailabilityRequest(RequestModel):
    enabled: bool


class TeamRequest(RequestModel):
    name: str = Field(min_length=1)
    short_name: Optional[str] = None
    logo: Optional[str] = None
    city: Optional[str] = None


class TeamUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1)
    short_name: Optional[str] = None
    logo: Optional[str] = None
    city: Optional[str] = None


class TeamSeasonAssignRequest(RequestModel):
    season_id: int


class PlayerRequest(RequestModel):
    first_name: str = Field(min_length=1)
    last_name: str = ""
    photo: Optional[str] = None
    birth_date: Optional[str] = None
    nationality: Optional[str] = None
    position: Optional[PlayerPosition] = None


class PlayerUpdateRequest(RequestModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    photo: Optional[str] = None
    birth_date: Optional[str] = None
    nationality: Optional[str] = None
    position: Optional[PlayerPosition] = None


class PlayerAssignRequest(RequestModel):
    team_season_id: int
    jersey_number: Optional[int] = Field(default=None, ge=0)


class BulkPlayer(RequestModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    jersey_number: Optional[int] = None
    photo: Optional[str] = None
    birth_date: Optional[str] = None
    nationality: Optional[str] = None
    position: Optional[str] = None


class BulkTeam(RequestModel):
    team_season_id: Optional[int] = None
    team_name: Optional[str] = None
    players: List[BulkPlayer] = Field(default_factory=list)


class BulkImportRequest(RequestModel):
    season_id: int
    clear_existing_for_teams: bool = False
    teams: List[BulkTeam] = Field(default_factory=list)


# --- Matches, roster, events -----------------------------------------------


class MatchCreateRequest(RequestModel):
    home_team_id: int
    away_team_id: int
    match_date: str
    venue: Optional[str] = None
    fixture_match_id: Optional[int] = None


class MatchUpdateRequest(RequestModel):
    match_date: Optional[str] = None
    venue: Optional[str] = None
    status: Optional[MatchStatus] = None


class EndPeriodRequest(RequestModel):
    force: bool = False
    extra_time: bool = False


class AddedTimeRequest(RequestModel):
    first_half_added_time: Optional[int] = Field(default=None, ge=0)
    second_half_added_time: Optional[int] = Field(default=None, ge=0)


class ElapsedRequest(RequestModel):
    seconds: int = Field(ge=0)


class RosterCreateRequest(RequestModel):
    player_id: int
    team_id: int
    jersey_number: int = Field(ge=0)
    is_home_team: bool
    custom_name: Optional[str] = None
    is_starter: Optional[bool] = None
    position: Optional[PlayerPosition] = None


class RosterUpdateRequest(RequestModel):
    custom_name: Optional[str] = None
    jersey_number: Optional[int] = Field(default=None, ge=0)
    is_starter: Optional[bool] = None
    position: Optional[PlayerPosition] = None
    layout_x: Optional[float] = None
    layout_y: Optional[float] = None


class EventCreateRequest(RequestModel):
    roster_player_id: Optional[int] = None
    team_side: TeamSide
    event_type: EventType
    period: MatchPeriod
    minute: int = Field(ge=0)
    second: int = Field(default=0, ge=0, le=59)
    payload: Optional[dict[str, Any]] = None


class EventUpdateRequest(RequestModel):
    roster_player_id: Optional[int] = None
    team_side: Optional[TeamSide] = None
    event_type: Optional[EventType] = None
    period: Optional[MatchPeriod] = None
    minute: Optional[int] = Field(default=None, ge=0)
    second: Optional[int] = Field(default=None, ge=0, le=59)
    payload: Optional[dict[str, Any]] = None


# --- Import ----------------------------------------------------------------


class ImportLeagueRequest(RequestModel):
    name: str = Field(min_length=1)
    country: Optional[str] = None
    logo: Optional[str] = None
    season_year: int
    season_name: str = Field(min_length=1)


class ImportTeam(RequestModel):
    external_id: Optional[int] = None
    name: str
    short_name: Optional[str] = None
    logo: Optional[str] = None
    city: Optional[str] = None


class ImportTeamsRequest(RequestModel):
    season_id: int
    teams: List[ImportTeam] = Field(default_factory=list)


class ImportSquadPlayer(RequestModel):
    external_id: Optional[int] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    number: Optional[int] = None
    position: Optional[str] = None
    photo: Optional[str] = None
    nationality: Optional[str] = None
    birth_date: Optional[str] = None


class ImportSquadRequest(RequestModel):
    team_season_id: int
    players: List[ImportSquadPlayer] = Field(default_factory=list)


class ImportFullSeasonRequest(ImportLeagueRequest):
    league_id: int
    include_squads: bool = True
    include_fixtures: bool = True
    include_standings: bool = True


class ManualCompetition(RequestModel):
    name: Optional[str] = None
    country: Optional[str] = None
    logo: Optional[str] = None


class ManualSeason(RequestModel):
    name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ManualTeam(ImportTeam):
    players: List[ImportSquadPlayer] = Field(default_factory=list)


class ManualFixture(RequestModel):
    home_team: str
    away_team: str
    match_date: Optional[str] = None
    venue: Optional[str] = None
    round: Optional[int] = None
    round_label: Optional[str] = None
    status_short: Optional[str] = None
    status_long: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_finished: bool = False


class ManualStanding(RequestModel):
    team: str
    group_name: Optional[str] = None
    rank: int = 0
    points: int = 0
    played: int = 0
    won: int = 0
    draw: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goals_diff: int = 0
    form: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None


class ManualSeasonRequest(RequestModel):
    """Manual season document; completeness is checked by the import service (400)."""

    competition: Optional[ManualCompetition] = None
    season: Optional[ManualSeason] = None
    teams: Optional[List[ManualTeam]] = None
    fixtures: List[ManualFixture] = Field(default_factory=list)
    standings: List[ManualStanding] = Field(default_factory=list)

    def to_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def ok(data: Any, start_time: float) -> APIResponse:
    """Erfolgreiche Antwort im Standard-Envelope"""
    return APIResponse(success=True, data=data, execution_time_ms=(time.time() - start_time) * 1000)
