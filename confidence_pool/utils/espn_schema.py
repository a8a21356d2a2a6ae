"""
Pydantic models for the ESPN NFL scoreboard payload.

The payload is validated once here and turned into ScheduledGame records;
nothing downstream looks at raw ESPN dicts. Fields ESPN may omit are declared
Optional explicitly instead of being defaulted later.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from confidence_pool.utils.scoring import GameStatus


class _EspnModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class EspnLogo(_EspnModel):
    href: str


class EspnTeam(_EspnModel):
    id: str
    abbreviation: str
    display_name: str = Field(alias="displayName")
    short_display_name: Optional[str] = Field(default=None, alias="shortDisplayName")
    logo: Optional[str] = None
    logos: List[EspnLogo] = Field(default_factory=list)


class EspnCompetitor(_EspnModel):
    home_away: Literal["home", "away"] = Field(alias="homeAway")
    score: Optional[int] = Field(default=None, ge=0)
    team: EspnTeam

    @field_validator("score", mode="before")
    @classmethod
    def _blank_score_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EspnStatusType(_EspnModel):
    state: Literal["pre", "in", "post"]
    completed: bool = False
    name: Optional[str] = None


class EspnStatus(_EspnModel):
    type: EspnStatusType


class EspnCompetition(_EspnModel):
    competitors: List[EspnCompetitor]
    status: EspnStatus


class EspnEvent(_EspnModel):
    id: str
    date: datetime
    competitions: List[EspnCompetition] = Field(min_length=1)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_zulu(cls, value):
        # ESPN sends minute precision with a Z suffix, e.g. 2025-09-07T17:00Z
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(value, datetime) and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class EspnWeek(_EspnModel):
    number: int


class EspnScoreboard(_EspnModel):
    events: List[EspnEvent] = Field(default_factory=list)
    week: Optional[EspnWeek] = None


class TeamLine(BaseModel):
    """One side of a scheduled game as reported by the provider"""

    model_config = ConfigDict(frozen=True)

    team_id: str
    name: str
    abbreviation: str
    logo_url: Optional[str] = None
    score: Optional[int] = Field(default=None, ge=0)


class ScheduledGame(BaseModel):
    """A provider game, normalized for the repository"""

    model_config = ConfigDict(frozen=True)

    id: str
    kickoff: datetime
    status: GameStatus
    home: TeamLine
    away: TeamLine


def map_status(status_type):
    """Collapse ESPN's state/completed pair into a GameStatus"""
    if status_type.completed:
        return GameStatus.FINAL
    if status_type.state == "in":
        return GameStatus.IN_PROGRESS
    # "post" without completion is a postponement or cancellation
    return GameStatus.SCHEDULED


def _team_line(competitor):
    team = competitor.team
    logo_url = team.logo or (team.logos[0].href if team.logos else None)
    return TeamLine(
        team_id=team.id,
        name=team.short_display_name or team.display_name,
        abbreviation=team.abbreviation,
        logo_url=logo_url,
        score=competitor.score,
    )


def to_scheduled_game(event):
    """
    Normalize one ESPN event.

    Returns:
        ScheduledGame, or None when the event lacks a home or away competitor
    """
    competition = event.competitions[0]
    sides = {c.home_away: c for c in competition.competitors}
    if "home" not in sides or "away" not in sides:
        return None

    return ScheduledGame(
        id=event.id,
        kickoff=event.date,
        status=map_status(competition.status.type),
        home=_team_line(sides["home"]),
        away=_team_line(sides["away"]),
    )
