from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class ActivityDay(BaseModel):
    """Single calendar day with its contribution count."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: date
    count: int = Field(ge=0, alias="contributionCount")
    weekday: int = Field(ge=0, le=6)


class RepositorySummary(BaseModel):
    """Star count and primary language of one repository."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    star_count: int = Field(default=0, ge=0, alias="stargazerCount")
    primary_language: str | None = Field(default=None, alias="primaryLanguage")

    @field_validator("primary_language", mode="before")
    @classmethod
    def _language_name(cls, value: object) -> object:
        # GitHub nests the language as {"name": ...} or returns null.
        if isinstance(value, dict):
            value = value.get("name")
        if isinstance(value, str) and not value.strip():
            return None
        return value


class WeekdayPeak(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    average_count: int


class MonthPeak(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    total_count: int


class StatsResult(BaseModel):
    """Year-in-review summary for one subject, immutable once built."""

    model_config = ConfigDict(frozen=True)

    subject: str
    longest_streak: int
    total_activity_count: int
    rank_label: str
    calendar: tuple[ActivityDay, ...]
    most_active_weekday: WeekdayPeak
    most_active_month: MonthPeak
    stars_earned: int
    top_languages: tuple[str, ...]
    avatar_url: str | None = None
    follower_count: int | None = None
    following_count: int | None = None
    repository_count: int | None = None


class _TotalCount(BaseModel):
    total_count: int = Field(alias="totalCount")


class _ContributionWeek(BaseModel):
    contribution_days: list[ActivityDay] = Field(alias="contributionDays")


class _ContributionCalendar(BaseModel):
    total_contributions: int = Field(ge=0, alias="totalContributions")
    weeks: list[_ContributionWeek]


class _ContributionsCollection(BaseModel):
    contribution_calendar: _ContributionCalendar = Field(alias="contributionCalendar")


class _RepositoryConnection(BaseModel):
    nodes: list[RepositorySummary]


class UpstreamUser(BaseModel):
    """The `user` object returned by the year-in-review GraphQL query."""

    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    followers: _TotalCount | None = None
    following: _TotalCount | None = None
    repository_count: _TotalCount | None = Field(default=None, alias="repositoryCount")
    contributions_collection: _ContributionsCollection = Field(
        alias="contributionsCollection"
    )
    repositories: _RepositoryConnection


class _UpstreamData(BaseModel):
    user: UpstreamUser


class GraphQLResponse(BaseModel):
    """Envelope of a successful GraphQL response."""

    data: _UpstreamData
