from datetime import date

from pydantic import BaseModel


class CalendarDay(BaseModel):
    """Single day item used in the calendar grid."""

    date: date
    weekday: int
    count: int
    level: int


class CalendarWeek(BaseModel):
    """Week bucket containing ordered daily contribution items."""

    week_start: date
    days: list[CalendarDay]


class MonthLabel(BaseModel):
    week_index: int
    name: str


class WeekdayPeakResponse(BaseModel):
    name: str
    average_count: int


class MonthPeakResponse(BaseModel):
    name: str
    total_count: int


class StatsResponse(BaseModel):
    """Year-in-review payload returned for a GitHub user."""

    username: str
    longest_streak: int
    total_activity_count: int
    rank_label: str
    most_active_weekday: WeekdayPeakResponse
    most_active_month: MonthPeakResponse
    stars_earned: int
    top_languages: list[str]
    avatar_url: str | None = None
    follower_count: int | None = None
    following_count: int | None = None
    repository_count: int | None = None
    weeks: list[CalendarWeek]
    month_labels: list[MonthLabel]


class CacheEvictionResponse(BaseModel):
    username: str
    evicted: bool
