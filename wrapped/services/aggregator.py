from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from datetime import date
from typing import Any

import pydantic

from wrapped.models import ActivityDay
from wrapped.models import GraphQLResponse
from wrapped.models import MonthPeak
from wrapped.models import RepositorySummary
from wrapped.models import StatsResult
from wrapped.models import WeekdayPeak
from wrapped.services.errors import MalformedPayloadError


WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

# Indexed by `date.month - 1`, the same key used when summing months.
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Highest threshold first; the first match wins.
RANK_THRESHOLDS = (
    (5000, "Top 0.5%-1%"),
    (2000, "Top 1%-3%"),
    (1000, "Top 5%-10%"),
    (500, "Top 10%-15%"),
    (200, "Top 25%-30%"),
    (50, "Median 50%"),
)
BOTTOM_RANK_LABEL = "Bottom 30%"

TOP_LANGUAGES_LIMIT = 3


def flatten_calendar(
    weeks: Iterable[Iterable[ActivityDay]], since: date | None = None
) -> list[ActivityDay]:
    """Concatenate week buckets into one chronological day sequence."""

    days = [day for week in weeks for day in week]
    if since is not None:
        days = [day for day in days if day.date >= since]
    return days


def longest_streak(days: Iterable[ActivityDay]) -> int:
    """Return the longest run of consecutive days with a positive count."""

    current = 0
    longest = 0
    for day in days:
        if day.count > 0:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def _peak(totals: Mapping[int, int]) -> int | None:
    # Lowest index wins ties.
    best: int | None = None
    for index in sorted(totals):
        if best is None or totals[index] > totals[best]:
            best = index
    return best


def most_active_month(days: Iterable[ActivityDay]) -> MonthPeak:
    """Return the calendar month with the highest summed count."""

    totals: dict[int, int] = {}
    for day in days:
        month_index = day.date.month - 1
        totals[month_index] = totals.get(month_index, 0) + day.count

    best = _peak(totals)
    if best is None:
        return MonthPeak(name=MONTH_NAMES[0], total_count=0)
    return MonthPeak(name=MONTH_NAMES[best], total_count=totals[best])


def most_active_weekday(days: Iterable[ActivityDay]) -> WeekdayPeak:
    """Return the weekday with the highest summed count.

    The reported count is the weekday total averaged over the number of times
    that weekday occurs in the range, rounded half-up.
    """

    totals: dict[int, int] = {}
    occurrences: dict[int, int] = {}
    for day in days:
        totals[day.weekday] = totals.get(day.weekday, 0) + day.count
        occurrences[day.weekday] = occurrences.get(day.weekday, 0) + 1

    best = _peak(totals)
    if best is None:
        return WeekdayPeak(name=WEEKDAY_NAMES[0], average_count=0)
    return WeekdayPeak(
        name=WEEKDAY_NAMES[best],
        average_count=_round_half_up(totals[best], occurrences[best]),
    )


def stars_earned(repositories: Iterable[RepositorySummary]) -> int:
    return sum(repository.star_count for repository in repositories)


def top_languages(
    repositories: Iterable[RepositorySummary], limit: int = TOP_LANGUAGES_LIMIT
) -> list[str]:
    """Rank primary languages by repository count, first appearance on ties."""

    counts: dict[str, int] = {}
    for repository in repositories:
        if repository.primary_language:
            language = repository.primary_language
            counts[language] = counts.get(language, 0) + 1

    # sorted() is stable, so dict insertion order settles ties.
    ranked = sorted(counts, key=lambda language: counts[language], reverse=True)
    return ranked[:limit]


def rank_label(total_activity_count: int) -> str:
    """Map a yearly contribution total to its rank tier label."""

    for threshold, label in RANK_THRESHOLDS:
        if total_activity_count >= threshold:
            return label
    return BOTTOM_RANK_LABEL


def parse_payload(payload: Mapping[str, Any] | GraphQLResponse) -> GraphQLResponse:
    """Validate a raw GraphQL response against the expected schema.

    Raises:
        MalformedPayloadError: If required fields are missing or mistyped.
    """

    if isinstance(payload, GraphQLResponse):
        return payload
    try:
        return GraphQLResponse.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise MalformedPayloadError(
            f"GitHub response has an unexpected shape ({exc.error_count()} errors)"
        ) from exc


def aggregate(
    subject: str,
    payload: Mapping[str, Any] | GraphQLResponse,
    *,
    since: date | None = None,
) -> StatsResult:
    """Reduce a year-in-review GraphQL payload into a `StatsResult`.

    Days before `since` are dropped before any statistic is computed. The
    reported total is the upstream `totalContributions` value.
    """

    user = parse_payload(payload).data.user
    contribution_calendar = user.contributions_collection.contribution_calendar
    days = flatten_calendar(
        (week.contribution_days for week in contribution_calendar.weeks), since=since
    )
    repositories: Sequence[RepositorySummary] = user.repositories.nodes
    total = contribution_calendar.total_contributions

    return StatsResult(
        subject=subject,
        longest_streak=longest_streak(days),
        total_activity_count=total,
        rank_label=rank_label(total),
        calendar=tuple(days),
        most_active_weekday=most_active_weekday(days),
        most_active_month=most_active_month(days),
        stars_earned=stars_earned(repositories),
        top_languages=tuple(top_languages(repositories)),
        avatar_url=user.avatar_url,
        follower_count=user.followers.total_count if user.followers else None,
        following_count=user.following.total_count if user.following else None,
        repository_count=(
            user.repository_count.total_count if user.repository_count else None
        ),
    )
