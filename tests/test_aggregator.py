from datetime import date
from datetime import timedelta

import pydantic
import pytest

from wrapped.models import ActivityDay
from wrapped.models import RepositorySummary
from wrapped.services.aggregator import aggregate
from wrapped.services.aggregator import longest_streak
from wrapped.services.aggregator import most_active_month
from wrapped.services.aggregator import most_active_weekday
from wrapped.services.aggregator import rank_label
from wrapped.services.aggregator import stars_earned
from wrapped.services.aggregator import top_languages
from wrapped.services.errors import MalformedPayloadError


def _days(counts: list[int], start: date = date(2026, 1, 4)) -> list[ActivityDay]:
    days = []
    for offset, count in enumerate(counts):
        day = start + timedelta(days=offset)
        days.append(ActivityDay(date=day, count=count, weekday=(day.weekday() + 1) % 7))
    return days


def _repo(stars: int, language: str | None) -> RepositorySummary:
    return RepositorySummary(star_count=stars, primary_language=language)


def test_longest_streak_picks_final_run() -> None:
    assert longest_streak(_days([1, 2, 0, 3, 4, 5])) == 3


def test_longest_streak_all_zero_is_zero() -> None:
    assert longest_streak(_days([0] * 10)) == 0


def test_longest_streak_without_zero_days_is_sequence_length() -> None:
    assert longest_streak(_days([1] * 17)) == 17


def test_longest_streak_of_empty_sequence_is_zero() -> None:
    assert longest_streak([]) == 0


def test_stars_and_languages_example() -> None:
    repositories = [_repo(10, "Go"), _repo(5, "Go"), _repo(1, None)]

    assert stars_earned(repositories) == 16
    assert top_languages(repositories) == ["Go"]


def test_stars_earned_of_no_repositories_is_zero() -> None:
    assert stars_earned([]) == 0


def test_top_languages_keeps_three_and_breaks_ties_by_first_appearance() -> None:
    repositories = [
        _repo(0, "Rust"),
        _repo(0, "Python"),
        _repo(0, "Go"),
        _repo(0, "Python"),
        _repo(0, "TypeScript"),
        _repo(0, None),
        _repo(0, "Go"),
    ]

    assert top_languages(repositories) == ["Python", "Go", "Rust"]


def test_empty_language_name_is_not_counted() -> None:
    repositories = [
        RepositorySummary.model_validate({"stargazerCount": 1, "primaryLanguage": {"name": ""}}),
        RepositorySummary.model_validate({"stargazerCount": 1, "primaryLanguage": None}),
    ]

    assert top_languages(repositories) == []


@pytest.mark.parametrize(
    ("total", "label"),
    [
        (0, "Bottom 30%"),
        (49, "Bottom 30%"),
        (50, "Median 50%"),
        (200, "Top 25%-30%"),
        (999, "Top 10%-15%"),
        (1999, "Top 5%-10%"),
        (2000, "Top 1%-3%"),
        (5000, "Top 0.5%-1%"),
    ],
)
def test_rank_label_thresholds(total: int, label: str) -> None:
    assert rank_label(total) == label


def test_most_active_month_uses_zero_based_names() -> None:
    days = _days([1] * 31 + [2] * 28, start=date(2026, 1, 1))

    peak = most_active_month(days)

    assert peak.name == "February"
    assert peak.total_count == 56


def test_most_active_month_tie_goes_to_earliest_month() -> None:
    days = _days([0] * 30 + [5] + [5] + [0] * 27, start=date(2026, 1, 1))

    peak = most_active_month(days)

    assert peak.name == "January"
    assert peak.total_count == 5


def test_most_active_weekday_reports_rounded_average() -> None:
    # Two full weeks starting on Sunday; Mondays carry 3 and 4.
    counts = [0, 3, 1, 0, 0, 0, 0, 0, 4, 1, 0, 0, 0, 0]

    peak = most_active_weekday(_days(counts))

    assert peak.name == "Monday"
    assert peak.average_count == 4


def test_most_active_weekday_tie_goes_to_lowest_index() -> None:
    counts = [2, 2, 0, 0, 0, 0, 0]

    peak = most_active_weekday(_days(counts))

    assert peak.name == "Sunday"
    assert peak.average_count == 2


def test_aggregate_builds_full_result(payload_factory) -> None:
    payload = payload_factory(
        [1, 2, 0, 3, 4, 5],
        repositories=[
            {"stargazerCount": 10, "primaryLanguage": {"name": "Go"}},
            {"stargazerCount": 5, "primaryLanguage": {"name": "Go"}},
            {"stargazerCount": 1, "primaryLanguage": None},
        ],
        total=1999,
    )

    result = aggregate("octocat", payload)

    assert result.subject == "octocat"
    assert result.longest_streak == 3
    assert result.total_activity_count == 1999
    assert result.rank_label == "Top 5%-10%"
    assert result.stars_earned == 16
    assert result.top_languages == ("Go",)
    assert result.most_active_month.name == "January"
    assert result.most_active_weekday.name == "Friday"
    assert result.most_active_weekday.average_count == 5
    assert result.avatar_url == "https://avatars.githubusercontent.com/u/583231"
    assert result.follower_count == 12
    assert result.following_count == 3
    assert result.repository_count == 8
    assert [day.count for day in result.calendar] == [1, 2, 0, 3, 4, 5]


def test_aggregate_drops_days_before_since(payload_factory) -> None:
    payload = payload_factory([9, 9, 1, 1], start=date(2025, 12, 30))

    result = aggregate("octocat", payload, since=date(2026, 1, 1))

    assert [day.date for day in result.calendar] == [date(2026, 1, 1), date(2026, 1, 2)]
    assert result.most_active_month.total_count == 2


def test_aggregate_of_empty_calendar(payload_factory) -> None:
    result = aggregate("octocat", payload_factory([]))

    assert result.longest_streak == 0
    assert result.most_active_month.name == "January"
    assert result.most_active_month.total_count == 0
    assert result.most_active_weekday.name == "Sunday"
    assert result.most_active_weekday.average_count == 0
    assert result.top_languages == ()


def test_aggregate_result_is_immutable(payload_factory) -> None:
    result = aggregate("octocat", payload_factory([1]))

    with pytest.raises(pydantic.ValidationError):
        result.longest_streak = 10


@pytest.mark.parametrize(
    "mutate",
    [
        lambda user: user.pop("repositories"),
        lambda user: user.pop("contributionsCollection"),
        lambda user: user["contributionsCollection"]["contributionCalendar"].pop(
            "totalContributions"
        ),
        lambda user: user["contributionsCollection"]["contributionCalendar"].update(
            weeks="not-a-list"
        ),
    ],
)
def test_aggregate_rejects_missing_required_fields(payload_factory, mutate) -> None:
    payload = payload_factory([1, 2])
    mutate(payload["data"]["user"])

    with pytest.raises(MalformedPayloadError):
        aggregate("octocat", payload)


def test_aggregate_rejects_null_user() -> None:
    with pytest.raises(MalformedPayloadError):
        aggregate("octocat", {"data": {"user": None}})
