from datetime import date
from datetime import timedelta
from typing import Any

import pytest


def make_payload(
    counts: list[int],
    start: date = date(2026, 1, 4),
    repositories: list[dict[str, Any]] | None = None,
    total: int | None = None,
) -> dict[str, Any]:
    """Build a GraphQL year-in-review response from consecutive day counts.

    The default start is a Sunday so weeks line up with GitHub's calendar.
    """

    weeks: list[dict[str, Any]] = []
    for offset, count in enumerate(counts):
        day = start + timedelta(days=offset)
        weekday = (day.weekday() + 1) % 7
        if not weeks or weekday == 0:
            weeks.append({"contributionDays": []})
        weeks[-1]["contributionDays"].append(
            {"contributionCount": count, "date": day.isoformat(), "weekday": weekday}
        )

    return {
        "data": {
            "user": {
                "avatarUrl": "https://avatars.githubusercontent.com/u/583231",
                "followers": {"totalCount": 12},
                "following": {"totalCount": 3},
                "repositoryCount": {"totalCount": 8},
                "contributionsCollection": {
                    "contributionCalendar": {
                        "totalContributions": sum(counts) if total is None else total,
                        "weeks": weeks,
                    }
                },
                "repositories": {"nodes": repositories or []},
            }
        }
    }


@pytest.fixture
def payload_factory():
    return make_payload
