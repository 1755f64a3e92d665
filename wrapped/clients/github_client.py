from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from typing import Any

import httpx


YEAR_IN_REVIEW_QUERY = """
query($login: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $login) {
    avatarUrl
    followers {
      totalCount
    }
    following {
      totalCount
    }
    repositoryCount: repositories {
      totalCount
    }
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            contributionCount
            date
            weekday
          }
        }
      }
    }
    repositories(first: 100, orderBy: {field: STARGAZERS, direction: DESC}) {
      nodes {
        stargazerCount
        primaryLanguage {
          name
        }
      }
    }
  }
}
"""


def current_year_range(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the range from January 1st of the current year up to now."""

    now = now or datetime.now(UTC)
    start = datetime(now.year, 1, 1, tzinfo=UTC)
    return start, now


async def fetch_year_in_review(
    username: str,
    token: str,
    graphql_url: str,
    *,
    now: datetime | None = None,
    timeout: float = 20.0,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Fetch profile, contribution calendar and repositories for a user.

    Returns the decoded GraphQL response body. Non-success HTTP statuses are
    raised as `httpx.HTTPStatusError`; GraphQL-level errors are left in the
    body for the caller to interpret.
    """

    from_dt, to_dt = current_year_range(now)
    variables = {
        "login": username,
        "from": from_dt.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "to": to_dt.strftime("%Y-%m-%dT%H:%M:%SZ"),
    }
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "User-Agent": "github-wrapped",
    }

    async def post(http_client: httpx.AsyncClient) -> httpx.Response:
        return await http_client.post(
            graphql_url,
            json={"query": YEAR_IN_REVIEW_QUERY, "variables": variables},
            headers=headers,
            timeout=timeout,
        )

    if client is None:
        async with httpx.AsyncClient() as owned_client:
            response = await post(owned_client)
    else:
        response = await post(client)
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub GraphQL response is invalid")
    return dict(payload)
