import logging
from collections.abc import Mapping
from typing import Any

import httpx

from wrapped.clients.github_client import current_year_range
from wrapped.clients.github_client import fetch_year_in_review
from wrapped.models import StatsResult
from wrapped.services.aggregator import aggregate
from wrapped.services.errors import MalformedPayloadError
from wrapped.services.errors import UpstreamError
from wrapped.services.stats_cache import StatsCache
from wrapped.settings import Settings


logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to fetch GitHub statistics"

_STATUS_MESSAGES = {
    401: "GitHub token is invalid",
    403: "API rate limit exceeded",
    404: "GitHub user not found",
}

# GraphQL reports these with HTTP 200; treat them like the matching status.
_GRAPHQL_ERROR_STATUSES = {
    "RATE_LIMITED": 403,
    "NOT_FOUND": 404,
}


def upstream_error_for_status(
    status_code: int, detail: str | None = None
) -> UpstreamError:
    """Build the user-facing error for a failed GitHub response status."""

    message = _STATUS_MESSAGES.get(status_code)
    if message is None:
        message = GENERIC_FAILURE_MESSAGE
        if detail:
            message = f"{message}: {detail}"
    return UpstreamError(message, status_code=status_code)


def _error_body_message(response: httpx.Response) -> str | None:
    try:
        body: Any = response.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def check_graphql_errors(payload: Mapping[str, Any]) -> None:
    """Raise `UpstreamError` for GraphQL errors reported in a 200 response."""

    errors = payload.get("errors")
    if not errors:
        data = payload.get("data")
        if isinstance(data, Mapping) and "user" in data and data["user"] is None:
            raise upstream_error_for_status(404)
        return

    first = errors[0] if isinstance(errors, list) else None
    if not isinstance(first, Mapping):
        raise UpstreamError(GENERIC_FAILURE_MESSAGE)

    error_type = first.get("type")
    if isinstance(error_type, str) and error_type in _GRAPHQL_ERROR_STATUSES:
        raise upstream_error_for_status(_GRAPHQL_ERROR_STATUSES[error_type])

    detail = first.get("message")
    if isinstance(detail, str) and detail:
        raise UpstreamError(f"{GENERIC_FAILURE_MESSAGE}: {detail}")
    raise UpstreamError(GENERIC_FAILURE_MESSAGE)


async def fetch_stats_payload(
    username: str,
    token: str,
    graphql_url: str,
    timeout: float = 20.0,
) -> dict[str, Any]:
    """Fetch the raw year-in-review payload, mapping failures to `UpstreamError`.

    Raises:
        UpstreamError: On transport failure, non-success status or GraphQL error.
        MalformedPayloadError: If the response body is not a JSON object.
    """

    try:
        payload = await fetch_year_in_review(
            username=username,
            token=token,
            graphql_url=graphql_url,
            timeout=timeout,
        )
    except httpx.HTTPStatusError as exc:
        raise upstream_error_for_status(
            exc.response.status_code, _error_body_message(exc.response)
        ) from exc
    except httpx.HTTPError as exc:
        raise UpstreamError(GENERIC_FAILURE_MESSAGE) from exc
    except ValueError as exc:
        raise MalformedPayloadError("GitHub GraphQL response is invalid") from exc

    check_graphql_errors(payload)
    return payload


def aggregate_current_year(subject: str, payload: Mapping[str, Any]) -> StatsResult:
    """Aggregate a payload keeping only days of the calendar year in progress."""

    year_start, _ = current_year_range()
    return aggregate(subject, payload, since=year_start.date())


def build_stats_cache(app_settings: Settings) -> StatsCache:
    """Create the stats cache wired to GitHub with the configured policies."""

    async def fetcher(username: str, token: str) -> dict[str, Any]:
        return await fetch_stats_payload(
            username=username,
            token=token,
            graphql_url=app_settings.github_graphql_url,
            timeout=app_settings.github_timeout_seconds,
        )

    logger.info(
        "Stats cache configured: ttl=%s max_entries=%s retry_failed=%s",
        app_settings.stats_cache_ttl_seconds,
        app_settings.stats_cache_max_entries,
        app_settings.stats_cache_retry_failed,
    )
    return StatsCache(
        fetcher,
        aggregate_current_year,
        ttl_seconds=app_settings.stats_cache_ttl_seconds,
        max_entries=app_settings.stats_cache_max_entries,
        retry_failed=app_settings.stats_cache_retry_failed,
    )
