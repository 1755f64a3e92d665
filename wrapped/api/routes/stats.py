from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials

from wrapped.api.schemas.stats import CacheEvictionResponse
from wrapped.api.schemas.stats import StatsResponse
from wrapped.core.security import bearer_scheme
from wrapped.core.security import extract_bearer_token
from wrapped.models import StatsResult
from wrapped.services.calendar_grid import build_calendar_grid
from wrapped.services.errors import MalformedPayloadError
from wrapped.services.errors import UpstreamError
from wrapped.services.errors import ValidationError
from wrapped.services.stats_cache import StatsCache


router = APIRouter()

# GitHub status -> status returned to our clients.
_UPSTREAM_STATUS_MAP = {
    401: 401,
    403: 429,
    404: 404,
}


def get_stats_cache(request: Request) -> StatsCache:
    """Return the process-wide stats cache created by the app factory."""

    return request.app.state.stats_cache


def normalize_username(username: str) -> str:
    normalized = username.strip().lower()
    if not normalized:
        raise HTTPException(status_code=400, detail="username cannot be empty")
    return normalized


def build_stats_response(stats: StatsResult) -> dict[str, object]:
    weeks, month_labels = build_calendar_grid(stats.calendar)
    payload = stats.model_dump(exclude={"subject", "calendar"})
    payload["username"] = stats.subject
    payload["weeks"] = weeks
    payload["month_labels"] = month_labels
    return payload


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/stats/{username}", response_model=StatsResponse)
async def get_user_stats(
    username: str,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    cache: StatsCache = Depends(get_stats_cache),
) -> dict[str, object]:
    """Return the year-in-review summary for a GitHub user."""

    token = extract_bearer_token(credentials)
    subject = normalize_username(username)

    try:
        stats = await cache.fetch(subject, token)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UpstreamError as exc:
        status_code = _UPSTREAM_STATUS_MAP.get(exc.status_code, 502)
        raise HTTPException(status_code=status_code, detail=exc.message) from exc
    except MalformedPayloadError as exc:
        raise HTTPException(
            status_code=502, detail="Failed to process GitHub statistics"
        ) from exc

    return build_stats_response(stats)


@router.delete("/stats/{username}", response_model=CacheEvictionResponse)
def evict_user_stats(
    username: str,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    cache: StatsCache = Depends(get_stats_cache),
) -> dict[str, object]:
    """Drop the cached summary for a user so the next request refetches it."""

    extract_bearer_token(credentials)
    subject = normalize_username(username)
    return {"username": subject, "evicted": cache.invalidate(subject)}
