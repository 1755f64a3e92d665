import logging
from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


logger = logging.getLogger(__name__)

RATE_LIMITED_PREFIX = "/stats/"


class StatsRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window rate limiter for GET /stats/{username}."""

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        super().__init__(app)
        # Guard against invalid config values (0 or negatives).
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self._clock = clock
        # One queue of request timestamps per client key.
        self._client_buckets: dict[str, deque[float]] = defaultdict(deque)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Only stats lookups reach GitHub; everything else passes through.
        if request.method != "GET" or not request.url.path.startswith(
            RATE_LIMITED_PREFIX
        ):
            return await call_next(request)

        client_key = self._client_key(request)
        now = self._clock()

        # Buckets are only touched from the event loop thread.
        bucket = self._client_buckets[client_key]
        cutoff = now - self.window_seconds
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

        if len(bucket) >= self.max_requests:
            retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
            logger.warning("Rate limit reached for client %s", client_key)
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )

        bucket.append(now)
        return await call_next(request)

    @staticmethod
    def _client_key(request: Request) -> str:
        # Reverse proxies set X-Forwarded-For with the original client first.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
