import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from time import monotonic
from typing import Any

from wrapped.models import StatsResult
from wrapped.services.aggregator import aggregate
from wrapped.services.errors import ValidationError


logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str], Awaitable[Mapping[str, Any]]]
Aggregator = Callable[[str, Mapping[str, Any]], StatsResult]


@dataclass
class _CacheEntry:
    task: asyncio.Task[StatsResult]
    settled_at: float | None = None


class StatsCache:
    """Coalesces stats requests per subject and memoizes their outcome.

    The first request for a subject starts one fetch-then-aggregate task and
    stores it before yielding to the event loop, so concurrent and later
    callers share that task. The credential is only used by the request that
    starts the task; cache hits ignore it.

    Failed tasks stay cached and replay their exception unless
    `retry_failed` is set. Settled entries may also leave the cache through
    `ttl_seconds`, `max_entries`, `invalidate` and `clear`. Pending entries
    are never evicted automatically.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        aggregator: Aggregator = aggregate,
        *,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        retry_failed: bool = False,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._aggregator = aggregator
        self.ttl_seconds = ttl_seconds
        # Guard against invalid config values (0 or negatives).
        self.max_entries = max(1, max_entries) if max_entries is not None else None
        self.retry_failed = retry_failed
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, subject: object) -> bool:
        return subject in self._entries

    def get_stats(self, subject: str, credential: str) -> asyncio.Task[StatsResult]:
        """Return the shared task computing stats for `subject`.

        Must be called from a running event loop.

        Raises:
            ValidationError: If `subject` or `credential` is empty.
        """

        if not subject or not subject.strip():
            raise ValidationError("Username is required")
        if not credential or not credential.strip():
            raise ValidationError("GitHub token is required")

        entry = self._entries.get(subject)
        if entry is not None and self._is_expired(entry):
            logger.info("Stats cache entry expired: %s", subject)
            del self._entries[subject]
            entry = None

        if entry is not None:
            return entry.task

        logger.info("Stats cache miss, fetching: %s", subject)
        task = asyncio.ensure_future(self._load(subject, credential))
        entry = _CacheEntry(task=task)
        self._entries[subject] = entry
        task.add_done_callback(lambda done: self._on_settled(subject, entry))
        self._enforce_size()
        return task

    async def fetch(self, subject: str, credential: str) -> StatsResult:
        """Await stats for `subject` without exposing the shared task.

        Cancelling the caller does not cancel the fetch other callers wait on.
        """

        return await asyncio.shield(self.get_stats(subject, credential))

    def invalidate(self, subject: str) -> bool:
        """Drop the entry for `subject`; return whether one existed."""

        entry = self._entries.pop(subject, None)
        if entry is None:
            return False
        logger.info("Stats cache entry invalidated: %s", subject)
        return True

    def clear(self) -> None:
        self._entries.clear()

    async def _load(self, subject: str, credential: str) -> StatsResult:
        payload = await self._fetcher(subject, credential)
        return self._aggregator(subject, payload)

    def _on_settled(self, subject: str, entry: _CacheEntry) -> None:
        entry.settled_at = self._clock()
        task = entry.task
        if task.cancelled():
            self._discard(subject, entry)
            return

        # Retrieving the exception here also keeps asyncio from reporting it
        # as never retrieved when nobody awaits the task.
        exc = task.exception()
        if exc is None:
            return

        logger.warning("Stats fetch failed for %s: %s", subject, exc)
        if self.retry_failed:
            self._discard(subject, entry)

    def _discard(self, subject: str, entry: _CacheEntry) -> None:
        # Only drop the entry if it has not been replaced in the meantime.
        if self._entries.get(subject) is entry:
            del self._entries[subject]

    def _is_expired(self, entry: _CacheEntry) -> bool:
        if self.ttl_seconds is None or entry.settled_at is None:
            return False
        return self._clock() - entry.settled_at >= self.ttl_seconds

    def _enforce_size(self) -> None:
        if self.max_entries is None:
            return

        # Dict order is insertion order, so the oldest entries come first.
        overflow = len(self._entries) - self.max_entries
        for subject, entry in list(self._entries.items()):
            if overflow <= 0:
                break
            if entry.settled_at is None:
                continue
            logger.info("Stats cache entry evicted: %s", subject)
            del self._entries[subject]
            overflow -= 1
