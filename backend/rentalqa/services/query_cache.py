"""
RentalQ&A Backend — Query Cache (Single-Flight, Invalidate-on-Write)
======================================================================

What:  In-process cache of query results keyed by query identity.
Why:   The list endpoint is read far more often than questions are
       submitted. Caching the joined result avoids three table scans per read.
How:   One CacheEntry per key. `fetch(key, fetcher)` serves a fresh entry,
       joins an in-flight fetch, or starts one. `invalidate(key)` marks the
       entry stale so the next read refetches.

Single-flight policy:
    While a fetch for a key is running, every other `fetch()` for that key
    awaits the same asyncio.Task instead of calling the fetcher again.
    Callers await through asyncio.shield(), so a cancelled caller (client
    disconnect) does not cancel the fetch the others are waiting on.

Staleness policy:
    An entry is fresh for `stale_after` seconds after it was stored, unless
    invalidated. 0 means an entry is never fresh: every read refetches, but
    concurrent reads still share one fetch. A failed fetch is never stored;
    the previous value (if any) is kept and stays stale.

Thread Safety:
    Safe within one event loop (uvicorn worker). Each worker process has its
    own cache; an invalidation in one worker does not reach the others.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


class CacheStatus(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"
    ERROR = "error"


@dataclass
class CacheEntry:
    """Cached value for one key plus the bookkeeping needed for staleness."""
    value: Any = None
    has_value: bool = False
    stored_at: Optional[float] = None
    invalidated: bool = False
    error: Optional[BaseException] = None
    # Bumped by invalidate(); a fetch started under an older generation
    # still answers its own callers but is not stored
    generation: int = 0
    in_flight: Optional["asyncio.Task[Any]"] = field(default=None, repr=False)


@dataclass(frozen=True)
class QueryState:
    """
    Snapshot of one key, shaped like the frontend's query state.

    data:       last successfully fetched value (None if never fetched)
    is_loading: a fetch is in flight
    error:      error of the most recent fetch, cleared by the next success
    """
    data: Any
    is_loading: bool
    error: Optional[BaseException]
    status: CacheStatus


class QueryCache:
    """
    Keyed cache with explicit get/set/invalidate and a single-flight fetch.

    Args:
        stale_after: seconds an entry stays fresh after being stored
        clock:       monotonic time source (tests pass a fake)
    """

    def __init__(
        self,
        stale_after: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_after = stale_after
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}

    # ── Plain cache operations ────────────────────────────────────────────

    def get(self, key: Hashable) -> Optional[Any]:
        """Returns the stored value for `key` (fresh or stale), or None."""
        entry = self._entries.get(key)
        if entry is None or not entry.has_value:
            return None
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        entry = self._entries.setdefault(key, CacheEntry())
        entry.value = value
        entry.has_value = True
        entry.stored_at = self._clock()
        entry.invalidated = False
        entry.error = None

    def invalidate(self, key: Hashable) -> bool:
        """
        Marks `key` stale. The value stays readable through get() until the
        next fetch replaces it. A fetch already in flight may have read the
        tables before the write, so it is detached: its callers still get its
        result, but the next fetch() starts a new one.

        Returns:
            True if an entry existed for the key.
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Invalidate %s: nothing cached", key)
            return False
        entry.invalidated = True
        entry.generation += 1
        entry.in_flight = None
        logger.info("Cache entry %s invalidated", key)
        return True

    def is_fresh(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        if entry is None or not entry.has_value or entry.invalidated:
            return False
        return (self._clock() - entry.stored_at) < self.stale_after

    def state(self, key: Hashable) -> QueryState:
        entry = self._entries.get(key)
        if entry is None:
            return QueryState(data=None, is_loading=False, error=None, status=CacheStatus.EMPTY)

        is_loading = entry.in_flight is not None and not entry.in_flight.done()
        if is_loading:
            status = CacheStatus.LOADING
        elif entry.error is not None:
            status = CacheStatus.ERROR
        elif not entry.has_value:
            status = CacheStatus.EMPTY
        elif self.is_fresh(key):
            status = CacheStatus.FRESH
        else:
            status = CacheStatus.STALE

        return QueryState(
            data=entry.value if entry.has_value else None,
            is_loading=is_loading,
            error=entry.error,
            status=status,
        )

    # ── Single-flight fetch ───────────────────────────────────────────────

    async def fetch(self, key: Hashable, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        """
        Returns the value for `key`, calling `fetcher` at most once per
        concurrent burst of callers.

        Raises:
            Whatever `fetcher` raised. Every caller sharing the failed fetch
            receives the same exception.
        """
        if self.is_fresh(key):
            logger.debug("Cache hit for %s", key)
            return self._entries[key].value

        entry = self._entries.setdefault(key, CacheEntry())
        task = entry.in_flight
        if task is None or task.done():
            logger.debug("Cache miss for %s; starting fetch", key)
            task = asyncio.ensure_future(self._run(entry, entry.generation, fetcher))
            # Retrieve the exception even if every caller was cancelled
            task.add_done_callback(lambda t: t.cancelled() or t.exception())
            entry.in_flight = task
        else:
            logger.debug("Joining in-flight fetch for %s", key)

        return await asyncio.shield(task)

    async def _run(
        self,
        entry: CacheEntry,
        generation: int,
        fetcher: Callable[[], Awaitable[Any]],
    ) -> Any:
        try:
            value = await fetcher()
        except Exception as e:
            if entry.generation == generation:
                entry.error = e
            raise
        finally:
            if entry.in_flight is asyncio.current_task():
                entry.in_flight = None

        if entry.generation == generation:
            entry.value = value
            entry.has_value = True
            entry.stored_at = self._clock()
            entry.invalidated = False
            entry.error = None
        else:
            logger.debug("Discarding result of a fetch started before invalidation")
        return value
