"""In-memory query cache — one instance per client session.

Holds server data under hierarchical keys (see ``query_keys``), tracks
freshness, deduplicates concurrent reads and carries the optimistic layers
written by mutation orchestrators.

Optimistic layers:
    Each ``begin_optimistic`` pushes an ``OptimisticPatch`` on the key's
    stack: the value just before the write plus the updater that produced
    the projection. ``rollback`` restores that value and re-applies the
    projections of every later patch still on the stack, so a failing
    mutation never erases a concurrent one. ``commit`` retires the patch
    once everything before it is settled.
"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from stockflow.application.query_keys import CacheKey, is_prefix

logger = logging.getLogger(__name__)

Updater = Callable[[Any], Any]
Fetcher = Callable[[], Awaitable[Any]]
CacheEventType = Literal["updated", "invalidated", "removed"]

_MAX_RETRY_DELAY = 30.0


@dataclass(frozen=True)
class StaleTimes:
    """How long (seconds) fetched data is served without refetching."""

    realtime: float = 30.0    # products, movements, dashboard stats
    moderate: float = 60.0    # aggregated stats, summaries
    slow: float = 300.0       # categories, organizations, evolution charts


@dataclass(frozen=True)
class CacheEvent:
    type: CacheEventType
    key: CacheKey


@dataclass(eq=False)
class OptimisticPatch:
    """A speculative write on one key, owned by one in-flight mutation."""

    key: CacheKey
    snapshot: Any
    updater: Updater
    committed: bool = False


@dataclass
class _Entry:
    data: Any = None
    updated_at: float | None = None
    is_invalidated: bool = False
    patches: list[OptimisticPatch] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None


def _project(updater: Updater, value: Any) -> Any:
    """Apply an optimistic updater; nothing cached means nothing to project."""
    if value is None:
        return None
    return updater(value)


class QueryCache:
    """Keyed store of server data with staleness, prefix invalidation and
    optimistic layers.

    Reads and writes are synchronous; only ``fetch_query`` awaits.
    """

    def __init__(
        self,
        *,
        retry: int = 1,
        retry_delay: float = 1.0,
        default_stale_time: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        max_pending_events: int = 1000,
    ) -> None:
        self._entries: dict[CacheKey, _Entry] = {}
        self._inflight: dict[CacheKey, asyncio.Task] = {}
        self._queues: list[asyncio.Queue[CacheEvent | None]] = []
        self._retry = retry
        self._retry_delay = retry_delay
        self._default_stale_time = default_stale_time
        self._clock = clock
        self._max_pending_events = max_pending_events

    # ── Reads & writes ──────────────────────────────────────────────

    def get_query_data(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.data

    def get_queries_data(self, prefix: CacheKey) -> list[tuple[CacheKey, Any]]:
        """Every cached ``(key, data)`` pair under ``prefix``."""
        return [
            (key, entry.data)
            for key, entry in self._entries.items()
            if entry.has_data and is_prefix(prefix, key)
        ]

    def set_query_data(self, key: CacheKey, value: Any) -> Any:
        """Write data for ``key``.

        ``value`` may be a callable receiving the current data; if it
        returns None the write is skipped.
        """
        if callable(value):
            value = value(self.get_query_data(key))
            if value is None:
                return None
        self._write(key, value)
        return value

    def is_stale(self, key: CacheKey, stale_time: float | None = None) -> bool:
        entry = self._entries.get(key)
        if entry is None or not entry.has_data:
            return True
        return self._is_stale(entry, stale_time)

    def _is_stale(self, entry: _Entry, stale_time: float | None) -> bool:
        if entry.is_invalidated:
            return True
        limit = self._default_stale_time if stale_time is None else stale_time
        return self._clock() - entry.updated_at >= limit

    def _write(self, key: CacheKey, value: Any) -> None:
        entry = self._entries.setdefault(key, _Entry())
        entry.data = value
        entry.updated_at = None if value is None else self._clock()
        entry.is_invalidated = False
        self._emit("updated", key)

    # ── Invalidation & removal ──────────────────────────────────────

    def invalidate_queries(self, prefix: CacheKey) -> int:
        """Mark every entry under ``prefix`` stale. Returns the match count."""
        matched = 0
        for key, entry in self._entries.items():
            if is_prefix(prefix, key):
                entry.is_invalidated = True
                matched += 1
                self._emit("invalidated", key)
        logger.debug("Invalidated %d entr(ies) under %r", matched, prefix)
        return matched

    def remove_queries(self, prefix: CacheKey) -> int:
        keys = [key for key in self._entries if is_prefix(prefix, key)]
        for key in keys:
            del self._entries[key]
            self._emit("removed", key)
        return len(keys)

    def clear(self) -> None:
        """Drop every entry and cancel in-flight reads (e.g. on sign-out)."""
        self.cancel_queries(())
        self.remove_queries(())

    # ── Read-through fetching ───────────────────────────────────────

    async def fetch_query(
        self,
        key: CacheKey,
        fetcher: Fetcher,
        *,
        stale_time: float | None = None,
        retry: int | None = None,
    ) -> Any:
        """Return cached data when fresh, otherwise fetch it.

        Concurrent calls for the same key share one fetch. A fetch
        cancelled through ``cancel_queries`` leaves the cache untouched and
        resolves to whatever is cached at that point.
        """
        entry = self._entries.get(key)
        if entry is not None and entry.has_data and not self._is_stale(entry, stale_time):
            return entry.data

        task = self._inflight.get(key)
        if task is None:
            retries = self._retry if retry is None else retry
            task = asyncio.ensure_future(self._run_fetch(key, fetcher, retries))
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._forget_inflight(k, done))
        else:
            logger.debug("Joining in-flight fetch for %r", key)

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            logger.debug("Fetch cancelled for %r — keeping cached data", key)
            return self.get_query_data(key)

    async def _run_fetch(self, key: CacheKey, fetcher: Fetcher, retries: int) -> Any:
        attempt = 0
        while True:
            try:
                data = await fetcher()
                break
            except Exception as e:
                if attempt >= retries:
                    logger.warning("Fetch failed for %r: %s", key, e)
                    raise
                delay = min(self._retry_delay * 2**attempt, _MAX_RETRY_DELAY)
                attempt += 1
                logger.info(
                    "Fetch failed for %r (attempt %d/%d), retrying in %.1fs",
                    key,
                    attempt,
                    retries + 1,
                    delay,
                )
                await asyncio.sleep(delay)

        self._write_fetched(key, data)
        return self.get_query_data(key)

    def _write_fetched(self, key: CacheKey, data: Any) -> None:
        """Store server data, rebasing projections of unsettled mutations on it."""
        entry = self._entries.setdefault(key, _Entry())
        live = [patch for patch in entry.patches if not patch.committed]
        value = data
        for patch in live:
            patch.snapshot = value
            value = _project(patch.updater, value)
        entry.patches = live
        self._write(key, value)

    def _forget_inflight(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def cancel_queries(self, prefix: CacheKey) -> int:
        """Cancel in-flight fetches under ``prefix`` so they cannot
        overwrite a write made after they started."""
        cancelled = 0
        for key, task in list(self._inflight.items()):
            if is_prefix(prefix, key) and not task.done():
                task.cancel()
                cancelled += 1
        return cancelled

    def fetching_count(self, prefix: CacheKey = ()) -> int:
        return sum(1 for key in self._inflight if is_prefix(prefix, key))

    # ── Optimistic layers ───────────────────────────────────────────

    def begin_optimistic(self, key: CacheKey, updater: Updater) -> OptimisticPatch:
        """Snapshot ``key`` and write ``updater(current)`` over it.

        If nothing is cached for ``key`` the projection is skipped, but the
        patch is still tracked so rollback and commit stay symmetric.
        """
        entry = self._entries.setdefault(key, _Entry())
        patch = OptimisticPatch(key=key, snapshot=entry.data, updater=updater)
        entry.patches.append(patch)

        projected = _project(updater, entry.data)
        if projected is not None:
            self._write(key, projected)
        return patch

    def commit(self, patch: OptimisticPatch) -> None:
        patch.committed = True
        entry = self._entries.get(patch.key)
        if entry is None:
            return
        while entry.patches and entry.patches[0].committed:
            entry.patches.pop(0)
        self._prune(patch.key)

    def rollback(self, patch: OptimisticPatch) -> None:
        """Restore the value ``patch`` overwrote, then replay later patches."""
        entry = self._entries.get(patch.key)
        if entry is None or patch not in entry.patches:
            return

        index = entry.patches.index(patch)
        later = entry.patches[index + 1:]
        del entry.patches[index]

        value = patch.snapshot
        for other in later:
            other.snapshot = value
            value = _project(other.updater, value)
        self._write(patch.key, value)
        self._prune(patch.key)

    def _prune(self, key: CacheKey) -> None:
        """Forget an entry that holds neither data nor unsettled patches."""
        entry = self._entries.get(key)
        if entry is not None and not entry.has_data and not entry.patches:
            del self._entries[key]

    # ── Change notification ─────────────────────────────────────────

    async def subscribe(self) -> AsyncGenerator[CacheEvent, None]:
        """Yield cache events until ``shutdown`` is called.

        The generator unsubscribes itself when the consumer stops.
        """
        queue: asyncio.Queue[CacheEvent | None] = asyncio.Queue(self._max_pending_events)
        self._queues.append(queue)
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def _emit(self, event_type: CacheEventType, key: CacheKey) -> None:
        if not self._queues:
            return
        event = CacheEvent(type=event_type, key=key)
        dead_queues: list[asyncio.Queue[CacheEvent | None]] = []

        for queue in self._queues:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("Cache subscriber queue full — disconnecting")

        for q in dead_queues:
            self._queues.remove(q)
            q.get_nowait()
            q.put_nowait(None)

    def shutdown(self) -> None:
        """Disconnect all subscribers."""
        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(None)
        self._queues.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)
