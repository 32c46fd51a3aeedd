"""Base class for mutation orchestrators.

Every mutation follows the same protocol:

    optimistic write(s) → remote call → commit | rollback → invalidate

Rollback happens before the error reaches the caller; invalidation runs
whether the call succeeded or not.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from stockflow.application.query_keys import CacheKey
from stockflow.application.services.query_cache import OptimisticPatch, QueryCache, Updater
from stockflow.infrastructure.logging.colored_logger import MutationLogger, MutationPhase

mlog = MutationLogger("stockflow.mutations")

T = TypeVar("T")


def _is_list(data: Any) -> bool:
    return isinstance(data, list)


class MutationService:
    """Shared optimistic-update machinery. Depends on the query cache (DI)."""

    def __init__(self, cache: QueryCache):
        self._cache = cache

    def _patch(self, key: CacheKey, updater: Updater) -> list[OptimisticPatch]:
        """Project ``updater`` onto a single cached key."""
        self._cache.cancel_queries(key)
        return [self._cache.begin_optimistic(key, updater)]

    def _patch_all(
        self,
        prefix: CacheKey,
        updater: Updater,
        accepts: Callable[[Any], bool] = _is_list,
    ) -> list[OptimisticPatch]:
        """Project ``updater`` onto every cached entry under ``prefix`` that
        ``accepts`` its data, each entry keeping its own snapshot."""
        self._cache.cancel_queries(prefix)
        return [
            self._cache.begin_optimistic(key, updater)
            for key, data in self._cache.get_queries_data(prefix)
            if accepts(data)
        ]

    async def _execute(
        self,
        name: str,
        call: Callable[[], Awaitable[T]],
        *,
        patches: Iterable[OptimisticPatch] = (),
        invalidate: Iterable[CacheKey] = (),
    ) -> T:
        patches = list(patches)
        invalidate = list(invalidate)
        if patches:
            mlog.step_start(MutationPhase.OPTIMISTIC, name, keys=len(patches))

        try:
            with mlog.timed_step(MutationPhase.REMOTE, name):
                result = await call()
        except (Exception, asyncio.CancelledError):
            if patches:
                for patch in reversed(patches):
                    self._cache.rollback(patch)
                    mlog.detail(f"{name}: restored {patch.key!r}")
                mlog.step_start(MutationPhase.ROLLBACK, name, keys=len(patches))
            raise
        else:
            for patch in patches:
                self._cache.commit(patch)
            mlog.step_complete(MutationPhase.COMPLETE, name)
            return result
        finally:
            for prefix in invalidate:
                self._cache.invalidate_queries(prefix)
            if invalidate:
                mlog.step_start(MutationPhase.INVALIDATE, name, prefixes=len(invalidate))
