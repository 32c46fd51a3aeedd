"""Unit tests for the QueryCache."""

import asyncio

import pytest

from stockflow.application.services import CacheEvent, QueryCache


KEY = ("products", "detail", "p1")


# ── Helpers ──


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _make_cache(clock: FakeClock | None = None, **kwargs) -> QueryCache:
    kwargs.setdefault("retry", 0)
    kwargs.setdefault("retry_delay", 0)
    kwargs.setdefault("default_stale_time", 30)
    return QueryCache(clock=clock or FakeClock(), **kwargs)


async def _next(events):
    return await events.__anext__()


def _counting_fetcher(value):
    calls = []

    async def fetcher():
        calls.append(value)
        return value

    return fetcher, calls


# ── Reads & writes ──


def test_set_and_get_query_data():
    cache = _make_cache()
    assert cache.get_query_data(KEY) is None

    cache.set_query_data(KEY, {"stock_current": 5})
    assert cache.get_query_data(KEY) == {"stock_current": 5}


def test_set_query_data_with_updater():
    cache = _make_cache()
    cache.set_query_data(KEY, [1, 2])
    cache.set_query_data(KEY, lambda items: [*items, 3])
    assert cache.get_query_data(KEY) == [1, 2, 3]


def test_updater_returning_none_skips_the_write():
    cache = _make_cache()
    assert cache.set_query_data(KEY, lambda current: None) is None
    assert cache.get_queries_data(("products",)) == []


def test_get_queries_data_returns_entries_under_prefix():
    cache = _make_cache()
    cache.set_query_data(("products", "list", "a"), ["a"])
    cache.set_query_data(("products", "list", "b"), ["b"])
    cache.set_query_data(("categories", "list", "a"), ["c"])

    found = dict(cache.get_queries_data(("products", "list")))
    assert found == {("products", "list", "a"): ["a"], ("products", "list", "b"): ["b"]}


def test_remove_queries_and_clear():
    cache = _make_cache()
    cache.set_query_data(("products", "list", "a"), ["a"])
    cache.set_query_data(("categories", "list", "a"), ["c"])

    assert cache.remove_queries(("products",)) == 1
    assert cache.get_query_data(("products", "list", "a")) is None

    cache.clear()
    assert cache.get_query_data(("categories", "list", "a")) is None


# ── Freshness & fetching ──


@pytest.mark.asyncio
async def test_fresh_data_is_served_without_fetching():
    clock = FakeClock()
    cache = _make_cache(clock)
    fetcher, calls = _counting_fetcher("value")

    assert await cache.fetch_query(KEY, fetcher) == "value"
    clock.now += 10
    assert await cache.fetch_query(KEY, fetcher) == "value"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_stale_data_is_refetched():
    clock = FakeClock()
    cache = _make_cache(clock)
    fetcher, calls = _counting_fetcher("value")

    await cache.fetch_query(KEY, fetcher, stale_time=60)
    clock.now += 59
    await cache.fetch_query(KEY, fetcher, stale_time=60)
    assert len(calls) == 1

    clock.now += 1
    await cache.fetch_query(KEY, fetcher, stale_time=60)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_invalidate_forces_refetch():
    cache = _make_cache()
    fetcher, calls = _counting_fetcher("value")

    await cache.fetch_query(KEY, fetcher)
    assert cache.invalidate_queries(("products",)) == 1
    assert cache.is_stale(KEY)
    # Invalidated data stays readable until the refetch lands.
    assert cache.get_query_data(KEY) == "value"

    await cache.fetch_query(KEY, fetcher)
    assert len(calls) == 2
    assert not cache.is_stale(KEY)


@pytest.mark.asyncio
async def test_concurrent_fetches_are_deduplicated():
    cache = _make_cache()
    release = asyncio.Event()
    calls = 0

    async def fetcher():
        nonlocal calls
        calls += 1
        await release.wait()
        return ["a"]

    first = asyncio.ensure_future(cache.fetch_query(KEY, fetcher))
    second = asyncio.ensure_future(cache.fetch_query(KEY, fetcher))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert cache.fetching_count() == 1

    release.set()
    results = await asyncio.gather(first, second)

    assert results == [["a"], ["a"]]
    assert calls == 1
    assert cache.fetching_count() == 0


@pytest.mark.asyncio
async def test_fetch_retries_then_succeeds():
    cache = _make_cache(retry=1)
    attempts = 0

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise ConnectionError("reset")
        return "ok"

    assert await cache.fetch_query(KEY, flaky) == "ok"
    assert attempts == 2


@pytest.mark.asyncio
async def test_fetch_error_propagates_after_retries():
    cache = _make_cache(retry=1)
    attempts = 0

    async def failing():
        nonlocal attempts
        attempts += 1
        raise ConnectionError("down")

    with pytest.raises(ConnectionError, match="down"):
        await cache.fetch_query(KEY, failing)
    assert attempts == 2
    assert cache.get_query_data(KEY) is None


@pytest.mark.asyncio
async def test_cancelled_fetch_does_not_overwrite_later_write():
    cache = _make_cache()
    cache.set_query_data(KEY, "old")
    cache.invalidate_queries(KEY)
    started = asyncio.Event()

    async def slow():
        started.set()
        await asyncio.Event().wait()

    pending = asyncio.ensure_future(cache.fetch_query(KEY, slow))
    await started.wait()

    assert cache.cancel_queries(("products",)) == 1
    cache.set_query_data(KEY, "optimistic")

    assert await pending == "optimistic"
    assert cache.get_query_data(KEY) == "optimistic"


# ── Optimistic layers ──


def test_rollback_restores_snapshot():
    cache = _make_cache()
    cache.set_query_data(KEY, {"stock_current": 50})

    patch = cache.begin_optimistic(KEY, lambda p: {**p, "stock_current": p["stock_current"] + 10})
    assert cache.get_query_data(KEY) == {"stock_current": 60}

    cache.rollback(patch)
    assert cache.get_query_data(KEY) == {"stock_current": 50}


def test_rollback_keeps_later_projection():
    cache = _make_cache()
    cache.set_query_data(KEY, 50)

    plus_ten = cache.begin_optimistic(KEY, lambda v: v + 10)
    minus_five = cache.begin_optimistic(KEY, lambda v: v - 5)
    assert cache.get_query_data(KEY) == 55

    cache.rollback(plus_ten)
    assert cache.get_query_data(KEY) == 45

    cache.commit(minus_five)
    assert cache.get_query_data(KEY) == 45


def test_rollback_of_later_patch_keeps_earlier_projection():
    cache = _make_cache()
    cache.set_query_data(KEY, 50)

    plus_ten = cache.begin_optimistic(KEY, lambda v: v + 10)
    minus_five = cache.begin_optimistic(KEY, lambda v: v - 5)
    cache.commit(plus_ten)
    cache.rollback(minus_five)

    assert cache.get_query_data(KEY) == 60


def test_optimistic_write_on_empty_key_is_skipped():
    cache = _make_cache()
    patch = cache.begin_optimistic(KEY, lambda v: v + 1)

    assert cache.get_query_data(KEY) is None
    cache.rollback(patch)
    assert cache.get_query_data(KEY) is None


def test_settled_patches_on_empty_key_leave_no_entry():
    cache = _make_cache()
    committed = cache.begin_optimistic(KEY, lambda v: v + 1)
    rolled_back = cache.begin_optimistic(("products", "detail", "p2"), lambda v: v + 1)

    cache.commit(committed)
    cache.rollback(rolled_back)

    assert cache.invalidate_queries(("products",)) == 0
    assert cache.get_queries_data(()) == []


def test_pending_patch_on_empty_key_survives_commit_of_earlier_one():
    cache = _make_cache()
    first = cache.begin_optimistic(KEY, lambda v: v + 1)
    cache.begin_optimistic(KEY, lambda v: v + 2)

    cache.commit(first)

    assert cache.invalidate_queries(KEY) == 1


@pytest.mark.asyncio
async def test_fetch_landing_rebases_pending_patch():
    cache = _make_cache()
    cache.set_query_data(KEY, 50)
    patch = cache.begin_optimistic(KEY, lambda v: v + 10)
    cache.invalidate_queries(KEY)

    async def server():
        return 70

    assert await cache.fetch_query(KEY, server) == 80

    cache.rollback(patch)
    assert cache.get_query_data(KEY) == 70


# ── Change notification ──


@pytest.mark.asyncio
async def test_subscribe_receives_events():
    cache = _make_cache()
    events = cache.subscribe()
    first = asyncio.ensure_future(_next(events))
    await asyncio.sleep(0)
    assert cache.subscriber_count == 1

    cache.set_query_data(KEY, 1)
    assert await first == CacheEvent(type="updated", key=KEY)

    cache.invalidate_queries(("products",))
    assert await events.__anext__() == CacheEvent(type="invalidated", key=KEY)

    cache.remove_queries(KEY)
    assert await events.__anext__() == CacheEvent(type="removed", key=KEY)

    await events.aclose()
    assert cache.subscriber_count == 0


@pytest.mark.asyncio
async def test_shutdown_ends_subscriptions():
    cache = _make_cache()
    received = []

    async def consume():
        async for event in cache.subscribe():
            received.append(event)

    consumer = asyncio.ensure_future(consume())
    await asyncio.sleep(0)
    cache.set_query_data(KEY, 1)
    cache.shutdown()
    await asyncio.wait_for(consumer, timeout=1)

    assert received == [CacheEvent(type="updated", key=KEY)]
    assert cache.subscriber_count == 0


@pytest.mark.asyncio
async def test_slow_subscriber_is_disconnected():
    cache = _make_cache(max_pending_events=1)
    events = cache.subscribe()
    first = asyncio.ensure_future(_next(events))
    await asyncio.sleep(0)

    cache.set_query_data(KEY, 1)
    assert (await first).key == KEY

    # One event fills the queue; the next one overflows it.
    cache.set_query_data(KEY, 2)
    cache.set_query_data(KEY, 3)

    assert cache.subscriber_count == 0
    with pytest.raises(StopAsyncIteration):
        await events.__anext__()
