import asyncio

import pytest

from pagebot.application.exceptions import DuplicateEvent
from pagebot.application.use_cases.maintenance import MaintenanceLoops
from pagebot.application.utils.keyed_lock import KeyedLock
from pagebot.infrastructure.store.dedup_cache import MemoryDedupCache
from pagebot.infrastructure.store.memory_session_store import MemorySessionStore


def test_session_store_create_get_delete(booking_steps):
    store = MemorySessionStore()
    session = store.create("u1", booking_steps, now=100.0)
    assert store.get("u1") is session
    assert session.step_index == 0
    assert "u1" in store
    store.delete("u1")
    store.delete("u1")
    assert store.get("u1") is None
    assert len(store) == 0


def test_create_replaces_existing_session(booking_steps):
    store = MemorySessionStore()
    store.create("u1", booking_steps, now=1.0)
    second = store.create("u1", booking_steps, now=2.0)
    assert store.get("u1") is second
    assert len(store) == 1


async def test_sweep_removes_only_expired_sessions(booking_steps):
    store = MemorySessionStore()
    store.create("old", booking_steps, now=0.0)
    store.create("fresh", booking_steps, now=1000.0)
    removed = await store.sweep_expired(now=2000.0, ttl=1800.0)
    assert removed == ["old"]
    assert "fresh" in store


async def test_sweep_waits_for_user_lock_and_rechecks(booking_steps):
    store = MemorySessionStore()
    store.create("u1", booking_steps, now=0.0)

    async with store.lock("u1"):
        sweep = asyncio.create_task(store.sweep_expired(now=2000.0, ttl=1800.0))
        await asyncio.sleep(0)
        assert not sweep.done()
        # the user restarts while the sweep waits
        store.create("u1", booking_steps, now=1990.0)

    assert await sweep == []
    assert "u1" in store


async def test_keyed_lock_serializes_same_key_and_cleans_up():
    locks = KeyedLock()
    order: list[str] = []

    async def worker(name: str, key: str) -> None:
        async with locks.hold(key):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a", "k"), worker("b", "k"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


async def test_keyed_lock_different_keys_do_not_block():
    locks = KeyedLock()
    async with locks.hold("a"):
        async with locks.hold("b"):
            assert locks.locked("a") and locks.locked("b")


def test_dedup_claim_rejects_repeat():
    cache = MemoryDedupCache(capacity=10)
    cache.claim("e1")
    assert cache.seen("e1")
    with pytest.raises(DuplicateEvent):
        cache.claim("e1")


def test_dedup_clears_when_full():
    cache = MemoryDedupCache(capacity=2)
    cache.claim("e1")
    cache.claim("e2")
    cache.claim("e3")
    assert len(cache) == 1
    assert not cache.seen("e1")
    cache.claim("e1")


def test_dedup_reset_if_full():
    cache = MemoryDedupCache(capacity=2)
    cache.claim("e1")
    assert cache.reset_if_full() == 0
    cache.claim("e2")
    assert cache.reset_if_full() == 2
    assert len(cache) == 0


def test_dedup_capacity_must_be_positive():
    with pytest.raises(ValueError):
        MemoryDedupCache(capacity=0)


async def test_maintenance_jobs(booking_steps):
    store = MemorySessionStore()
    dedup = MemoryDedupCache(capacity=1)
    store.create("u1", booking_steps, now=0.0)
    dedup.claim("e1")
    loops = MaintenanceLoops(store, dedup, session_ttl=10.0, clock=lambda: 100.0)

    assert await loops.sweep_sessions() == ["u1"]
    assert await loops.reset_dedup() == 1


async def test_maintenance_start_and_stop(booking_steps):
    loops = MaintenanceLoops(MemorySessionStore(), MemoryDedupCache(), sweep_interval=0.01, dedup_reset_interval=0.01)
    loops.start()
    await asyncio.sleep(0.03)
    await loops.stop()
