from __future__ import annotations

import asyncio
from typing import List

import pytest

from idlerpg.runtime.scheduler import AsyncioTicker, ManualTicker, PersistenceWorker
from idlerpg.services.errors import StorageError
from idlerpg.services.progression_store import InMemoryProgressionStore
from tests.helpers.builders import make_player, make_record


class _FlakyStore(InMemoryProgressionStore):
    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.save_calls = 0

    def save(self, user_id, progression) -> None:
        self.save_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise StorageError("disk unavailable")
        super().save(user_id, progression)


@pytest.mark.asyncio
async def test_asyncio_ticker_fires_until_cancelled() -> None:
    ticker = AsyncioTicker(0.01)
    ticks: List[int] = []

    ticker.start(lambda: ticks.append(1))
    await asyncio.sleep(0.08)
    ticker.cancel()
    count = len(ticks)
    await asyncio.sleep(0.05)

    assert count >= 2
    assert len(ticks) == count
    assert not ticker.is_active


@pytest.mark.asyncio
async def test_cancel_from_inside_a_tick_stops_the_loop() -> None:
    ticker = AsyncioTicker(0.01)
    ticks: List[int] = []

    def on_tick() -> None:
        ticks.append(1)
        ticker.cancel()

    ticker.start(on_tick)
    await asyncio.sleep(0.06)

    assert ticks == [1]


@pytest.mark.asyncio
async def test_restart_after_cancel_runs_a_single_loop() -> None:
    ticker = AsyncioTicker(0.02)
    ticks: List[int] = []

    ticker.start(lambda: ticks.append(1))
    ticker.cancel()
    ticker.start(lambda: ticks.append(2))
    await asyncio.sleep(0.05)
    ticker.cancel()

    assert ticks
    assert set(ticks) == {2}


def test_ticker_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        AsyncioTicker(0)


def test_manual_ticker_stops_firing_once_cancelled() -> None:
    ticker = ManualTicker()
    ticks: List[int] = []
    ticker.start(lambda: ticks.append(1))

    assert ticker.fire(2) == 2
    ticker.cancel()
    assert ticker.fire() == 0
    assert ticks == [1, 1]


@pytest.mark.asyncio
async def test_worker_keeps_only_the_latest_snapshot() -> None:
    store = _FlakyStore(failures=0)
    worker = PersistenceWorker("alice", store, retry_base_delay=0.0)
    player = make_player(user_id="alice", gold=10)

    worker.submit(player)
    player.gold = 20
    worker.submit(player)
    player.gold = 30
    assert await worker.flush()

    assert store.load("alice").gold == 20
    assert store.save_calls == 1


@pytest.mark.asyncio
async def test_worker_retries_transient_failures() -> None:
    store = _FlakyStore(failures=2)
    worker = PersistenceWorker("alice", store, retry_attempts=3, retry_base_delay=0.0)

    worker.submit(make_player(user_id="alice", gold=55))

    assert await worker.flush()
    assert store.save_calls == 3
    assert store.load("alice").gold == 55


@pytest.mark.asyncio
async def test_failed_save_stays_queued_for_the_next_attempt() -> None:
    store = _FlakyStore(failures=5)
    worker = PersistenceWorker("alice", store, retry_attempts=2, retry_base_delay=0.0)

    worker.submit(make_player(user_id="alice", gold=55))

    assert not await worker.flush()
    assert worker.has_pending
    assert not store.exists("alice")

    store.failures = 0
    assert await worker.close()
    assert store.load("alice").gold == 55


@pytest.mark.asyncio
async def test_worker_appends_battle_records_in_order() -> None:
    store = InMemoryProgressionStore()
    worker = PersistenceWorker("alice", store)

    for index in range(3):
        worker.submit_record(make_record(index))
    await worker.close()

    page = store.battle_history("alice")
    assert [record.enemy_name for record in page.records] == ["Enemy 2", "Enemy 1", "Enemy 0"]


class _BrokenStore(InMemoryProgressionStore):
    def __init__(self) -> None:
        super().__init__()
        self.broken = True

    def save(self, user_id, progression) -> None:
        if self.broken:
            raise RuntimeError("unexpected backend failure")
        super().save(user_id, progression)


@pytest.mark.asyncio
async def test_unexpected_store_error_keeps_the_change_queued() -> None:
    store = _BrokenStore()
    worker = PersistenceWorker("alice", store, retry_base_delay=0.0)

    worker.submit(make_player(user_id="alice", gold=42))

    assert not await worker.flush()
    assert worker.has_pending

    store.broken = False
    assert await worker.close()
    assert store.load("alice").gold == 42
