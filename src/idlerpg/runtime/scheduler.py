"""Recurring battle ticks and ordered background saves, one of each per session.

Both run on the asyncio event loop. A tick is plain synchronous code, so two
ticks of one session can never overlap, and the next sleep only starts once
the previous tick has returned.
"""
from __future__ import annotations

import asyncio
import copy
import logging
from collections import deque
from typing import Callable, Deque

from idlerpg.domain.entities import PlayerProgression
from idlerpg.domain.history import BattleRecord
from idlerpg.services.errors import StorageError
from idlerpg.services.progression_store import ProgressionStore

logger = logging.getLogger(__name__)

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 0.1


class AsyncioTicker:
    """Calls a callback every interval seconds until cancelled."""

    def __init__(self, interval: float, *, name: str = "battle-ticker") -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive.")
        self._interval = interval
        self._name = name
        self._task: asyncio.Task | None = None
        self._generation = 0
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self, callback: Callable[[], None]) -> None:
        if self._active:
            return
        loop = asyncio.get_running_loop()
        self._generation += 1
        self._active = True
        self._task = loop.create_task(self._run(callback, self._generation), name=self._name)

    def cancel(self) -> None:
        """After this returns no further callback fires, even from an already-sleeping task."""
        self._active = False
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, callback: Callable[[], None], generation: int) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if generation != self._generation:
                return
            callback()


class ManualTicker:
    """Ticker driven by explicit fire() calls; for simulations and tests."""

    def __init__(self) -> None:
        self._callback: Callable[[], None] | None = None

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        if self._callback is None:
            self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def fire(self, times: int = 1) -> int:
        """Invoke the callback up to times times; returns how many fired."""
        fired = 0
        for _ in range(times):
            callback = self._callback
            if callback is None:
                break
            callback()
            fired += 1
        return fired


class PersistenceWorker:
    """
    Writes one user's state in the background.

    Only the newest pending progression snapshot is kept (last write wins) and
    battle records are appended in order. Failed writes are retried with
    exponential backoff and stay queued; in-memory state is never rolled back.
    """

    def __init__(
        self,
        user_id: str,
        store: ProgressionStore,
        *,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    ) -> None:
        self._user_id = user_id
        self._store = store
        self._retry_attempts = max(1, retry_attempts)
        self._retry_base_delay = retry_base_delay
        self._pending: PlayerProgression | None = None
        self._records: Deque[BattleRecord] = deque()
        self._wakeup = asyncio.Event()
        self._drain_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._closed = False

    @property
    def has_pending(self) -> bool:
        return self._pending is not None or bool(self._records)

    def submit(self, progression: PlayerProgression) -> None:
        self._pending = copy.deepcopy(progression)
        self._wake()

    def submit_record(self, record: BattleRecord) -> None:
        self._records.append(record)
        self._wake()

    async def flush(self) -> bool:
        """Write everything pending now; returns False if something is still queued."""
        async with self._drain_lock:
            await self._drain()
        return not self.has_pending

    async def close(self) -> bool:
        flushed = await self.flush()
        self._closed = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if not flushed:
            logger.error("Closing persistence for user %s with unsaved changes", self._user_id)
        return flushed

    def _wake(self) -> None:
        if self._closed:
            logger.warning("Persistence for user %s is closed; change not queued for writing", self._user_id)
            return
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name=f"persist-{self._user_id}"
            )
        self._wakeup.set()

    async def _run(self) -> None:
        while not self._closed:
            await self._wakeup.wait()
            self._wakeup.clear()
            async with self._drain_lock:
                await self._drain()

    async def _drain(self) -> None:
        while self._records or self._pending is not None:
            if self._records:
                record = self._records[0]
                if not await self._with_retry(lambda: self._store.record_battle(self._user_id, record)):
                    return
                self._records.popleft()
                continue

            snapshot = self._pending
            self._pending = None
            assert snapshot is not None
            if not await self._with_retry(lambda: self._store.save(self._user_id, snapshot)):
                if self._pending is None:
                    self._pending = snapshot
                return

    async def _with_retry(self, write: Callable[[], None]) -> bool:
        for attempt in range(self._retry_attempts):
            try:
                await asyncio.to_thread(write)
                return True
            except StorageError as exc:
                logger.warning(
                    "Write for user %s failed (attempt %d/%d): %s",
                    self._user_id,
                    attempt + 1,
                    self._retry_attempts,
                    exc,
                )
                if attempt + 1 < self._retry_attempts:
                    await asyncio.sleep(self._retry_base_delay * (2**attempt))
            except Exception:
                logger.exception("Unexpected store failure for user %s; change stays queued", self._user_id)
                return False
        logger.error("Giving up writing for user %s until the next change", self._user_id)
        return False
