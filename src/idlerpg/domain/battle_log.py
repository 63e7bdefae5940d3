"""Bounded battle log with a monotonic cursor for polling clients."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, List

from idlerpg.core.types import LogKind

DEFAULT_CAPACITY = 50


@dataclass(frozen=True, slots=True)
class LogEntry:
    seq: int
    kind: LogKind
    message: str
    created_at: datetime


class BattleLog:
    """Keeps the newest entries; the oldest are dropped once full."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Log capacity must be positive.")
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._last_seq = 0

    @property
    def last_seq(self) -> int:
        return self._last_seq

    def append(self, kind: LogKind, message: str) -> LogEntry:
        self._last_seq += 1
        entry = LogEntry(
            seq=self._last_seq,
            kind=kind,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        self._entries.append(entry)
        return entry

    def newest_first(self) -> List[LogEntry]:
        return list(reversed(self._entries))

    def since(self, cursor: int) -> List[LogEntry]:
        """Entries newer than cursor, oldest first. Dropped entries are gone."""
        return [entry for entry in self._entries if entry.seq > cursor]

    def __len__(self) -> int:
        return len(self._entries)
