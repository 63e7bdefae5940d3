"""Battle history records kept per user."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List

from idlerpg.core.types import BattleResult


@dataclass(frozen=True, slots=True)
class BattleRecord:
    enemy_name: str
    result: BattleResult
    exp_gained: int
    gold_gained: int
    fought_at: datetime


@dataclass(slots=True)
class HistoryPage:
    records: List[BattleRecord]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
