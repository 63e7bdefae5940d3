"""Enemy runtime models."""
from __future__ import annotations

from dataclasses import dataclass

from .stats import StatBlock


@dataclass(slots=True)
class EnemyInstance:
    """Represents a spawned enemy ready for battle."""

    enemy_id: str
    name: str
    level: int
    stats: StatBlock
    exp_reward: int
    gold_reward: int

    @property
    def is_alive(self) -> bool:
        return self.stats.is_alive
