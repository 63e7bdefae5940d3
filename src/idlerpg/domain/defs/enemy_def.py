"""Enemy template structures."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class EnemyDef:
    """Level-1 enemy archetype; instances are scaled from it."""

    id: str
    name: str
    tier: int
    base_max_health: int
    base_attack: int
    base_exp_reward: int
    base_gold_reward: int
    defense: int | None = None
