"""Persistent player progression record."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .stats import StatBlock

EXP_PER_LEVEL = 100

DEFAULT_LEVEL = 1
DEFAULT_EXP = 0
DEFAULT_GOLD = 100
DEFAULT_HEALTH = 100
DEFAULT_ATTACK = 10
DEFAULT_DEFENSE = 5


def exp_to_next_level(level: int) -> int:
    """Experience needed to leave the given level."""
    return level * EXP_PER_LEVEL


@dataclass(slots=True)
class InventoryEntry:
    """One stack of identically named items."""

    name: str
    quantity: int


@dataclass(slots=True)
class PlayerProgression:
    """Level, experience, gold, inventory and stats of one user."""

    user_id: str
    name: str
    stats: StatBlock
    level: int = DEFAULT_LEVEL
    exp: int = DEFAULT_EXP
    gold: int = DEFAULT_GOLD
    inventory: List[InventoryEntry] = field(default_factory=list)

    @property
    def exp_to_next_level(self) -> int:
        return exp_to_next_level(self.level)


def new_progression(user_id: str, name: str) -> PlayerProgression:
    """Return the record a freshly registered user starts with."""
    return PlayerProgression(
        user_id=user_id,
        name=name,
        stats=StatBlock(
            health=DEFAULT_HEALTH,
            max_health=DEFAULT_HEALTH,
            attack=DEFAULT_ATTACK,
            defense=DEFAULT_DEFENSE,
        ),
    )
