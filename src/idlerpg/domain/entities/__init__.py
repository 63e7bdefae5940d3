"""Runtime entity exports."""

from .enemy import EnemyInstance
from .progression import InventoryEntry, PlayerProgression, exp_to_next_level, new_progression
from .stats import StatBlock

__all__ = [
    "EnemyInstance",
    "InventoryEntry",
    "PlayerProgression",
    "StatBlock",
    "exp_to_next_level",
    "new_progression",
]
