"""Repository exports."""

from .enemies_repo import EnemiesRepository
from .loot_repo import LootRepository
from .skills_repo import SkillsRepository

__all__ = [
    "EnemiesRepository",
    "LootRepository",
    "SkillsRepository",
]
