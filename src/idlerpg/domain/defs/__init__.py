"""Definition dataclasses loaded from JSON."""

from .enemy_def import EnemyDef
from .loot_def import LootItemDef
from .skill_def import SkillDef

__all__ = ["EnemyDef", "LootItemDef", "SkillDef"]
