"""Level scaling helpers for enemy templates."""
from __future__ import annotations

from idlerpg.domain.defs import EnemyDef
from idlerpg.domain.entities import StatBlock

# Each enemy level above 1 adds 10% to health, attack and rewards.
LEVEL_STEP_PERCENT = 10
DERIVED_DEFENSE_PERCENT = 30


def level_percent(enemy_level: int) -> int:
    return 100 + (max(1, enemy_level) - 1) * LEVEL_STEP_PERCENT


def scale_value(base: int, enemy_level: int) -> int:
    # Integer math keeps floor() exact at every level.
    return base * level_percent(enemy_level) // 100


def derived_defense(enemy_def: EnemyDef) -> int:
    if enemy_def.defense is not None:
        return enemy_def.defense
    return enemy_def.base_attack * DERIVED_DEFENSE_PERCENT // 100


def scale_enemy_stats(enemy_def: EnemyDef, *, enemy_level: int) -> StatBlock:
    max_health = max(1, scale_value(enemy_def.base_max_health, enemy_level))
    return StatBlock(
        health=max_health,
        max_health=max_health,
        attack=scale_value(enemy_def.base_attack, enemy_level),
        defense=derived_defense(enemy_def),
    )
