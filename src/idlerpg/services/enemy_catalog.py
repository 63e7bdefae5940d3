"""Enemy catalog: picks a template by player level and scales it."""
from __future__ import annotations

from typing import Sequence

from idlerpg.core.rng import RNG
from idlerpg.domain.defs import EnemyDef
from idlerpg.domain.enemy_scaling import scale_enemy_stats, scale_value
from idlerpg.domain.entities import EnemyInstance
from idlerpg.services.errors import ConfigurationError

DEFAULT_LEVEL_DIVISOR = 10
DEFAULT_LEVEL_JITTER = 9
LEVEL_OFFSET = 5


class EnemyCatalog:
    """Ordered enemy templates, trivial first, boss-tier last."""

    def __init__(
        self,
        templates: Sequence[EnemyDef],
        *,
        level_divisor: int = DEFAULT_LEVEL_DIVISOR,
        level_jitter: int = DEFAULT_LEVEL_JITTER,
    ) -> None:
        if not templates:
            raise ConfigurationError("Enemy catalog is empty.")
        if level_divisor <= 0:
            raise ConfigurationError("level_divisor must be positive.")
        if level_jitter < 0:
            raise ConfigurationError("level_jitter must not be negative.")
        self._templates = tuple(templates)
        self._level_divisor = level_divisor
        self._level_jitter = level_jitter

    def template_index(self, player_level: int) -> int:
        index = player_level // self._level_divisor
        return max(0, min(index, len(self._templates) - 1))

    def roll_enemy_level(self, player_level: int, rng: RNG) -> int:
        # No jitter means the enemy simply matches the player.
        if self._level_jitter == 0:
            return max(1, player_level)
        return max(1, player_level - LEVEL_OFFSET + rng.randint(0, self._level_jitter))

    def spawn(self, player_level: int, rng: RNG) -> EnemyInstance:
        """Instantiate a fresh enemy for the given player level."""
        template = self._templates[self.template_index(player_level)]
        enemy_level = self.roll_enemy_level(player_level, rng)
        return EnemyInstance(
            enemy_id=template.id,
            name=template.name,
            level=enemy_level,
            stats=scale_enemy_stats(template, enemy_level=enemy_level),
            exp_reward=scale_value(template.base_exp_reward, enemy_level),
            gold_reward=scale_value(template.base_gold_reward, enemy_level),
        )
