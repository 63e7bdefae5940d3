"""Single-round combat resolution between the player and an enemy.

The resolver is pure computation: it mutates the two stat blocks it is handed
and reports what happened. Turning the outcome into text is left to callers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from idlerpg.core.rng import RNG
from idlerpg.domain.entities import StatBlock

BASE_CRIT_CHANCE = 0.15
CRIT_MULTIPLIER = 1.5
VARIANCE_MIN = 0.8
VARIANCE_MAX = 1.2
DODGE_CHANCE = 0.10


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Tunable odds and multipliers for one round."""

    crit_chance: float = BASE_CRIT_CHANCE
    crit_multiplier: float = CRIT_MULTIPLIER
    variance_min: float = VARIANCE_MIN
    variance_max: float = VARIANCE_MAX
    dodge_chance: float = DODGE_CHANCE

    @classmethod
    def flat(cls) -> "CombatRules":
        """Rules of the plain subtractive variant: no crit, no dodge, no variance."""
        return cls(crit_chance=0.0, variance_min=1.0, variance_max=1.0, dodge_chance=0.0)

    def with_crit_bonus(self, bonus: float) -> "CombatRules":
        if bonus <= 0:
            return self
        return CombatRules(
            crit_chance=min(1.0, self.crit_chance + bonus),
            crit_multiplier=self.crit_multiplier,
            variance_min=self.variance_min,
            variance_max=self.variance_max,
            dodge_chance=self.dodge_chance,
        )


@dataclass(frozen=True, slots=True)
class RoundOutcome:
    """Structured result of one exchange."""

    player_damage_dealt: int
    was_critical: bool
    enemy_damage_dealt: int
    was_dodged: bool
    enemy_defeated: bool
    player_defeated: bool


def base_damage(attack: int, defense: int) -> int:
    return max(1, attack - defense)


def roll_player_damage(attacker: StatBlock, target: StatBlock, rng: RNG, rules: CombatRules) -> tuple[int, bool]:
    base = base_damage(attacker.attack, target.defense)
    if rng.chance(rules.crit_chance):
        return math.floor(base * rules.crit_multiplier), True
    if rules.variance_min == rules.variance_max:
        variance = rules.variance_min
    else:
        variance = rng.uniform(rules.variance_min, rules.variance_max)
    return max(1, math.floor(base * variance)), False


def resolve_round(
    player: StatBlock,
    enemy: StatBlock,
    rng: RNG,
    rules: CombatRules | None = None,
) -> RoundOutcome:
    """Player strikes first; a surviving enemy counter-attacks without variance."""
    rules = rules or CombatRules()

    player_damage, was_critical = roll_player_damage(player, enemy, rng, rules)
    enemy.health -= player_damage
    enemy.clamp_health()

    if not enemy.is_alive:
        _assert_health_bounds(player, enemy)
        return RoundOutcome(
            player_damage_dealt=player_damage,
            was_critical=was_critical,
            enemy_damage_dealt=0,
            was_dodged=False,
            enemy_defeated=True,
            player_defeated=False,
        )

    was_dodged = rng.chance(rules.dodge_chance)
    enemy_damage = 0 if was_dodged else base_damage(enemy.attack, player.defense)
    player.health -= enemy_damage
    player.clamp_health()

    _assert_health_bounds(player, enemy)
    return RoundOutcome(
        player_damage_dealt=player_damage,
        was_critical=was_critical,
        enemy_damage_dealt=enemy_damage,
        was_dodged=was_dodged,
        enemy_defeated=False,
        player_defeated=not player.is_alive,
    )


def _assert_health_bounds(*blocks: StatBlock) -> None:
    for block in blocks:
        assert 0 <= block.health <= block.max_health, f"health out of bounds: {block}"
