"""Active skills with gold costs and per-round cooldowns."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence

from idlerpg.domain.defs import SkillDef
from idlerpg.domain.entities import PlayerProgression
from idlerpg.services.errors import (
    ConfigurationError,
    InsufficientFundsError,
    OnCooldownError,
    UnknownSkillError,
)
from idlerpg.services.events import SkillUsedEvent

STAT_BOOST_RATIO = 0.5
HEAL_RATIO = 0.3
DEFAULT_CRITICAL_BONUS = 0.10
DEFAULT_CRITICAL_ROUNDS = 3


@dataclass(slots=True)
class SkillView:
    key: str
    name: str
    cost: int
    cooldown: int
    max_cooldown: int

    @property
    def ready(self) -> bool:
        return self.cooldown == 0


class SkillTable:
    """Cooldown bookkeeping for one session over a shared, read-only catalog."""

    def __init__(
        self,
        skills: Sequence[SkillDef],
        *,
        critical_bonus: float = DEFAULT_CRITICAL_BONUS,
        critical_rounds: int = DEFAULT_CRITICAL_ROUNDS,
    ) -> None:
        if not skills:
            raise ConfigurationError("Skill table is empty.")
        self._skills: Dict[str, SkillDef] = {skill.key: skill for skill in skills}
        self._cooldowns: Dict[str, int] = {skill.key: 0 for skill in skills}
        self._critical_bonus = critical_bonus
        self._critical_rounds = critical_rounds
        self._critical_rounds_left = 0

    def cooldown(self, key: str) -> int:
        if key not in self._skills:
            raise UnknownSkillError(f"Unknown skill '{key}'.")
        return self._cooldowns[key]

    @property
    def crit_bonus(self) -> float:
        """Extra critical chance for the next round, if the boost is active."""
        return self._critical_bonus if self._critical_rounds_left > 0 else 0.0

    @property
    def critical_rounds_left(self) -> int:
        return self._critical_rounds_left

    def activate(self, key: str, player: PlayerProgression) -> SkillUsedEvent:
        """Pay for and apply a skill. Nothing changes when a check fails."""
        skill = self._skills.get(key)
        if skill is None:
            raise UnknownSkillError(f"Unknown skill '{key}'.")
        remaining = self._cooldowns[key]
        if remaining > 0:
            raise OnCooldownError(key, remaining)
        if player.gold < skill.cost:
            raise InsufficientFundsError(skill.cost, player.gold)

        player.gold -= skill.cost
        self._cooldowns[key] = skill.max_cooldown
        amount = self._apply_effect(key, player)
        return SkillUsedEvent(key=key, skill_name=skill.name, cost=skill.cost, amount=amount)

    def tick_cooldowns(self) -> None:
        for key, remaining in self._cooldowns.items():
            if remaining > 0:
                self._cooldowns[key] = remaining - 1

    def consume_critical_round(self) -> None:
        if self._critical_rounds_left > 0:
            self._critical_rounds_left -= 1

    def views(self) -> List[SkillView]:
        return [
            SkillView(
                key=skill.key,
                name=skill.name,
                cost=skill.cost,
                cooldown=self._cooldowns[skill.key],
                max_cooldown=skill.max_cooldown,
            )
            for skill in self._skills.values()
        ]

    def _apply_effect(self, key: str, player: PlayerProgression) -> int:
        stats = player.stats
        if key == "attack":
            bonus = math.floor(stats.attack * STAT_BOOST_RATIO)
            stats.attack += bonus
            return bonus
        if key == "defense":
            bonus = math.floor(stats.defense * STAT_BOOST_RATIO)
            stats.defense += bonus
            return bonus
        if key == "heal":
            before = stats.health
            stats.health += math.floor(stats.max_health * HEAL_RATIO)
            stats.clamp_health()
            return stats.health - before
        if key == "critical":
            self._critical_rounds_left = self._critical_rounds
            return self._critical_rounds
        raise UnknownSkillError(f"Skill '{key}' has no effect handler.")
