"""Rewards, leveling, death penalty, upgrades and consumables."""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

from idlerpg.core.rng import RNG
from idlerpg.domain.defs import LootItemDef
from idlerpg.domain.entities import EnemyInstance, PlayerProgression
from idlerpg.domain.inventory import add_item, find_entry, remove_item
from idlerpg.services.errors import (
    ConfigurationError,
    InsufficientFundsError,
    ItemNotOwnedError,
    ItemNotUsableError,
    UnknownUpgradeError,
)
from idlerpg.services.events import (
    EnemyDefeatedEvent,
    GameEvent,
    ItemUsedEvent,
    LevelUpEvent,
    LootDroppedEvent,
    PlayerDefeatedEvent,
    UpgradePurchasedEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_LOOT_CHANCE = 0.3
DEFAULT_UPGRADE_COST = 50
DEATH_GOLD_LOSS_RATIO = 0.1
DEATH_HEALTH_RATIO = 0.5

LEVEL_UP_MAX_HEALTH = 20
LEVEL_UP_ATTACK = 5
LEVEL_UP_DEFENSE = 3
LEVEL_UP_GOLD = 50

UPGRADE_INCREMENTS: Dict[str, int] = {
    "attack": 5,
    "defense": 3,
    "health": 30,
}


class ProgressionEngine:
    """Applies every persistent change to a player's progression."""

    def __init__(
        self,
        loot_table: Sequence[LootItemDef],
        *,
        loot_chance: float = DEFAULT_LOOT_CHANCE,
        upgrade_cost: int = DEFAULT_UPGRADE_COST,
    ) -> None:
        if not loot_table and loot_chance > 0:
            raise ConfigurationError("Loot table is empty.")
        self._loot_table = tuple(loot_table)
        self._loot_by_name = {item.name: item for item in self._loot_table}
        self._loot_chance = loot_chance
        self._upgrade_cost = upgrade_cost

    @property
    def upgrade_cost(self) -> int:
        return self._upgrade_cost

    # -----------------------
    # Victory & Leveling
    # -----------------------
    def award_victory(self, progression: PlayerProgression, enemy: EnemyInstance, rng: RNG) -> List[GameEvent]:
        progression.exp += enemy.exp_reward
        progression.gold += enemy.gold_reward
        events: List[GameEvent] = [
            EnemyDefeatedEvent(
                enemy_name=enemy.name,
                exp_gained=enemy.exp_reward,
                gold_gained=enemy.gold_reward,
            )
        ]
        if rng.chance(self._loot_chance):
            item = rng.choice(self._loot_table)
            add_item(progression.inventory, item.name)
            events.append(LootDroppedEvent(item_name=item.name))
        events.extend(self.check_level_up(progression))
        return events

    def check_level_up(self, progression: PlayerProgression) -> List[GameEvent]:
        """Level up as many times as the banked experience allows."""
        events: List[GameEvent] = []
        while progression.exp >= progression.exp_to_next_level:
            progression.exp -= progression.exp_to_next_level
            progression.level += 1
            stats = progression.stats
            stats.max_health += LEVEL_UP_MAX_HEALTH
            stats.health = stats.max_health
            stats.attack += LEVEL_UP_ATTACK
            stats.defense += LEVEL_UP_DEFENSE
            progression.gold += LEVEL_UP_GOLD
            logger.info("User %s reached level %d", progression.user_id, progression.level)
            events.append(LevelUpEvent(level=progression.level))
        assert 0 <= progression.exp < progression.exp_to_next_level, "experience not rolled over"
        return events

    # -----------------------
    # Defeat
    # -----------------------
    def apply_death_penalty(self, progression: PlayerProgression, enemy_name: str) -> PlayerDefeatedEvent:
        gold_lost = math.floor(progression.gold * DEATH_GOLD_LOSS_RATIO)
        progression.gold = max(0, progression.gold - gold_lost)
        stats = progression.stats
        stats.health = math.floor(stats.max_health * DEATH_HEALTH_RATIO)
        stats.clamp_health()
        logger.info("User %s was defeated by %s and lost %d gold", progression.user_id, enemy_name, gold_lost)
        return PlayerDefeatedEvent(enemy_name=enemy_name, gold_lost=gold_lost, health_restored=stats.health)

    # -----------------------
    # Spending
    # -----------------------
    def purchase_upgrade(self, progression: PlayerProgression, kind: str) -> UpgradePurchasedEvent:
        increment = UPGRADE_INCREMENTS.get(kind)
        if increment is None:
            raise UnknownUpgradeError(f"Unknown upgrade '{kind}'.")
        if progression.gold < self._upgrade_cost:
            raise InsufficientFundsError(self._upgrade_cost, progression.gold)

        progression.gold -= self._upgrade_cost
        stats = progression.stats
        if kind == "attack":
            stats.attack += increment
        elif kind == "defense":
            stats.defense += increment
        else:
            stats.max_health += increment
            stats.health = stats.max_health
        return UpgradePurchasedEvent(kind=kind, cost=self._upgrade_cost, amount=increment)

    def use_item(self, progression: PlayerProgression, item_name: str) -> List[GameEvent]:
        """Consume one item from the inventory and apply its effect."""
        if find_entry(progression.inventory, item_name) is None:
            raise ItemNotOwnedError(f"No '{item_name}' in inventory.")
        item = self._loot_by_name.get(item_name)
        if item is None:
            raise ItemNotUsableError(f"'{item_name}' cannot be used.")
        remove_item(progression.inventory, item_name)

        stats = progression.stats
        amount = item.value
        extra: List[GameEvent] = []
        if item.effect == "health":
            before = stats.health
            stats.health += item.value
            stats.clamp_health()
            amount = stats.health - before
        elif item.effect == "attack":
            stats.attack += item.value
        elif item.effect == "defense":
            stats.defense += item.value
        elif item.effect == "exp":
            progression.exp += item.value
            extra = self.check_level_up(progression)
        elif item.effect == "gold":
            progression.gold += item.value

        events: List[GameEvent] = [ItemUsedEvent(item_name=item.name, effect=item.effect, amount=amount)]
        events.extend(extra)
        return events
