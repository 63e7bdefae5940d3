"""Events emitted by the engine; the battle log is built from them."""
from __future__ import annotations

from dataclasses import dataclass

from idlerpg.domain.combat import RoundOutcome


@dataclass(slots=True)
class GameEvent:
    """Base game event."""


@dataclass(slots=True)
class EnemySpawnedEvent(GameEvent):
    enemy_name: str
    level: int


@dataclass(slots=True)
class BattleStartedEvent(GameEvent):
    enemy_name: str


@dataclass(slots=True)
class BattleStoppedEvent(GameEvent):
    pass


@dataclass(slots=True)
class RoundResolvedEvent(GameEvent):
    enemy_name: str
    outcome: RoundOutcome
    player_health: int
    enemy_health: int


@dataclass(slots=True)
class EnemyDefeatedEvent(GameEvent):
    enemy_name: str
    exp_gained: int
    gold_gained: int


@dataclass(slots=True)
class LootDroppedEvent(GameEvent):
    item_name: str


@dataclass(slots=True)
class LevelUpEvent(GameEvent):
    level: int


@dataclass(slots=True)
class PlayerDefeatedEvent(GameEvent):
    enemy_name: str
    gold_lost: int
    health_restored: int


@dataclass(slots=True)
class RecoveredEvent(GameEvent):
    pass


@dataclass(slots=True)
class SkillUsedEvent(GameEvent):
    key: str
    skill_name: str
    cost: int
    amount: int


@dataclass(slots=True)
class UpgradePurchasedEvent(GameEvent):
    kind: str
    cost: int
    amount: int


@dataclass(slots=True)
class ItemUsedEvent(GameEvent):
    item_name: str
    effect: str
    amount: int


@dataclass(slots=True)
class ActionFailedEvent(GameEvent):
    action: str
    reason: str
    message: str
