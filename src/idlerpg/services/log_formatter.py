"""Turns engine events into battle log lines."""
from __future__ import annotations

from typing import List, Tuple

from idlerpg.core.types import LogKind
from idlerpg.services.events import (
    ActionFailedEvent,
    BattleStartedEvent,
    BattleStoppedEvent,
    EnemyDefeatedEvent,
    EnemySpawnedEvent,
    GameEvent,
    ItemUsedEvent,
    LevelUpEvent,
    LootDroppedEvent,
    PlayerDefeatedEvent,
    RecoveredEvent,
    RoundResolvedEvent,
    SkillUsedEvent,
    UpgradePurchasedEvent,
)

LogLine = Tuple[LogKind, str]

_SKILL_EFFECTS = {
    "attack": "Attack +{amount}",
    "defense": "Defense +{amount}",
    "heal": "Restored {amount} health",
    "critical": "Critical chance raised for {amount} rounds",
}

_UPGRADE_LABELS = {
    "attack": "Attack",
    "defense": "Defense",
    "health": "Max health",
}


def format_event(event: GameEvent) -> List[LogLine]:
    if isinstance(event, RoundResolvedEvent):
        return _format_round(event)
    if isinstance(event, EnemySpawnedEvent):
        return [("system", f"A wild {event.enemy_name} (level {event.level}) appears!")]
    if isinstance(event, BattleStartedEvent):
        return [("system", f"Battle against {event.enemy_name} begins!")]
    if isinstance(event, BattleStoppedEvent):
        return [("system", "Battle stopped.")]
    if isinstance(event, EnemyDefeatedEvent):
        return [
            (
                "reward",
                f"Defeated {event.enemy_name}! Gained {event.exp_gained} exp and {event.gold_gained} gold.",
            )
        ]
    if isinstance(event, LootDroppedEvent):
        return [("reward", f"Found {event.item_name}!")]
    if isinstance(event, LevelUpEvent):
        return [("level_up", f"Level up! You are now level {event.level}.")]
    if isinstance(event, PlayerDefeatedEvent):
        return [
            ("system", f"You were defeated by {event.enemy_name} and lost {event.gold_lost} gold."),
            ("heal", f"Health recovered to {event.health_restored}."),
        ]
    if isinstance(event, RecoveredEvent):
        return [("system", "You have recovered and can fight again.")]
    if isinstance(event, SkillUsedEvent):
        effect = _SKILL_EFFECTS.get(event.key, "Effect applied").format(amount=event.amount)
        return [("heal", f"Used {event.skill_name} for {event.cost} gold. {effect}.")]
    if isinstance(event, UpgradePurchasedEvent):
        label = _UPGRADE_LABELS.get(event.kind, event.kind)
        return [("system", f"{label} upgraded by {event.amount} for {event.cost} gold.")]
    if isinstance(event, ItemUsedEvent):
        return [("heal", f"Used {event.item_name} ({event.effect} +{event.amount}).")]
    if isinstance(event, ActionFailedEvent):
        return [("system", event.message)]
    return []


def _format_round(event: RoundResolvedEvent) -> List[LogLine]:
    outcome = event.outcome
    lines: List[LogLine] = []
    if outcome.was_critical:
        lines.append(("critical", f"Critical hit! You deal {outcome.player_damage_dealt} damage to {event.enemy_name}."))
    else:
        lines.append(("attack", f"You deal {outcome.player_damage_dealt} damage to {event.enemy_name}."))
    if outcome.enemy_defeated:
        return lines
    if outcome.was_dodged:
        lines.append(("dodge", f"You dodge the {event.enemy_name}'s attack!"))
    else:
        lines.append(("defense", f"{event.enemy_name} deals {outcome.enemy_damage_dealt} damage to you."))
    return lines
