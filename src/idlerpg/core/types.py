"""Shared type aliases for the core and domain layers."""
from typing import Literal

BattleStateName = Literal["idle", "fighting", "dead"]
SkillKey = Literal["attack", "defense", "heal", "critical"]
ItemEffect = Literal["health", "attack", "defense", "exp", "gold"]
LogKind = Literal["system", "attack", "critical", "dodge", "defense", "heal", "reward", "level_up"]
BattleResult = Literal["victory", "defeat"]

__all__ = ["BattleResult", "BattleStateName", "ItemEffect", "LogKind", "SkillKey"]
