"""Stat models shared by the player and every enemy."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StatBlock:
    """Stores the four core combat numbers."""

    health: int
    max_health: int
    attack: int
    defense: int

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def clamp_health(self) -> None:
        """Pull health back into [0, max_health] after damage or healing."""
        self.health = max(0, min(self.health, self.max_health))
