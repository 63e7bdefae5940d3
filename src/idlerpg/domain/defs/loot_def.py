"""Loot table definition structures."""
from __future__ import annotations

from dataclasses import dataclass

from idlerpg.core.types import ItemEffect


@dataclass(slots=True)
class LootItemDef:
    """Consumable that can drop after a victory."""

    id: str
    name: str
    effect: ItemEffect
    value: int
