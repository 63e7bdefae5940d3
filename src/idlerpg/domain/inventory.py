"""Inventory helpers operating on the ordered entry list of a progression."""
from __future__ import annotations

from typing import List

from idlerpg.domain.entities import InventoryEntry


def find_entry(inventory: List[InventoryEntry], name: str) -> InventoryEntry | None:
    for entry in inventory:
        if entry.name == name:
            return entry
    return None


def add_item(inventory: List[InventoryEntry], name: str, quantity: int = 1) -> None:
    """Merge by name: bump an existing stack or append a new one."""
    if quantity <= 0:
        return
    entry = find_entry(inventory, name)
    if entry is None:
        inventory.append(InventoryEntry(name=name, quantity=quantity))
    else:
        entry.quantity += quantity


def remove_item(inventory: List[InventoryEntry], name: str, quantity: int = 1) -> bool:
    """Remove quantity of an item; returns False and changes nothing if short."""
    if quantity <= 0:
        return True
    entry = find_entry(inventory, name)
    if entry is None or entry.quantity < quantity:
        return False
    entry.quantity -= quantity
    if entry.quantity == 0:
        inventory.remove(entry)
    return True


def quantity_of(inventory: List[InventoryEntry], name: str) -> int:
    entry = find_entry(inventory, name)
    return entry.quantity if entry else 0
