"""Repository for the victory loot table."""
from __future__ import annotations

from typing import Dict, get_args

from idlerpg.core.types import ItemEffect
from idlerpg.data.errors import DataValidationError
from idlerpg.data.json_loader import load_json
from idlerpg.data.repositories.base import RepositoryBase
from idlerpg.domain.defs import LootItemDef

_EFFECTS = set(get_args(ItemEffect))


class LootRepository(RepositoryBase[LootItemDef]):
    """Loads consumable item templates eligible to drop."""

    def __init__(self, base_path=None) -> None:
        super().__init__("loot.json", base_path)
        self._order: list[str] = []

    def _load_raw(self) -> list[object]:
        file_path = self._get_file_path()
        raw = load_json(file_path)
        if not isinstance(raw, list):
            raise DataValidationError("loot.json must be a list.")
        return raw

    def _build(self, raw: list[object]) -> Dict[str, LootItemDef]:
        items: Dict[str, LootItemDef] = {}
        self._order = []
        names: set[str] = set()
        for index, entry in enumerate(raw):
            context = f"loot[{index}]"
            item_map = self._require_mapping(entry, context)
            self._assert_required(item_map, {"id", "name", "effect", "value"}, context)
            item_id = self._require_str(item_map["id"], f"{context}.id")
            name = self._require_str(item_map["name"], f"{context}.name")
            effect = self._require_str(item_map["effect"], f"{context}.effect")
            if effect not in _EFFECTS:
                raise DataValidationError(f"{context}.effect must be one of {sorted(_EFFECTS)}.")
            if item_id in items or name in names:
                raise DataValidationError(f"{context} duplicates an existing item.")
            items[item_id] = LootItemDef(
                id=item_id,
                name=name,
                effect=effect,
                value=self._require_int(item_map["value"], f"{context}.value", minimum=0),
            )
            names.add(name)
            self._order.append(item_id)
        return items

    def in_table_order(self) -> list[LootItemDef]:
        """Return items in file order, which the drop roll indexes into."""
        self._ensure_loaded()
        assert self._definitions is not None
        return [self._definitions[item_id] for item_id in self._order]

    def by_name(self, name: str) -> LootItemDef:
        for item in self.in_table_order():
            if item.name == name:
                return item
        raise KeyError(name)
