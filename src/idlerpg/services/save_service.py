"""Serialization helpers for progression persistence."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from idlerpg.domain.entities import InventoryEntry, PlayerProgression, StatBlock
from idlerpg.domain.entities.progression import (
    DEFAULT_ATTACK,
    DEFAULT_DEFENSE,
    DEFAULT_EXP,
    DEFAULT_GOLD,
    DEFAULT_HEALTH,
    DEFAULT_LEVEL,
)
from idlerpg.domain.history import BattleRecord
from idlerpg.services.errors import SaveLoadError

SavePayload = Dict[str, Any]

# Fields that older or partial records may lack; they are filled with the
# registration defaults instead of rejecting the record.
_REPAIRABLE_DEFAULTS: Dict[str, int] = {
    "level": DEFAULT_LEVEL,
    "exp": DEFAULT_EXP,
    "gold": DEFAULT_GOLD,
    "health": DEFAULT_HEALTH,
    "max_health": DEFAULT_HEALTH,
    "attack": DEFAULT_ATTACK,
    "defense": DEFAULT_DEFENSE,
}


class SaveService:
    """Converts progression records to/from a validated, versioned payload."""

    SAVE_VERSION = 1

    def serialize(self, progression: PlayerProgression) -> SavePayload:
        """Return a JSON-serializable payload for the store."""
        stats = progression.stats
        return {
            "save_version": self.SAVE_VERSION,
            "metadata": {
                "name": progression.name,
                "level": progression.level,
                "saved_at": datetime.now(timezone.utc).isoformat(),
            },
            "progression": {
                "user_id": progression.user_id,
                "name": progression.name,
                "level": progression.level,
                "exp": progression.exp,
                "gold": progression.gold,
                "health": stats.health,
                "max_health": stats.max_health,
                "attack": stats.attack,
                "defense": stats.defense,
                "inventory": [
                    {"name": entry.name, "quantity": entry.quantity} for entry in progression.inventory
                ],
            },
        }

    def deserialize(self, payload: Mapping[str, Any]) -> PlayerProgression:
        """Rehydrate a progression record, repairing missing stat fields."""
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Save data must be a JSON object.")
        version = payload.get("save_version")
        if version != self.SAVE_VERSION:
            raise SaveLoadError(f"Unsupported save version: {version!r}")
        data = payload.get("progression")
        if not isinstance(data, Mapping):
            raise SaveLoadError("Save data is missing the progression section.")

        user_id = self._require_str(data.get("user_id"), "progression.user_id")
        name = self._require_str(data.get("name", user_id), "progression.name")
        values = {
            key: self._coerce_int(data.get(key), f"progression.{key}", default=default)
            for key, default in _REPAIRABLE_DEFAULTS.items()
        }
        if values["level"] < 1:
            raise SaveLoadError("progression.level must be at least 1.")
        if values["max_health"] < 1:
            raise SaveLoadError("progression.max_health must be at least 1.")
        for key in ("exp", "gold", "health", "attack", "defense"):
            if values[key] < 0:
                raise SaveLoadError(f"progression.{key} must not be negative.")

        stats = StatBlock(
            health=values["health"],
            max_health=values["max_health"],
            attack=values["attack"],
            defense=values["defense"],
        )
        stats.clamp_health()
        progression = PlayerProgression(
            user_id=user_id,
            name=name,
            stats=stats,
            level=values["level"],
            exp=values["exp"],
            gold=values["gold"],
            inventory=self._coerce_inventory(data.get("inventory")),
        )
        if progression.exp >= progression.exp_to_next_level:
            raise SaveLoadError("progression.exp exceeds the level threshold.")
        return progression

    def serialize_record(self, record: BattleRecord) -> SavePayload:
        return {
            "enemy_name": record.enemy_name,
            "result": record.result,
            "exp_gained": record.exp_gained,
            "gold_gained": record.gold_gained,
            "fought_at": record.fought_at.isoformat(),
        }

    def deserialize_record(self, payload: Mapping[str, Any]) -> BattleRecord:
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Battle record must be an object.")
        result = payload.get("result")
        if result not in ("victory", "defeat"):
            raise SaveLoadError(f"Invalid battle result: {result!r}")
        fought_at_raw = self._require_str(payload.get("fought_at"), "record.fought_at")
        try:
            fought_at = datetime.fromisoformat(fought_at_raw)
        except ValueError as exc:
            raise SaveLoadError(f"Invalid record timestamp: {fought_at_raw}") from exc
        return BattleRecord(
            enemy_name=self._require_str(payload.get("enemy_name"), "record.enemy_name"),
            result=result,
            exp_gained=self._coerce_int(payload.get("exp_gained"), "record.exp_gained", default=0),
            gold_gained=self._coerce_int(payload.get("gold_gained"), "record.gold_gained", default=0),
            fought_at=fought_at,
        )

    @staticmethod
    def _require_str(value: object, context: str) -> str:
        if not isinstance(value, str) or not value:
            raise SaveLoadError(f"{context} must be a non-empty string.")
        return value

    @staticmethod
    def _coerce_int(value: object, context: str, *, default: int) -> int:
        if value is None:
            return default
        if not isinstance(value, int) or isinstance(value, bool):
            raise SaveLoadError(f"{context} must be an integer.")
        return value

    @staticmethod
    def _coerce_inventory(value: object) -> List[InventoryEntry]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise SaveLoadError("progression.inventory must be a list.")
        entries: List[InventoryEntry] = []
        seen: set[str] = set()
        for index, raw in enumerate(value):
            context = f"progression.inventory[{index}]"
            if not isinstance(raw, Mapping):
                raise SaveLoadError(f"{context} must be an object.")
            name = raw.get("name")
            quantity = raw.get("quantity")
            if not isinstance(name, str) or not name:
                raise SaveLoadError(f"{context}.name must be a non-empty string.")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise SaveLoadError(f"{context}.quantity must be a positive integer.")
            if name in seen:
                raise SaveLoadError(f"{context} duplicates item '{name}'.")
            seen.add(name)
            entries.append(InventoryEntry(name=name, quantity=quantity))
        return entries
