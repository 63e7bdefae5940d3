from __future__ import annotations

from datetime import datetime, timezone

import pytest

from idlerpg.domain.history import BattleRecord
from idlerpg.domain.inventory import add_item
from idlerpg.services.errors import SaveLoadError
from idlerpg.services.save_service import SaveService
from tests.helpers.builders import make_player


def test_save_round_trip_preserves_progression() -> None:
    service = SaveService()
    player = make_player(level=3, exp=120, gold=77, health=40, max_health=140, attack=20, defense=9)
    add_item(player.inventory, "Health Potion", 2)
    add_item(player.inventory, "Gold Pouch")

    restored = service.deserialize(service.serialize(player))

    assert restored == player


def test_payload_carries_version_and_metadata() -> None:
    payload = SaveService().serialize(make_player(user_id="alice", level=4))

    assert payload["save_version"] == SaveService.SAVE_VERSION
    assert payload["metadata"]["name"] == "Alice"
    assert payload["metadata"]["level"] == 4


def test_missing_stat_fields_are_repaired_with_defaults() -> None:
    payload = {"save_version": 1, "progression": {"user_id": "bob", "gold": 12}}

    restored = SaveService().deserialize(payload)

    assert restored.name == "bob"
    assert restored.gold == 12
    assert restored.level == 1
    assert restored.stats.health == 100
    assert restored.stats.attack == 10
    assert restored.stats.defense == 5
    assert restored.inventory == []


def test_health_above_max_is_clamped() -> None:
    payload = {"save_version": 1, "progression": {"user_id": "bob", "health": 500, "max_health": 120}}
    assert SaveService().deserialize(payload).stats.health == 120


@pytest.mark.parametrize(
    "progression",
    [
        {"user_id": "bob", "gold": "lots"},
        {"user_id": "bob", "level": 0},
        {"user_id": "bob", "exp": 100},
        {"user_id": "bob", "gold": -1},
        {"user_id": "bob", "attack": True},
        {"user_id": ""},
        {"user_id": "bob", "inventory": [{"name": "Gold Pouch", "quantity": 0}]},
        {"user_id": "bob", "inventory": [{"name": "A", "quantity": 1}, {"name": "A", "quantity": 2}]},
    ],
)
def test_invalid_progression_is_rejected(progression: dict) -> None:
    with pytest.raises(SaveLoadError):
        SaveService().deserialize({"save_version": 1, "progression": progression})


def test_unknown_version_is_rejected() -> None:
    with pytest.raises(SaveLoadError):
        SaveService().deserialize({"save_version": 99, "progression": {"user_id": "bob"}})


def test_battle_record_round_trip() -> None:
    service = SaveService()
    record = BattleRecord(
        enemy_name="Troll",
        result="defeat",
        exp_gained=0,
        gold_gained=0,
        fought_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )

    assert service.deserialize_record(service.serialize_record(record)) == record


def test_record_with_unknown_result_is_rejected() -> None:
    payload = {"enemy_name": "Troll", "result": "draw", "fought_at": "2024-05-01T12:30:00+00:00"}
    with pytest.raises(SaveLoadError):
        SaveService().deserialize_record(payload)
