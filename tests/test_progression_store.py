from __future__ import annotations

from pathlib import Path

import pytest

from idlerpg.services.errors import NotFoundError, SaveLoadError
from idlerpg.services.progression_store import InMemoryProgressionStore, JsonFileProgressionStore
from tests.helpers.builders import make_player, make_record


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryProgressionStore()
    return JsonFileProgressionStore(tmp_path / "store")


def test_missing_user_raises_not_found(store) -> None:
    assert not store.exists("ghost")
    with pytest.raises(NotFoundError):
        store.load("ghost")


def test_save_then_load_returns_equal_record(store) -> None:
    player = make_player(user_id="alice", gold=321, level=2, exp=40)

    store.save("alice", player)

    assert store.exists("alice")
    assert store.load("alice") == player


def test_save_overwrites_previous_record(store) -> None:
    store.save("alice", make_player(user_id="alice", gold=1))
    store.save("alice", make_player(user_id="alice", gold=2))
    assert store.load("alice").gold == 2


def test_battle_history_is_paged_newest_first(store) -> None:
    for index in range(5):
        store.record_battle("alice", make_record(index))

    first = store.battle_history("alice", page=1, limit=2)
    last = store.battle_history("alice", page=3, limit=2)

    assert [record.enemy_name for record in first.records] == ["Enemy 4", "Enemy 3"]
    assert [record.enemy_name for record in last.records] == ["Enemy 0"]
    assert first.total == 5
    assert first.pages == 3


def test_empty_history_has_no_records(store) -> None:
    page = store.battle_history("nobody")
    assert page.records == []
    assert page.total == 0


def test_history_rejects_bad_paging(store) -> None:
    with pytest.raises(ValueError):
        store.battle_history("alice", page=0)


def test_leaderboard_orders_by_level_then_exp(store) -> None:
    store.save("ann", make_player(user_id="ann", level=3, exp=10))
    store.save("bea", make_player(user_id="bea", level=5, exp=0))
    store.save("cid", make_player(user_id="cid", level=3, exp=90))

    board = store.leaderboard(limit=2)

    assert [entry.name for entry in board] == ["Bea", "Cid"]
    assert board[0].level == 5


def test_json_store_writes_atomically(tmp_path: Path) -> None:
    store = JsonFileProgressionStore(tmp_path)
    store.save("alice", make_player(user_id="alice"))

    assert (tmp_path / "users" / "alice.json").exists()
    assert list(tmp_path.rglob("*.tmp")) == []


def test_json_store_reports_corrupt_files(tmp_path: Path) -> None:
    store = JsonFileProgressionStore(tmp_path)
    (tmp_path / "users").mkdir()
    (tmp_path / "users" / "broken.json").write_text("{not json", encoding="utf-8")
    store.save("alice", make_player(user_id="alice"))

    with pytest.raises(SaveLoadError):
        store.load("broken")
    assert [entry.name for entry in store.leaderboard()] == ["Alice"]


def test_json_store_rejects_path_like_user_ids(tmp_path: Path) -> None:
    store = JsonFileProgressionStore(tmp_path)
    with pytest.raises(ValueError):
        store.save("../escape", make_player())
