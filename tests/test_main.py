from pathlib import Path

import pytest

from idlerpg.config import GameConfig
from idlerpg.main import main, run_simulation
from idlerpg.services.errors import UnknownSkillError
from idlerpg.services.progression_store import JsonFileProgressionStore


def test_simulation_plays_and_saves(tmp_path: Path) -> None:
    lines = run_simulation(
        GameConfig(),
        user_id="sim",
        name="Sim",
        rounds=15,
        seed=3,
        skills=["heal"],
        store_dir=tmp_path,
    )

    assert lines[0].message.startswith("A wild ")
    assert any(entry.kind in ("attack", "critical") for entry in lines)
    assert JsonFileProgressionStore(tmp_path).load("sim").name == "Sim"


def test_simulation_resumes_stored_progression(tmp_path: Path) -> None:
    run_simulation(GameConfig(), user_id="sim", name=None, rounds=5, seed=1, store_dir=tmp_path)
    first = JsonFileProgressionStore(tmp_path).load("sim")

    run_simulation(GameConfig(), user_id="sim", name="Ignored", rounds=5, seed=2, store_dir=tmp_path)

    assert JsonFileProgressionStore(tmp_path).load("sim").name == first.name == "sim"


def test_main_prints_log_lines(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    code = main(["--user", "cli", "--rounds", "3", "--seed", "1", "--data-dir", str(tmp_path / "saves")])

    assert code == 0
    assert "[system] A wild" in capsys.readouterr().out


def test_main_rejects_bad_user_id(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    assert main(["--user", "../etc", "--data-dir", str(tmp_path)]) == 1


def test_unknown_skill_is_rejected_before_any_round(tmp_path: Path) -> None:
    with pytest.raises(UnknownSkillError):
        run_simulation(GameConfig(), user_id="sim", name=None, rounds=5, seed=1, skills=["fireball"], store_dir=tmp_path)

    assert list(tmp_path.rglob("*.json")) == []
