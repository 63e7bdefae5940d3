import json
from pathlib import Path

from idlerpg.config import GameConfig, load_config


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.json", environ={})
    assert config == GameConfig()
    assert config.combat_rules().crit_chance == 0.15


def test_file_values_are_applied(tmp_path: Path) -> None:
    path = _write(tmp_path, {"tick_interval": 0.5, "upgrade_cost": 75, "log_level": "debug"})

    config = load_config(path, environ={})

    assert config.tick_interval == 0.5
    assert config.upgrade_cost == 75
    assert config.log_level == "debug"


def test_bad_values_fall_back_and_good_ones_stay(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {"tick_interval": -1, "crit_chance": 3, "level_divisor": "ten", "death_cooldown": 5, "log_level": "LOUD"},
    )

    config = load_config(path, environ={})

    assert config.tick_interval == 1.0
    assert config.crit_chance == 0.15
    assert config.level_divisor == 10
    assert config.log_level == "INFO"
    assert config.death_cooldown == 5.0


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = _write(tmp_path, {"loot_chance": 0.5, "data_dir": "from-file"})
    environ = {"IDLERPG_LOOT_CHANCE": "0.9", "IDLERPG_DATA_DIR": str(tmp_path), "IDLERPG_LEVEL_JITTER": "x"}

    config = load_config(path, environ=environ)

    assert config.loot_chance == 0.9
    assert config.store_dir() == tmp_path
    assert config.level_jitter == 9


def test_inverted_variance_is_ignored(tmp_path: Path) -> None:
    path = _write(tmp_path, {"variance_min": 1.5, "variance_max": 1.1})
    config = load_config(path, environ={})
    assert (config.variance_min, config.variance_max) == (0.8, 1.2)


def test_non_object_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_config(path, environ={}) == GameConfig()


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
