"""Runtime configuration: defaults, an optional JSON file, then environment overrides."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from idlerpg.domain.combat import CombatRules

logger = logging.getLogger(__name__)

ENV_PREFIX = "IDLERPG_"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "IdleRPG"
        return Path.home() / "IdleRPG"
    return Path.home() / ".config" / "idlerpg"


def get_default_config_path() -> Path:
    return get_user_data_dir() / "config.json"


def get_default_store_dir() -> Path:
    return get_user_data_dir() / "saves"


@dataclass(frozen=True, slots=True)
class GameConfig:
    tick_interval: float = 1.0
    death_cooldown: float = 3.0
    level_divisor: int = 10
    level_jitter: int = 9
    crit_chance: float = 0.15
    crit_multiplier: float = 1.5
    variance_min: float = 0.8
    variance_max: float = 1.2
    dodge_chance: float = 0.10
    loot_chance: float = 0.3
    critical_bonus: float = 0.10
    critical_rounds: int = 3
    upgrade_cost: int = 50
    log_capacity: int = 50
    save_retry_attempts: int = 3
    save_retry_base_delay: float = 0.1
    data_dir: str = ""
    log_level: str = "INFO"

    def combat_rules(self) -> CombatRules:
        return CombatRules(
            crit_chance=self.crit_chance,
            crit_multiplier=self.crit_multiplier,
            variance_min=self.variance_min,
            variance_max=self.variance_max,
            dodge_chance=self.dodge_chance,
        )

    def store_dir(self) -> Path:
        return Path(self.data_dir) if self.data_dir else get_default_store_dir()


def _valid(name: str, value: Any) -> bool:
    if name in ("tick_interval", "crit_multiplier", "variance_min", "variance_max", "level_divisor"):
        return value > 0
    if name in ("crit_chance", "dodge_chance", "loot_chance", "critical_bonus"):
        return 0.0 <= value <= 1.0
    if name == "log_level":
        return isinstance(logging.getLevelName(value.upper()), int)
    if name in ("save_retry_attempts", "log_capacity"):
        return value >= 1
    if isinstance(value, (int, float)):
        return value >= 0
    return True


def _coerce(name: str, kind: type, value: object) -> Any:
    """Convert a raw file or environment value; returns None when unusable."""
    try:
        if kind is str:
            result: Any = str(value)
        elif kind is int:
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                return None
            result = int(value)  # type: ignore[arg-type]
        else:
            if isinstance(value, bool):
                return None
            result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return result if _valid(name, result) else None


def apply_overrides(config: GameConfig, raw: Mapping[str, object], *, source: str) -> GameConfig:
    """Return config with every usable value from raw applied; bad values keep the current one."""
    kinds = {"str": str, "int": int, "float": float}
    updates: Dict[str, Any] = {}
    for field_info in fields(GameConfig):
        if field_info.name not in raw:
            continue
        kind = kinds[field_info.type] if isinstance(field_info.type, str) else field_info.type
        value = _coerce(field_info.name, kind, raw[field_info.name])
        if value is None:
            logger.warning("Ignoring invalid %s value for %s: %r", source, field_info.name, raw[field_info.name])
            continue
        updates[field_info.name] = value
    merged = replace(config, **updates)
    if merged.variance_min > merged.variance_max:
        logger.warning("variance_min exceeds variance_max in %s; keeping previous variance", source)
        merged = replace(merged, variance_min=config.variance_min, variance_max=config.variance_max)
    return merged


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> GameConfig:
    """Load config from disk, then apply IDLERPG_* environment variables."""
    config = GameConfig()
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raw = {}
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", config_path, exc)
        raw = {}
    if isinstance(raw, dict):
        config = apply_overrides(config, raw, source=str(config_path))
    else:
        logger.warning("Ignoring config file %s: expected a JSON object", config_path)

    env = os.environ if environ is None else environ
    env_values = {
        field_info.name: env[ENV_PREFIX + field_info.name.upper()]
        for field_info in fields(GameConfig)
        if ENV_PREFIX + field_info.name.upper() in env
    }
    return apply_overrides(config, env_values, source="environment")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)
