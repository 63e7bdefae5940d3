"""Service layer exports.

GameService lives in idlerpg.services.game_service and is imported from there;
it depends on idlerpg.runtime, which in turn depends on this package.
"""

from .battle_session import ActionResult, BattleSession, SessionSnapshot
from .enemy_catalog import EnemyCatalog
from .errors import GameError
from .progression_service import ProgressionEngine
from .progression_store import InMemoryProgressionStore, JsonFileProgressionStore, ProgressionStore
from .skill_table import SkillTable

__all__ = [
    "ActionResult",
    "BattleSession",
    "SessionSnapshot",
    "EnemyCatalog",
    "GameError",
    "ProgressionEngine",
    "InMemoryProgressionStore",
    "JsonFileProgressionStore",
    "ProgressionStore",
    "SkillTable",
]
