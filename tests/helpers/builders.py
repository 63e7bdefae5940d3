from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List

from idlerpg.core.rng import RNG
from idlerpg.data.repositories import EnemiesRepository, LootRepository, SkillsRepository
from idlerpg.domain.battle_log import LogEntry
from idlerpg.domain.combat import CombatRules
from idlerpg.domain.defs import EnemyDef
from idlerpg.domain.entities import EnemyInstance, PlayerProgression, StatBlock, new_progression
from idlerpg.domain.history import BattleRecord
from idlerpg.runtime.scheduler import ManualTicker
from idlerpg.services.battle_session import BattleSession
from idlerpg.services.enemy_catalog import EnemyCatalog
from idlerpg.services.progression_service import ProgressionEngine
from idlerpg.services.skill_table import SkillTable

_enemies_repo = EnemiesRepository()
_skills_repo = SkillsRepository()
_loot_repo = LootRepository()


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_player(
    *,
    user_id: str = "hero",
    health: int = 100,
    max_health: int = 100,
    attack: int = 10,
    defense: int = 5,
    level: int = 1,
    exp: int = 0,
    gold: int = 100,
) -> PlayerProgression:
    progression = new_progression(user_id, user_id.title())
    progression.stats = StatBlock(health=health, max_health=max_health, attack=attack, defense=defense)
    progression.level = level
    progression.exp = exp
    progression.gold = gold
    return progression


def make_enemy(
    *,
    name: str = "Training Dummy",
    health: int = 50,
    attack: int = 8,
    defense: int = 2,
    exp_reward: int = 10,
    gold_reward: int = 5,
    level: int = 1,
) -> EnemyInstance:
    return EnemyInstance(
        enemy_id=name.lower().replace(" ", "_"),
        name=name,
        level=level,
        stats=StatBlock(health=health, max_health=health, attack=attack, defense=defense),
        exp_reward=exp_reward,
        gold_reward=gold_reward,
    )


def make_enemy_def(
    enemy_id: str = "dummy",
    *,
    tier: int = 0,
    max_health: int = 50,
    attack: int = 8,
    exp_reward: int = 10,
    gold_reward: int = 5,
    defense: int | None = None,
) -> EnemyDef:
    return EnemyDef(
        id=enemy_id,
        name=enemy_id.replace("_", " ").title(),
        tier=tier,
        base_max_health=max_health,
        base_attack=attack,
        base_exp_reward=exp_reward,
        base_gold_reward=gold_reward,
        defense=defense,
    )


def default_catalog(*, level_jitter: int = 0) -> EnemyCatalog:
    return EnemyCatalog(_enemies_repo.by_tier(), level_jitter=level_jitter)


def default_skills() -> SkillTable:
    return SkillTable(_skills_repo.all())


def default_engine(*, loot_chance: float = 0.0) -> ProgressionEngine:
    return ProgressionEngine(_loot_repo.in_table_order(), loot_chance=loot_chance)


class SessionHarness:
    """A battle session wired to a manual ticker, a fake clock and recording hooks."""

    def __init__(
        self,
        progression: PlayerProgression | None = None,
        *,
        catalog: EnemyCatalog | None = None,
        rules: CombatRules | None = None,
        seed: int = 7,
        death_cooldown: float = 3.0,
        log_capacity: int = 50,
    ) -> None:
        self.ticker = ManualTicker()
        self.clock = FakeClock()
        self.saved: List[PlayerProgression] = []
        self.records: List[BattleRecord] = []
        self.log_lines: List[LogEntry] = []
        self.session = BattleSession(
            progression or make_player(),
            catalog=catalog or default_catalog(),
            skills=default_skills(),
            engine=default_engine(),
            ticker=self.ticker,
            rng=RNG(seed),
            rules=rules or CombatRules.flat(),
            death_cooldown=death_cooldown,
            log_capacity=log_capacity,
            clock=self.clock,
            on_state_changed=self.saved.append,
            on_battle_recorded=self.records.append,
            on_log=self.log_lines.append,
        )

    def messages(self) -> List[str]:
        return [entry.message for entry in self.log_lines]


def run_until(harness: SessionHarness, predicate: Callable[[], bool], *, limit: int = 500) -> int:
    """Fire ticks until predicate holds; returns the number fired."""
    for fired in range(1, limit + 1):
        harness.ticker.fire()
        if predicate():
            return fired
    raise AssertionError("condition never reached")


def make_record(index: int, result: str = "victory") -> BattleRecord:
    return BattleRecord(
        enemy_name=f"Enemy {index}",
        result=result,
        exp_gained=index,
        gold_gained=index,
        fought_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=index),
    )
