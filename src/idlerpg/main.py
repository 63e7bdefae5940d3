"""Headless battle simulation against the on-disk progression store."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Sequence

from idlerpg.config import GameConfig, configure_logging, load_config
from idlerpg.core.rng import RNG
from idlerpg.data.errors import DataError
from idlerpg.data.repositories import EnemiesRepository, LootRepository, SkillsRepository
from idlerpg.domain.battle_log import LogEntry
from idlerpg.domain.entities import new_progression
from idlerpg.runtime.scheduler import ManualTicker
from idlerpg.services.battle_session import BattleSession
from idlerpg.services.enemy_catalog import EnemyCatalog
from idlerpg.services.errors import GameError, NotFoundError, UnknownSkillError
from idlerpg.services.progression_service import ProgressionEngine
from idlerpg.services.progression_store import JsonFileProgressionStore
from idlerpg.services.skill_table import SkillTable

logger = logging.getLogger(__name__)


class SimulatedClock:
    """Clock read by the session; run_simulation moves it forward one tick interval per round."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="idlerpg", description="Run an idle battle without a front end.")
    parser.add_argument("--user", required=True, help="user id of the progression to play")
    parser.add_argument("--name", help="display name when the user is new")
    parser.add_argument("--rounds", type=int, default=30, help="number of ticks to simulate")
    parser.add_argument("--seed", type=int, help="seed for reproducible runs")
    parser.add_argument("--skill", action="append", default=[], help="skill to use whenever it is ready")
    parser.add_argument("--config", type=Path, help="path to a JSON config file")
    parser.add_argument("--data-dir", type=Path, help="directory of the progression store")
    return parser


def run_simulation(
    config: GameConfig,
    *,
    user_id: str,
    name: str | None,
    rounds: int,
    seed: int | None,
    skills: Sequence[str] = (),
    store_dir: Path | None = None,
) -> List[LogEntry]:
    """Play rounds ticks for one user and save the result; returns the log lines written."""
    skill_defs = SkillsRepository().all()
    known_keys = {skill.key for skill in skill_defs}
    for key in skills:
        if key not in known_keys:
            raise UnknownSkillError(f"Unknown skill '{key}'.")

    store = JsonFileProgressionStore(store_dir or config.store_dir())
    try:
        progression = store.load(user_id)
    except NotFoundError:
        progression = new_progression(user_id, name or user_id)
        logger.info("Created new progression for %s", user_id)

    lines: List[LogEntry] = []
    clock = SimulatedClock()
    ticker = ManualTicker()
    session = BattleSession(
        progression,
        catalog=EnemyCatalog(
            EnemiesRepository().by_tier(),
            level_divisor=config.level_divisor,
            level_jitter=config.level_jitter,
        ),
        skills=SkillTable(
            skill_defs,
            critical_bonus=config.critical_bonus,
            critical_rounds=config.critical_rounds,
        ),
        engine=ProgressionEngine(
            LootRepository().in_table_order(),
            loot_chance=config.loot_chance,
            upgrade_cost=config.upgrade_cost,
        ),
        ticker=ticker,
        rng=RNG(seed),
        rules=config.combat_rules(),
        death_cooldown=config.death_cooldown,
        log_capacity=config.log_capacity,
        clock=clock,
        on_battle_recorded=lambda record: store.record_battle(user_id, record),
        on_log=lines.append,
    )

    session.start()
    for _ in range(rounds):
        clock.now += config.tick_interval
        if session.state == "idle":
            session.start()
        for key in skills:
            if session.state == "fighting" and session.skills.cooldown(key) == 0:
                session.use_skill(key)
        ticker.fire()
    session.stop()
    store.save(user_id, session.player)
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    configure_logging(config.log_level)
    try:
        lines = run_simulation(
            config,
            user_id=args.user,
            name=args.name,
            rounds=args.rounds,
            seed=args.seed,
            skills=args.skill,
            store_dir=args.data_dir,
        )
    except (DataError, GameError, ValueError) as exc:
        logger.error("Simulation failed: %s", exc)
        return 1
    for entry in lines:
        print(f"[{entry.kind}] {entry.message}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
