"""Per-user battle state machine driving the idle combat loop."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Protocol

from idlerpg.core.rng import RNG
from idlerpg.core.types import BattleStateName
from idlerpg.domain.battle_log import DEFAULT_CAPACITY, BattleLog, LogEntry
from idlerpg.domain.combat import CombatRules, resolve_round
from idlerpg.domain.entities import EnemyInstance, PlayerProgression
from idlerpg.domain.history import BattleRecord
from idlerpg.services.enemy_catalog import EnemyCatalog
from idlerpg.services.errors import ActionError
from idlerpg.services.events import (
    ActionFailedEvent,
    BattleStartedEvent,
    BattleStoppedEvent,
    EnemySpawnedEvent,
    GameEvent,
    RecoveredEvent,
    RoundResolvedEvent,
)
from idlerpg.services.log_formatter import format_event
from idlerpg.services.progression_service import ProgressionEngine
from idlerpg.services.skill_table import SkillTable, SkillView

logger = logging.getLogger(__name__)

DEFAULT_DEATH_COOLDOWN = 3.0


class Ticker(Protocol):
    """Schedules a recurring callback; see idlerpg.runtime.scheduler."""

    @property
    def is_active(self) -> bool: ...

    def start(self, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


@dataclass(slots=True)
class ActionResult:
    """Outcome of a player action; failures carry a reason instead of raising."""

    ok: bool
    action: str
    events: List[GameEvent] = field(default_factory=list)
    reason: str | None = None
    message: str = ""


@dataclass(slots=True)
class PlayerView:
    user_id: str
    name: str
    level: int
    exp: int
    exp_to_next_level: int
    gold: int
    health: int
    max_health: int
    attack: int
    defense: int
    inventory: List[tuple[str, int]]


@dataclass(slots=True)
class EnemyView:
    name: str
    level: int
    health: int
    max_health: int
    attack: int
    defense: int


@dataclass(slots=True)
class SessionSnapshot:
    """Plain-data view of a session for any front end."""

    state: BattleStateName
    player: PlayerView
    enemy: EnemyView | None
    skills: List[SkillView]
    critical_rounds_left: int
    log: List[LogEntry]
    last_seq: int


class BattleSession:
    """
    Owns one player's battle: the running state, the current enemy and the log.

    The session never performs I/O. Persistence and history are reached through
    the on_state_changed and on_battle_recorded hooks; scheduling through the
    injected ticker.
    """

    def __init__(
        self,
        progression: PlayerProgression,
        *,
        catalog: EnemyCatalog,
        skills: SkillTable,
        engine: ProgressionEngine,
        ticker: Ticker,
        rng: RNG,
        rules: CombatRules | None = None,
        death_cooldown: float = DEFAULT_DEATH_COOLDOWN,
        log_capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
        on_state_changed: Callable[[PlayerProgression], None] | None = None,
        on_battle_recorded: Callable[[BattleRecord], None] | None = None,
        on_log: Callable[[LogEntry], None] | None = None,
    ) -> None:
        self._player = progression
        self._catalog = catalog
        self._skills = skills
        self._engine = engine
        self._ticker = ticker
        self._rng = rng
        self._rules = rules or CombatRules()
        self._death_cooldown = death_cooldown
        self._clock = clock
        self._on_state_changed = on_state_changed
        self._on_battle_recorded = on_battle_recorded
        self._on_log = on_log
        self._log = BattleLog(log_capacity)
        self._state: BattleStateName = "idle"
        self._revive_at: float | None = None
        self._enemy: EnemyInstance | None = None
        self._publish([self._spawn_enemy()])

    # -----------------------
    # Accessors
    # -----------------------
    @property
    def state(self) -> BattleStateName:
        self._refresh_state()
        return self._state

    @property
    def player(self) -> PlayerProgression:
        return self._player

    @property
    def enemy(self) -> EnemyInstance | None:
        return self._enemy

    @property
    def skills(self) -> SkillTable:
        return self._skills

    @property
    def log(self) -> BattleLog:
        return self._log

    def log_since(self, cursor: int) -> List[LogEntry]:
        return self._log.since(cursor)

    # -----------------------
    # Lifecycle
    # -----------------------
    def start(self) -> bool:
        """Begin fighting; a refused start only writes to the log."""
        self._refresh_state()
        if self._state == "fighting":
            return False
        if self._state == "dead":
            self._publish([ActionFailedEvent(action="start_battle", reason="dead", message="You are still recovering.")])
            return False
        if self._enemy is None:
            self._publish([ActionFailedEvent(action="start_battle", reason="no_enemy", message="No enemy to fight!")])
            return False

        self._state = "fighting"
        self._ticker.start(self._on_tick)
        logger.info("Battle started for user %s", self._player.user_id)
        self._publish([BattleStartedEvent(enemy_name=self._enemy.name)])
        return True

    def stop(self) -> bool:
        """Cancel the recurring tick. Safe to call repeatedly and from outside a tick."""
        if self._state != "fighting":
            return False
        self._ticker.cancel()
        self._state = "idle"
        logger.info("Battle stopped for user %s", self._player.user_id)
        self._publish([BattleStoppedEvent()])
        return True

    def tick(self) -> List[GameEvent]:
        """Run one combat round. Ticks arriving outside the fighting state do nothing."""
        if self._state != "fighting":
            return []

        enemy = self._enemy
        if enemy is None or not enemy.is_alive:
            events: List[GameEvent] = [self._spawn_enemy()]
            self._publish(events)
            return events

        self._skills.tick_cooldowns()
        rules = self._rules.with_crit_bonus(self._skills.crit_bonus)
        outcome = resolve_round(self._player.stats, enemy.stats, self._rng, rules)
        self._skills.consume_critical_round()
        logger.debug("Round for %s: %s", self._player.user_id, outcome)

        events = [
            RoundResolvedEvent(
                enemy_name=enemy.name,
                outcome=outcome,
                player_health=self._player.stats.health,
                enemy_health=enemy.stats.health,
            )
        ]
        if outcome.enemy_defeated:
            events.extend(self._engine.award_victory(self._player, enemy, self._rng))
            self._record(enemy.name, "victory", enemy.exp_reward, enemy.gold_reward)
            events.append(self._spawn_enemy())
        elif outcome.player_defeated:
            events.append(self._engine.apply_death_penalty(self._player, enemy.name))
            self._record(enemy.name, "defeat", 0, 0)
            self._enter_dead_state()
            events.append(self._spawn_enemy())

        self._publish(events)
        self._notify_state_changed()
        return events

    # -----------------------
    # Player Actions
    # -----------------------
    def use_skill(self, key: str) -> ActionResult:
        return self._run_action("use_skill", lambda: [self._skills.activate(key, self._player)])

    def purchase_upgrade(self, kind: str) -> ActionResult:
        return self._run_action("purchase_upgrade", lambda: [self._engine.purchase_upgrade(self._player, kind)])

    def use_item(self, item_name: str) -> ActionResult:
        return self._run_action("use_item", lambda: self._engine.use_item(self._player, item_name))

    def snapshot(self) -> SessionSnapshot:
        self._refresh_state()
        player = self._player
        stats = player.stats
        enemy_view = None
        if self._enemy is not None:
            enemy_stats = self._enemy.stats
            enemy_view = EnemyView(
                name=self._enemy.name,
                level=self._enemy.level,
                health=enemy_stats.health,
                max_health=enemy_stats.max_health,
                attack=enemy_stats.attack,
                defense=enemy_stats.defense,
            )
        return SessionSnapshot(
            state=self._state,
            player=PlayerView(
                user_id=player.user_id,
                name=player.name,
                level=player.level,
                exp=player.exp,
                exp_to_next_level=player.exp_to_next_level,
                gold=player.gold,
                health=stats.health,
                max_health=stats.max_health,
                attack=stats.attack,
                defense=stats.defense,
                inventory=[(entry.name, entry.quantity) for entry in player.inventory],
            ),
            enemy=enemy_view,
            skills=self._skills.views(),
            critical_rounds_left=self._skills.critical_rounds_left,
            log=self._log.newest_first(),
            last_seq=self._log.last_seq,
        )

    # -----------------------
    # Helpers
    # -----------------------
    def _on_tick(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Battle tick failed for user %s; stopping", self._player.user_id)
            self.stop()

    def _run_action(self, action: str, apply: Callable[[], List[GameEvent]]) -> ActionResult:
        try:
            events = apply()
        except ActionError as exc:
            failure = ActionFailedEvent(action=action, reason=exc.reason, message=str(exc))
            self._publish([failure])
            return ActionResult(ok=False, action=action, events=[failure], reason=exc.reason, message=str(exc))
        self._publish(events)
        self._notify_state_changed()
        return ActionResult(ok=True, action=action, events=events)

    def _spawn_enemy(self) -> EnemySpawnedEvent:
        self._enemy = self._catalog.spawn(self._player.level, self._rng)
        return EnemySpawnedEvent(enemy_name=self._enemy.name, level=self._enemy.level)

    def _enter_dead_state(self) -> None:
        self._ticker.cancel()
        self._state = "dead"
        self._revive_at = self._clock() + self._death_cooldown

    def _refresh_state(self) -> None:
        if self._state != "dead" or self._revive_at is None:
            return
        if self._clock() >= self._revive_at:
            self._state = "idle"
            self._revive_at = None
            self._publish([RecoveredEvent()])

    def _record(self, enemy_name: str, result: str, exp_gained: int, gold_gained: int) -> None:
        if self._on_battle_recorded is None:
            return
        self._on_battle_recorded(
            BattleRecord(
                enemy_name=enemy_name,
                result=result,
                exp_gained=exp_gained,
                gold_gained=gold_gained,
                fought_at=datetime.now(timezone.utc),
            )
        )

    def _publish(self, events: List[GameEvent]) -> None:
        for event in events:
            for kind, message in format_event(event):
                entry = self._log.append(kind, message)
                if self._on_log is not None:
                    self._on_log(entry)

    def _notify_state_changed(self) -> None:
        if self._on_state_changed is not None:
            self._on_state_changed(self._player)
