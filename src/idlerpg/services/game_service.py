"""Transport-agnostic facade: credentials in, snapshots and action results out."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping

from idlerpg.config import GameConfig
from idlerpg.core.rng import RNG
from idlerpg.data.repositories import EnemiesRepository, LootRepository, SkillsRepository
from idlerpg.domain.battle_log import LogEntry
from idlerpg.domain.entities import PlayerProgression, new_progression
from idlerpg.domain.history import HistoryPage
from idlerpg.runtime.scheduler import AsyncioTicker, PersistenceWorker
from idlerpg.services.auth import UserResolver
from idlerpg.services.battle_session import ActionResult, BattleSession, SessionSnapshot, Ticker
from idlerpg.services.enemy_catalog import EnemyCatalog
from idlerpg.services.errors import AlreadyRegisteredError, UnknownActionError
from idlerpg.services.progression_service import ProgressionEngine
from idlerpg.services.progression_store import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LEADERBOARD_LIMIT,
    LeaderboardEntry,
    ProgressionStore,
    validate_user_id,
)
from idlerpg.services.skill_table import SkillTable

logger = logging.getLogger(__name__)

ACTION_KINDS = ("start_battle", "stop_battle", "use_skill", "purchase_upgrade", "use_item")
_ARGUMENT_FIELDS = {"use_skill": "key", "purchase_upgrade": "kind", "use_item": "name"}


@dataclass(frozen=True, slots=True)
class Action:
    kind: str
    argument: str | None = None


def parse_action(raw: Action | Mapping[str, object]) -> Action:
    """Accept an Action or a transport mapping such as {"type": "use_skill", "key": "heal"}."""
    if isinstance(raw, Action):
        action = raw
    elif isinstance(raw, Mapping):
        kind = raw.get("type")
        if not isinstance(kind, str):
            raise UnknownActionError("Action is missing its type.")
        field_name = _ARGUMENT_FIELDS.get(kind)
        argument = raw.get(field_name) if field_name else None
        action = Action(kind=kind, argument=argument if isinstance(argument, str) else None)
    else:
        raise UnknownActionError(f"Unsupported action payload: {type(raw).__name__}")

    if action.kind not in ACTION_KINDS:
        raise UnknownActionError(f"Unknown action '{action.kind}'.")
    if action.kind in _ARGUMENT_FIELDS and not action.argument:
        raise UnknownActionError(f"Action '{action.kind}' requires a {_ARGUMENT_FIELDS[action.kind]}.")
    return action


@dataclass(slots=True)
class _LiveSession:
    session: BattleSession
    worker: PersistenceWorker


class GameService:
    """
    Owns every live battle session of the process.

    Sessions are created on first use from the stored progression and live
    until close_session or shutdown. All methods must be awaited on the same
    event loop.
    """

    def __init__(
        self,
        store: ProgressionStore,
        resolver: UserResolver,
        *,
        config: GameConfig | None = None,
        enemies_repo: EnemiesRepository | None = None,
        skills_repo: SkillsRepository | None = None,
        loot_repo: LootRepository | None = None,
        rng_factory: Callable[[str], RNG] | None = None,
        ticker_factory: Callable[[str], Ticker] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._config = config or GameConfig()
        self._catalog = EnemyCatalog(
            (enemies_repo or EnemiesRepository()).by_tier(),
            level_divisor=self._config.level_divisor,
            level_jitter=self._config.level_jitter,
        )
        self._skill_defs = (skills_repo or SkillsRepository()).all()
        self._engine = ProgressionEngine(
            (loot_repo or LootRepository()).in_table_order(),
            loot_chance=self._config.loot_chance,
            upgrade_cost=self._config.upgrade_cost,
        )
        self._rules = self._config.combat_rules()
        self._rng_factory = rng_factory or (lambda _user_id: RNG())
        self._ticker_factory = ticker_factory or (
            lambda user_id: AsyncioTicker(self._config.tick_interval, name=f"battle-{user_id}")
        )
        self._clock = clock
        self._sessions: Dict[str, _LiveSession] = {}
        self._lock = asyncio.Lock()

    # -----------------------
    # Accounts
    # -----------------------
    async def register(self, user_id: str, name: str | None = None) -> PlayerProgression:
        """Create and store a fresh progression with the registration defaults."""
        validate_user_id(user_id)
        async with self._lock:
            if await asyncio.to_thread(self._store.exists, user_id):
                raise AlreadyRegisteredError(f"User '{user_id}' is already registered.")
            progression = new_progression(user_id, name or user_id)
            await asyncio.to_thread(self._store.save, user_id, progression)
        logger.info("Registered user %s", user_id)
        return progression

    # -----------------------
    # Session operations
    # -----------------------
    async def get_state(self, credential: str) -> SessionSnapshot:
        live = await self._live_session(credential)
        return live.session.snapshot()

    async def apply_action(self, credential: str, action: Action | Mapping[str, object]) -> ActionResult:
        """Run one player action. Refusals come back as an unsuccessful result."""
        live = await self._live_session(credential)
        session = live.session
        try:
            parsed = parse_action(action)
        except UnknownActionError as exc:
            return ActionResult(ok=False, action="unknown", reason=exc.reason, message=str(exc))

        if parsed.kind == "start_battle":
            started = session.start()
            if started:
                return ActionResult(ok=True, action=parsed.kind)
            return ActionResult(
                ok=False,
                action=parsed.kind,
                reason=f"state_{session.state}",
                message=f"Cannot start a battle while {session.state}.",
            )
        if parsed.kind == "stop_battle":
            stopped = session.stop()
            if stopped:
                return ActionResult(ok=True, action=parsed.kind)
            return ActionResult(ok=False, action=parsed.kind, reason="not_fighting", message="No battle is running.")

        assert parsed.argument is not None
        if parsed.kind == "use_skill":
            return session.use_skill(parsed.argument)
        if parsed.kind == "purchase_upgrade":
            return session.purchase_upgrade(parsed.argument)
        return session.use_item(parsed.argument)

    async def log_since(self, credential: str, cursor: int = 0) -> List[LogEntry]:
        live = await self._live_session(credential)
        return live.session.log_since(cursor)

    async def battle_history(
        self, credential: str, page: int = 1, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> HistoryPage:
        user_id = self._resolver.resolve_user(credential)
        live = self._sessions.get(user_id)
        if live is not None:
            await live.worker.flush()
        return await asyncio.to_thread(self._store.battle_history, user_id, page, limit)

    async def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
        for live in list(self._sessions.values()):
            await live.worker.flush()
        return await asyncio.to_thread(self._store.leaderboard, limit)

    async def close_session(self, credential: str) -> bool:
        """Stop the user's battle and write out pending changes; False if nothing was open."""
        user_id = self._resolver.resolve_user(credential)
        # A concurrent reopen waits here until the final write has landed.
        async with self._lock:
            live = self._sessions.pop(user_id, None)
            if live is None:
                return False
            await self._close(user_id, live)
        return True

    async def shutdown(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.items())
            self._sessions.clear()
            for user_id, live in sessions:
                await self._close(user_id, live)
        logger.info("Game service shut down (%d session(s) closed)", len(sessions))

    # -----------------------
    # Helpers
    # -----------------------
    async def _live_session(self, credential: str) -> _LiveSession:
        user_id = self._resolver.resolve_user(credential)
        async with self._lock:
            live = self._sessions.get(user_id)
            if live is None:
                progression = await asyncio.to_thread(self._store.load, user_id)
                live = self._open(user_id, progression)
                self._sessions[user_id] = live
        return live

    def _open(self, user_id: str, progression: PlayerProgression) -> _LiveSession:
        worker = PersistenceWorker(
            user_id,
            self._store,
            retry_attempts=self._config.save_retry_attempts,
            retry_base_delay=self._config.save_retry_base_delay,
        )
        session = BattleSession(
            progression,
            catalog=self._catalog,
            skills=SkillTable(
                self._skill_defs,
                critical_bonus=self._config.critical_bonus,
                critical_rounds=self._config.critical_rounds,
            ),
            engine=self._engine,
            ticker=self._ticker_factory(user_id),
            rng=self._rng_factory(user_id),
            rules=self._rules,
            death_cooldown=self._config.death_cooldown,
            log_capacity=self._config.log_capacity,
            clock=self._clock,
            on_state_changed=worker.submit,
            on_battle_recorded=worker.submit_record,
        )
        logger.info("Opened battle session for user %s", user_id)
        return _LiveSession(session=session, worker=worker)

    async def _close(self, user_id: str, live: _LiveSession) -> None:
        live.session.stop()
        live.worker.submit(live.session.player)
        await live.worker.close()
        logger.info("Closed battle session for user %s", user_id)
