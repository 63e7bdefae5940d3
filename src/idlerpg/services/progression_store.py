"""Progression storage backends: in-memory and one JSON file per user."""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Protocol

from idlerpg.domain.entities import PlayerProgression
from idlerpg.domain.history import BattleRecord, HistoryPage
from idlerpg.services.errors import NotFoundError, SaveLoadError, StorageError
from idlerpg.services.save_service import SavePayload, SaveService

logger = logging.getLogger(__name__)

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")
DEFAULT_HISTORY_LIMIT = 20
DEFAULT_LEADERBOARD_LIMIT = 10


@dataclass(slots=True)
class LeaderboardEntry:
    name: str
    level: int
    exp: int
    gold: int


class ProgressionStore(Protocol):
    """Key-value store of progression records; every call is atomic."""

    def load(self, user_id: str) -> PlayerProgression: ...

    def save(self, user_id: str, progression: PlayerProgression) -> None: ...

    def exists(self, user_id: str) -> bool: ...

    def record_battle(self, user_id: str, record: BattleRecord) -> None: ...

    def battle_history(self, user_id: str, page: int = 1, limit: int = DEFAULT_HISTORY_LIMIT) -> HistoryPage: ...

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> List[LeaderboardEntry]: ...


def validate_user_id(user_id: str) -> None:
    if not isinstance(user_id, str) or not _USER_ID_PATTERN.match(user_id):
        raise ValueError(f"Invalid user id: {user_id!r}")


def _page_of(records: List[BattleRecord], page: int, limit: int) -> HistoryPage:
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive.")
    newest_first = list(reversed(records))
    offset = (page - 1) * limit
    return HistoryPage(records=newest_first[offset : offset + limit], page=page, limit=limit, total=len(records))


def _rank(progressions: List[PlayerProgression], limit: int) -> List[LeaderboardEntry]:
    ranked = sorted(progressions, key=lambda p: (-p.level, -p.exp, p.user_id))
    return [LeaderboardEntry(name=p.name, level=p.level, exp=p.exp, gold=p.gold) for p in ranked[:limit]]


class InMemoryProgressionStore:
    """Keeps serialized payloads in a dict; used by tests and ephemeral hosts."""

    def __init__(self, save_service: SaveService | None = None) -> None:
        self._save_service = save_service or SaveService()
        self._records: Dict[str, SavePayload] = {}
        self._history: Dict[str, List[BattleRecord]] = {}
        self._lock = threading.Lock()

    def load(self, user_id: str) -> PlayerProgression:
        with self._lock:
            payload = self._records.get(user_id)
        if payload is None:
            raise NotFoundError(f"No progression for user '{user_id}'.")
        return self._save_service.deserialize(payload)

    def save(self, user_id: str, progression: PlayerProgression) -> None:
        payload = self._save_service.serialize(progression)
        with self._lock:
            self._records[user_id] = payload

    def exists(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._records

    def record_battle(self, user_id: str, record: BattleRecord) -> None:
        with self._lock:
            self._history.setdefault(user_id, []).append(record)

    def battle_history(self, user_id: str, page: int = 1, limit: int = DEFAULT_HISTORY_LIMIT) -> HistoryPage:
        with self._lock:
            records = list(self._history.get(user_id, []))
        return _page_of(records, page, limit)

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
        with self._lock:
            payloads = list(self._records.values())
        return _rank([self._save_service.deserialize(payload) for payload in payloads], limit)


class JsonFileProgressionStore:
    """Handles per-user JSON files on disk; writes go through a temp file and os.replace."""

    def __init__(self, base_dir: Path | str, save_service: SaveService | None = None) -> None:
        self._base_dir = Path(base_dir)
        self._save_service = save_service or SaveService()
        self._lock = threading.Lock()

    def load(self, user_id: str) -> PlayerProgression:
        validate_user_id(user_id)
        path = self._user_path(user_id)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFoundError(f"No progression for user '{user_id}'.") from exc
        except OSError as exc:
            raise StorageError(f"Unable to read {path}: {exc}") from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SaveLoadError(f"Corrupt progression file {path}: {exc}") from exc
        return self._save_service.deserialize(payload)

    def save(self, user_id: str, progression: PlayerProgression) -> None:
        validate_user_id(user_id)
        self._write_json(self._user_path(user_id), self._save_service.serialize(progression))

    def exists(self, user_id: str) -> bool:
        validate_user_id(user_id)
        return self._user_path(user_id).exists()

    def record_battle(self, user_id: str, record: BattleRecord) -> None:
        validate_user_id(user_id)
        path = self._history_path(user_id)
        with self._lock:
            entries = self._read_history_raw(path)
            entries.append(self._save_service.serialize_record(record))
            self._write_json(path, entries)

    def battle_history(self, user_id: str, page: int = 1, limit: int = DEFAULT_HISTORY_LIMIT) -> HistoryPage:
        validate_user_id(user_id)
        raw_entries = self._read_history_raw(self._history_path(user_id))
        records = [self._save_service.deserialize_record(entry) for entry in raw_entries]
        return _page_of(records, page, limit)

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
        users_dir = self._base_dir / "users"
        if not users_dir.exists():
            return []
        progressions: List[PlayerProgression] = []
        for path in sorted(users_dir.glob("*.json")):
            try:
                progressions.append(self.load(path.stem))
            except (SaveLoadError, StorageError, ValueError) as exc:
                logger.warning("Skipping unreadable progression %s: %s", path, exc)
        return _rank(progressions, limit)

    def _user_path(self, user_id: str) -> Path:
        return self._base_dir / "users" / f"{user_id}.json"

    def _history_path(self, user_id: str) -> Path:
        return self._base_dir / "history" / f"{user_id}.json"

    def _read_history_raw(self, path: Path) -> List[Any]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"Unable to read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise SaveLoadError(f"Corrupt history file {path}: {exc}") from exc
        if not isinstance(raw, list):
            raise SaveLoadError(f"History file {path} must contain a list.")
        return raw

    def _write_json(self, path: Path, payload: object) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(f"Unable to write {path}: {exc}") from exc
