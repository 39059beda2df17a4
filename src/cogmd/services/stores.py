"""Durable key/value stores backing session persistence.

``SqliteKeyValueStore`` is the asynchronous primary store; blocking sqlite
calls run in a worker thread. ``JsonKeyValueStore`` is the synchronous,
best-effort fallback holding plain strings in one JSON file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Mapping, Protocol, TypeVar

__all__ = [
    "AsyncKeyValueStore",
    "JsonKeyValueStore",
    "SqliteKeyValueStore",
    "StoreError",
    "SyncKeyValueStore",
]

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(RuntimeError):
    """Raised when a durable store cannot complete a read or write."""


class AsyncKeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None:
        ...

    async def put(self, key: str, value: Any) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class SyncKeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class SqliteKeyValueStore:
    """SQLite table of JSON-encoded values keyed by string."""

    def __init__(self, db_path: Path | str) -> None:
        self._path = Path(db_path)
        self._lock = RLock()
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> Any | None:
        raw = await self._run(self._read, key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Stored value for {key!r} is not valid JSON") from exc

    async def put(self, key: str, value: Any) -> None:
        try:
            body = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Value for {key!r} is not JSON serializable") from exc
        await self._run(self._write, key, body)

    async def delete(self, key: str) -> None:
        await self._run(self._remove, key)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ------------------------------------------------------------------
    # Blocking helpers (worker thread)
    # ------------------------------------------------------------------
    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except (sqlite3.Error, OSError) as exc:
            LOGGER.debug("SqliteKeyValueStore %s failed: %s", self._path, exc)
            raise StoreError(str(exc)) from exc

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._path), check_same_thread=False)
            with conn:
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
                )
            self._conn = conn
        return self._conn

    def _read(self, key: str) -> str | None:
        with self._lock:
            row = self._connection().execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def _write(self, key: str, body: str) -> None:
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, body),
                )

    def _remove(self, key: str) -> None:
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))


class JsonKeyValueStore:
    """Synchronous string store persisted as a single JSON object."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read_payload().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StoreError(f"Value for {key!r} must be a string")
        payload = self._read_payload()
        payload[key] = value
        self._write_payload(payload)

    def remove(self, key: str) -> None:
        payload = self._read_payload()
        if payload.pop(key, None) is not None:
            self._write_payload(payload)

    def clear(self) -> None:
        self._write_payload({})

    def _read_payload(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if isinstance(data, Mapping):
                return dict(data)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Local storage %s is unreadable: %s", self._path, exc)
        return {}

    def _write_payload(self, payload: Mapping[str, Any]) -> None:
        body = json.dumps(payload, indent=2, sort_keys=True)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            tmp_path.write_text(body, encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StoreError(f"Unable to write {self._path}: {exc}") from exc
