from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol

from .schema import SCHEMA_SQL, INDEXES_SQL


class KeyValueStore(Protocol):
    """Storage capability the capsule and progress stores are built on.

    Values are JSON text. Writes made inside ``transaction()`` become visible
    together or not at all.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def keys(self, prefix: str = "") -> List[str]: ...

    def transaction(self): ...

    def close(self) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store used in tests and for throwaway sessions."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})
        self._depth = 0
        self._snapshot: Optional[Dict[str, str]] = None

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._data

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(key for key in self._data if key.startswith(prefix))

    @contextmanager
    def transaction(self) -> Iterator["MemoryKeyValueStore"]:
        if self._depth == 0:
            self._snapshot = dict(self._data)
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._data = self._snapshot or {}
                self._snapshot = None
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self._snapshot = None

    def close(self) -> None:
        self._data.clear()


class SqliteKeyValueStore:
    """Key-value documents in a single SQLite table.

    One connection per store, shared across FastAPI's threadpool and
    serialized with a lock. Single writes commit immediately; writes inside
    ``transaction()`` commit on exit or roll back on error.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._depth = 0
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.executescript(SCHEMA_SQL)
        self._conn.executescript(INDEXES_SQL)
        self._conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.transaction():
            self._conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value),
            )

    def remove(self, key: str) -> None:
        with self.transaction():
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def exists(self, key: str) -> bool:
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute("SELECT 1 FROM kv WHERE key = ?", (key,))
            return cursor.fetchone() is not None

    def keys(self, prefix: str = "") -> List[str]:
        # substr instead of LIKE: key prefixes contain '_'
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            )
            return [row[0] for row in cursor.fetchall()]

    @contextmanager
    def transaction(self) -> Iterator["SqliteKeyValueStore"]:
        with self._lock:
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if self._depth == 0:
                    self._conn.rollback()
                raise
            else:
                self._depth -= 1
                if self._depth == 0:
                    self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
