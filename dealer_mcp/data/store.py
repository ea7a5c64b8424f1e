"""RecordStore protocol with in-memory and SQLite implementations.

A store holds one collection of dict records keyed by an integer ``id``.
Every read returns a fresh copy so callers can never mutate stored state.
"""

from __future__ import annotations

import copy
import json
import sqlite3
import threading
from typing import (
    Any,
    Protocol,
    runtime_checkable,
)

# ── Protocol ────────────────────────────────────────────────────────


@runtime_checkable
class RecordStore(Protocol):
    """Minimal interface for one entity collection."""

    collection: str

    def all(self) -> list[dict[str, Any]]: ...
    def get(self, record_id: int) -> dict[str, Any] | None: ...
    def insert(self, record: dict[str, Any]) -> dict[str, Any]: ...
    def replace(self, record_id: int, record: dict[str, Any]) -> dict[str, Any] | None: ...
    def delete(self, record_id: int) -> dict[str, Any] | None: ...
    def count(self) -> int: ...
    def clear(self) -> None: ...


def _resolve_id(record: dict[str, Any], high_water: int) -> tuple[int, int]:
    """Return (id to use, new high-water mark)."""
    explicit = record.get("id")
    if explicit is None:
        new_id = high_water + 1
    else:
        new_id = int(explicit)
    return new_id, max(high_water, new_id)


class InMemoryRecordStore:
    """List-backed store. Ids come from a high-water mark and are never reissued."""

    def __init__(self, collection: str) -> None:
        self.collection = collection
        self._lock = threading.RLock()
        self._records: list[dict[str, Any]] = []
        self._high_water = 0

    def _index(self, record_id: int) -> int:
        for idx, record in enumerate(self._records):
            if record["id"] == record_id:
                return idx
        return -1

    def all(self) -> list[dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._records)

    def get(self, record_id: int) -> dict[str, Any] | None:
        with self._lock:
            idx = self._index(record_id)
            if idx == -1:
                return None
            return copy.deepcopy(self._records[idx])

    def insert(self, record: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            new_id, high_water = _resolve_id(record, self._high_water)
            if self._index(new_id) != -1:
                raise KeyError(f"{self.collection} id {new_id} already exists")
            self._high_water = high_water
            stored = copy.deepcopy({**record, "id": new_id})
            self._records.append(stored)
            return copy.deepcopy(stored)

    def replace(self, record_id: int, record: dict[str, Any]) -> dict[str, Any] | None:
        with self._lock:
            idx = self._index(record_id)
            if idx == -1:
                return None
            stored = copy.deepcopy({**record, "id": record_id})
            self._records[idx] = stored
            return copy.deepcopy(stored)

    def delete(self, record_id: int) -> dict[str, Any] | None:
        with self._lock:
            idx = self._index(record_id)
            if idx == -1:
                return None
            return self._records.pop(idx)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._high_water = 0


_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS records (
    collection  TEXT NOT NULL,
    id          INTEGER NOT NULL,
    body        TEXT NOT NULL,
    PRIMARY KEY (collection, id)
);
CREATE TABLE IF NOT EXISTS sequences (
    collection  TEXT PRIMARY KEY,
    last_id     INTEGER NOT NULL DEFAULT 0
);
"""


def open_sqlite(db_path: str) -> sqlite3.Connection:
    """Open a connection with the pragmas every SQLite store expects."""
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA temp_store=MEMORY")
    conn.executescript(_SCHEMA_SQL)
    return conn


class SqliteRecordStore:
    """JSON-document store sharing one SQLite connection across collections."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        lock: threading.RLock,
        collection: str,
    ) -> None:
        self.collection = collection
        self._conn = conn
        self._lock = lock
        with self._lock:
            self._conn.execute(
                "INSERT OR IGNORE INTO sequences (collection, last_id) VALUES (?, 0)",
                (collection,),
            )
            self._conn.commit()

    def _high_water(self) -> int:
        row = self._conn.execute(
            "SELECT last_id FROM sequences WHERE collection = ?",
            (self.collection,),
        ).fetchone()
        return int(row["last_id"]) if row else 0

    def all(self) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT body FROM records WHERE collection = ? ORDER BY id",
                (self.collection,),
            ).fetchall()
        return [json.loads(r["body"]) for r in rows]

    def get(self, record_id: int) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT body FROM records WHERE collection = ? AND id = ?",
                (self.collection, record_id),
            ).fetchone()
        return json.loads(row["body"]) if row else None

    def insert(self, record: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            new_id, high_water = _resolve_id(record, self._high_water())
            stored = {**record, "id": new_id}
            try:
                self._conn.execute(
                    "INSERT INTO records (collection, id, body) VALUES (?, ?, ?)",
                    (self.collection, new_id, json.dumps(stored, default=str)),
                )
            except sqlite3.IntegrityError as exc:
                self._conn.rollback()
                raise KeyError(f"{self.collection} id {new_id} already exists") from exc
            self._conn.execute(
                "UPDATE sequences SET last_id = ? WHERE collection = ?",
                (high_water, self.collection),
            )
            self._conn.commit()
        return json.loads(json.dumps(stored, default=str))

    def replace(self, record_id: int, record: dict[str, Any]) -> dict[str, Any] | None:
        stored = {**record, "id": record_id}
        body = json.dumps(stored, default=str)
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE records SET body = ? WHERE collection = ? AND id = ?",
                (body, self.collection, record_id),
            )
            self._conn.commit()
            if cursor.rowcount == 0:
                return None
        return json.loads(body)

    def delete(self, record_id: int) -> dict[str, Any] | None:
        with self._lock:
            existing = self.get(record_id)
            if existing is None:
                return None
            self._conn.execute(
                "DELETE FROM records WHERE collection = ? AND id = ?",
                (self.collection, record_id),
            )
            self._conn.commit()
        return existing

    def count(self) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) AS n FROM records WHERE collection = ?",
                (self.collection,),
            ).fetchone()
        return int(row["n"])

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM records WHERE collection = ?", (self.collection,))
            self._conn.execute(
                "UPDATE sequences SET last_id = 0 WHERE collection = ?",
                (self.collection,),
            )
            self._conn.commit()
