"""Database facade: one RecordStore per collection with an explicit lifecycle.

Services receive a :class:`Database` instead of reaching for module-level
lists. The process-wide default is created lazily by :func:`get_database` and
can be swapped out with :func:`set_database` (tests inject a fresh one).
"""

from __future__ import annotations

import logging
import sqlite3
import threading

from dealer_mcp.config import DealerConfig, load_config
from dealer_mcp.data.store import (
    InMemoryRecordStore,
    RecordStore,
    SqliteRecordStore,
    open_sqlite,
)

logger = logging.getLogger(__name__)

COLLECTIONS: tuple[str, ...] = (
    "vehicles",
    "branches",
    "transfers",
    "leads",
    "deals",
    "invoices",
    "reconditioning",
    "technicians",
    "vendors",
)


class Database:
    """Holds the record stores. ``db_path=None`` keeps everything in memory."""

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._stores: dict[str, RecordStore] = {}
        self._open = False

    def open(self) -> Database:
        if self._open:
            return self
        if self.db_path is None:
            for name in COLLECTIONS:
                self._stores[name] = InMemoryRecordStore(name)
        else:
            with self._lock:
                self._conn = open_sqlite(self.db_path)
            for name in COLLECTIONS:
                self._stores[name] = SqliteRecordStore(self._conn, self._lock, name)
        self._open = True
        logger.debug("Opened database (%s)", self.db_path or "in-memory")
        return self

    def close(self) -> None:
        if self._conn is not None:
            with self._lock:
                self._conn.close()
            self._conn = None
        self._stores.clear()
        self._open = False

    def __enter__(self) -> Database:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._open

    def store(self, collection: str) -> RecordStore:
        if not self._open:
            raise RuntimeError("Database is not open")
        try:
            return self._stores[collection]
        except KeyError:
            raise KeyError(f"Unknown collection '{collection}'") from None

    def is_empty(self) -> bool:
        return all(self.store(name).count() == 0 for name in COLLECTIONS)

    def reset(self) -> None:
        """Clear every collection. Intended for tests."""
        for name in COLLECTIONS:
            self.store(name).clear()


_database: Database | None = None


def create_database(config: DealerConfig) -> Database:
    """Open a database for ``config`` and seed demo fixtures when it is empty."""
    database = Database(config.db_path).open()
    if config.seed_demo_data and database.is_empty():
        from dealer_mcp.data.seed import seed_demo_data
        seed_demo_data(database)
    return database


def get_database() -> Database:
    """Return the active Database singleton, creating + seeding if needed."""
    global _database  # noqa: PLW0603
    if _database is None:
        _database = create_database(load_config())
    return _database


def set_database(database: Database | None) -> None:
    """Inject a database instance, or ``None`` to reset the singleton."""
    global _database  # noqa: PLW0603
    _database = database
