"""Demo fixtures: one JSON file per collection under ``fixtures/``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from dealer_mcp.data.database import COLLECTIONS, Database

logger = logging.getLogger(__name__)

FIXTURE_DIR = Path(__file__).parent / "fixtures"


def load_fixture(collection: str) -> list[dict[str, Any]]:
    """Read ``fixtures/<collection>.json``. Missing files yield an empty list."""
    path = FIXTURE_DIR / f"{collection}.json"
    if not path.is_file():
        return []
    with path.open(encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError(f"Fixture {path.name} must contain a JSON array")
    return records


def seed_demo_data(database: Database) -> int:
    """Insert every fixture into ``database``. Returns the number of records inserted."""
    inserted = 0
    for collection in COLLECTIONS:
        store = database.store(collection)
        for record in load_fixture(collection):
            store.insert(record)
            inserted += 1
    logger.info("Seeded %d demo records", inserted)
    return inserted
