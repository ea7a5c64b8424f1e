"""Shared test fixtures: a freshly seeded in-memory database for every test."""

from __future__ import annotations

import pytest

from dealer_mcp.config import DealerConfig
from dealer_mcp.data.database import Database, set_database
from dealer_mcp.data.seed import seed_demo_data
from dealer_mcp.services import DealerServices, set_services


@pytest.fixture()
def config() -> DealerConfig:
    """Default settings with no marketplace keys, so listings stay simulated."""
    return DealerConfig()


@pytest.fixture()
def database() -> Database:
    db = Database().open()
    seed_demo_data(db)
    return db


@pytest.fixture(autouse=True)
def _inject_test_database(database: Database, config: DealerConfig):
    """Give every test an isolated seeded database and a services bundle bound to it."""
    set_database(database)
    set_services(DealerServices.build(config))
    yield
    set_services(None)
    set_database(None)
    database.close()


@pytest.fixture()
def services() -> DealerServices:
    from dealer_mcp.services import get_services

    return get_services()
