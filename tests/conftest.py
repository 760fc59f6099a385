"""Shared fixtures: an isolated arena, metrics registry and database per test."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from duckling.application import Connection, Database, open_database
from duckling.domain.services.handle_arena import HandleArena, reset_arena
from duckling.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def arena() -> Generator[HandleArena, None, None]:
    """Provide a fresh handle arena for each test."""
    reset_arena()
    yield HandleArena()
    reset_arena()


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Counters would otherwise accumulate across tests on the default REGISTRY
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def database(arena: HandleArena, metrics_registry: MetricsRegistry) -> Generator[Database, None, None]:
    """Provide an in-memory database, force-closed after the test."""
    db = open_database(arena=arena, metrics=metrics_registry)
    yield db
    db.close(force=True)


@pytest.fixture
def conn(database: Database) -> Connection:
    """Provide a connection on the in-memory database."""
    return database.connection()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: tests that run against a fake engine or no engine")
    config.addinivalue_line("markers", "integration: tests that run against a real DuckDB engine")
