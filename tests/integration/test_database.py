"""Integration tests for Database and Connection lifecycle."""

from __future__ import annotations

from pathlib import Path

import pytest

from duckling.application import Connection, Database, open_database
from duckling.domain.errors import (
    ClosedHandleError,
    OpenFailureError,
    ResourceBusyError,
)
from duckling.domain.services.handle_arena import HandleArena
from duckling.domain.value_objects import MEMORY_PATH, HandleKind
from duckling.infrastructure.config import EngineConfig
from duckling.infrastructure.metrics import MetricsRegistry


@pytest.mark.integration
class TestOpen:
    """Tests for opening databases."""

    def test_in_memory_default(self, arena: HandleArena, metrics_registry: MetricsRegistry) -> None:
        """open() with no arguments gives an in-memory database."""
        with open_database(arena=arena, metrics=metrics_registry) as db:
            assert db.path == MEMORY_PATH
            assert not db.is_closed
        assert db.is_closed

    def test_file_database_persists(
        self, temp_dir: Path, arena: HandleArena, metrics_registry: MetricsRegistry
    ) -> None:
        """Data written to a file database survives reopening."""
        path = temp_dir / "test.duckdb"
        with open_database(path, arena=arena, metrics=metrics_registry) as db:
            conn = db.connection()
            conn.execute("CREATE TABLE t (x INTEGER)")
            conn.execute("INSERT INTO t VALUES (1), (2)")

        with open_database(path, arena=arena, metrics=metrics_registry) as db:
            rows = db.connection().query("SELECT x FROM t ORDER BY x").fetch_all()

        assert rows == [[1], [2]]

    def test_config_as_first_argument(
        self, arena: HandleArena, metrics_registry: MetricsRegistry
    ) -> None:
        """An EngineConfig in the path position opens in memory with it."""
        config = EngineConfig(maximum_threads=2)
        with open_database(config, arena=arena, metrics=metrics_registry) as db:
            assert db.path == MEMORY_PATH
            assert db.number_of_threads() == 2

    def test_missing_directory(
        self, temp_dir: Path, arena: HandleArena, metrics_registry: MetricsRegistry
    ) -> None:
        """An unreachable path fails with OpenFailureError."""
        path = temp_dir / "missing" / "nested" / "test.duckdb"

        with pytest.raises(OpenFailureError) as exc_info:
            open_database(path, arena=arena, metrics=metrics_registry)

        assert exc_info.value.detail
        assert arena.live_count() == 0

    def test_read_only_missing_file(
        self, temp_dir: Path, arena: HandleArena, metrics_registry: MetricsRegistry
    ) -> None:
        """Read-only mode cannot create a database."""
        config = EngineConfig(access_mode="read_only")

        with pytest.raises(OpenFailureError):
            open_database(temp_dir / "absent.duckdb", config, arena=arena, metrics=metrics_registry)

    def test_invalid_chunk_size(self, arena: HandleArena, metrics_registry: MetricsRegistry) -> None:
        """Chunk size must be positive."""
        with pytest.raises(ValueError):
            open_database(chunk_size=0, arena=arena, metrics=metrics_registry)


@pytest.mark.integration
class TestDatabaseClose:
    """Tests for closing databases."""

    def test_close_with_live_connection_is_busy(self, database: Database) -> None:
        """A database with live connections refuses a plain close."""
        conn = database.connection()

        with pytest.raises(ResourceBusyError):
            database.close()

        assert not database.is_closed
        assert conn.query("SELECT 1").fetch_all() == [[1]]

    def test_close_after_connections_closed(self, database: Database) -> None:
        """Once every connection is closed the database closes normally."""
        database.connection().close()
        database.close()

        assert database.is_closed

    def test_force_close_cascades(self, database: Database, arena: HandleArena) -> None:
        """force=True closes every connection and what they own."""
        conn = database.connection()
        conn.execute("CREATE TABLE t (x INTEGER)")
        statement = conn.prepare("SELECT * FROM t")
        result = conn.query("SELECT 1")
        app = conn.appender("t")

        database.close(force=True)

        for resource in (database, conn, statement, result, app):
            assert resource.is_closed
        assert arena.live_count() == 0

    def test_double_close_is_noop(self, database: Database) -> None:
        """Closing twice does nothing the second time."""
        database.close()
        database.close()

        assert database.is_closed

    def test_closed_database_rejects_use(self, database: Database) -> None:
        """Operations on a closed database raise ClosedHandleError."""
        database.close()

        with pytest.raises(ClosedHandleError):
            database.connection()
        with pytest.raises(ClosedHandleError):
            database.number_of_threads()


@pytest.mark.integration
class TestConnection:
    """Tests for connections."""

    def test_connections_are_independent(self, database: Database) -> None:
        """Closing one connection leaves siblings and the database usable."""
        first = database.connection()
        second = database.connection()

        first.close()

        assert first.is_closed
        assert database.connections() == [second]
        assert second.query("SELECT 2").fetch_all() == [[2]]

    def test_closed_connection_rejects_use(self, database: Database) -> None:
        """Every operation on a closed connection raises ClosedHandleError."""
        conn = database.connection()
        conn.close()
        conn.close()

        with pytest.raises(ClosedHandleError):
            conn.query("SELECT 1")
        with pytest.raises(ClosedHandleError):
            conn.prepare("SELECT 1")
        with pytest.raises(ClosedHandleError):
            conn.appender("t")
        with pytest.raises(ClosedHandleError):
            conn.library_version()

    def test_close_releases_owned_resources(self, database: Database, arena: HandleArena) -> None:
        """Closing a connection closes its statements, results and appenders."""
        conn = database.connection()
        conn.execute("CREATE TABLE t (x INTEGER)")
        statement = conn.prepare("SELECT * FROM t")
        result = statement.execute()
        app = conn.appender("t")
        app.add_row([1])

        conn.close()

        with pytest.raises(ClosedHandleError):
            statement.execute()
        with pytest.raises(ClosedHandleError):
            result.fetch_chunk()
        with pytest.raises(ClosedHandleError):
            app.add_row([2])
        assert arena.live_count(HandleKind.CONNECTION) == 0
        assert arena.live_count(HandleKind.DATABASE) == 1

        # The appender was flushed on the way out
        check = database.connection()
        assert check.query("SELECT x FROM t").fetch_all() == [[1]]

    def test_close_continues_after_failed_flush(self, database: Database) -> None:
        """A failing implicit flush does not stop connection teardown."""
        conn = database.connection()
        conn.execute("CREATE TABLE t (x INTEGER PRIMARY KEY)")
        app = conn.appender("t")
        app.add_rows([[1], [1]])

        conn.close()

        assert conn.is_closed
        assert app.is_closed

    def test_introspection(self, conn: Connection) -> None:
        """Version and platform strings come from the engine."""
        assert conn.library_version().startswith("v")
        assert conn.source_id()
        assert conn.platform()

    def test_number_of_threads(self, database: Database) -> None:
        """The engine reports a positive worker thread count."""
        assert database.number_of_threads() >= 1


@pytest.mark.integration
class TestHandleMetrics:
    """Tests for the open handle gauge."""

    def test_gauge_tracks_open_handles(
        self, database: Database, metrics_registry: MetricsRegistry
    ) -> None:
        """handles_open follows connections being opened and closed."""
        registry = metrics_registry.registry

        def gauge(kind: str) -> float | None:
            return registry.get_sample_value("duckling_handles_open", {"kind": kind})

        conn = database.connection()
        assert gauge("database") == 1.0
        assert gauge("connection") == 1.0

        conn.close()
        assert gauge("connection") == 0.0
