"""End-to-end tests through the function-style API."""

from __future__ import annotations

import pytest

import duckling
from duckling.domain.services.handle_arena import HandleArena
from duckling.infrastructure.metrics import MetricsRegistry


@pytest.mark.integration
class TestFacade:
    """Tests for the module-level functions."""

    def test_end_to_end(self, arena: HandleArena, metrics_registry: MetricsRegistry) -> None:
        """Rows appended through the facade appear only after flush."""
        db = duckling.open(arena=arena, metrics=metrics_registry)
        conn = duckling.connection(db)
        duckling.query(conn, "CREATE TABLE t (x INTEGER)")

        app = duckling.appender(conn, "t")
        duckling.add_rows(app, [[1], [2]])
        assert duckling.fetch_all(duckling.query(conn, "SELECT * FROM t")) == []

        duckling.flush(app)
        assert duckling.fetch_all(duckling.query(conn, "SELECT * FROM t")) == [[1], [2]]

        duckling.close(app)
        duckling.close(conn)
        duckling.close(db)
        assert db.is_closed

    def test_prepared_statement(self, arena: HandleArena, metrics_registry: MetricsRegistry) -> None:
        """prepare/execute/column_names/fetch_chunk work as functions."""
        with duckling.open(arena=arena, metrics=metrics_registry) as db:
            conn = duckling.connection(db)
            statement = duckling.prepare(conn, "SELECT $1::INTEGER AS answer")
            result = duckling.execute(statement, [21])

            assert duckling.column_names(result) == ["answer"]
            assert duckling.fetch_chunk(result) == [[21]]
            assert duckling.fetch_chunk(result) == []

    def test_add_row_and_close_flushes(
        self, arena: HandleArena, metrics_registry: MetricsRegistry
    ) -> None:
        """Closing an appender through the facade commits its rows."""
        with duckling.open(arena=arena, metrics=metrics_registry) as db:
            conn = duckling.connection(db)
            duckling.query(conn, "CREATE TABLE t (x INTEGER, y VARCHAR)")
            app = duckling.appender(conn, "t")

            duckling.add_row(app, [1, "one"])
            duckling.close(app)

            assert duckling.fetch_all(duckling.query(conn, "SELECT * FROM t")) == [[1, "one"]]

    def test_introspection(self, arena: HandleArena, metrics_registry: MetricsRegistry) -> None:
        """Engine version, build and thread information are exposed."""
        config = duckling.EngineConfig(maximum_threads=3)
        with duckling.open(config, arena=arena, metrics=metrics_registry) as db:
            assert duckling.number_of_threads(db) == 3
            conn = duckling.connection(db)

            assert duckling.library_version(conn).startswith("v")
            assert duckling.source_id(conn) == conn.source_id()
            assert duckling.platform(conn) == conn.platform()

    def test_close_busy_database(self, arena: HandleArena, metrics_registry: MetricsRegistry) -> None:
        """close() on a database with live connections needs force."""
        db = duckling.open(arena=arena, metrics=metrics_registry)
        duckling.connection(db)

        with pytest.raises(duckling.ResourceBusyError):
            duckling.close(db)
        duckling.close(db, force=True)

        with pytest.raises(duckling.ClosedHandleError):
            duckling.connection(db)

    def test_wide_integer_codec(self) -> None:
        """The codec is reachable from the package root."""
        wide = duckling.to_wide(98233720368547758080000)

        assert (wide.high, wide.low) == (5325, 4808176044395724800)
        assert duckling.from_wide((5325, 4808176044395724800)) == 98233720368547758080000

    def test_quiet_by_default(
        self,
        arena: HandleArena,
        metrics_registry: MetricsRegistry,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Using the library without logging setup prints nothing."""
        db = duckling.open(arena=arena, metrics=metrics_registry)
        duckling.fetch_all(duckling.query(duckling.connection(db), "SELECT 1"))
        duckling.close(db, force=True)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
