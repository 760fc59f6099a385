"""Database and Connection - entry points of the access layer.

A Database owns one engine instance. Connections are sessions over it, and
every Statement, QueryResult and Appender is owned by the Connection that
created it:

    Database
      └── Connection (any number)
            ├── Statement
            ├── QueryResult
            └── Appender

Closing an owner closes everything below it. Any operation on a closed
resource raises ClosedHandleError.

Usage:
    from duckling import open

    with open() as db, db.connection() as conn:
        conn.execute("CREATE TABLE t (x INTEGER)")
        with conn.appender("t") as app:
            app.add_rows([[1], [2]])
        print(conn.query("SELECT * FROM t").fetch_all())
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Sequence

from duckling.adapters.outbound.duckdb_engine import DuckDBDriver
from duckling.application.appender import Appender
from duckling.application.query import QueryResult, Statement
from duckling.application.resources import ManagedResource
from duckling.domain.errors import (
    DucklingError,
    ResourceBusyError,
    SQLSyntaxError,
    UnknownTableError,
)
from duckling.domain.services.handle_arena import HandleArena, get_arena
from duckling.domain.value_objects.handles import MEMORY_PATH, HandleKind
from duckling.infrastructure.config import EngineConfig, get_config
from duckling.infrastructure.logging import get_logger
from duckling.infrastructure.metrics import MetricsRegistry, get_metrics
from duckling.infrastructure.tracing import DB_SYSTEM, statement_attributes, trace_span
from duckling.ports.outbound.engine import EngineDriver, EngineInstance, EngineSession

logger = get_logger(__name__)


class Database(ManagedResource):
    """An opened database: one engine instance plus its live Connections.

    Create instances with :func:`open_database` (exported as
    ``duckling.open``).

    Thread Safety:
        A Database may be shared across threads; each thread should use its
        own Connection.
    """

    kind = HandleKind.DATABASE

    def __init__(
        self,
        instance: EngineInstance,
        path: str,
        *,
        arena: HandleArena,
        metrics: MetricsRegistry,
        chunk_size: int,
    ) -> None:
        super().__init__(arena, metrics)
        self._instance = instance
        self._path = path
        self._chunk_size = chunk_size

    @property
    def path(self) -> str:
        """Storage location, ``":memory:"`` for an in-memory database."""
        return self._path

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def connection(self) -> Connection:
        """Open a new Connection on this database.

        Raises:
            ClosedHandleError: If the database is closed.
        """
        self._ensure_open()
        session = self._instance.connect()
        conn = Connection(self, session)
        logger.debug("connection_opened", database=self._handle, handle=conn.handle)
        return conn

    def connections(self) -> list[Connection]:
        """Live Connections of this database, oldest first."""
        if self.is_closed:
            return []
        return [
            self._arena.resolve(handle)
            for handle in self._arena.children(self._handle, HandleKind.CONNECTION)
        ]

    def number_of_threads(self) -> int:
        """Return the engine's worker thread setting."""
        self._ensure_open()
        return self._instance.number_of_threads()

    def close(self, force: bool = False) -> None:
        """Shut the database down.

        Args:
            force: Close every live Connection first. Without it, closing a
                database that still has live Connections fails.

        Raises:
            ResourceBusyError: If Connections are live and force is False.
        """
        if self.is_closed:
            return

        live = self.connections()
        if live and not force:
            raise ResourceBusyError(
                f"database has {len(live)} open connection(s); close them or use force=True"
            )
        for conn in live:
            conn.close()

        try:
            self._instance.close()
        finally:
            self._release()
        logger.info("database_closed", path=self._path, handle=self._handle)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close(force=True)

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<Database {self._path!r} {state}>"


class Connection(ManagedResource):
    """A session over a Database.

    Thread Safety:
        Not thread-safe. Use one Connection per thread.
    """

    kind = HandleKind.CONNECTION

    def __init__(self, database: Database, session: EngineSession) -> None:
        super().__init__(database._arena, database._metrics, parent=database.handle)
        self._database = database
        self._session = session

    @property
    def database(self) -> Database:
        return self._database

    def query(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        """Compile and run SQL once.

        Args:
            sql: A single SQL statement. Placeholders are ``?`` or ``$n``.
            params: Positional parameter values.

        Returns:
            A QueryResult positioned before the first row.

        Raises:
            ClosedHandleError: If the connection is closed.
            SQLSyntaxError: If the SQL does not parse.
            BindError: If params do not fit the placeholders.
            ExecutionError: If the engine fails at run time.
        """
        self._ensure_open()
        return self._run("query", sql, params)

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        """Alias of query() for statements run for their side effects."""
        return self.query(sql, params)

    def prepare(self, sql: str) -> Statement:
        """Parse SQL into a reusable Statement without running it.

        Raises:
            ClosedHandleError: If the connection is closed.
            SQLSyntaxError: If the SQL does not parse or does not hold
                exactly one statement.
        """
        self._ensure_open()
        count = self._session.parse(sql)
        if count != 1:
            raise SQLSyntaxError(f"expected exactly one statement, found {count}")
        statement = Statement(self, sql)
        logger.debug("statement_prepared", handle=statement.handle)
        return statement

    def appender(self, table: str, schema: str = "main") -> Appender:
        """Create an Appender bound to a table's current columns.

        Raises:
            ClosedHandleError: If the connection is closed.
            UnknownTableError: If the table does not exist.
        """
        self._ensure_open()
        session = self._session.duplicate()
        try:
            columns = session.describe_table(table, schema)
            if not columns:
                raise UnknownTableError(f"table {schema}.{table} does not exist")
        except DucklingError:
            session.close()
            raise

        appender = Appender(self, session, table, schema, columns)
        logger.debug(
            "appender_opened",
            handle=appender.handle,
            table=table,
            columns=len(columns),
        )
        return appender

    def library_version(self) -> str:
        """Return the engine library version, e.g. ``"v1.1.3"``."""
        self._ensure_open()
        return str(self._session.scalar("SELECT library_version FROM pragma_version()"))

    def source_id(self) -> str:
        """Return the engine build's source revision."""
        self._ensure_open()
        return str(self._session.scalar("SELECT source_id FROM pragma_version()"))

    def platform(self) -> str:
        """Return the engine's platform string, e.g. ``"linux_amd64"``."""
        self._ensure_open()
        return str(self._session.scalar("SELECT platform FROM pragma_platform()"))

    def close(self) -> None:
        """Close the connection and everything it owns.

        Appenders are closed first, flushing their buffers; a failed flush
        is logged and teardown continues. Then query results, statements and
        the engine session are closed. Closing twice is a no-op.
        """
        if self.is_closed:
            return

        for appender in self._owned(HandleKind.APPENDER):
            try:
                appender.close()
            except DucklingError as exc:
                logger.warning(
                    "appender_close_failed",
                    handle=appender.handle,
                    reason=exc.reason.value,
                    error=str(exc),
                )
        for result in self._owned(HandleKind.QUERY_RESULT):
            result.close()
        for statement in self._owned(HandleKind.STATEMENT):
            statement.close()

        try:
            self._session.close()
        finally:
            self._release()
        logger.debug("connection_closed", handle=self._handle)

    def _owned(self, kind: HandleKind) -> list[Any]:
        # Weakly held children may already have been collected
        owned = (self._arena.lookup(h) for h in self._arena.children(self._handle, kind))
        return [resource for resource in owned if resource is not None]

    def _run(self, kind: str, sql: str, params: Sequence[Any] | None) -> QueryResult:
        start = time.perf_counter()
        attributes = statement_attributes(sql, parameter_count=len(params) if params else None)
        with trace_span(f"duckling.{kind}", attributes):
            try:
                cursor = self._session.execute(sql, params)
            except DucklingError as exc:
                self._metrics.queries_total.labels(kind=kind, status="error").inc()
                logger.debug("statement_failed", kind=kind, reason=exc.reason.value, error=str(exc))
                raise

        self._metrics.query_latency_seconds.labels(kind=kind).observe(time.perf_counter() - start)
        self._metrics.queries_total.labels(kind=kind, status="success").inc()
        result = QueryResult(self, cursor, self._database.chunk_size)
        logger.debug("statement_run", kind=kind, handle=result.handle)
        return result

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_database(
    path: str | Path | EngineConfig = MEMORY_PATH,
    config: EngineConfig | None = None,
    *,
    chunk_size: int | None = None,
    arena: HandleArena | None = None,
    metrics: MetricsRegistry | None = None,
    driver: EngineDriver | None = None,
) -> Database:
    """Open or create a database.

    Args:
        path: Database file, or ``":memory:"``. An EngineConfig in this
            position opens an in-memory database with that configuration.
        config: Engine options. Defaults to the ``engine`` section of the
            process settings.
        chunk_size: Rows per fetched chunk. Defaults to the client settings.
        arena: Handle arena to register resources in.
        metrics: Metrics registry to record into.
        driver: Engine driver; the DuckDB driver by default.

    Returns:
        The opened Database.

    Raises:
        OpenFailureError: If the engine cannot open the database.
    """
    if isinstance(path, EngineConfig):
        if config is not None:
            raise TypeError("config given twice")
        path, config = MEMORY_PATH, path

    settings = get_config()
    config = config if config is not None else settings.engine
    chunk_size = chunk_size if chunk_size is not None else settings.client.chunk_size
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    driver = driver or DuckDBDriver()

    location = str(path)
    options = config.to_engine_options()
    with trace_span("duckling.open", {"db.system": DB_SYSTEM, "db.name": location}):
        instance = driver.open(location, options)

    database = Database(
        instance,
        location,
        arena=arena or get_arena(),
        metrics=metrics or get_metrics(),
        chunk_size=chunk_size,
    )
    logger.info(
        "database_opened",
        path=location,
        handle=database.handle,
        options=sorted(options),
    )
    return database
