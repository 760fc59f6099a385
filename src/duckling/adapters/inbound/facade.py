"""Function-style API over the access layer objects.

Each function takes the owning resource as its first argument and forwards
to the matching method, so callers can write::

    db = duckling.open()
    conn = duckling.connection(db)
    result = duckling.query(conn, "SELECT 42")
    duckling.fetch_all(result)
    duckling.close(conn)
    duckling.close(db)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Sequence, Union

from duckling.application.appender import Appender
from duckling.application.database import Connection, Database, open_database
from duckling.application.query import QueryResult, Statement
from duckling.domain.value_objects.column_types import Cell
from duckling.domain.value_objects.handles import MEMORY_PATH
from duckling.domain.value_objects.wide_integer import from_wide, to_wide
from duckling.infrastructure.config import EngineConfig

Closeable = Union[Database, Connection, Statement, QueryResult, Appender]


def open(  # noqa: A001
    path: str | Path | EngineConfig = MEMORY_PATH,
    config: EngineConfig | None = None,
    **kwargs: Any,
) -> Database:
    """Open or create a database. See :func:`open_database`."""
    return open_database(path, config, **kwargs)


def close(resource: Closeable, *, force: bool = False) -> None:
    """Close any resource. Closing an already closed resource is a no-op.

    Args:
        resource: Database, Connection, Statement, QueryResult or Appender.
        force: For a Database, close its live Connections first.

    Raises:
        ResourceBusyError: If a Database still has live Connections and
            force is False.
        ExecutionError: If closing an Appender fails to flush.
    """
    if isinstance(resource, Database):
        resource.close(force=force)
    else:
        resource.close()


def connection(database: Database) -> Connection:
    return database.connection()


def query(conn: Connection, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
    return conn.query(sql, params)


def prepare(conn: Connection, sql: str) -> Statement:
    return conn.prepare(sql)


def execute(statement: Statement, params: Sequence[Any] | None = None) -> QueryResult:
    return statement.execute(params)


def column_names(result: QueryResult) -> list[str]:
    return result.column_names()


def fetch_chunk(result: QueryResult) -> list[list[Cell]]:
    return result.fetch_chunk()


def fetch_all(result: QueryResult) -> list[list[Cell]]:
    return result.fetch_all()


def appender(conn: Connection, table: str, schema: str = "main") -> Appender:
    return conn.appender(table, schema)


def add_row(app: Appender, row: Sequence[Any]) -> None:
    app.add_row(row)


def add_rows(app: Appender, rows: Iterable[Sequence[Any]]) -> None:
    app.add_rows(rows)


def flush(app: Appender) -> None:
    app.flush()


def library_version(conn: Connection) -> str:
    return conn.library_version()


def source_id(conn: Connection) -> str:
    return conn.source_id()


def platform(conn: Connection) -> str:
    return conn.platform()


def number_of_threads(database: Database) -> int:
    return database.number_of_threads()


__all__ = [
    "open",
    "close",
    "connection",
    "query",
    "prepare",
    "execute",
    "column_names",
    "fetch_chunk",
    "fetch_all",
    "appender",
    "add_row",
    "add_rows",
    "flush",
    "library_version",
    "source_id",
    "platform",
    "number_of_threads",
    "to_wide",
    "from_wide",
]
