"""DuckDB implementation of the engine port.

Each EngineSession wraps one DuckDB connection object (a cursor of the
database's root connection). DuckDB keeps a single pending result per
connection, so a session tracks the cursor that currently owns it. Before a
new statement runs on the session, the unread rows of that cursor are moved
into the cursor's own buffer; earlier results therefore stay readable after
later queries on the same session.

Every DuckDB exception is translated into a DucklingError at this boundary
and chained to the DuckDB exception.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Mapping, Sequence

import duckdb

from duckling.domain.errors import (
    BindError,
    DucklingError,
    ExecutionError,
    OpenFailureError,
    SQLSyntaxError,
)
from duckling.domain.services.row_codec import encode_params
from duckling.infrastructure.logging import get_logger
from duckling.ports.outbound.engine import ColumnSpec

logger = get_logger(__name__)

_DESCRIBE_TABLE_SQL = """
SELECT c.table_catalog, c.column_name, c.data_type, c.is_nullable
FROM information_schema.columns AS c
JOIN information_schema.tables AS t
  ON t.table_catalog = c.table_catalog
 AND t.table_schema = c.table_schema
 AND t.table_name = c.table_name
WHERE lower(c.table_name) = lower(?)
  AND lower(c.table_schema) = lower(?)
  AND t.table_type IN ('BASE TABLE', 'LOCAL TEMPORARY')
ORDER BY c.table_catalog, c.ordinal_position
"""


def translate_error(exc: Exception) -> DucklingError:
    """Map a DuckDB exception to the access layer's error type."""
    detail = str(exc)
    if isinstance(exc, duckdb.ParserException):
        return SQLSyntaxError(detail)
    if isinstance(exc, (duckdb.InvalidInputException, TypeError)):
        # Parameter count mismatches and unconvertible Python values
        return BindError(detail)
    return ExecutionError(detail)


def quote_identifier(name: str) -> str:
    """Quote an identifier for interpolation into SQL."""
    return '"' + name.replace('"', '""') + '"'


class DuckDBCursor:
    """Reader over the result of one statement on a DuckDBSession."""

    def __init__(
        self,
        session: DuckDBSession,
        connection: duckdb.DuckDBPyConnection,
        description: Sequence[Sequence[Any]] | None,
    ) -> None:
        self._session = session
        self._connection: duckdb.DuckDBPyConnection | None = connection
        self._names = [str(column[0]) for column in description or []]
        self._types = [str(column[1]) for column in description or []]
        self._buffer: deque[tuple[Any, ...]] | None = None
        self._done = not self._names

    @property
    def column_names(self) -> list[str]:
        return list(self._names)

    @property
    def column_types(self) -> list[str]:
        return list(self._types)

    @property
    def is_pending(self) -> bool:
        """True while unread rows are still held by the engine connection."""
        return not self._done and self._buffer is None

    def fetch(self, size: int) -> list[tuple[Any, ...]]:
        if self._buffer is not None:
            count = min(size, len(self._buffer))
            return [self._buffer.popleft() for _ in range(count)]
        if self._done or self._connection is None:
            return []

        try:
            rows = self._connection.fetchmany(size)
        except duckdb.Error as exc:
            self._finish()
            raise translate_error(exc) from exc

        if not rows:
            self._finish()
        return [tuple(row) for row in rows]

    def detach(self) -> None:
        """Move unread rows out of the engine connection into the buffer.

        The whole unread remainder is materialised in client memory.
        """
        if not self.is_pending or self._connection is None:
            return
        try:
            remaining = self._connection.fetchall()
        except duckdb.Error as exc:
            self._finish()
            raise translate_error(exc) from exc
        self._buffer = deque(tuple(row) for row in remaining)
        logger.debug("result_detached", rows=len(self._buffer))
        self._connection = None
        self._session._forget(self)

    def close(self) -> None:
        self._buffer = deque()
        self._finish()

    def _finish(self) -> None:
        self._done = True
        self._connection = None
        self._session._forget(self)


class DuckDBSession:
    """EngineSession over one DuckDB connection object."""

    def __init__(self, connection: duckdb.DuckDBPyConnection) -> None:
        self._connection = connection
        self._pending: DuckDBCursor | None = None

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> DuckDBCursor:
        bound = encode_params(params, wrap_wide=duckdb.HugeIntegerValue)
        self._detach_pending()
        try:
            if bound:
                self._connection.execute(sql, bound)
            else:
                self._connection.execute(sql)
        except (duckdb.Error, TypeError) as exc:
            raise translate_error(exc) from exc

        cursor = DuckDBCursor(self, self._connection, self._connection.description)
        if cursor.is_pending:
            self._pending = cursor
        return cursor

    def parse(self, sql: str) -> int:
        self._detach_pending()
        try:
            statements = self._connection.extract_statements(sql)
        except duckdb.Error as exc:
            raise translate_error(exc) from exc
        return len(statements)

    def describe_table(self, table: str, schema: str) -> list[ColumnSpec]:
        self._detach_pending()
        try:
            rows = self._connection.execute(_DESCRIBE_TABLE_SQL, [table, schema]).fetchall()
        except duckdb.Error as exc:
            raise translate_error(exc) from exc
        if not rows:
            return []

        # A temporary table may shadow a persistent one; bind to the first catalog
        catalog = rows[0][0]
        return [
            ColumnSpec(name=name, type_name=type_name, nullable=(is_nullable == "YES"))
            for row_catalog, name, type_name, is_nullable in rows
            if row_catalog == catalog
        ]

    def insert_rows(
        self,
        table: str,
        schema: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> int:
        if not rows:
            return 0

        column_list = ", ".join(quote_identifier(c) for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {quote_identifier(schema)}.{quote_identifier(table)} "
            f"({column_list}) VALUES ({placeholders})"
        )

        self._detach_pending()
        try:
            self._connection.execute("BEGIN TRANSACTION")
            self._connection.executemany(sql, [list(row) for row in rows])
            self._connection.execute("COMMIT")
        except (duckdb.Error, TypeError) as exc:
            self._rollback()
            raise ExecutionError(str(exc)) from exc
        return len(rows)

    def duplicate(self) -> DuckDBSession:
        try:
            return DuckDBSession(self._connection.cursor())
        except duckdb.Error as exc:
            raise translate_error(exc) from exc

    def scalar(self, sql: str) -> Any:
        try:
            cursor = self._connection.cursor()
        except duckdb.Error as exc:
            raise translate_error(exc) from exc
        try:
            row = cursor.execute(sql).fetchone()
        except duckdb.Error as exc:
            raise translate_error(exc) from exc
        finally:
            cursor.close()
        return row[0] if row else None

    def close(self) -> None:
        if self._pending is not None:
            self._pending.close()
        try:
            self._connection.close()
        except duckdb.Error as exc:
            raise translate_error(exc) from exc

    def _detach_pending(self) -> None:
        if self._pending is not None:
            self._pending.detach()

    def _forget(self, cursor: DuckDBCursor) -> None:
        if self._pending is cursor:
            self._pending = None

    def _rollback(self) -> None:
        try:
            self._connection.execute("ROLLBACK")
        except duckdb.Error as exc:
            # No transaction is open when BEGIN itself failed
            logger.debug("rollback_skipped", error=str(exc))


class DuckDBInstance:
    """EngineInstance over a DuckDB root connection."""

    def __init__(self, connection: duckdb.DuckDBPyConnection, path: str) -> None:
        self._connection = connection
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def connect(self) -> DuckDBSession:
        try:
            return DuckDBSession(self._connection.cursor())
        except duckdb.Error as exc:
            raise translate_error(exc) from exc

    def number_of_threads(self) -> int:
        try:
            row = self._connection.execute("SELECT current_setting('threads')").fetchone()
        except duckdb.Error as exc:
            raise translate_error(exc) from exc
        return int(row[0])

    def close(self) -> None:
        try:
            self._connection.close()
        except duckdb.Error as exc:
            raise translate_error(exc) from exc


class DuckDBDriver:
    """EngineDriver that opens DuckDB databases."""

    def open(self, path: str, options: Mapping[str, Any]) -> DuckDBInstance:
        config = dict(options)
        read_only = config.get("access_mode") == "read_only"
        if read_only:
            del config["access_mode"]

        try:
            connection = duckdb.connect(database=path, read_only=read_only, config=config)
        except (duckdb.Error, OSError) as exc:
            raise OpenFailureError(str(exc)) from exc

        logger.debug("engine_opened", path=path, options=sorted(config), read_only=read_only)
        return DuckDBInstance(connection, path)
