"""Prepared statements and streaming query results.

Results are pulled, never pushed: every fetch_chunk() call asks the engine
for at most ``chunk_size`` more rows. A QueryResult is forward-only. Once a
fetch returns an empty chunk the result is exhausted and stays that way.

Usage:
    result = conn.query("SELECT i FROM range(5000) t(i)")
    first = result.fetch_chunk()   # up to 2048 rows
    rest = result.fetch_all()      # everything after the first chunk
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, Sequence

from duckling.application.resources import ManagedResource
from duckling.domain.services.row_codec import decode_rows
from duckling.domain.value_objects.column_types import Cell, parse_column_type
from duckling.domain.value_objects.handles import HandleKind
from duckling.infrastructure.logging import get_logger
from duckling.ports.outbound.engine import EngineCursor

if TYPE_CHECKING:
    from duckling.application.database import Connection

logger = get_logger(__name__)


class Statement(ManagedResource):
    """A parsed, parameterised SQL statement owned by a Connection.

    Placeholders (``?`` or ``$n``) carry no type until execute() binds
    values. The statement can be executed any number of times. A statement
    dropped without close() is released when it is garbage collected.
    """

    kind = HandleKind.STATEMENT
    held_weakly = True

    def __init__(self, connection: Connection, sql: str) -> None:
        super().__init__(connection._arena, connection._metrics, parent=connection.handle)
        self._connection = connection
        self._sql = sql
        self._release_when_collected()

    @property
    def sql(self) -> str:
        return self._sql

    def execute(self, params: Sequence[Any] | None = None) -> QueryResult:
        """Bind positional parameters and run the statement.

        Args:
            params: One value per placeholder, in placeholder order.

        Returns:
            A new QueryResult owned by the statement's Connection.

        Raises:
            ClosedHandleError: If the statement or its Connection is closed.
            BindError: If params do not fit the placeholders.
            ExecutionError: If the engine fails at run time.
        """
        self._ensure_open()
        return self._connection._run("execute", self._sql, params)

    def close(self) -> None:
        """Release the statement. Closing twice is a no-op."""
        if self._release():
            logger.debug("statement_closed", handle=self._handle)


class QueryResult(ManagedResource):
    """Forward-only chunked cursor over one statement's output rows.

    Rows stay in the engine until fetched. The engine keeps only one pending
    result per Connection, though: running another statement on the same
    Connection first copies every unread row of this result into client
    memory. Drain or close large results before issuing the next statement,
    or read them on a Connection of their own.

    A result dropped without close() is closed when it is garbage collected.
    """

    kind = HandleKind.QUERY_RESULT
    held_weakly = True

    def __init__(self, connection: Connection, cursor: EngineCursor, chunk_size: int) -> None:
        super().__init__(connection._arena, connection._metrics, parent=connection.handle)
        self._cursor = cursor
        self._chunk_size = chunk_size
        self._names = cursor.column_names
        self._type_names = cursor.column_types
        self._types = [parse_column_type(name) for name in self._type_names]
        self._exhausted = not self._names
        self._release_when_collected(cursor.close)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def column_names(self) -> list[str]:
        """Output column names, in the cell order of every row."""
        self._ensure_open()
        return list(self._names)

    def column_types(self) -> list[str]:
        """Engine type names of the output columns."""
        self._ensure_open()
        return list(self._type_names)

    def fetch_chunk(self) -> list[list[Cell]]:
        """Return the next batch of at most ``chunk_size`` rows.

        An empty list means the result is exhausted; every later call
        returns an empty list as well.

        Raises:
            ClosedHandleError: If the result or its Connection is closed.
            ExecutionError: If the engine fails while producing rows.
        """
        self._ensure_open()
        if self._exhausted:
            return []

        try:
            rows = self._cursor.fetch(self._chunk_size)
        except Exception:
            self._exhausted = True
            raise

        if not rows:
            self._exhausted = True
            return []

        self._metrics.chunks_fetched_total.inc()
        self._metrics.rows_fetched_total.inc(len(rows))
        return decode_rows(rows, self._types)

    def fetch_all(self) -> list[list[Cell]]:
        """Return every row not yet fetched, in engine order.

        Rows already returned by fetch_chunk() or iteration are not
        repeated.
        """
        rows: list[list[Cell]] = []
        while True:
            chunk = self.fetch_chunk()
            if not chunk:
                return rows
            rows.extend(chunk)

    def __iter__(self) -> Iterator[list[Cell]]:
        while True:
            chunk = self.fetch_chunk()
            if not chunk:
                return
            yield from chunk

    def close(self) -> None:
        """Discard unread rows and release the cursor. Idempotent."""
        if self.is_closed:
            return
        self._exhausted = True
        self._release()
        logger.debug("query_result_closed", handle=self._handle)

    def __enter__(self) -> QueryResult:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
