"""Buffered bulk loading into one table.

An Appender binds to a table's columns when it is created and validates
every row against them before buffering it. Buffered rows are invisible to
all queries until flush() or close() commits them in one transaction
through the appender's own engine session.

State machine:
    open --add_row/add_rows--> open (buffering)
    open --flush--> open (buffer empty)
    open --close--> closed (terminal)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from duckling.application.resources import ManagedResource
from duckling.domain.errors import DucklingError, SchemaMismatchError
from duckling.domain.services.row_codec import encode_value
from duckling.domain.value_objects.column_types import parse_column_type
from duckling.domain.value_objects.handles import HandleKind
from duckling.infrastructure.logging import get_logger
from duckling.infrastructure.tracing import DB_SYSTEM, trace_span
from duckling.ports.outbound.engine import ColumnSpec, EngineSession

if TYPE_CHECKING:
    from duckling.application.database import Connection

logger = get_logger(__name__)


class Appender(ManagedResource):
    """Client-side row buffer bound to one table.

    Thread Safety:
        Not thread-safe. Rows are buffered in process memory and only reach
        the engine on flush() or close().
    """

    kind = HandleKind.APPENDER

    def __init__(
        self,
        connection: Connection,
        session: EngineSession,
        table: str,
        schema: str,
        columns: Sequence[ColumnSpec],
    ) -> None:
        super().__init__(connection._arena, connection._metrics, parent=connection.handle)
        self._session = session
        self._table = table
        self._schema = schema
        self._columns = list(columns)
        self._types = [parse_column_type(column.type_name) for column in self._columns]
        self._buffer: list[list[Any]] = []

    @property
    def table(self) -> str:
        return self._table

    @property
    def schema(self) -> str:
        return self._schema

    @property
    def columns(self) -> list[ColumnSpec]:
        """Columns of the bound table, in declaration order."""
        return list(self._columns)

    @property
    def pending(self) -> int:
        """Number of rows buffered and not yet committed."""
        return len(self._buffer)

    def add_row(self, row: Sequence[Any]) -> None:
        """Validate and buffer one row.

        Raises:
            ClosedHandleError: If the appender is closed.
            SchemaMismatchError: If the row does not fit the table. Nothing
                is buffered.
        """
        self._ensure_open()
        self._buffer.append(self._validate(row, 0))
        self._metrics.appender_rows_buffered_total.inc()

    def add_rows(self, rows: Iterable[Sequence[Any]]) -> None:
        """Validate and buffer a batch of rows, all or nothing.

        Every row is checked before any is buffered, so a mismatch in any
        row leaves the buffer exactly as it was.

        Raises:
            ClosedHandleError: If the appender is closed.
            SchemaMismatchError: If any row does not fit the table.
        """
        self._ensure_open()
        batch = [self._validate(row, position) for position, row in enumerate(rows)]
        self._buffer.extend(batch)
        self._metrics.appender_rows_buffered_total.inc(len(batch))

    def flush(self) -> int:
        """Commit all buffered rows in one transaction.

        On failure the transaction is rolled back, so no row of the batch is
        committed, and the buffer is discarded.

        Returns:
            Number of rows committed.

        Raises:
            ClosedHandleError: If the appender is closed.
            ExecutionError: If the engine rejects the batch.
        """
        self._ensure_open()
        return self._flush()

    def close(self) -> None:
        """Flush remaining rows, then invalidate the appender.

        The appender is closed even when the implicit flush fails; the
        flush error is raised after teardown. Closing twice is a no-op.
        """
        if self.is_closed:
            return
        try:
            self._flush()
        finally:
            self._buffer = []
            try:
                self._session.close()
            except DucklingError as exc:
                logger.warning("appender_session_close_failed", table=self._table, error=str(exc))
            self._release()
            logger.debug("appender_closed", handle=self._handle, table=self._table)

    def _flush(self) -> int:
        if not self._buffer:
            return 0

        batch, self._buffer = self._buffer, []
        start = time.perf_counter()
        attributes = {
            "db.system": DB_SYSTEM,
            "db.sql.table": f"{self._schema}.{self._table}",
            "duckling.rows": len(batch),
        }
        with trace_span("duckling.appender.flush", attributes):
            try:
                committed = self._session.insert_rows(
                    self._table,
                    self._schema,
                    [column.name for column in self._columns],
                    batch,
                )
            except DucklingError as exc:
                self._metrics.appender_flushes_total.labels(status="error").inc()
                logger.warning(
                    "appender_flush_failed",
                    table=self._table,
                    rows=len(batch),
                    error=str(exc),
                )
                raise

        self._metrics.appender_flush_latency_seconds.observe(time.perf_counter() - start)
        self._metrics.appender_flushes_total.labels(status="success").inc()
        self._metrics.appender_rows_committed_total.inc(committed)
        logger.debug("appender_flushed", table=self._table, rows=committed)
        return committed

    def _validate(self, row: Sequence[Any], position: int) -> list[Any]:
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise SchemaMismatchError(f"row {position} is not a sequence of values")
        if len(row) != len(self._columns):
            raise SchemaMismatchError(
                f"row {position} has {len(row)} values, "
                f"{self._table} has {len(self._columns)} columns"
            )
        for column, column_type, value in zip(self._columns, self._types, row):
            if not column_type.accepts(value):
                raise SchemaMismatchError(
                    f"row {position}: {value!r} does not fit column "
                    f"{column.name} ({column.type_name})"
                )
        return [encode_value(value) for value in row]

    def __enter__(self) -> Appender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
