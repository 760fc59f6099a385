"""Engine port: what the access layer needs from an embedded database engine.

The access layer never talks to the engine library directly. Adapters
implement these protocols and translate every engine exception into a
DucklingError subclass before it crosses the port.

Object graph:
    EngineDriver.open() -> EngineInstance
    EngineInstance.connect() -> EngineSession
    EngineSession.execute() -> EngineCursor
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One column of a table as reported by the engine catalog."""

    name: str
    type_name: str
    nullable: bool = True


class EngineCursor(Protocol):
    """Forward-only reader over one statement's output."""

    @property
    @abstractmethod
    def column_names(self) -> list[str]:
        """Output column names in order. Empty for statements without output."""
        ...

    @property
    @abstractmethod
    def column_types(self) -> list[str]:
        """Engine type names of the output columns, same order as names."""
        ...

    @abstractmethod
    def fetch(self, size: int) -> list[tuple[Any, ...]]:
        """Return up to ``size`` rows; an empty list once exhausted.

        Raises:
            ExecutionError: If the engine fails while producing rows.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Discard unread rows and release the cursor."""
        ...


class EngineSession(Protocol):
    """A connection-level session with the engine.

    Thread Safety:
        Not thread-safe. One owner issues calls sequentially.
    """

    @abstractmethod
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> EngineCursor:
        """Compile and run one SQL text with positional parameters.

        Parameters are domain values; WideInteger values must bind as the
        engine's 128-bit signed integer type.

        Raises:
            SQLSyntaxError: If the text does not parse.
            BindError: If parameters do not fit the placeholders.
            ExecutionError: For any other engine failure.
        """
        ...

    @abstractmethod
    def parse(self, sql: str) -> int:
        """Parse SQL without running it.

        Returns:
            The number of statements in the text.

        Raises:
            SQLSyntaxError: If the text does not parse.
        """
        ...

    @abstractmethod
    def describe_table(self, table: str, schema: str) -> list[ColumnSpec]:
        """Return a table's columns in declaration order.

        Returns:
            An empty list if the table does not exist.
        """
        ...

    @abstractmethod
    def insert_rows(
        self,
        table: str,
        schema: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> int:
        """Insert rows in a single transaction; all commit or none do.

        Returns:
            The number of rows committed.

        Raises:
            ExecutionError: If the engine rejects the batch. The
                transaction is rolled back before raising.
        """
        ...

    @abstractmethod
    def duplicate(self) -> EngineSession:
        """Open an independent session on the same engine instance."""
        ...

    @abstractmethod
    def scalar(self, sql: str) -> Any:
        """Run a single-value query without disturbing open cursors."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the session and any cursor it still holds."""
        ...


class EngineInstance(Protocol):
    """One opened database."""

    @abstractmethod
    def connect(self) -> EngineSession:
        """Open a new session on this instance.

        Raises:
            ExecutionError: If the engine refuses the session.
        """
        ...

    @abstractmethod
    def number_of_threads(self) -> int:
        """Return the engine's worker thread setting."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Shut the instance down."""
        ...


class EngineDriver(Protocol):
    """Factory for engine instances."""

    @abstractmethod
    def open(self, path: str, options: Mapping[str, Any]) -> EngineInstance:
        """Open or create a database.

        Args:
            path: File path, or ``":memory:"`` for an in-memory database.
            options: Named engine options; absent keys take engine defaults.

        Raises:
            OpenFailureError: If the database cannot be opened.
        """
        ...
