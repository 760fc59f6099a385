"""Error types raised by the access layer.

Every failure surfaces as a DucklingError subclass. The ``reason`` attribute
is the short category; ``detail`` carries the engine's free-text diagnostic
when there is one.
"""

from __future__ import annotations

from enum import Enum


class ErrorReason(str, Enum):
    """Categorical failure reasons."""

    OPEN_FAILURE = "open_failure"
    CLOSED_HANDLE = "closed_handle"
    SYNTAX_ERROR = "syntax_error"
    BIND_ERROR = "bind_error"
    EXECUTION_ERROR = "execution_error"
    SCHEMA_MISMATCH = "schema_mismatch"
    UNKNOWN_TABLE = "unknown_table"
    RESOURCE_BUSY = "resource_busy"


class DucklingError(Exception):
    """Base class for all access layer failures."""

    reason: ErrorReason = ErrorReason.EXECUTION_ERROR

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.reason.value)
        self.detail = detail

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reason={self.reason.value!r}, detail={self.detail!r})"


class OpenFailureError(DucklingError):
    """The database could not be opened."""

    reason = ErrorReason.OPEN_FAILURE


class ClosedHandleError(DucklingError):
    """A handle was used after it (or one of its owners) was closed."""

    reason = ErrorReason.CLOSED_HANDLE


class SQLSyntaxError(DucklingError):
    """The engine could not parse the SQL text."""

    reason = ErrorReason.SYNTAX_ERROR


class BindError(DucklingError):
    """Parameters do not match the statement's placeholders."""

    reason = ErrorReason.BIND_ERROR


class ExecutionError(DucklingError):
    """The engine failed while running a statement or committing rows."""

    reason = ErrorReason.EXECUTION_ERROR


class SchemaMismatchError(DucklingError):
    """An appended row does not fit the bound table's columns."""

    reason = ErrorReason.SCHEMA_MISMATCH


class UnknownTableError(DucklingError):
    """The table named for an appender does not exist."""

    reason = ErrorReason.UNKNOWN_TABLE


class ResourceBusyError(DucklingError):
    """The resource still has live dependents and cannot be closed."""

    reason = ErrorReason.RESOURCE_BUSY


ERRORS_BY_REASON: dict[ErrorReason, type[DucklingError]] = {
    cls.reason: cls
    for cls in (
        OpenFailureError,
        ClosedHandleError,
        SQLSyntaxError,
        BindError,
        ExecutionError,
        SchemaMismatchError,
        UnknownTableError,
        ResourceBusyError,
    )
}
