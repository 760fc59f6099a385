"""Domain layer: value objects, errors and resource bookkeeping."""

from duckling.domain.errors import (
    BindError,
    ClosedHandleError,
    DucklingError,
    ErrorReason,
    ExecutionError,
    OpenFailureError,
    ResourceBusyError,
    SchemaMismatchError,
    SQLSyntaxError,
    UnknownTableError,
)

__all__ = [
    "DucklingError",
    "ErrorReason",
    "OpenFailureError",
    "ClosedHandleError",
    "SQLSyntaxError",
    "BindError",
    "ExecutionError",
    "SchemaMismatchError",
    "UnknownTableError",
    "ResourceBusyError",
]
