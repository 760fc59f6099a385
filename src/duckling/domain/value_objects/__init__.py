"""Value objects for the access layer.

Value objects are immutable and carry no lifecycle of their own.

Exports:
    Wide integers:
        - WideInteger: (high, low) pair for 128-bit signed integers
        - to_wide, from_wide: Codec between Python ints and the pair

    Handles:
        - Handle: Arena slot reference with a generation tag
        - HandleKind: Resource kinds (database, connection, ...)
        - MEMORY_PATH: In-memory storage location sentinel

    Column types:
        - ColumnType, TypeFamily: Engine type classification
        - parse_column_type: Classify an engine type name
        - Cell: Union of values a row cell may hold
"""

from duckling.domain.value_objects.column_types import (
    WIDE_TYPE_NAME,
    Cell,
    ColumnType,
    TypeFamily,
    parse_column_type,
)
from duckling.domain.value_objects.handles import (
    MEMORY_PATH,
    Generation,
    Handle,
    HandleKind,
    SlotIndex,
)
from duckling.domain.value_objects.wide_integer import (
    WIDE_MAX,
    WIDE_MIN,
    WideInteger,
    from_wide,
    to_wide,
)

__all__ = [
    # Wide integers
    "WideInteger",
    "to_wide",
    "from_wide",
    "WIDE_MIN",
    "WIDE_MAX",
    # Handles
    "Handle",
    "HandleKind",
    "SlotIndex",
    "Generation",
    "MEMORY_PATH",
    # Column types
    "Cell",
    "ColumnType",
    "TypeFamily",
    "parse_column_type",
    "WIDE_TYPE_NAME",
]
