"""Engine column types and client-side coercion checks.

The appender validates every row before buffering it, so it needs to know
which Python values the engine will accept for a given column. Type names
come straight from the engine catalog (``INTEGER``, ``DECIMAL(18,3)``,
``TIMESTAMP WITH TIME ZONE``, ``VARCHAR[]`` ...). Composite and exotic types
are not checked here; the engine validates them when rows are committed.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from duckling.domain.value_objects.wide_integer import WideInteger

Cell = Union[
    None,
    bool,
    int,
    float,
    Decimal,
    str,
    bytes,
    date,
    time,
    datetime,
    timedelta,
    uuid.UUID,
    WideInteger,
    list,
    dict,
]
"""A single value in a result row, a parameter list or an appended row."""

WIDE_TYPE_NAME = "HUGEINT"


class TypeFamily(Enum):
    """Coercion families of engine types."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOATING = "floating"
    DECIMAL = "decimal"
    TEXT = "text"
    BLOB = "blob"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    INTERVAL = "interval"
    UUID = "uuid"
    OTHER = "other"


_INTEGER_RANGES: dict[str, tuple[int, int]] = {
    "TINYINT": (-(1 << 7), (1 << 7) - 1),
    "SMALLINT": (-(1 << 15), (1 << 15) - 1),
    "INTEGER": (-(1 << 31), (1 << 31) - 1),
    "BIGINT": (-(1 << 63), (1 << 63) - 1),
    "HUGEINT": (-(1 << 127), (1 << 127) - 1),
    "UTINYINT": (0, (1 << 8) - 1),
    "USMALLINT": (0, (1 << 16) - 1),
    "UINTEGER": (0, (1 << 32) - 1),
    "UBIGINT": (0, (1 << 64) - 1),
    "UHUGEINT": (0, (1 << 128) - 1),
}

_SIMPLE_FAMILIES: dict[str, TypeFamily] = {
    "BOOLEAN": TypeFamily.BOOLEAN,
    "FLOAT": TypeFamily.FLOATING,
    "DOUBLE": TypeFamily.FLOATING,
    "VARCHAR": TypeFamily.TEXT,
    "BLOB": TypeFamily.BLOB,
    "DATE": TypeFamily.DATE,
    "TIME": TypeFamily.TIME,
    "TIME WITH TIME ZONE": TypeFamily.TIME,
    "TIMESTAMP": TypeFamily.TIMESTAMP,
    "TIMESTAMP WITH TIME ZONE": TypeFamily.TIMESTAMP,
    "TIMESTAMP_S": TypeFamily.TIMESTAMP,
    "TIMESTAMP_MS": TypeFamily.TIMESTAMP,
    "TIMESTAMP_NS": TypeFamily.TIMESTAMP,
    "INTERVAL": TypeFamily.INTERVAL,
    "UUID": TypeFamily.UUID,
}

_PARAMETERISED = re.compile(r"^(?P<base>[A-Z_ ]+?)\s*\(.*\)$")


@dataclass(frozen=True, slots=True)
class ColumnType:
    """A classified engine column type.

    Attributes:
        name: Type name as reported by the engine.
        family: Coercion family.
        bounds: Inclusive value range for integer types.
    """

    name: str
    family: TypeFamily
    bounds: tuple[int, int] | None = None

    @property
    def is_wide(self) -> bool:
        """True for the 128-bit signed integer type."""
        return self.name == WIDE_TYPE_NAME

    def accepts(self, value: Any) -> bool:
        """Return True if value can be stored in a column of this type."""
        if value is None or self.family is TypeFamily.OTHER:
            return True
        if self.family is TypeFamily.BOOLEAN:
            return isinstance(value, bool)
        if isinstance(value, bool):
            return False
        if self.family is TypeFamily.INTEGER:
            if isinstance(value, WideInteger):
                return self.is_wide
            if not isinstance(value, int):
                return False
            if self.bounds is None:
                return True
            low, high = self.bounds
            return low <= value <= high
        if self.family is TypeFamily.FLOATING:
            return isinstance(value, (int, float))
        if self.family is TypeFamily.DECIMAL:
            return isinstance(value, (Decimal, int, float))
        if self.family is TypeFamily.TEXT:
            return isinstance(value, str)
        if self.family is TypeFamily.BLOB:
            return isinstance(value, (bytes, bytearray, memoryview))
        if self.family is TypeFamily.DATE:
            return isinstance(value, date)
        if self.family is TypeFamily.TIME:
            return isinstance(value, time)
        if self.family is TypeFamily.TIMESTAMP:
            return isinstance(value, datetime)
        if self.family is TypeFamily.INTERVAL:
            return isinstance(value, timedelta)
        if self.family is TypeFamily.UUID:
            return isinstance(value, (uuid.UUID, str))
        return False


def parse_column_type(type_name: str) -> ColumnType:
    """Classify an engine type name.

    Args:
        type_name: Type name as reported by the engine catalog or a result
            description, e.g. ``"DECIMAL(18,3)"``.

    Returns:
        The classified ColumnType. Unknown and composite types map to
        TypeFamily.OTHER.
    """
    name = str(type_name).strip().upper()

    if name in _INTEGER_RANGES:
        return ColumnType(name=name, family=TypeFamily.INTEGER, bounds=_INTEGER_RANGES[name])
    if name in _SIMPLE_FAMILIES:
        return ColumnType(name=name, family=_SIMPLE_FAMILIES[name])
    if name.endswith("]"):
        # LIST and ARRAY types
        return ColumnType(name=name, family=TypeFamily.OTHER)

    match = _PARAMETERISED.match(name)
    if match:
        base = match.group("base").strip()
        if base == "DECIMAL":
            return ColumnType(name=name, family=TypeFamily.DECIMAL)
        if base == "ENUM":
            return ColumnType(name=name, family=TypeFamily.TEXT)
        if base == "VARCHAR":
            return ColumnType(name=name, family=TypeFamily.TEXT)

    return ColumnType(name=name, family=TypeFamily.OTHER)
