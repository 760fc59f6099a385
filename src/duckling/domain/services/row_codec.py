"""Conversion of values crossing the engine boundary.

Appended rows: WideInteger values become plain integers, which the engine
casts to the fixed column type. Query parameters: the adapter may wrap wide
values in an explicitly typed engine value. Result rows: cells of HUGEINT
columns become WideInteger pairs.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

from duckling.domain.value_objects.column_types import Cell, ColumnType
from duckling.domain.value_objects.wide_integer import WideInteger, to_wide


def encode_value(value: Any) -> Any:
    """Prepare one value for the engine."""
    if isinstance(value, WideInteger):
        return value.to_int()
    if isinstance(value, list):
        return [encode_value(v) for v in value]
    if isinstance(value, tuple):
        return tuple(encode_value(v) for v in value)
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    return value


def encode_params(
    params: Sequence[Any] | None,
    wrap_wide: Callable[[int], Any] | None = None,
) -> list[Any]:
    """Prepare a positional parameter list.

    Args:
        params: Parameter values, in placeholder order.
        wrap_wide: Applied to the integer value of each WideInteger
            parameter, so the engine binds it as a 128-bit integer instead of
            inferring a type from its magnitude.
    """
    if params is None:
        return []
    if wrap_wide is None:
        return [encode_value(p) for p in params]
    return [
        wrap_wide(p.to_int()) if isinstance(p, WideInteger) else encode_value(p)
        for p in params
    ]


def decode_row(values: Iterable[Any], types: Sequence[ColumnType]) -> list[Cell]:
    """Turn an engine row into a list of cells.

    Args:
        values: Raw values in column order.
        types: Column types of the result, same order.
    """
    row: list[Cell] = []
    for value, column_type in zip(values, types):
        if column_type.is_wide and isinstance(value, int) and not isinstance(value, bool):
            row.append(to_wide(value))
        else:
            row.append(value)
    return row


def decode_rows(rows: Iterable[Iterable[Any]], types: Sequence[ColumnType]) -> list[list[Cell]]:
    return [decode_row(values, types) for values in rows]
