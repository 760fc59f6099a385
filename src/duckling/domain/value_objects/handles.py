"""Handle identifiers for engine resources.

A handle names one slot of the resource arena plus the generation the slot
had when the handle was issued. Once the slot is released its generation moves
on, so an old handle can never be mistaken for whatever reuses the slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NewType

SlotIndex = NewType("SlotIndex", int)
"""Position of a slot inside its per-kind table."""

Generation = NewType("Generation", int)
"""Reuse counter of a slot. Bumped every time the slot is released."""

MEMORY_PATH = ":memory:"
"""Storage location sentinel for a database that lives only in memory."""


class HandleKind(str, Enum):
    """Kinds of resources tracked by the arena."""

    DATABASE = "database"
    CONNECTION = "connection"
    STATEMENT = "statement"
    QUERY_RESULT = "query_result"
    APPENDER = "appender"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass(frozen=True, slots=True)
class Handle:
    """Checked reference to an arena slot.

    Attributes:
        kind: Resource kind, selects the slot table.
        index: Slot position inside that table.
        generation: Slot generation at issue time.
    """

    kind: HandleKind
    index: SlotIndex
    generation: Generation

    def __repr__(self) -> str:
        return f"Handle({self.kind.value}#{self.index}@{self.generation})"
