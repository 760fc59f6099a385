"""Ports layer - interface definitions following Hexagonal Architecture.

Outbound ports describe the embedded engine the access layer drives.
Adapters implement them with a concrete engine library.
"""

from duckling.ports.outbound import (
    ColumnSpec,
    EngineCursor,
    EngineDriver,
    EngineInstance,
    EngineSession,
)

__all__ = [
    "ColumnSpec",
    "EngineCursor",
    "EngineDriver",
    "EngineInstance",
    "EngineSession",
]
