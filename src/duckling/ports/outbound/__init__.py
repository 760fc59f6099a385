"""Outbound ports - interfaces for the embedded engine.

The access layer depends on these protocols only; the DuckDB adapter
implements them.
"""

from duckling.ports.outbound.engine import (
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
