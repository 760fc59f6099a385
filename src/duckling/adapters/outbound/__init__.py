"""Outbound adapters - implementations of outbound ports.

The DuckDB adapter implements the engine port on top of the ``duckdb``
package.
"""

from duckling.adapters.outbound.duckdb_engine import (
    DuckDBCursor,
    DuckDBDriver,
    DuckDBInstance,
    DuckDBSession,
    quote_identifier,
    translate_error,
)

__all__ = [
    "DuckDBDriver",
    "DuckDBInstance",
    "DuckDBSession",
    "DuckDBCursor",
    "translate_error",
    "quote_identifier",
]
