"""
duckling - client-side access layer for the DuckDB embedded analytical engine.

Manages engine resources (databases, connections, prepared statements,
streaming results, bulk-load appenders) behind generation-checked handles,
streams results in bounded chunks, and marshals 128-bit integers.
"""

__version__ = "0.1.0"

from duckling.adapters.inbound.facade import (
    add_row,
    add_rows,
    appender,
    close,
    column_names,
    connection,
    execute,
    fetch_all,
    fetch_chunk,
    flush,
    library_version,
    number_of_threads,
    open,
    platform,
    prepare,
    query,
    source_id,
)
from duckling.application import (
    Appender,
    Connection,
    Database,
    QueryResult,
    Statement,
    open_database,
)
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
from duckling.domain.value_objects import (
    MEMORY_PATH,
    Handle,
    HandleKind,
    WideInteger,
    from_wide,
    to_wide,
)
from duckling.infrastructure import (
    Config,
    EngineConfig,
    get_config,
    setup_observability,
)

__all__ = [
    "__version__",
    # Functions
    "open",
    "close",
    "connection",
    "query",
    "prepare",
    "execute",
    "column_names",
    "fetch_chunk",
    "fetch_all",
    "appender",
    "add_row",
    "add_rows",
    "flush",
    "library_version",
    "source_id",
    "platform",
    "number_of_threads",
    "to_wide",
    "from_wide",
    # Resources
    "Database",
    "Connection",
    "Statement",
    "QueryResult",
    "Appender",
    "open_database",
    "Handle",
    "HandleKind",
    "MEMORY_PATH",
    "WideInteger",
    # Errors
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
    # Configuration
    "Config",
    "EngineConfig",
    "get_config",
    "setup_observability",
]
