"""Application layer for the access layer.

The application layer ties the engine port to the handle arena, metrics,
tracing and logging.

Exports:
    Database & connections:
        - Database: An opened database
        - Connection: A session over a Database
        - open_database: Open or create a database
    Queries:
        - Statement: Parsed, parameterised SQL
        - QueryResult: Forward-only chunked result cursor
    Bulk load:
        - Appender: Buffered, table-bound row loader
"""

from duckling.application.appender import Appender
from duckling.application.database import Connection, Database, open_database
from duckling.application.query import QueryResult, Statement
from duckling.application.resources import ManagedResource

__all__ = [
    "Database",
    "Connection",
    "open_database",
    "Statement",
    "QueryResult",
    "Appender",
    "ManagedResource",
]
