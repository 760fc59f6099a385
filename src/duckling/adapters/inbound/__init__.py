"""Inbound adapters for the access layer.

Exports:
    Facade:
        - Module-level functions over Database, Connection, Statement,
          QueryResult and Appender objects (see duckling.adapters.inbound.facade)
"""
