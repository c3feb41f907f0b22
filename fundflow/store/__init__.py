"""Database store layer - provides persistence for the application.

This module re-exports the connection helpers and schema functions.
"""

from fundflow.store.queries import DEFAULT_BUSY_TIMEOUT, connection, transaction
from fundflow.store.schema import database_exists, get_db_path, init_database

__all__ = [
    # Connections
    "DEFAULT_BUSY_TIMEOUT",
    "connection",
    "transaction",
    # Schema
    "database_exists",
    "get_db_path",
    "init_database",
]
