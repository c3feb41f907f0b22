"""Shared plumbing for store-backed services."""

import sqlite3
from contextlib import AbstractContextManager
from pathlib import Path

from fundflow.store.queries import DEFAULT_BUSY_TIMEOUT, connection, transaction


class StoreService:
    """Service bound to one database file.

    Args:
        db_path: Path to the database file. If None, uses default location.
        busy_timeout: Seconds to wait for a concurrent writer's lock.
    """

    def __init__(self, db_path: Path | None = None, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def transaction(self) -> AbstractContextManager[sqlite3.Connection]:
        return transaction(self.db_path, self.busy_timeout)

    def connection(self) -> AbstractContextManager[sqlite3.Connection]:
        return connection(self.db_path, self.busy_timeout)
