"""Database schema initialization."""

import os
import sqlite3
from pathlib import Path


def get_xdg_data_home() -> Path:
    """Get XDG data directory, with fallback to ~/.local/share."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def get_db_path() -> Path:
    """Get the default database path (XDG compliant)."""
    return get_xdg_data_home() / "fundflow" / "fundflow.db"


def database_exists(db_path: Path | None = None) -> bool:
    """Check if the database file exists.

    Args:
        db_path: Path to check. If None, uses default location.

    Returns:
        True if database exists, False otherwise.
    """
    if db_path is None:
        db_path = get_db_path()
    return db_path.exists()


# Amounts are INTEGER cents, percentages INTEGER basis points, dates ISO TEXT.
SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS income_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        amount INTEGER NOT NULL CHECK (amount >= 0),
        scheduled_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'scheduled',
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS budget_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        target_percentage INTEGER NOT NULL CHECK (target_percentage BETWEEN 0 AND 10000),
        is_active INTEGER NOT NULL DEFAULT 1,
        sort_order INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS spending_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        budget_category_id INTEGER REFERENCES budget_categories(id),
        is_active INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS budget_allocations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        income_event_id INTEGER NOT NULL REFERENCES income_events(id) ON DELETE CASCADE,
        budget_category_id INTEGER NOT NULL REFERENCES budget_categories(id),
        amount INTEGER NOT NULL,
        percentage INTEGER NOT NULL,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        UNIQUE (income_event_id, budget_category_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        payee TEXT NOT NULL,
        amount INTEGER NOT NULL CHECK (amount >= 0),
        due_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'scheduled',
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payment_attributions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        payment_id INTEGER NOT NULL REFERENCES payments(id) ON DELETE CASCADE,
        income_event_id INTEGER NOT NULL REFERENCES income_events(id) ON DELETE CASCADE,
        amount INTEGER NOT NULL CHECK (amount > 0),
        attribution_type TEXT NOT NULL DEFAULT 'manual',
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        UNIQUE (payment_id, income_event_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id TEXT,
        date TEXT NOT NULL,
        amount INTEGER NOT NULL,
        description TEXT NOT NULL,
        merchant_name TEXT,
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
)

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_alloc_income ON budget_allocations(income_event_id)",
    "CREATE INDEX IF NOT EXISTS idx_alloc_category ON budget_allocations(budget_category_id)",
    "CREATE INDEX IF NOT EXISTS idx_attr_payment ON payment_attributions(payment_id)",
    "CREATE INDEX IF NOT EXISTS idx_attr_income ON payment_attributions(income_event_id)",
    "CREATE INDEX IF NOT EXISTS idx_txn_date ON transactions(date)",
    "CREATE INDEX IF NOT EXISTS idx_txn_account_date ON transactions(account_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_payment_due ON payments(due_date)",
)


def init_database(db_path: Path | None = None) -> None:
    """Initialize the database with the required schema.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Raises:
        sqlite3.Error: If database initialization fails.
    """
    if db_path is None:
        db_path = get_db_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        for statement in SCHEMA:
            cursor.execute(statement)

        for statement in INDEXES:
            cursor.execute(statement)

        conn.commit()

    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
