"""Database query functions.

Every function takes an open connection so that a service can run its
invariant check and its write inside one transaction. Use `transaction()` for
read-modify-write work and `connection()` for plain reads.
"""

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

from fundflow.dates import parse_iso_date
from fundflow.domain.models import (
    BasisPoints,
    BudgetAllocation,
    BudgetCategory,
    IncomeEvent,
    Money,
    Payment,
    PaymentAttribution,
    Transaction,
)
from fundflow.store.schema import get_db_path

DEFAULT_BUSY_TIMEOUT = 5.0


def _connect(db_path: Path | None = None, timeout: float = DEFAULT_BUSY_TIMEOUT) -> sqlite3.Connection:
    """Create a database connection with row factory and foreign keys enabled.

    Args:
        db_path: Path to the database file. If None, uses default location.
        timeout: Seconds to wait for another writer's lock.

    Returns:
        Connection in autocommit mode; transactions are explicit.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(db_path, timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def connection(db_path: Path | None = None, timeout: float = DEFAULT_BUSY_TIMEOUT) -> Iterator[sqlite3.Connection]:
    """Open a connection for reads and close it afterwards."""
    conn = _connect(db_path, timeout)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(db_path: Path | None = None, timeout: float = DEFAULT_BUSY_TIMEOUT) -> Iterator[sqlite3.Connection]:
    """Run a block as one write transaction.

    BEGIN IMMEDIATE takes the database write lock before the block reads any
    totals, so concurrent writers queue instead of checking stale sums. Any
    exception rolls the whole block back and is re-raised.

    Raises:
        sqlite3.Error: If the lock cannot be taken or a statement fails.
    """
    conn = _connect(db_path, timeout)
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except Exception:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


# Income events


def _income_from_row(row: sqlite3.Row) -> IncomeEvent:
    return IncomeEvent(
        id=row["id"],
        name=row["name"],
        amount=Money(row["amount"]),
        scheduled_date=parse_iso_date(row["scheduled_date"]),
        status=row["status"],
    )


def insert_income_event(
    conn: sqlite3.Connection, name: str, amount: Money, scheduled_date: date, status: str = "scheduled"
) -> IncomeEvent:
    """Insert an income event.

    Returns:
        The stored income event.
    """
    cursor = conn.execute(
        "INSERT INTO income_events (name, amount, scheduled_date, status) VALUES (?, ?, ?, ?)",
        (name, amount, scheduled_date.isoformat(), status),
    )
    return IncomeEvent(int(cursor.lastrowid or 0), name, amount, scheduled_date, status)


def get_income_event(conn: sqlite3.Connection, income_event_id: int) -> IncomeEvent | None:
    """Get an income event by id, or None if missing."""
    row = conn.execute("SELECT * FROM income_events WHERE id = ?", (income_event_id,)).fetchone()
    return _income_from_row(row) if row else None


def get_income_events(conn: sqlite3.Connection, income_event_ids: Sequence[int]) -> list[IncomeEvent]:
    """Get income events by id; missing ids are left out."""
    if not income_event_ids:
        return []
    rows = conn.execute(
        f"SELECT * FROM income_events WHERE id IN ({_placeholders(income_event_ids)}) ORDER BY scheduled_date, id",
        list(income_event_ids),
    ).fetchall()
    return [_income_from_row(row) for row in rows]


def list_income_events(
    conn: sqlite3.Connection, since: date | None = None, until: date | None = None
) -> list[IncomeEvent]:
    """List income events ordered by scheduled date, optionally within a range (inclusive)."""
    query = "SELECT * FROM income_events WHERE 1 = 1"
    params: list[Any] = []
    if since:
        query += " AND scheduled_date >= ?"
        params.append(since.isoformat())
    if until:
        query += " AND scheduled_date <= ?"
        params.append(until.isoformat())
    query += " ORDER BY scheduled_date, id"
    return [_income_from_row(row) for row in conn.execute(query, params).fetchall()]


def update_income_event(
    conn: sqlite3.Connection, income_event_id: int, amount: Money | None = None, status: str | None = None
) -> None:
    """Update amount and/or status of an income event."""
    if amount is not None:
        conn.execute("UPDATE income_events SET amount = ? WHERE id = ?", (amount, income_event_id))
    if status is not None:
        conn.execute("UPDATE income_events SET status = ? WHERE id = ?", (status, income_event_id))


def delete_income_event(conn: sqlite3.Connection, income_event_id: int) -> bool:
    """Delete an income event; its allocations and attributions cascade.

    Returns:
        True if a row was deleted.
    """
    cursor = conn.execute("DELETE FROM income_events WHERE id = ?", (income_event_id,))
    return cursor.rowcount > 0


# Budget categories


def _category_from_row(row: sqlite3.Row) -> BudgetCategory:
    return BudgetCategory(
        id=row["id"],
        name=row["name"],
        target_percentage=BasisPoints(row["target_percentage"]),
        is_active=bool(row["is_active"]),
        sort_order=row["sort_order"],
    )


def insert_category(
    conn: sqlite3.Connection, name: str, target_percentage: BasisPoints, sort_order: int
) -> BudgetCategory:
    """Insert an active budget category."""
    cursor = conn.execute(
        "INSERT INTO budget_categories (name, target_percentage, is_active, sort_order) VALUES (?, ?, 1, ?)",
        (name, target_percentage, sort_order),
    )
    return BudgetCategory(int(cursor.lastrowid or 0), name, target_percentage, True, sort_order)


def get_category(conn: sqlite3.Connection, category_id: int) -> BudgetCategory | None:
    """Get a budget category by id, or None if missing."""
    row = conn.execute("SELECT * FROM budget_categories WHERE id = ?", (category_id,)).fetchone()
    return _category_from_row(row) if row else None


def list_categories(conn: sqlite3.Connection, include_inactive: bool = False) -> list[BudgetCategory]:
    """List budget categories in sort order."""
    query = "SELECT * FROM budget_categories"
    if not include_inactive:
        query += " WHERE is_active = 1"
    query += " ORDER BY sort_order, id"
    return [_category_from_row(row) for row in conn.execute(query).fetchall()]


def update_category(
    conn: sqlite3.Connection,
    category_id: int,
    name: str | None = None,
    target_percentage: BasisPoints | None = None,
    is_active: bool | None = None,
    sort_order: int | None = None,
) -> None:
    """Update the given fields of a budget category."""
    fields: list[str] = []
    params: list[Any] = []
    if name is not None:
        fields.append("name = ?")
        params.append(name)
    if target_percentage is not None:
        fields.append("target_percentage = ?")
        params.append(target_percentage)
    if is_active is not None:
        fields.append("is_active = ?")
        params.append(1 if is_active else 0)
    if sort_order is not None:
        fields.append("sort_order = ?")
        params.append(sort_order)
    if not fields:
        return
    params.append(category_id)
    conn.execute(f"UPDATE budget_categories SET {', '.join(fields)} WHERE id = ?", params)


def insert_spending_category(conn: sqlite3.Connection, name: str, budget_category_id: int | None) -> int:
    """Insert an active spending category.

    Returns:
        New spending category id.
    """
    cursor = conn.execute(
        "INSERT INTO spending_categories (name, budget_category_id, is_active) VALUES (?, ?, 1)",
        (name, budget_category_id),
    )
    return int(cursor.lastrowid or 0)


def set_spending_category_active(conn: sqlite3.Connection, spending_category_id: int, is_active: bool) -> None:
    """Activate or deactivate a spending category."""
    conn.execute(
        "UPDATE spending_categories SET is_active = ? WHERE id = ?",
        (1 if is_active else 0, spending_category_id),
    )


def count_active_spending_categories(conn: sqlite3.Connection, budget_category_id: int) -> int:
    """Count active spending categories under a budget category."""
    row = conn.execute(
        "SELECT COUNT(*) FROM spending_categories WHERE budget_category_id = ? AND is_active = 1",
        (budget_category_id,),
    ).fetchone()
    return int(row[0])


# Budget allocations


def _allocation_from_row(row: sqlite3.Row) -> BudgetAllocation:
    return BudgetAllocation(
        id=row["id"],
        income_event_id=row["income_event_id"],
        budget_category_id=row["budget_category_id"],
        amount=Money(row["amount"]),
        percentage=BasisPoints(row["percentage"]),
    )


def insert_allocation(
    conn: sqlite3.Connection,
    income_event_id: int,
    budget_category_id: int,
    amount: Money,
    percentage: BasisPoints,
) -> BudgetAllocation:
    """Insert a budget allocation."""
    cursor = conn.execute(
        "INSERT INTO budget_allocations (income_event_id, budget_category_id, amount, percentage) VALUES (?, ?, ?, ?)",
        (income_event_id, budget_category_id, amount, percentage),
    )
    return BudgetAllocation(int(cursor.lastrowid or 0), income_event_id, budget_category_id, amount, percentage)


def get_allocation(conn: sqlite3.Connection, allocation_id: int) -> BudgetAllocation | None:
    """Get a budget allocation by id, or None if missing."""
    row = conn.execute("SELECT * FROM budget_allocations WHERE id = ?", (allocation_id,)).fetchone()
    return _allocation_from_row(row) if row else None


def list_allocations_for_income(conn: sqlite3.Connection, income_event_id: int) -> list[BudgetAllocation]:
    """List allocations of an income event in category sort order."""
    rows = conn.execute(
        """
        SELECT a.* FROM budget_allocations a
        JOIN budget_categories c ON c.id = a.budget_category_id
        WHERE a.income_event_id = ?
        ORDER BY c.sort_order, a.id
        """,
        (income_event_id,),
    ).fetchall()
    return [_allocation_from_row(row) for row in rows]


def sum_allocations_for_income(
    conn: sqlite3.Connection, income_event_id: int, exclude_id: int | None = None
) -> Money:
    """Total allocated from an income event, optionally excluding one allocation."""
    row = conn.execute(
        "SELECT COALESCE(SUM(amount), 0) FROM budget_allocations WHERE income_event_id = ? AND id IS NOT ?",
        (income_event_id, exclude_id),
    ).fetchone()
    return Money(int(row[0]))


def sum_allocations_for_category(conn: sqlite3.Connection, budget_category_id: int) -> Money:
    """Total allocated to a budget category across all income events."""
    row = conn.execute(
        "SELECT COALESCE(SUM(amount), 0) FROM budget_allocations WHERE budget_category_id = ?",
        (budget_category_id,),
    ).fetchone()
    return Money(int(row[0]))


def update_allocation(
    conn: sqlite3.Connection, allocation_id: int, amount: Money, percentage: BasisPoints
) -> None:
    """Set the amount and percentage of an allocation."""
    conn.execute(
        "UPDATE budget_allocations SET amount = ?, percentage = ? WHERE id = ?",
        (amount, percentage, allocation_id),
    )


def delete_allocation(conn: sqlite3.Connection, allocation_id: int) -> bool:
    """Delete an allocation. Returns True if a row was deleted."""
    cursor = conn.execute("DELETE FROM budget_allocations WHERE id = ?", (allocation_id,))
    return cursor.rowcount > 0


# Payments


def _payment_from_row(row: sqlite3.Row) -> Payment:
    return Payment(
        id=row["id"],
        payee=row["payee"],
        amount=Money(row["amount"]),
        due_date=parse_iso_date(row["due_date"]),
        status=row["status"],
    )


def insert_payment(
    conn: sqlite3.Connection, payee: str, amount: Money, due_date: date, status: str = "scheduled"
) -> Payment:
    """Insert a payment."""
    cursor = conn.execute(
        "INSERT INTO payments (payee, amount, due_date, status) VALUES (?, ?, ?, ?)",
        (payee, amount, due_date.isoformat(), status),
    )
    return Payment(int(cursor.lastrowid or 0), payee, amount, due_date, status)


def get_payment(conn: sqlite3.Connection, payment_id: int) -> Payment | None:
    """Get a payment by id, or None if missing."""
    row = conn.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
    return _payment_from_row(row) if row else None


def list_payments(
    conn: sqlite3.Connection,
    statuses: Sequence[str] | None = None,
    payment_ids: Sequence[int] | None = None,
) -> list[Payment]:
    """List payments ordered by due date, optionally filtered by status and id."""
    query = "SELECT * FROM payments WHERE 1 = 1"
    params: list[Any] = []
    if statuses:
        query += f" AND status IN ({_placeholders(statuses)})"
        params.extend(statuses)
    if payment_ids:
        query += f" AND id IN ({_placeholders(payment_ids)})"
        params.extend(payment_ids)
    query += " ORDER BY due_date, id"
    return [_payment_from_row(row) for row in conn.execute(query, params).fetchall()]


def update_payment_status(conn: sqlite3.Connection, payment_id: int, status: str) -> None:
    """Set the status of a payment."""
    conn.execute("UPDATE payments SET status = ? WHERE id = ?", (status, payment_id))


def delete_payment(conn: sqlite3.Connection, payment_id: int) -> bool:
    """Delete a payment; its attributions cascade. Returns True if deleted."""
    cursor = conn.execute("DELETE FROM payments WHERE id = ?", (payment_id,))
    return cursor.rowcount > 0


# Payment attributions


def _attribution_from_row(row: sqlite3.Row) -> PaymentAttribution:
    return PaymentAttribution(
        id=row["id"],
        payment_id=row["payment_id"],
        income_event_id=row["income_event_id"],
        amount=Money(row["amount"]),
        attribution_type=row["attribution_type"],
    )


def insert_attribution(
    conn: sqlite3.Connection,
    payment_id: int,
    income_event_id: int,
    amount: Money,
    attribution_type: str = "manual",
) -> PaymentAttribution:
    """Insert a payment attribution."""
    cursor = conn.execute(
        "INSERT INTO payment_attributions (payment_id, income_event_id, amount, attribution_type) VALUES (?, ?, ?, ?)",
        (payment_id, income_event_id, amount, attribution_type),
    )
    return PaymentAttribution(int(cursor.lastrowid or 0), payment_id, income_event_id, amount, attribution_type)


def get_attribution(conn: sqlite3.Connection, attribution_id: int) -> PaymentAttribution | None:
    """Get an attribution by id, or None if missing."""
    row = conn.execute("SELECT * FROM payment_attributions WHERE id = ?", (attribution_id,)).fetchone()
    return _attribution_from_row(row) if row else None


def find_attribution(conn: sqlite3.Connection, payment_id: int, income_event_id: int) -> PaymentAttribution | None:
    """Get the attribution linking a payment and an income event, if any."""
    row = conn.execute(
        "SELECT * FROM payment_attributions WHERE payment_id = ? AND income_event_id = ?",
        (payment_id, income_event_id),
    ).fetchone()
    return _attribution_from_row(row) if row else None


def list_attributions_for_payment(conn: sqlite3.Connection, payment_id: int) -> list[PaymentAttribution]:
    """List attributions funding a payment."""
    rows = conn.execute(
        "SELECT * FROM payment_attributions WHERE payment_id = ? ORDER BY id", (payment_id,)
    ).fetchall()
    return [_attribution_from_row(row) for row in rows]


def list_attributions_for_income(conn: sqlite3.Connection, income_event_id: int) -> list[PaymentAttribution]:
    """List attributions drawn from an income event."""
    rows = conn.execute(
        "SELECT * FROM payment_attributions WHERE income_event_id = ? ORDER BY id", (income_event_id,)
    ).fetchall()
    return [_attribution_from_row(row) for row in rows]


def sum_attributed_to_payment(conn: sqlite3.Connection, payment_id: int, exclude_id: int | None = None) -> Money:
    """Total attributed to a payment, optionally excluding one attribution."""
    row = conn.execute(
        "SELECT COALESCE(SUM(amount), 0) FROM payment_attributions WHERE payment_id = ? AND id IS NOT ?",
        (payment_id, exclude_id),
    ).fetchone()
    return Money(int(row[0]))


def sum_attributed_from_income(
    conn: sqlite3.Connection, income_event_id: int, exclude_id: int | None = None
) -> Money:
    """Total attributed from an income event, optionally excluding one attribution."""
    row = conn.execute(
        "SELECT COALESCE(SUM(amount), 0) FROM payment_attributions WHERE income_event_id = ? AND id IS NOT ?",
        (income_event_id, exclude_id),
    ).fetchone()
    return Money(int(row[0]))


def count_income_references(conn: sqlite3.Connection, income_event_id: int) -> int:
    """Count allocations and attributions referencing an income event."""
    row = conn.execute(
        """
        SELECT
            (SELECT COUNT(*) FROM budget_allocations WHERE income_event_id = ?)
            + (SELECT COUNT(*) FROM payment_attributions WHERE income_event_id = ?)
        """,
        (income_event_id, income_event_id),
    ).fetchone()
    return int(row[0])


def update_attribution_amount(conn: sqlite3.Connection, attribution_id: int, amount: Money) -> None:
    """Set the amount of an attribution."""
    conn.execute("UPDATE payment_attributions SET amount = ? WHERE id = ?", (amount, attribution_id))


def delete_attribution(conn: sqlite3.Connection, attribution_id: int) -> bool:
    """Delete an attribution. Returns True if a row was deleted."""
    cursor = conn.execute("DELETE FROM payment_attributions WHERE id = ?", (attribution_id,))
    return cursor.rowcount > 0


# Transactions


def _transaction_from_row(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row["id"],
        amount=Money(row["amount"]),
        date=parse_iso_date(row["date"]),
        description=row["description"],
        merchant_name=row["merchant_name"],
        account_id=row["account_id"],
    )


def insert_transaction(
    conn: sqlite3.Connection,
    txn_date: date,
    description: str,
    amount: Money,
    merchant_name: str | None = None,
    account_id: str | None = None,
) -> tuple[bool, int]:
    """Insert a transaction if an identical one is not already stored.

    Returns:
        Tuple of (inserted, id): id of the new row, or of the duplicate.
    """
    existing = conn.execute(
        "SELECT id FROM transactions WHERE date = ? AND description = ? AND amount = ? AND account_id IS ?",
        (txn_date.isoformat(), description, amount, account_id),
    ).fetchone()
    if existing:
        return False, int(existing[0])

    cursor = conn.execute(
        "INSERT INTO transactions (account_id, date, amount, description, merchant_name) VALUES (?, ?, ?, ?, ?)",
        (account_id, txn_date.isoformat(), amount, description, merchant_name),
    )
    return True, int(cursor.lastrowid or 0)


def list_transactions(
    conn: sqlite3.Connection,
    transaction_ids: Sequence[int] | None = None,
    since: date | None = None,
    until: date | None = None,
    account_ids: Sequence[str] | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    """List transactions, newest first, with optional filters (dates inclusive)."""
    query = "SELECT * FROM transactions WHERE 1 = 1"
    params: list[Any] = []
    if transaction_ids:
        query += f" AND id IN ({_placeholders(transaction_ids)})"
        params.extend(transaction_ids)
    if since:
        query += " AND date >= ?"
        params.append(since.isoformat())
    if until:
        query += " AND date <= ?"
        params.append(until.isoformat())
    if account_ids:
        query += f" AND account_id IN ({_placeholders(account_ids)})"
        params.extend(account_ids)
    query += " ORDER BY date DESC, id DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    return [_transaction_from_row(row) for row in conn.execute(query, params).fetchall()]
