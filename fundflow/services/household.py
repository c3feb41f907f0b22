"""Household records: income events, payments and imported transactions."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

import structlog

from fundflow.domain.errors import Conflict, InvalidAmount
from fundflow.domain.imports import ParsedTransaction
from fundflow.domain.models import IncomeEvent, Money, Payment, Transaction
from fundflow.services.attribution import require_income, require_payment
from fundflow.services.base import StoreService
from fundflow.store import queries

log = structlog.get_logger(__name__)

INCOME_STATUSES = ("scheduled", "received", "cancelled")
PAYMENT_STATUSES = ("scheduled", "paid", "overdue", "cancelled", "partial")


@dataclass
class ImportStats:
    """Statistics from importing transactions."""

    inserted: int = 0
    skipped: int = 0
    duplicate_ids: list[int] = field(default_factory=list)


def _check_positive(amount: Money) -> None:
    if amount <= 0:
        raise InvalidAmount(f"Amount must be positive, got {amount}")


class Household(StoreService):
    """CRUD for the records the reconciliation components work on."""

    def add_income(self, name: str, amount: Money, scheduled_date: date, status: str = "scheduled") -> IncomeEvent:
        """Record an income event.

        Raises:
            InvalidAmount: If amount is not positive.
            ValueError: If status is unknown.
        """
        _check_positive(amount)
        if status not in INCOME_STATUSES:
            raise ValueError(f"Unknown income status: {status}")
        with self.transaction() as conn:
            income = queries.insert_income_event(conn, name, amount, scheduled_date, status)
        log.info("income_added", income_event_id=income.id, amount=amount)
        return income

    def get_income(self, income_event_id: int) -> IncomeEvent:
        """Get an income event.

        Raises:
            NotFound: If it does not exist.
        """
        with self.connection() as conn:
            return require_income(conn, income_event_id)

    def list_incomes(self, since: date | None = None, until: date | None = None) -> list[IncomeEvent]:
        """List income events by scheduled date."""
        with self.connection() as conn:
            return queries.list_income_events(conn, since, until)

    def update_income_amount(self, income_event_id: int, amount: Money) -> IncomeEvent:
        """Change an income event's amount while nothing references it.

        Raises:
            NotFound: If the income event does not exist.
            InvalidAmount: If amount is not positive.
            Conflict: If allocations or attributions reference it.
        """
        _check_positive(amount)
        with self.transaction() as conn:
            income = require_income(conn, income_event_id)
            if queries.count_income_references(conn, income_event_id):
                raise Conflict(
                    f"Income event {income_event_id} has allocations or attributions; remove them before changing its amount"
                )
            queries.update_income_event(conn, income_event_id, amount=amount)
        log.info("income_updated", income_event_id=income_event_id, old_amount=income.amount, new_amount=amount)
        return IncomeEvent(income.id, income.name, amount, income.scheduled_date, income.status)

    def set_income_status(self, income_event_id: int, status: str) -> None:
        """Set an income event's status.

        Raises:
            NotFound: If the income event does not exist.
            ValueError: If status is unknown.
        """
        if status not in INCOME_STATUSES:
            raise ValueError(f"Unknown income status: {status}")
        with self.transaction() as conn:
            require_income(conn, income_event_id)
            queries.update_income_event(conn, income_event_id, status=status)

    def delete_income(self, income_event_id: int) -> bool:
        """Delete an income event with its allocations and attributions."""
        with self.transaction() as conn:
            deleted = queries.delete_income_event(conn, income_event_id)
        if deleted:
            log.info("income_deleted", income_event_id=income_event_id)
        return deleted

    def add_payment(self, payee: str, amount: Money, due_date: date, status: str = "scheduled") -> Payment:
        """Record a payment.

        Raises:
            InvalidAmount: If amount is not positive.
            ValueError: If status is unknown.
        """
        _check_positive(amount)
        if status not in PAYMENT_STATUSES:
            raise ValueError(f"Unknown payment status: {status}")
        with self.transaction() as conn:
            payment = queries.insert_payment(conn, payee, amount, due_date, status)
        log.info("payment_added", payment_id=payment.id, amount=amount)
        return payment

    def get_payment(self, payment_id: int) -> Payment:
        """Get a payment.

        Raises:
            NotFound: If it does not exist.
        """
        with self.connection() as conn:
            return require_payment(conn, payment_id)

    def list_payments(self, statuses: Sequence[str] | None = None) -> list[Payment]:
        """List payments by due date, optionally only some statuses."""
        with self.connection() as conn:
            return queries.list_payments(conn, statuses=statuses)

    def set_payment_status(self, payment_id: int, status: str) -> None:
        """Set a payment's status.

        Raises:
            NotFound: If the payment does not exist.
            ValueError: If status is unknown.
        """
        if status not in PAYMENT_STATUSES:
            raise ValueError(f"Unknown payment status: {status}")
        with self.transaction() as conn:
            require_payment(conn, payment_id)
            queries.update_payment_status(conn, payment_id, status)

    def delete_payment(self, payment_id: int) -> bool:
        """Delete a payment with its attributions."""
        with self.transaction() as conn:
            deleted = queries.delete_payment(conn, payment_id)
        if deleted:
            log.info("payment_deleted", payment_id=payment_id)
        return deleted

    def import_transactions(self, transactions: Iterable[ParsedTransaction]) -> ImportStats:
        """Insert parsed transactions, skipping ones already stored.

        The whole batch is one transaction.
        """
        stats = ImportStats()
        with self.transaction() as conn:
            for txn in transactions:
                inserted, txn_id = queries.insert_transaction(
                    conn,
                    txn["date"],
                    txn["description"],
                    txn["amount"],
                    merchant_name=txn["merchant_name"],
                    account_id=txn["account_id"],
                )
                if inserted:
                    stats.inserted += 1
                else:
                    stats.skipped += 1
                    stats.duplicate_ids.append(txn_id)
        log.info("transactions_imported", inserted=stats.inserted, skipped=stats.skipped)
        return stats

    def list_transactions(
        self,
        since: date | None = None,
        until: date | None = None,
        account_ids: Sequence[str] | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """List transactions, newest first."""
        with self.connection() as conn:
            return queries.list_transactions(conn, since=since, until=until, account_ids=account_ids, limit=limit)
