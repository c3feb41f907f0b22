"""Pure functions for the payment attribution ledger.

The ledger bounds every payment by its amount and every income event by its
amount. It knows nothing about budget allocations: the two ledgers compete for
the same income independently.

All monetary amounts are in cents (Money type).
"""

from collections.abc import Iterable
from dataclasses import dataclass

from fundflow.domain.errors import ExceedsIncome, ExceedsPayment, InvalidAmount
from fundflow.domain.models import Money, PaymentAttribution
from fundflow.domain.money import format_money


@dataclass(frozen=True)
class LedgerSummary:
    """Immutable attribution summary for one payment or income event."""

    owner_id: int
    owner_amount: Money
    rows: list[PaymentAttribution]
    total_attributed: Money
    remaining: Money


def total_attributed(rows: Iterable[PaymentAttribution], exclude_id: int | None = None) -> Money:
    """Sum attribution amounts, optionally leaving one row out."""
    return Money(sum(r.amount for r in rows if r.id != exclude_id))


def check_attribution_bounds(
    amount: Money,
    payment_amount: Money,
    payment_attributed: Money,
    income_amount: Money,
    income_attributed: Money,
) -> None:
    """Check a new or changed attribution against both owners.

    Args:
        amount: Attribution amount in cents.
        payment_amount: Payment amount in cents.
        payment_attributed: Already attributed to the payment, excluding this row.
        income_amount: Income event amount in cents.
        income_attributed: Already attributed from the income, excluding this row.

    Raises:
        InvalidAmount: If amount is not positive.
        ExceedsPayment: If the payment would be over-attributed.
        ExceedsIncome: If the income would be over-committed.
    """
    if amount <= 0:
        raise InvalidAmount("Attribution amount must be positive")

    if payment_attributed + amount > payment_amount:
        available = Money(payment_amount - payment_attributed)
        raise ExceedsPayment(f"Attribution exceeds payment amount. Remaining: {format_money(available)}")

    if income_attributed + amount > income_amount:
        available = Money(income_amount - income_attributed)
        raise ExceedsIncome(f"Attribution exceeds available income. Available: {format_money(available)}")


def summarize(owner_id: int, owner_amount: Money, rows: list[PaymentAttribution]) -> LedgerSummary:
    """Build a ledger summary for a payment or an income event."""
    attributed = total_attributed(rows)
    return LedgerSummary(
        owner_id=owner_id,
        owner_amount=owner_amount,
        rows=rows,
        total_attributed=attributed,
        remaining=Money(owner_amount - attributed),
    )


def validate_proposed(
    proposed: list[tuple[int, Money]],
    payment_amount: Money,
    payment_attributed: Money,
    income_available: dict[int, Money],
) -> list[str]:
    """Dry-run a batch of (income_event_id, amount) attributions.

    Args:
        proposed: Attributions to check.
        payment_amount: Payment amount in cents.
        payment_attributed: Already attributed to the payment.
        income_available: Unattributed amount per known income event id.

    Returns:
        Error messages; empty when the batch would succeed.
    """
    errors: list[str] = []
    total_proposed = sum(amount for _, amount in proposed)
    if payment_attributed + total_proposed > payment_amount:
        errors.append("Total attributions exceed payment amount")

    committed: dict[int, int] = {}
    for income_event_id, amount in proposed:
        if amount <= 0:
            errors.append("Attribution amounts must be positive")
            continue
        if income_event_id not in income_available:
            errors.append(f"Income event not found: {income_event_id}")
            continue
        committed[income_event_id] = committed.get(income_event_id, 0) + amount
        if committed[income_event_id] > income_available[income_event_id]:
            errors.append(
                f"Amount {format_money(amount)} exceeds available income for income event {income_event_id}"
            )

    return errors
