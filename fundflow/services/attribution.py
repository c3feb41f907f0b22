"""Attribution ledger: links payments to the income events that fund them."""

import sqlite3
from dataclasses import dataclass

import structlog

from fundflow.domain.attribution import LedgerSummary, check_attribution_bounds, summarize, validate_proposed
from fundflow.domain.errors import DuplicateLink, NotFound, ValidationError
from fundflow.domain.models import AttributionResult, IncomeEvent, Money, Payment, PaymentAttribution
from fundflow.domain.money import ratio_as_percentage
from fundflow.services.base import StoreService
from fundflow.store import queries

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CapacityCheck:
    """Outcome of a dry-run attribution batch."""

    is_valid: bool
    errors: list[str]
    total_proposed: Money
    payment_amount: Money


def _result(attribution: PaymentAttribution, payment: Payment) -> AttributionResult:
    return AttributionResult(
        id=attribution.id,
        payment_id=attribution.payment_id,
        income_event_id=attribution.income_event_id,
        amount=attribution.amount,
        percentage=ratio_as_percentage(attribution.amount, payment.amount),
    )


def require_payment(conn: sqlite3.Connection, payment_id: int) -> Payment:
    """Load a payment or raise NotFound."""
    payment = queries.get_payment(conn, payment_id)
    if payment is None:
        raise NotFound(f"Payment not found: {payment_id}")
    return payment


def require_income(conn: sqlite3.Connection, income_event_id: int) -> IncomeEvent:
    """Load an income event or raise NotFound."""
    income = queries.get_income_event(conn, income_event_id)
    if income is None:
        raise NotFound(f"Income event not found: {income_event_id}")
    return income


class AttributionLedger(StoreService):
    """Bounded many-to-many ledger between payments and income events.

    Per payment and per income event, attributions never total more than the
    owner's amount. The `*_in` methods run inside a caller's transaction so a
    batch of writes can be committed or rolled back together.
    """

    def attribute_in(
        self,
        conn: sqlite3.Connection,
        payment_id: int,
        income_event_id: int,
        amount: Money,
        attribution_type: str = "manual",
    ) -> AttributionResult:
        """Write a new attribution on an open transaction.

        Raises:
            NotFound: If the payment or income event does not exist.
            InvalidAmount: If amount is not positive.
            ExceedsPayment: If the payment would be over-attributed.
            ExceedsIncome: If the income would be over-committed.
            DuplicateLink: If the pair is already linked.
        """
        payment = require_payment(conn, payment_id)
        income = require_income(conn, income_event_id)

        try:
            check_attribution_bounds(
                amount,
                payment.amount,
                queries.sum_attributed_to_payment(conn, payment_id),
                income.amount,
                queries.sum_attributed_from_income(conn, income_event_id),
            )
            if queries.find_attribution(conn, payment_id, income_event_id) is not None:
                raise DuplicateLink(
                    f"Payment {payment_id} is already attributed to income event {income_event_id}; update it instead"
                )
        except ValidationError as e:
            log.warning(
                "attribution_rejected",
                payment_id=payment_id,
                income_event_id=income_event_id,
                amount=amount,
                kind=e.kind,
            )
            raise

        attribution = queries.insert_attribution(conn, payment_id, income_event_id, amount, attribution_type)
        log.info(
            "attribution_created",
            attribution_id=attribution.id,
            payment_id=payment_id,
            income_event_id=income_event_id,
            amount=amount,
            attribution_type=attribution_type,
        )
        return _result(attribution, payment)

    def update_in(self, conn: sqlite3.Connection, attribution_id: int, new_amount: Money) -> AttributionResult:
        """Change an attribution's amount on an open transaction.

        The row's own current amount is left out of both running totals.

        Raises:
            NotFound: If the attribution does not exist.
            InvalidAmount: If new_amount is not positive.
            ExceedsPayment: If the payment would be over-attributed.
            ExceedsIncome: If the income would be over-committed.
        """
        attribution = queries.get_attribution(conn, attribution_id)
        if attribution is None:
            raise NotFound(f"Attribution not found: {attribution_id}")
        payment = require_payment(conn, attribution.payment_id)
        income = require_income(conn, attribution.income_event_id)

        try:
            check_attribution_bounds(
                new_amount,
                payment.amount,
                queries.sum_attributed_to_payment(conn, payment.id, exclude_id=attribution_id),
                income.amount,
                queries.sum_attributed_from_income(conn, income.id, exclude_id=attribution_id),
            )
        except ValidationError as e:
            log.warning("attribution_update_rejected", attribution_id=attribution_id, amount=new_amount, kind=e.kind)
            raise

        queries.update_attribution_amount(conn, attribution_id, new_amount)
        log.info(
            "attribution_updated",
            attribution_id=attribution_id,
            old_amount=attribution.amount,
            new_amount=new_amount,
        )
        return AttributionResult(
            id=attribution.id,
            payment_id=attribution.payment_id,
            income_event_id=attribution.income_event_id,
            amount=new_amount,
            percentage=ratio_as_percentage(new_amount, payment.amount),
        )

    def attribute(
        self, payment_id: int, income_event_id: int, amount: Money, attribution_type: str = "manual"
    ) -> AttributionResult:
        """Attribute part of a payment to an income event (see `attribute_in`)."""
        with self.transaction() as conn:
            return self.attribute_in(conn, payment_id, income_event_id, amount, attribution_type)

    def update_attribution(self, attribution_id: int, new_amount: Money) -> AttributionResult:
        """Change an attribution's amount (see `update_in`)."""
        with self.transaction() as conn:
            return self.update_in(conn, attribution_id, new_amount)

    def remove(self, attribution_id: int) -> bool:
        """Remove an attribution unconditionally. Returns False if it did not exist."""
        with self.transaction() as conn:
            deleted = queries.delete_attribution(conn, attribution_id)
        if deleted:
            log.info("attribution_removed", attribution_id=attribution_id)
        return deleted

    def for_payment(self, payment_id: int) -> LedgerSummary:
        """Attributions funding a payment with attributed/remaining totals.

        Raises:
            NotFound: If the payment does not exist.
        """
        with self.connection() as conn:
            payment = require_payment(conn, payment_id)
            rows = queries.list_attributions_for_payment(conn, payment_id)
        return summarize(payment.id, payment.amount, rows)

    def for_income_event(self, income_event_id: int) -> LedgerSummary:
        """Attributions drawn from an income event with attributed/remaining totals.

        Raises:
            NotFound: If the income event does not exist.
        """
        with self.connection() as conn:
            income = require_income(conn, income_event_id)
            rows = queries.list_attributions_for_income(conn, income_event_id)
        return summarize(income.id, income.amount, rows)

    def validate_capacity(self, payment_id: int, proposed: list[tuple[int, Money]]) -> CapacityCheck:
        """Dry-run a batch of (income_event_id, amount) attributions without writing.

        Raises:
            NotFound: If the payment does not exist.
        """
        with self.connection() as conn:
            payment = require_payment(conn, payment_id)
            attributed = queries.sum_attributed_to_payment(conn, payment_id)
            available: dict[int, Money] = {}
            for income in queries.get_income_events(conn, [income_id for income_id, _ in proposed]):
                available[income.id] = Money(
                    income.amount - queries.sum_attributed_from_income(conn, income.id)
                )

        errors = validate_proposed(proposed, payment.amount, attributed, available)
        return CapacityCheck(
            is_valid=not errors,
            errors=errors,
            total_proposed=Money(sum(amount for _, amount in proposed)),
            payment_amount=payment.amount,
        )
