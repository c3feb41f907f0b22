"""Auto-distributor: proposes and writes attributions for a payment."""

import structlog

from fundflow.domain.distribution import Candidate, plan_distribution
from fundflow.domain.errors import NotFound
from fundflow.domain.models import AttributionResult, AutoDistributeRequest, Money
from fundflow.services.attribution import AttributionLedger, require_payment
from fundflow.store import queries

log = structlog.get_logger(__name__)


class AutoDistributor:
    """Spread the unattributed part of a payment over candidate income events.

    FIFO by scheduled date when the candidates can cover the payment,
    pro-rata by free capacity when they cannot. All writes go through the
    ledger's bound checks inside one transaction: either every share is
    written or none is.
    """

    def __init__(self, ledger: AttributionLedger) -> None:
        self.ledger = ledger

    def distribute(self, payment_id: int, candidate_income_event_ids: list[int]) -> list[AttributionResult]:
        """Attribute the payment's remaining amount across the candidates.

        Calling this again with no change in between writes nothing, because
        the target is always net of existing attributions.

        Args:
            payment_id: Payment to fund.
            candidate_income_event_ids: Income events that may fund it.

        Returns:
            One result per written (or topped-up) attribution.

        Raises:
            NotFound: If the payment or a candidate does not exist.
            ExceedsPayment, ExceedsIncome: If a bound check fails; nothing is written.
        """
        with self.ledger.transaction() as conn:
            payment = require_payment(conn, payment_id)
            target = Money(payment.amount - queries.sum_attributed_to_payment(conn, payment_id))
            if target <= 0:
                log.info("distribution_skipped", payment_id=payment_id, reason="fully_attributed")
                return []

            unique_ids = list(dict.fromkeys(candidate_income_event_ids))
            incomes = queries.get_income_events(conn, unique_ids)
            missing = set(unique_ids) - {income.id for income in incomes}
            if missing:
                raise NotFound(f"Income event not found: {', '.join(str(i) for i in sorted(missing))}")

            candidates = [
                Candidate(
                    income_event_id=income.id,
                    scheduled_date=income.scheduled_date,
                    capacity=Money(income.amount - queries.sum_attributed_from_income(conn, income.id)),
                )
                for income in incomes
            ]
            plan = plan_distribution(target, candidates)

            results: list[AttributionResult] = []
            for share in plan:
                existing = queries.find_attribution(conn, payment_id, share.income_event_id)
                if existing is None:
                    results.append(
                        self.ledger.attribute_in(conn, payment_id, share.income_event_id, share.amount, "automatic")
                    )
                else:
                    results.append(self.ledger.update_in(conn, existing.id, Money(existing.amount + share.amount)))

        log.info(
            "distribution_applied",
            payment_id=payment_id,
            target=target,
            attributed=sum(share.amount for share in plan),
            shares=len(plan),
        )
        return results

    def distribute_for(self, request: AutoDistributeRequest) -> list[AttributionResult]:
        """Request-object form of `distribute`."""
        return self.distribute(request.payment_id, request.candidate_income_event_ids)
