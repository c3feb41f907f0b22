"""Transaction matcher: suggests which bank transactions settle which payments."""

from collections.abc import Sequence
from pathlib import Path

import structlog

from fundflow.domain.matching import MatchOptions, ScoringConfig, check_date_range, match_transactions
from fundflow.domain.models import Match, MatchRequest, Payment, Transaction
from fundflow.services.base import StoreService
from fundflow.store import queries
from fundflow.store.queries import DEFAULT_BUSY_TIMEOUT

log = structlog.get_logger(__name__)

OPEN_PAYMENT_STATUSES = ("scheduled", "overdue", "partial")


class TransactionMatcher(StoreService):
    """Score transactions against payments. Never writes."""

    def __init__(
        self,
        db_path: Path | None = None,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
        config: ScoringConfig | None = None,
    ) -> None:
        super().__init__(db_path, busy_timeout)
        self.config = config or ScoringConfig()

    def match(
        self,
        transactions: Sequence[Transaction],
        payments: Sequence[Payment],
        options: MatchOptions | None = None,
    ) -> list[Match]:
        """Match in-memory transactions and payments.

        Raises:
            InvalidDateRange: If the options' date range is inverted.
        """
        return match_transactions(transactions, payments, options, self.config)

    def match_stored(self, request: MatchRequest | None = None) -> list[Match]:
        """Match stored transactions against stored payments.

        Without payment ids only open payments are considered.

        Raises:
            InvalidDateRange: If the request's date range is inverted.
        """
        request = request or MatchRequest()
        check_date_range(request.date_range_start, request.date_range_end)

        with self.connection() as conn:
            transactions = queries.list_transactions(
                conn,
                transaction_ids=request.transaction_ids,
                since=request.date_range_start,
                until=request.date_range_end,
                account_ids=request.account_ids,
            )
            if request.payment_ids:
                payments = queries.list_payments(conn, payment_ids=request.payment_ids)
            else:
                payments = queries.list_payments(conn, statuses=OPEN_PAYMENT_STATUSES)

        options = MatchOptions(request.date_range_start, request.date_range_end, request.account_ids)
        matches = self.match(transactions, payments, options)
        log.info(
            "transactions_matched",
            transactions=len(transactions),
            payments=len(payments),
            matches=len(matches),
        )
        return matches
