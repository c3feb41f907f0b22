"""Pure functions for matching bank transactions to payments.

This module contains the functional core for transaction matching:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

Every (transaction, payment) pair is scored independently; a transaction may
appear in several matches. All monetary amounts are in cents (Money type).
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from difflib import SequenceMatcher

from fundflow.domain.errors import InvalidDateRange
from fundflow.domain.models import Match, MatchType, Money, Payment, Transaction

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class ScoringConfig:
    """Matcher tuning parameters."""

    amount_threshold: float = 0.10
    date_window_days: int = 7
    min_confidence: float = 0.3
    amount_weight: float = 0.5
    date_weight: float = 0.3
    merchant_weight: float = 0.2


@dataclass(frozen=True)
class MatchOptions:
    """Filters applied to transactions before scoring."""

    date_range_start: date | None = None
    date_range_end: date | None = None
    account_ids: list[str] | None = None


def normalize_description(description: str) -> str:
    """Normalize merchant text for matching.

    Args:
        description: Raw merchant name or description.

    Returns:
        Lowercase words separated by single spaces, punctuation removed.
    """
    return " ".join(_NON_ALNUM.sub(" ", description.lower()).split())


def calculate_similarity_score(desc1: str, desc2: str) -> float:
    """Calculate word-based similarity between two descriptions.

    Uses the Jaccard coefficient of the word sets.

    Returns:
        Similarity score between 0.0 and 1.0.
    """
    words1 = set(normalize_description(desc1).split())
    words2 = set(normalize_description(desc2).split())

    if not words1 or not words2:
        return 0.0

    intersection = len(words1 & words2)
    union = len(words1 | words2)

    return intersection / union if union > 0 else 0.0


def merchant_score(payee: str, merchant_text: str | None) -> float:
    """Score how well a transaction's merchant text names the payee.

    All words of one name appearing in the other scores 1.0; otherwise the
    better of the word overlap and the character sequence ratio.
    """
    left = normalize_description(payee)
    right = normalize_description(merchant_text or "")
    if not left or not right:
        return 0.0
    left_words, right_words = set(left.split()), set(right.split())
    if left_words <= right_words or right_words <= left_words:
        return 1.0
    return max(calculate_similarity_score(left, right), SequenceMatcher(None, left, right).ratio())


def amount_score(transaction_amount: Money, payment_amount: Money, threshold: float = 0.10) -> float:
    """Score amount agreement, ignoring the transaction's sign.

    1.0 for equal amounts, falling linearly to 0.0 when the relative
    difference reaches the threshold.
    """
    observed = abs(transaction_amount)
    expected = abs(payment_amount)
    if observed == expected:
        return 1.0
    if expected == 0 or threshold <= 0:
        return 0.0
    relative = abs(observed - expected) / expected
    return max(0.0, 1.0 - relative / threshold)


def date_score(transaction_date: date, due_date: date, window_days: int = 7) -> float:
    """Score date proximity: 1.0 on the due date, 0.0 at the window edge."""
    days = abs((transaction_date - due_date).days)
    if days == 0:
        return 1.0
    if window_days <= 0:
        return 0.0
    return max(0.0, 1.0 - days / window_days)


def classify(confidence: float) -> MatchType:
    """Map a confidence to its match tier."""
    if confidence >= 0.9:
        return MatchType.EXACT_AMOUNT
    if confidence >= 0.7:
        return MatchType.CLOSE_AMOUNT
    if confidence >= 0.5:
        return MatchType.MERCHANT_MATCH
    return MatchType.DATE_RANGE


def score_pair(transaction: Transaction, payment: Payment, config: ScoringConfig | None = None) -> float:
    """Combine amount, date and merchant scores into a confidence in [0, 1]."""
    config = config or ScoringConfig()
    merchant = max(
        merchant_score(payment.payee, transaction.merchant_name),
        merchant_score(payment.payee, transaction.description),
    )
    weights = config.amount_weight + config.date_weight + config.merchant_weight
    if weights <= 0:
        return 0.0
    combined = (
        config.amount_weight * amount_score(transaction.amount, payment.amount, config.amount_threshold)
        + config.date_weight * date_score(transaction.date, payment.due_date, config.date_window_days)
        + config.merchant_weight * merchant
    ) / weights
    return min(1.0, max(0.0, combined))


def check_date_range(start: date | None, end: date | None) -> None:
    """Reject a window that starts after it ends.

    Raises:
        InvalidDateRange: If start is after end.
    """
    if start is not None and end is not None and start > end:
        raise InvalidDateRange(f"Date range start {start.isoformat()} is after end {end.isoformat()}")


def filter_transactions(transactions: Sequence[Transaction], options: MatchOptions) -> list[Transaction]:
    """Apply date range and account filters."""
    check_date_range(options.date_range_start, options.date_range_end)
    accounts = set(options.account_ids) if options.account_ids else None

    selected: list[Transaction] = []
    for txn in transactions:
        if options.date_range_start is not None and txn.date < options.date_range_start:
            continue
        if options.date_range_end is not None and txn.date > options.date_range_end:
            continue
        if accounts is not None and txn.account_id not in accounts:
            continue
        selected.append(txn)
    return selected


def match_transactions(
    transactions: Sequence[Transaction],
    payments: Sequence[Payment],
    options: MatchOptions | None = None,
    config: ScoringConfig | None = None,
) -> list[Match]:
    """Score every transaction/payment pair and keep those above the floor.

    Args:
        transactions: Imported transactions.
        payments: Open payments.
        options: Transaction filters.
        config: Scoring parameters.

    Returns:
        Matches sorted by confidence (highest first), then by ids.

    Raises:
        InvalidDateRange: If the date range is inverted.
    """
    config = config or ScoringConfig()
    selected = filter_transactions(transactions, options or MatchOptions())

    matches: list[Match] = []
    for txn in selected:
        for payment in payments:
            confidence = round(score_pair(txn, payment, config), 4)
            if confidence > config.min_confidence:
                matches.append(Match(txn.id, payment.id, confidence, classify(confidence)))

    matches.sort(key=lambda m: (-m.confidence, m.transaction_id, m.payment_id))
    return matches
