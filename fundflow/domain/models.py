"""Domain type definitions and records for fundflow.

These NewTypes provide semantic clarity and help with type checking:
- Money: Amount in cents (minor units)
- BasisPoints: Percentage in hundredths of a percent (10000 == 100%)

Records are immutable snapshots of store rows. Components pass ids and
records around, never live object graphs.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import NewType

# Money amounts are stored as cents (minor units) to avoid floating point errors
Money = NewType("Money", int)

# Percentages are stored as basis points: 1 == 0.01%, 10000 == 100%
BasisPoints = NewType("BasisPoints", int)

FULL_PERCENTAGE = BasisPoints(10000)


class MatchType(str, Enum):
    """Confidence tier of a transaction/payment match."""

    EXACT_AMOUNT = "exact_amount"
    CLOSE_AMOUNT = "close_amount"
    MERCHANT_MATCH = "merchant_match"
    DATE_RANGE = "date_range"


@dataclass(frozen=True)
class IncomeEvent:
    """A scheduled or received deposit."""

    id: int
    name: str
    amount: Money
    scheduled_date: date
    status: str = "scheduled"


@dataclass(frozen=True)
class BudgetCategory:
    """A percentage-based budget bucket."""

    id: int
    name: str
    target_percentage: BasisPoints
    is_active: bool = True
    sort_order: int = 0


@dataclass(frozen=True)
class BudgetAllocation:
    """Portion of one income event planned for one budget category."""

    id: int
    income_event_id: int
    budget_category_id: int
    amount: Money
    percentage: BasisPoints


@dataclass(frozen=True)
class Payment:
    """A bill or other outgoing payment."""

    id: int
    payee: str
    amount: Money
    due_date: date
    status: str = "scheduled"


@dataclass(frozen=True)
class PaymentAttribution:
    """Link funding part of a payment from one income event."""

    id: int
    payment_id: int
    income_event_id: int
    amount: Money
    attribution_type: str = "manual"


@dataclass(frozen=True)
class Transaction:
    """A normalized bank transaction (negative amount for debits)."""

    id: int
    amount: Money
    date: date
    description: str
    merchant_name: str | None = None
    account_id: str | None = None


@dataclass(frozen=True)
class Match:
    """Scored pairing of a transaction with a payment."""

    transaction_id: int
    payment_id: int
    confidence: float
    match_type: MatchType


@dataclass(frozen=True)
class CategoryPercentage:
    """Category id with the percentage a caller proposes for it."""

    category_id: int
    target_percentage: BasisPoints


@dataclass(frozen=True)
class PercentageSuggestion:
    """Suggested percentage for one category."""

    category_id: int
    current: BasisPoints
    suggested: BasisPoints


@dataclass(frozen=True)
class PercentageValidation:
    """Result of checking a set of category percentages against 100%."""

    is_valid: bool
    total_percentage: BasisPoints
    difference: BasisPoints
    suggestions: list[PercentageSuggestion] = field(default_factory=list)


@dataclass(frozen=True)
class GenerateAllocationRequest:
    """Request to split an income event across the active categories."""

    income_event_id: int
    overrides: dict[int, BasisPoints] | None = None


@dataclass(frozen=True)
class AllocationResult:
    """Allocations written for one income event."""

    income_event_id: int
    allocations: list[BudgetAllocation]


@dataclass(frozen=True)
class AttributionResult:
    """A written attribution with its informational percentage of the payment."""

    id: int
    payment_id: int
    income_event_id: int
    amount: Money
    percentage: BasisPoints


@dataclass(frozen=True)
class AutoDistributeRequest:
    """Request to spread a payment over candidate income events."""

    payment_id: int
    candidate_income_event_ids: list[int]


@dataclass(frozen=True)
class MatchRequest:
    """Store-backed matching request; empty id lists mean "all"."""

    transaction_ids: list[int] | None = None
    payment_ids: list[int] | None = None
    date_range_start: date | None = None
    date_range_end: date | None = None
    account_ids: list[str] | None = None
