"""Caller-visible failures of the reconciliation core.

All of these are non-retryable validation failures. Infrastructure errors
(sqlite3.Error) are never wrapped in these classes; they propagate unchanged.
"""


class ReconciliationError(Exception):
    """Base exception for reconciliation operations."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        """Taxonomy name of the failure (e.g. "ExceedsIncome")."""
        return type(self).__name__


class ValidationError(ReconciliationError):
    """Request was well-formed but breaks a ledger or registry rule."""


class PercentageExceeded(ValidationError):
    """Active category percentages would total more than 100%."""


class InvalidPercentage(ValidationError):
    """Percentage outside 0-100%."""


class AlreadyAllocated(ValidationError):
    """Allocations already exist for the income event."""


class NoCategories(ValidationError):
    """No active budget categories to allocate across."""


class ExceedsIncome(ValidationError):
    """Write would commit more than the income event amount."""


class ExceedsPayment(ValidationError):
    """Write would attribute more than the payment amount."""


class DuplicateLink(ValidationError):
    """An attribution already links this payment and income event."""


class InvalidUpdate(ValidationError):
    """Update must name exactly one of amount or percentage."""


class InvalidAmount(ValidationError):
    """Amount must be positive."""


class InvalidDateRange(ValidationError):
    """Matching window starts after it ends."""


class NotFound(ReconciliationError):
    """Referenced entity does not exist."""


class Conflict(ReconciliationError):
    """Operation blocked by live references."""
