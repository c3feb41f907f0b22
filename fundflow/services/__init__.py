"""Store-backed services.

Each service owns one set of invariants and runs its check-then-write work
inside a single database transaction.
"""

from fundflow.services.allocation import AllocationGenerator, AllocationSummary
from fundflow.services.attribution import AttributionLedger, CapacityCheck
from fundflow.services.distributor import AutoDistributor
from fundflow.services.household import Household, ImportStats
from fundflow.services.matcher import TransactionMatcher
from fundflow.services.registry import BudgetCategoryRegistry

__all__ = [
    "AllocationGenerator",
    "AllocationSummary",
    "AttributionLedger",
    "AutoDistributor",
    "BudgetCategoryRegistry",
    "CapacityCheck",
    "Household",
    "ImportStats",
    "TransactionMatcher",
]
