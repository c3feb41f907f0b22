"""Allocation generator: splits income events across budget categories."""

import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from fundflow.domain.allocation import calculate_allocation_update, split_income
from fundflow.domain.errors import AlreadyAllocated, NotFound
from fundflow.domain.models import (
    AllocationResult,
    BasisPoints,
    BudgetAllocation,
    GenerateAllocationRequest,
    IncomeEvent,
    Money,
)
from fundflow.services.base import StoreService
from fundflow.store import queries

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AllocationSummary:
    """Allocations of one income event with totals."""

    income_event: IncomeEvent
    allocations: list[BudgetAllocation]
    total_allocated: Money
    unallocated: Money


class AllocationGenerator(StoreService):
    """Generate and adjust budget allocations.

    The allocations of an income event never total more than its amount.
    """

    def _require_income(self, conn: sqlite3.Connection, income_event_id: int) -> IncomeEvent:
        income = queries.get_income_event(conn, income_event_id)
        if income is None:
            raise NotFound(f"Income event not found: {income_event_id}")
        return income

    def generate(
        self, income_event_id: int, overrides: Mapping[int, BasisPoints] | None = None
    ) -> AllocationResult:
        """Write one allocation per active category for an income event.

        Args:
            income_event_id: Income event to allocate.
            overrides: Percentages to use instead of category targets, by category id.

        Returns:
            AllocationResult with the written allocations in sort order.

        Raises:
            NotFound: If the income event does not exist.
            AlreadyAllocated: If it already has allocations.
            NoCategories: If no category is active.
            ExceedsIncome: If override percentages total more than 100%.
        """
        with self.transaction() as conn:
            income = self._require_income(conn, income_event_id)
            if queries.list_allocations_for_income(conn, income_event_id):
                log.warning("allocation_rejected", income_event_id=income_event_id, reason="already_allocated")
                raise AlreadyAllocated(f"Budget allocation already exists for income event {income_event_id}")

            shares = split_income(income.amount, queries.list_categories(conn), overrides)
            allocations = [
                queries.insert_allocation(conn, income_event_id, s.budget_category_id, s.amount, s.percentage)
                for s in shares
            ]

        log.info(
            "allocation_generated",
            income_event_id=income_event_id,
            total_amount=income.amount,
            categories=len(allocations),
            overrides=len(overrides or {}),
        )
        return AllocationResult(income_event_id=income_event_id, allocations=allocations)

    def generate_for(self, request: GenerateAllocationRequest) -> AllocationResult:
        """Request-object form of `generate`."""
        return self.generate(request.income_event_id, request.overrides)

    def update(
        self,
        allocation_id: int,
        amount: Money | None = None,
        percentage: BasisPoints | None = None,
    ) -> BudgetAllocation:
        """Change one allocation by amount or by percentage.

        Raises:
            NotFound: If the allocation does not exist.
            InvalidUpdate: Unless exactly one of amount/percentage is given.
            ExceedsIncome: If the income's allocations would exceed its amount.
        """
        with self.transaction() as conn:
            allocation = queries.get_allocation(conn, allocation_id)
            if allocation is None:
                raise NotFound(f"Budget allocation not found: {allocation_id}")
            income = self._require_income(conn, allocation.income_event_id)
            others = queries.sum_allocations_for_income(conn, income.id, exclude_id=allocation_id)

            new_amount, new_percentage = calculate_allocation_update(income.amount, others, amount, percentage)
            queries.update_allocation(conn, allocation_id, new_amount, new_percentage)

        log.info(
            "allocation_updated",
            allocation_id=allocation_id,
            old_amount=allocation.amount,
            new_amount=new_amount,
        )
        return BudgetAllocation(
            id=allocation.id,
            income_event_id=allocation.income_event_id,
            budget_category_id=allocation.budget_category_id,
            amount=new_amount,
            percentage=new_percentage,
        )

    def remove(self, allocation_id: int) -> bool:
        """Remove one allocation. Returns False if it did not exist."""
        with self.transaction() as conn:
            deleted = queries.delete_allocation(conn, allocation_id)
        if deleted:
            log.info("allocation_removed", allocation_id=allocation_id)
        return deleted

    def for_income_event(self, income_event_id: int) -> AllocationSummary:
        """Allocations of an income event with allocated/unallocated totals.

        Raises:
            NotFound: If the income event does not exist.
        """
        with self.connection() as conn:
            income = self._require_income(conn, income_event_id)
            allocations = queries.list_allocations_for_income(conn, income_event_id)

        total = Money(sum(a.amount for a in allocations))
        return AllocationSummary(income, allocations, total, Money(income.amount - total))
