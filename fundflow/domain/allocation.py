"""Pure functions for splitting income across budget categories.

All monetary amounts are in cents (Money type), percentages in basis points.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from fundflow.domain.categories import check_percentage_range
from fundflow.domain.errors import ExceedsIncome, InvalidAmount, InvalidUpdate, NoCategories
from fundflow.domain.models import FULL_PERCENTAGE, BasisPoints, BudgetCategory, Money
from fundflow.domain.money import format_money, format_percentage, percent_of, ratio_as_percentage


@dataclass(frozen=True)
class AllocationShare:
    """Immutable planned allocation for one category."""

    budget_category_id: int
    amount: Money
    percentage: BasisPoints


def split_income(
    income_amount: Money,
    categories: Sequence[BudgetCategory],
    overrides: Mapping[int, BasisPoints] | None = None,
) -> list[AllocationShare]:
    """Split an income amount across the active categories.

    Each share is the income times its percentage, rounded to the cent. The
    rounding drift against the rounded total is then added to the share with
    the largest percentage (ties: lowest sort order), so a complete 100% set
    sums exactly to the income.

    Args:
        income_amount: Income amount in cents.
        categories: Candidate categories; inactive ones are skipped.
        overrides: Percentages to use instead of the category targets.

    Returns:
        Shares in sort order.

    Raises:
        NoCategories: If no category is active.
        InvalidPercentage: If an override is outside 0-100%.
        ExceedsIncome: If the percentages used total more than 100%.
    """
    active = sorted((c for c in categories if c.is_active), key=lambda c: (c.sort_order, c.id))
    if not active:
        raise NoCategories("No active budget categories found")

    overrides = overrides or {}
    percentages: list[BasisPoints] = []
    for category in active:
        percentage = overrides.get(category.id, category.target_percentage)
        check_percentage_range(percentage)
        percentages.append(percentage)

    total_percentage = BasisPoints(sum(percentages))
    if total_percentage > FULL_PERCENTAGE:
        raise ExceedsIncome(
            f"Allocation percentages total {format_percentage(total_percentage)}, more than the income"
        )

    amounts = [percent_of(income_amount, p) for p in percentages]
    drift = percent_of(income_amount, total_percentage) - sum(amounts)
    if drift:
        # max() keeps the first of equal percentages, i.e. the lowest sort order
        largest = max(range(len(active)), key=lambda i: percentages[i])
        amounts[largest] = Money(amounts[largest] + drift)

    return [
        AllocationShare(budget_category_id=c.id, amount=a, percentage=p)
        for c, a, p in zip(active, amounts, percentages)
    ]


def calculate_allocation_update(
    income_amount: Money,
    other_allocated: Money,
    amount: Money | None = None,
    percentage: BasisPoints | None = None,
) -> tuple[Money, BasisPoints]:
    """Calculate a single allocation change from either amount or percentage.

    Args:
        income_amount: Amount of the owning income event in cents.
        other_allocated: Sum of the income's other allocations in cents.
        amount: New amount in cents.
        percentage: New percentage in basis points.

    Returns:
        Tuple of (new_amount, new_percentage).

    Raises:
        InvalidUpdate: Unless exactly one of amount/percentage is given.
        InvalidAmount: If amount is negative.
        InvalidPercentage: If percentage is outside 0-100%.
        ExceedsIncome: If the income's allocations would exceed its amount.
    """
    if (amount is None) == (percentage is None):
        raise InvalidUpdate("Provide exactly one of amount or percentage")

    if amount is not None:
        if amount < 0:
            raise InvalidAmount("Amount cannot be negative")
        new_amount = amount
        new_percentage = ratio_as_percentage(amount, income_amount)
    else:
        assert percentage is not None
        check_percentage_range(percentage)
        new_amount = percent_of(income_amount, percentage)
        new_percentage = percentage

    if other_allocated + new_amount > income_amount:
        available = Money(income_amount - other_allocated)
        raise ExceedsIncome(f"Allocation exceeds income. Available: {format_money(available)}")

    return new_amount, new_percentage
