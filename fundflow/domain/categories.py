"""Pure functions for budget category percentage rules.

This module contains the functional core for the category registry:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

All percentages are in basis points (BasisPoints type).
"""

from collections.abc import Iterable, Sequence

from fundflow.domain.errors import Conflict, InvalidPercentage, PercentageExceeded
from fundflow.domain.models import (
    FULL_PERCENTAGE,
    BasisPoints,
    BudgetCategory,
    CategoryPercentage,
    Money,
    PercentageSuggestion,
    PercentageValidation,
)
from fundflow.domain.money import divide_half_up, format_percentage

# |total - 100%| must be below 0.01% to count as complete
TOLERANCE = BasisPoints(1)


def active_total(categories: Iterable[BudgetCategory], exclude_id: int | None = None) -> BasisPoints:
    """Sum target percentages of active categories.

    Args:
        categories: Categories to sum.
        exclude_id: Category to leave out (the one being updated).

    Returns:
        Total in basis points.
    """
    return BasisPoints(
        sum(c.target_percentage for c in categories if c.is_active and c.id != exclude_id)
    )


def check_percentage_range(percentage: BasisPoints) -> None:
    """Reject percentages outside 0-100%.

    Raises:
        InvalidPercentage: If out of range.
    """
    if percentage < 0 or percentage > FULL_PERCENTAGE:
        raise InvalidPercentage(f"Percentage must be between 0% and 100%, got {format_percentage(percentage)}")


def check_percentage_ceiling(current_total: BasisPoints, percentage: BasisPoints) -> BasisPoints:
    """Check that adding a percentage keeps the active total within 100%.

    Args:
        current_total: Active total, excluding the category being changed.
        percentage: New percentage for the category.

    Returns:
        The new active total.

    Raises:
        InvalidPercentage: If percentage is outside 0-100%.
        PercentageExceeded: If the new total would pass 100%.
    """
    check_percentage_range(percentage)
    new_total = BasisPoints(current_total + percentage)
    if new_total > FULL_PERCENTAGE:
        raise PercentageExceeded(
            f"Total budget percentages cannot exceed 100%. Current total: {format_percentage(new_total)}"
        )
    return new_total


def next_sort_order(categories: Iterable[BudgetCategory]) -> int:
    """Sort order for a category appended after the active ones."""
    return max((c.sort_order for c in categories if c.is_active), default=0) + 1


def check_deactivation(category: BudgetCategory, active_spending_categories: int, allocated: Money) -> None:
    """Check that nothing live still references a category.

    Args:
        category: Category to deactivate.
        active_spending_categories: Count of active spending categories under it.
        allocated: Total amount of allocations against it, in cents.

    Raises:
        Conflict: If a spending category or non-zero allocation references it.
    """
    if active_spending_categories > 0:
        raise Conflict(
            f"Cannot deactivate '{category.name}': {active_spending_categories} active spending categories"
        )
    if allocated != 0:
        raise Conflict(f"Cannot deactivate '{category.name}': it still holds allocations")


def validate_percentages(categories: Sequence[CategoryPercentage]) -> PercentageValidation:
    """Check a set of percentages against 100% and suggest fixes.

    Over 100%: every category is scaled by 100/total (rounded to 0.01%).
    Under 100%: the whole shortfall goes to the largest category, first
    occurrence winning ties. Suggestions list every category in input order.

    Args:
        categories: Proposed percentages.

    Returns:
        PercentageValidation with totals and suggestions.
    """
    total = BasisPoints(sum(c.target_percentage for c in categories))
    difference = BasisPoints(total - FULL_PERCENTAGE)
    is_valid = abs(difference) < TOLERANCE

    suggestions: list[PercentageSuggestion] = []
    if is_valid or not categories:
        return PercentageValidation(is_valid, total, difference, suggestions)

    if total > FULL_PERCENTAGE:
        for c in categories:
            suggested = BasisPoints(divide_half_up(c.target_percentage * FULL_PERCENTAGE, total))
            suggestions.append(PercentageSuggestion(c.category_id, c.target_percentage, suggested))
    else:
        largest = categories[0]
        for c in categories[1:]:
            if c.target_percentage > largest.target_percentage:
                largest = c
        shortfall = FULL_PERCENTAGE - total
        for c in categories:
            suggested = c.target_percentage
            if c is largest:
                suggested = BasisPoints(c.target_percentage + shortfall)
            suggestions.append(PercentageSuggestion(c.category_id, c.target_percentage, suggested))

    return PercentageValidation(is_valid, total, difference, suggestions)
