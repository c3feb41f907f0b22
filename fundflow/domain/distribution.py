"""Pure functions for automatically spreading a payment over income events.

All monetary amounts are in cents (Money type).
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from fundflow.domain.models import Money
from fundflow.domain.money import divide_half_up


@dataclass(frozen=True)
class Candidate:
    """Income event that may fund the payment, with its free capacity."""

    income_event_id: int
    scheduled_date: date
    capacity: Money


@dataclass(frozen=True)
class PlannedShare:
    """Amount to attribute from one income event."""

    income_event_id: int
    amount: Money


def plan_fifo(target: Money, candidates: Sequence[Candidate]) -> list[PlannedShare]:
    """Consume the oldest income first until the target is covered.

    Args:
        target: Amount still to attribute, in cents.
        candidates: Candidates with positive capacity.

    Returns:
        Shares in consumption order.
    """
    shares: list[PlannedShare] = []
    remaining = target
    for candidate in sorted(candidates, key=lambda c: (c.scheduled_date, c.income_event_id)):
        if remaining <= 0:
            break
        take = Money(min(candidate.capacity, remaining))
        shares.append(PlannedShare(candidate.income_event_id, take))
        remaining = Money(remaining - take)
    return shares


def plan_pro_rata(target: Money, candidates: Sequence[Candidate]) -> list[PlannedShare]:
    """Spread the target in proportion to each candidate's capacity.

    Shares are clamped to capacity first. The rounding remainder then goes to
    the largest capacity with room left (ties: earliest scheduled date, then
    lowest id), so when capacity is short every candidate ends up drained.

    Args:
        target: Amount still to attribute, in cents.
        candidates: Candidates with positive capacity.

    Returns:
        Non-zero shares ordered by scheduled date.
    """
    ordered = sorted(candidates, key=lambda c: (c.scheduled_date, c.income_event_id))
    total_capacity = sum(c.capacity for c in ordered)
    amounts = [min(divide_half_up(target * c.capacity, total_capacity), c.capacity) for c in ordered]

    remainder = target - sum(amounts)
    # stable sort keeps the earliest of equal capacities first
    for i in sorted(range(len(ordered)), key=lambda i: -ordered[i].capacity):
        if remainder == 0:
            break
        if remainder > 0:
            step = min(ordered[i].capacity - amounts[i], remainder)
        else:
            step = max(-amounts[i], remainder)
        amounts[i] += step
        remainder -= step

    return [PlannedShare(c.income_event_id, Money(a)) for c, a in zip(ordered, amounts) if a > 0]


def plan_distribution(target: Money, candidates: Sequence[Candidate]) -> list[PlannedShare]:
    """Plan attributions for the unattributed part of a payment.

    FIFO by scheduled date when total capacity covers the target, pro-rata by
    capacity otherwise. Candidates without capacity are ignored.

    Args:
        target: Payment amount minus what is already attributed, in cents.
        candidates: Income events with their free capacity.

    Returns:
        Planned shares; empty when there is nothing to do.
    """
    if target <= 0:
        return []

    live = [c for c in candidates if c.capacity > 0]
    if not live:
        return []

    if sum(c.capacity for c in live) >= target:
        return plan_fifo(target, live)
    return plan_pro_rata(target, live)
