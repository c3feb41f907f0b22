"""Tests for the allocation generator."""

from datetime import date
from pathlib import Path

import pytest

from fundflow.domain.errors import AlreadyAllocated, ExceedsIncome, InvalidUpdate, NoCategories, NotFound
from fundflow.domain.models import BasisPoints, GenerateAllocationRequest, IncomeEvent, Money
from fundflow.services.allocation import AllocationGenerator
from fundflow.services.household import Household
from fundflow.services.registry import BudgetCategoryRegistry


@pytest.fixture
def generator(db_path: Path) -> AllocationGenerator:
    return AllocationGenerator(db_path)


@pytest.fixture
def income(db_path: Path) -> IncomeEvent:
    return Household(db_path).add_income("Paycheck", Money(100000), date(2025, 1, 1))


@pytest.fixture
def categories(db_path: Path) -> list[int]:
    registry = BudgetCategoryRegistry(db_path)
    return [
        registry.add_category("Needs", BasisPoints(5000)).id,
        registry.add_category("Wants", BasisPoints(3000)).id,
        registry.add_category("Savings", BasisPoints(2000)).id,
    ]


class TestGenerate:
    """Tests for AllocationGenerator.generate."""

    def test_fifty_thirty_twenty(
        self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]
    ) -> None:
        """Should write $500/$300/$200 for a $1000 income."""
        result = generator.generate(income.id)

        assert result.income_event_id == income.id
        assert [(a.budget_category_id, a.amount) for a in result.allocations] == list(
            zip(categories, [50000, 30000, 20000])
        )
        summary = generator.for_income_event(income.id)
        assert summary.total_allocated == Money(100000)
        assert summary.unallocated == Money(0)

    def test_already_allocated(self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]) -> None:
        """Should refuse a second generation."""
        generator.generate(income.id)

        with pytest.raises(AlreadyAllocated):
            generator.generate(income.id)

        assert len(generator.for_income_event(income.id).allocations) == 3

    def test_no_categories(self, generator: AllocationGenerator, income: IncomeEvent) -> None:
        """Should fail with NoCategories and write nothing."""
        with pytest.raises(NoCategories):
            generator.generate(income.id)

        assert generator.for_income_event(income.id).allocations == []

    def test_missing_income(self, generator: AllocationGenerator, categories: list[int]) -> None:
        """Should raise NotFound."""
        with pytest.raises(NotFound):
            generator.generate(999)

    def test_overrides(self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]) -> None:
        """Should use override percentages."""
        needs, wants, savings = categories
        result = generator.generate_for(
            GenerateAllocationRequest(income.id, {needs: BasisPoints(4000), savings: BasisPoints(3000)})
        )

        assert [a.amount for a in result.allocations] == [40000, 30000, 30000]

    def test_overrides_past_100(self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]) -> None:
        """Should fail with ExceedsIncome and write nothing."""
        needs = categories[0]
        with pytest.raises(ExceedsIncome):
            generator.generate(income.id, {needs: BasisPoints(6000)})

        assert generator.for_income_event(income.id).allocations == []

    def test_odd_amount_sums_exactly(self, db_path: Path, generator: AllocationGenerator) -> None:
        """Should allocate an odd amount to the cent."""
        registry = BudgetCategoryRegistry(db_path)
        for name in ("A", "B"):
            registry.add_category(name, BasisPoints(3333))
        registry.add_category("C", BasisPoints(3334))
        odd = Household(db_path).add_income("Odd", Money(100001), date(2025, 1, 1))

        result = generator.generate(odd.id)

        assert sum(a.amount for a in result.allocations) == Money(100001)


class TestUpdate:
    """Tests for AllocationGenerator.update."""

    def test_update_by_amount(self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]) -> None:
        """Should recompute the percentage."""
        allocation = generator.generate(income.id).allocations[2]

        updated = generator.update(allocation.id, amount=Money(15000))

        assert updated.amount == Money(15000)
        assert updated.percentage == BasisPoints(1500)
        assert generator.for_income_event(income.id).unallocated == Money(5000)

    def test_update_by_percentage(
        self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]
    ) -> None:
        """Should recompute the amount."""
        allocation = generator.generate(income.id).allocations[0]

        updated = generator.update(allocation.id, percentage=BasisPoints(4550))

        assert updated.amount == Money(45500)

    def test_update_past_income(self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]) -> None:
        """Should refuse to allocate more than the income."""
        allocation = generator.generate(income.id).allocations[0]

        with pytest.raises(ExceedsIncome):
            generator.update(allocation.id, amount=Money(50001))

        assert generator.for_income_event(income.id).total_allocated == Money(100000)

    def test_update_needs_one_field(
        self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]
    ) -> None:
        """Should raise InvalidUpdate with both fields."""
        allocation = generator.generate(income.id).allocations[0]

        with pytest.raises(InvalidUpdate):
            generator.update(allocation.id, amount=Money(1), percentage=BasisPoints(1))

    def test_update_missing(self, generator: AllocationGenerator) -> None:
        """Should raise NotFound."""
        with pytest.raises(NotFound):
            generator.update(999, amount=Money(1))


class TestRemove:
    """Tests for AllocationGenerator.remove and income deletion."""

    def test_remove(self, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]) -> None:
        """Should free the removed amount."""
        allocation = generator.generate(income.id).allocations[0]

        assert generator.remove(allocation.id)
        assert not generator.remove(allocation.id)
        assert generator.for_income_event(income.id).unallocated == Money(50000)

    def test_deleting_income_cascades(
        self, db_path: Path, generator: AllocationGenerator, income: IncomeEvent, categories: list[int]
    ) -> None:
        """Should drop allocations with their income event."""
        allocation = generator.generate(income.id).allocations[0]

        Household(db_path).delete_income(income.id)

        with pytest.raises(NotFound):
            generator.update(allocation.id, amount=Money(1))
