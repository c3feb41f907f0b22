"""Tests for household record keeping."""

from datetime import date
from pathlib import Path

import pytest

from fundflow.domain.errors import Conflict, InvalidAmount, NotFound
from fundflow.domain.imports import ParsedTransaction
from fundflow.domain.models import BasisPoints, Money
from fundflow.services.allocation import AllocationGenerator
from fundflow.services.attribution import AttributionLedger
from fundflow.services.household import Household
from fundflow.services.registry import BudgetCategoryRegistry


@pytest.fixture
def household(db_path: Path) -> Household:
    return Household(db_path)


class TestIncomeEvents:
    """Tests for income event records."""

    def test_add_and_get(self, household: Household) -> None:
        """Should store and read back an income event."""
        income = household.add_income("Paycheck", Money(250000), date(2025, 1, 31))

        stored = household.get_income(income.id)

        assert stored == income
        assert stored.status == "scheduled"

    def test_rejects_non_positive(self, household: Household) -> None:
        """Should reject a zero amount."""
        with pytest.raises(InvalidAmount):
            household.add_income("Nothing", Money(0), date(2025, 1, 1))

    def test_rejects_unknown_status(self, household: Household) -> None:
        """Should reject statuses outside the lifecycle."""
        with pytest.raises(ValueError):
            household.add_income("Paycheck", Money(100), date(2025, 1, 1), status="pending")

    def test_list_by_date(self, household: Household) -> None:
        """Should list by scheduled date within the range."""
        late = household.add_income("Late", Money(100), date(2025, 2, 1))
        early = household.add_income("Early", Money(100), date(2025, 1, 1))
        household.add_income("Later", Money(100), date(2025, 3, 1))

        incomes = household.list_incomes(until=date(2025, 2, 28))

        assert [i.id for i in incomes] == [early.id, late.id]

    def test_update_amount_unreferenced(self, household: Household) -> None:
        """Should change the amount while nothing references it."""
        income = household.add_income("Paycheck", Money(100), date(2025, 1, 1))

        updated = household.update_income_amount(income.id, Money(200))

        assert updated.amount == Money(200)
        assert household.get_income(income.id).amount == Money(200)

    def test_update_amount_referenced(self, db_path: Path, household: Household) -> None:
        """Should refuse to change an amount that allocations depend on."""
        BudgetCategoryRegistry(db_path).add_category("Needs", BasisPoints(10000))
        income = household.add_income("Paycheck", Money(100000), date(2025, 1, 1))
        AllocationGenerator(db_path).generate(income.id)

        with pytest.raises(Conflict):
            household.update_income_amount(income.id, Money(50000))

        assert household.get_income(income.id).amount == Money(100000)

    def test_delete_cascades_attributions(self, db_path: Path, household: Household) -> None:
        """Should drop attributions with the income event."""
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        payment = household.add_payment("Rent", Money(5000), date(2025, 1, 5))
        ledger = AttributionLedger(db_path)
        ledger.attribute(payment.id, income.id, Money(5000))

        assert household.delete_income(income.id)

        assert ledger.for_payment(payment.id).remaining == Money(5000)
        with pytest.raises(NotFound):
            household.get_income(income.id)

    def test_delete_missing(self, household: Household) -> None:
        """Should report nothing deleted."""
        assert household.delete_income(999) is False

    def test_set_status(self, household: Household) -> None:
        """Should mark an income as received."""
        income = household.add_income("Paycheck", Money(100), date(2025, 1, 1))

        household.set_income_status(income.id, "received")

        assert household.get_income(income.id).status == "received"


class TestPayments:
    """Tests for payment records."""

    def test_add_and_list_by_status(self, household: Household) -> None:
        """Should filter payments by status."""
        rent = household.add_payment("Rent", Money(120000), date(2025, 1, 1))
        phone = household.add_payment("Phone", Money(5000), date(2025, 1, 10))
        household.set_payment_status(phone.id, "paid")

        assert [p.id for p in household.list_payments(["scheduled"])] == [rent.id]
        assert [p.id for p in household.list_payments()] == [rent.id, phone.id]

    def test_status_of_missing_payment(self, household: Household) -> None:
        """Should raise NotFound."""
        with pytest.raises(NotFound):
            household.set_payment_status(999, "paid")

    def test_rejects_unknown_status(self, household: Household) -> None:
        """Should reject statuses outside the lifecycle."""
        payment = household.add_payment("Rent", Money(100), date(2025, 1, 1))
        with pytest.raises(ValueError):
            household.set_payment_status(payment.id, "lost")


class TestTransactions:
    """Tests for transaction import and listing."""

    def test_import_skips_duplicates(self, household: Household) -> None:
        """Should insert new rows and count duplicates."""
        rows = [
            ParsedTransaction(
                date=date(2025, 1, 15),
                description="WHOLE FOODS",
                amount=Money(-8532),
                merchant_name="Whole Foods",
                account_id="checking",
            ),
            ParsedTransaction(
                date=date(2025, 1, 16),
                description="ACME POWER",
                amount=Money(-10000),
                merchant_name=None,
                account_id="checking",
            ),
        ]

        first = household.import_transactions(rows)
        second = household.import_transactions(rows)

        assert (first.inserted, first.skipped) == (2, 0)
        assert (second.inserted, second.skipped) == (0, 2)
        assert len(second.duplicate_ids) == 2

    def test_list_newest_first(self, household: Household) -> None:
        """Should list the newest transaction first and honour the limit."""
        household.import_transactions(
            [
                ParsedTransaction(
                    date=date(2025, 1, day),
                    description=f"TXN {day}",
                    amount=Money(-100),
                    merchant_name=None,
                    account_id=None,
                )
                for day in (3, 1, 2)
            ]
        )

        listed = household.list_transactions(limit=2)

        assert [t.date.day for t in listed] == [3, 2]
