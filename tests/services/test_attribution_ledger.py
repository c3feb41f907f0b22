"""Tests for the attribution ledger."""

from datetime import date
from pathlib import Path

import pytest

from fundflow.domain.errors import DuplicateLink, ExceedsIncome, ExceedsPayment, InvalidAmount, NotFound
from fundflow.domain.models import BasisPoints, Money
from fundflow.services.attribution import AttributionLedger
from fundflow.services.household import Household


@pytest.fixture
def ledger(db_path: Path) -> AttributionLedger:
    return AttributionLedger(db_path)


@pytest.fixture
def household(db_path: Path) -> Household:
    return Household(db_path)


class TestAttribute:
    """Tests for AttributionLedger.attribute."""

    def test_creates_link(self, ledger: AttributionLedger, household: Household) -> None:
        """Should store the attribution with its derived percentage."""
        payment = household.add_payment("Rent", Money(120000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(200000), date(2025, 1, 1))

        result = ledger.attribute(payment.id, income.id, Money(30000))

        assert result.amount == Money(30000)
        assert result.percentage == BasisPoints(2500)
        summary = ledger.for_payment(payment.id)
        assert summary.total_attributed == Money(30000)
        assert summary.remaining == Money(90000)
        assert summary.rows[0].attribution_type == "manual"

    def test_exceeds_payment_leaves_state(self, ledger: AttributionLedger, household: Household) -> None:
        """Should reject $60 on top of $50 of a $100 payment and keep $50."""
        payment = household.add_payment("Phone", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(100000), date(2025, 1, 1))
        other = household.add_income("Bonus", Money(100000), date(2025, 1, 2))
        ledger.attribute(payment.id, income.id, Money(5000))

        with pytest.raises(ExceedsPayment):
            ledger.attribute(payment.id, other.id, Money(6000))

        assert ledger.for_payment(payment.id).total_attributed == Money(5000)
        assert ledger.for_income_event(other.id).rows == []

    def test_exceeds_income(self, ledger: AttributionLedger, household: Household) -> None:
        """Should not commit more than the income across payments."""
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        rent = household.add_payment("Rent", Money(8000), date(2025, 1, 5))
        phone = household.add_payment("Phone", Money(5000), date(2025, 1, 6))
        ledger.attribute(rent.id, income.id, Money(8000))

        with pytest.raises(ExceedsIncome):
            ledger.attribute(phone.id, income.id, Money(2001))

        assert ledger.for_income_event(income.id).remaining == Money(2000)

    def test_duplicate_link(self, ledger: AttributionLedger, household: Household) -> None:
        """Should refuse a second link for the same pair."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        ledger.attribute(payment.id, income.id, Money(1000))

        with pytest.raises(DuplicateLink):
            ledger.attribute(payment.id, income.id, Money(1000))

    def test_non_positive(self, ledger: AttributionLedger, household: Household) -> None:
        """Should reject zero amounts."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))

        with pytest.raises(InvalidAmount):
            ledger.attribute(payment.id, income.id, Money(0))

    def test_missing_records(self, ledger: AttributionLedger, household: Household) -> None:
        """Should raise NotFound for unknown payment or income."""
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))

        with pytest.raises(NotFound):
            ledger.attribute(999, income.id, Money(100))
        with pytest.raises(NotFound):
            ledger.attribute(payment.id, 999, Money(100))


class TestUpdateAttribution:
    """Tests for AttributionLedger.update_attribution."""

    def test_excludes_own_amount(self, ledger: AttributionLedger, household: Household) -> None:
        """Should let a link grow up to the full payment."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        link = ledger.attribute(payment.id, income.id, Money(6000))

        result = ledger.update_attribution(link.id, Money(10000))

        assert result.amount == Money(10000)
        assert result.percentage == BasisPoints(10000)

    def test_update_past_payment(self, ledger: AttributionLedger, household: Household) -> None:
        """Should keep the old amount when the update is rejected."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(20000), date(2025, 1, 1))
        link = ledger.attribute(payment.id, income.id, Money(6000))

        with pytest.raises(ExceedsPayment):
            ledger.update_attribution(link.id, Money(10001))

        assert ledger.for_payment(payment.id).total_attributed == Money(6000)

    def test_update_missing(self, ledger: AttributionLedger) -> None:
        """Should raise NotFound."""
        with pytest.raises(NotFound):
            ledger.update_attribution(999, Money(1))


class TestRemove:
    """Tests for AttributionLedger.remove and cascades."""

    def test_remove(self, ledger: AttributionLedger, household: Household) -> None:
        """Should free the amount on both sides."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        link = ledger.attribute(payment.id, income.id, Money(4000))

        assert ledger.remove(link.id)

        assert ledger.for_payment(payment.id).remaining == Money(10000)
        assert ledger.for_income_event(income.id).remaining == Money(10000)

    def test_remove_missing(self, ledger: AttributionLedger) -> None:
        """Should be a no-op for unknown ids."""
        assert ledger.remove(999) is False

    def test_payment_delete_cascades(self, ledger: AttributionLedger, household: Household) -> None:
        """Should drop attributions with their payment."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        income = household.add_income("Paycheck", Money(10000), date(2025, 1, 1))
        ledger.attribute(payment.id, income.id, Money(4000))

        household.delete_payment(payment.id)

        assert ledger.for_income_event(income.id).rows == []


class TestValidateCapacity:
    """Tests for AttributionLedger.validate_capacity."""

    def test_valid_batch(self, ledger: AttributionLedger, household: Household) -> None:
        """Should accept a batch that fits and write nothing."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        first = household.add_income("First", Money(6000), date(2025, 1, 1))
        second = household.add_income("Second", Money(6000), date(2025, 1, 15))

        check = ledger.validate_capacity(payment.id, [(first.id, Money(6000)), (second.id, Money(4000))])

        assert check.is_valid
        assert check.total_proposed == Money(10000)
        assert check.payment_amount == Money(10000)
        assert ledger.for_payment(payment.id).rows == []

    def test_invalid_batch(self, ledger: AttributionLedger, household: Household) -> None:
        """Should report every problem."""
        payment = household.add_payment("Rent", Money(10000), date(2025, 1, 5))
        first = household.add_income("First", Money(5000), date(2025, 1, 1))

        check = ledger.validate_capacity(payment.id, [(first.id, Money(6000)), (999, Money(5000))])

        assert not check.is_valid
        assert len(check.errors) == 3
