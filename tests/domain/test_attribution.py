"""Tests for fundflow.domain.attribution pure functions."""

import pytest

from fundflow.domain.attribution import check_attribution_bounds, summarize, total_attributed, validate_proposed
from fundflow.domain.errors import ExceedsIncome, ExceedsPayment, InvalidAmount
from fundflow.domain.models import Money, PaymentAttribution


def row(row_id: int, amount: int) -> PaymentAttribution:
    return PaymentAttribution(row_id, payment_id=1, income_event_id=row_id, amount=Money(amount))


class TestCheckAttributionBounds:
    """Tests for check_attribution_bounds."""

    def test_within_bounds(self) -> None:
        """Should accept an attribution that fits both owners."""
        check_attribution_bounds(Money(500), Money(1000), Money(500), Money(2000), Money(0))

    def test_zero_amount(self) -> None:
        """Should reject a zero amount."""
        with pytest.raises(InvalidAmount):
            check_attribution_bounds(Money(0), Money(1000), Money(0), Money(1000), Money(0))

    def test_exceeds_payment(self) -> None:
        """Should reject over-attributing the payment."""
        with pytest.raises(ExceedsPayment, match="Remaining: \\$3.00"):
            check_attribution_bounds(Money(301), Money(1000), Money(700), Money(5000), Money(0))

    def test_exceeds_income(self) -> None:
        """Should reject over-committing the income."""
        with pytest.raises(ExceedsIncome, match="Available: \\$1.00"):
            check_attribution_bounds(Money(200), Money(1000), Money(0), Money(500), Money(400))

    def test_payment_checked_before_income(self) -> None:
        """Should report the payment bound when both are broken."""
        with pytest.raises(ExceedsPayment):
            check_attribution_bounds(Money(2000), Money(1000), Money(0), Money(500), Money(0))


class TestSummarize:
    """Tests for summarize and total_attributed."""

    def test_totals(self) -> None:
        """Should compute attributed and remaining."""
        summary = summarize(1, Money(1000), [row(1, 300), row(2, 200)])

        assert summary.total_attributed == Money(500)
        assert summary.remaining == Money(500)

    def test_exclude_row(self) -> None:
        """Should leave the excluded row out of the total."""
        assert total_attributed([row(1, 300), row(2, 200)], exclude_id=1) == Money(200)

    def test_empty(self) -> None:
        """Should leave the whole amount remaining."""
        summary = summarize(1, Money(1000), [])
        assert summary.remaining == Money(1000)


class TestValidateProposed:
    """Tests for validate_proposed."""

    def test_valid_batch(self) -> None:
        """Should return no errors for a batch that fits."""
        errors = validate_proposed(
            [(1, Money(600)), (2, Money(400))],
            Money(1000),
            Money(0),
            {1: Money(600), 2: Money(1000)},
        )
        assert errors == []

    def test_batch_over_payment(self) -> None:
        """Should flag a batch larger than the payment."""
        errors = validate_proposed([(1, Money(600))], Money(1000), Money(500), {1: Money(1000)})
        assert errors == ["Total attributions exceed payment amount"]

    def test_batch_over_income(self) -> None:
        """Should flag an income event asked for more than it has."""
        errors = validate_proposed([(1, Money(300)), (1, Money(300))], Money(1000), Money(0), {1: Money(500)})
        assert len(errors) == 1
        assert "income event 1" in errors[0]

    def test_unknown_income(self) -> None:
        """Should flag unknown income events."""
        errors = validate_proposed([(9, Money(100))], Money(1000), Money(0), {})
        assert errors == ["Income event not found: 9"]

    def test_non_positive_amount(self) -> None:
        """Should flag non-positive amounts."""
        errors = validate_proposed([(1, Money(0))], Money(1000), Money(0), {1: Money(100)})
        assert errors == ["Attribution amounts must be positive"]
