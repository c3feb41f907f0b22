"""Tests for fundflow.dates pure functions."""

from datetime import date

import pytest

from fundflow.dates import month_range, normalize_date, parse_iso_date


class TestMonthRange:
    """Tests for month_range."""

    def test_january_range(self) -> None:
        """Should calculate range for January."""
        first, last, label = month_range("2025-01")

        assert first == date(2025, 1, 1)
        assert last == date(2025, 1, 31)
        assert label == "January 2025"

    def test_december_range_crosses_year(self) -> None:
        """Should handle December (crosses year boundary)."""
        first, last, label = month_range("2025-12")

        assert first == date(2025, 12, 1)
        assert last == date(2025, 12, 31)
        assert label == "December 2025"

    def test_february_non_leap_year(self) -> None:
        """Should handle February in non-leap year."""
        _, last, _ = month_range("2025-02")

        assert last == date(2025, 2, 28)

    def test_february_leap_year(self) -> None:
        """Should handle February in leap year."""
        _, last, _ = month_range("2024-02")

        assert last == date(2024, 2, 29)

    def test_thirty_day_month(self) -> None:
        """Should handle 30-day months."""
        _, last, label = month_range("2025-04")

        assert last == date(2025, 4, 30)
        assert label == "April 2025"

    def test_invalid_month(self) -> None:
        """Should reject malformed months."""
        with pytest.raises(ValueError):
            month_range("2025-13")


class TestParseIsoDate:
    """Tests for parse_iso_date."""

    def test_date(self) -> None:
        """Should parse a stored date."""
        assert parse_iso_date("2025-01-15") == date(2025, 1, 15)

    def test_timestamp_prefix(self) -> None:
        """Should ignore a time component."""
        assert parse_iso_date("2025-01-15T10:30:00Z") == date(2025, 1, 15)


class TestNormalizeDate:
    """Tests for normalize_date."""

    def test_iso(self) -> None:
        """Should parse ISO dates."""
        assert normalize_date("2025-01-15") == date(2025, 1, 15)

    def test_european(self) -> None:
        """Should read ambiguous dates day first, as bank exports do."""
        assert normalize_date("03/02/2025") == date(2025, 2, 3)

    def test_unambiguous_day_month(self) -> None:
        """Should parse a day-first date past the 12th."""
        assert normalize_date("15/01/2025") == date(2025, 1, 15)

    def test_month_name(self) -> None:
        """Should parse written-out months."""
        assert normalize_date("15 Jan 2025") == date(2025, 1, 15)

    def test_surrounding_whitespace(self) -> None:
        """Should ignore surrounding whitespace."""
        assert normalize_date("  2025-01-15 ") == date(2025, 1, 15)

    def test_garbage(self) -> None:
        """Should raise ValueError for unparseable input."""
        with pytest.raises(ValueError):
            normalize_date("not a date")
