"""Date utilities for fundflow.

Pure functions for date parsing and range calculations, plus the clock.
"""

from datetime import date, datetime, timedelta

import pandas as pd


def today() -> date:
    """Current local date."""
    return date.today()


def parse_iso_date(value: str) -> date:
    """Parse a stored YYYY-MM-DD date.

    Raises:
        ValueError: If the value is not an ISO date.
    """
    return date.fromisoformat(value[:10])


def normalize_date(raw_date: str) -> date:
    """Normalize a user or CSV date string to a date.

    Uses pandas.to_datetime for robust date parsing - handles ISO, European,
    American, and various other date formats automatically. Bank exports are
    notoriously inconsistent, so we need fuzzy matching.

    Args:
        raw_date: Raw date string.

    Returns:
        Parsed date.

    Raises:
        ValueError: If date cannot be parsed.
    """
    text = raw_date.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        # pandas.to_datetime handles ISO, European, American, and many other formats
        parsed = pd.to_datetime(text, dayfirst=True)
    except (ValueError, pd.errors.ParserError) as e:
        raise ValueError(f"Could not parse date '{raw_date}': {e}") from e
    if pd.isna(parsed):
        raise ValueError(f"Could not parse date '{raw_date}'")
    return parsed.date()


def month_range(month: str) -> tuple[date, date, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (first_day, last_day, label) where:
        - first_day: First day of month
        - last_day: Last day of month (inclusive)
        - label: Human-readable month (e.g., "January 2025")
    """
    dt = datetime.strptime(month, "%Y-%m")
    first = dt.date()
    next_month = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    last = next_month.date() - timedelta(days=1)
    label = dt.strftime("%B %Y")
    return first, last, label
