"""Pure functions for turning bank CSV rows into transactions.

This module contains the functional core for CSV import:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

All monetary amounts are in cents (Money type). Amounts keep the sign the bank
exported: debits are negative.
"""

from datetime import date
from typing import TypedDict

from fundflow.dates import normalize_date
from fundflow.domain.models import Money
from fundflow.domain.money import parse_money


class CsvMapping(TypedDict):
    """CSV column mapping configuration."""

    date_column: str
    description_column: str
    amount_column: str
    merchant_column: str
    account_column: str


class ParsedTransaction(TypedDict):
    """Parsed transaction data ready for insertion."""

    date: date
    description: str
    amount: Money
    merchant_name: str | None
    account_id: str | None


def analyze_csv_columns(headers: list[str]) -> CsvMapping:
    """Analyze CSV headers and suggest column mappings.

    Args:
        headers: List of CSV column names.

    Returns:
        Suggested mapping (empty string where a column was not detected).
    """
    mapping = CsvMapping(
        date_column="",
        description_column="",
        amount_column="",
        merchant_column="",
        account_column="",
    )

    for header in headers:
        lower = header.lower()

        if not mapping["date_column"] and "date" in lower:
            mapping["date_column"] = header

        if not mapping["merchant_column"] and "merchant" in lower:
            mapping["merchant_column"] = header
        elif not mapping["description_column"] and ("description" in lower or "narrative" in lower):
            mapping["description_column"] = header

        if not mapping["amount_column"] and "amount" in lower and "currency" not in lower:
            mapping["amount_column"] = header

        if not mapping["account_column"] and "account" in lower:
            mapping["account_column"] = header

    if not mapping["description_column"]:
        mapping["description_column"] = mapping["merchant_column"]

    return mapping


def missing_columns(mapping: CsvMapping) -> list[str]:
    """Names of the required columns the mapping could not find."""
    missing: list[str] = []
    if not mapping["date_column"]:
        missing.append("date")
    if not mapping["description_column"]:
        missing.append("description")
    if not mapping["amount_column"]:
        missing.append("amount")
    return missing


def parse_csv_transaction(row: dict[str, str], mapping: CsvMapping) -> ParsedTransaction | None:
    """Parse a CSV row into a transaction using the provided mapping.

    Args:
        row: CSV row as dictionary.
        mapping: Column mapping configuration.

    Returns:
        ParsedTransaction if valid, None if row should be skipped.
    """
    raw_date = (row.get(mapping["date_column"]) or "").strip()
    raw_amount = (row.get(mapping["amount_column"]) or "").strip()
    if not raw_date or not raw_amount:
        return None

    try:
        txn_date = normalize_date(raw_date)
        amount = parse_money(raw_amount)
    except ValueError:
        return None

    merchant = (row.get(mapping["merchant_column"]) or "").strip() if mapping["merchant_column"] else ""
    description = (row.get(mapping["description_column"]) or "").strip() or merchant or "Unknown"
    account = (row.get(mapping["account_column"]) or "").strip() if mapping["account_column"] else ""

    return ParsedTransaction(
        date=txn_date,
        description=description,
        amount=amount,
        merchant_name=merchant or None,
        account_id=account or None,
    )
