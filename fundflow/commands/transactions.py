"""Transaction import, listing and matching commands."""

import csv
from pathlib import Path

from rich.table import Table

from fundflow.commands.common import console, date_arg, fail, handle_errors, money_display, open_settings
from fundflow.domain.imports import (
    CsvMapping,
    ParsedTransaction,
    analyze_csv_columns,
    missing_columns,
    parse_csv_transaction,
)
from fundflow.domain.models import MatchRequest, MatchType
from fundflow.services.household import Household
from fundflow.services.matcher import TransactionMatcher

MATCH_STYLES = {
    MatchType.EXACT_AMOUNT: "green",
    MatchType.CLOSE_AMOUNT: "cyan",
    MatchType.MERCHANT_MATCH: "yellow",
    MatchType.DATE_RANGE: "dim",
}


def read_csv_transactions(csv_path: Path, account_id: str | None = None) -> tuple[list[ParsedTransaction], int]:
    """Read a bank CSV export.

    Args:
        csv_path: CSV file with a header row.
        account_id: Account to tag rows with when the file has no account column.

    Returns:
        Tuple of (parsed transactions, number of rows skipped as unreadable).

    Raises:
        ValueError: If the date, description or amount column cannot be found.
    """
    with open(csv_path, encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        headers = list(reader.fieldnames or [])
        mapping: CsvMapping = analyze_csv_columns(headers)
        missing = missing_columns(mapping)
        if missing:
            raise ValueError(f"Could not find {', '.join(missing)} column(s) in {', '.join(headers) or 'empty header'}")

        parsed: list[ParsedTransaction] = []
        skipped = 0
        for row in reader:
            txn = parse_csv_transaction(row, mapping)
            if txn is None:
                skipped += 1
                continue
            if account_id and not txn["account_id"]:
                txn["account_id"] = account_id
            parsed.append(txn)
    return parsed, skipped


def import_command(csv_file: str, account_id: str | None = None) -> None:
    """Import transactions from a CSV file."""
    settings, db_path = open_settings()
    csv_path = Path(csv_file).expanduser()
    if not csv_path.exists():
        fail(f"File not found: {csv_path}")

    try:
        parsed, unreadable = read_csv_transactions(csv_path, account_id)
    except (OSError, csv.Error, ValueError) as e:
        fail(f"Could not read {csv_path.name}: {e}")

    with handle_errors():
        stats = Household(db_path, settings.busy_timeout).import_transactions(parsed)

    console.print(f"[green]✓[/green] Imported {stats.inserted} transaction(s) from {csv_path.name}")
    if stats.skipped:
        console.print(f"[dim]Skipped {stats.skipped} duplicate(s)[/dim]")
    if unreadable:
        console.print(f"[yellow]Skipped {unreadable} unreadable row(s)[/yellow]")


def list_command(limit: int = 50, all: bool = False, account_ids: list[str] | None = None) -> None:
    """List transactions."""
    settings, db_path = open_settings()
    with handle_errors():
        transactions = Household(db_path, settings.busy_timeout).list_transactions(
            account_ids=account_ids or None, limit=None if all else limit
        )

    if not transactions:
        console.print("[yellow]No transactions found[/yellow]")
        return

    title = (
        f"Transactions (showing all {len(transactions)})" if all else f"Transactions (showing {len(transactions)})"
    )
    table = Table(title=title)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Merchant", style="magenta")
    table.add_column("Amount", justify="right")
    table.add_column("Account", style="dim")

    for txn in transactions:
        amount = money_display(txn.amount, settings)
        amount_display = f"[red]{amount}[/red]" if txn.amount < 0 else f"[green]+{amount}[/green]"
        table.add_row(
            str(txn.id),
            txn.date.isoformat(),
            txn.description,
            txn.merchant_name or "[dim]-[/dim]",
            amount_display,
            txn.account_id or "[dim]-[/dim]",
        )

    console.print(table)


def match_command(
    start: str | None = None,
    end: str | None = None,
    account_ids: list[str] | None = None,
    payment_ids: list[int] | None = None,
) -> None:
    """Suggest which imported transactions settle which payments."""
    settings, db_path = open_settings()
    request = MatchRequest(
        payment_ids=payment_ids or None,
        date_range_start=date_arg(start) if start else None,
        date_range_end=date_arg(end) if end else None,
        account_ids=account_ids or None,
    )
    matcher = TransactionMatcher(db_path, settings.busy_timeout, settings.matching)
    with handle_errors():
        matches = matcher.match_stored(request)

    if not matches:
        console.print("[yellow]No matches found[/yellow]")
        return

    table = Table(title=f"Matches ({len(matches)})")
    table.add_column("Transaction", justify="right")
    table.add_column("Payment", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Type")
    for match in matches:
        style = MATCH_STYLES[match.match_type]
        table.add_row(
            f"#{match.transaction_id}",
            f"#{match.payment_id}",
            f"{match.confidence:.2f}",
            f"[{style}]{match.match_type.value}[/{style}]",
        )
    console.print(table)
