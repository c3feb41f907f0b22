"""CLI entry point for fundflow."""

import typer

from fundflow.commands import allocations, attributions, categories, records, transactions
from fundflow.commands.admin import init_command
from fundflow.commands.common import fail
from fundflow.config import load_settings
from fundflow.log import configure_logging

app = typer.Typer(
    name="fundflow",
    help="Fundflow - split income into budgets and trace which paycheck pays each bill",
    add_completion=False,
)
category_app = typer.Typer(help="Manage budget categories.", no_args_is_help=True)
income_app = typer.Typer(help="Manage income events.", no_args_is_help=True)
payment_app = typer.Typer(help="Manage payments.", no_args_is_help=True)
allocate_app = typer.Typer(help="Split income events across budget categories.", no_args_is_help=True)
attribute_app = typer.Typer(help="Link payments to the income that funds them.", no_args_is_help=True)
transactions_app = typer.Typer(help="Import and list bank transactions.", no_args_is_help=True)

app.add_typer(category_app, name="category")
app.add_typer(income_app, name="income")
app.add_typer(payment_app, name="payment")
app.add_typer(allocate_app, name="allocate")
app.add_typer(attribute_app, name="attribute")
app.add_typer(transactions_app, name="transactions")


@app.callback()
def main() -> None:
    """Fundflow - split income into budgets and trace which paycheck pays each bill."""
    try:
        settings = load_settings()
    except ValueError as e:
        fail(f"Config error: {e}")
    configure_logging(settings.log_level, settings.log_json)


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing database and config"),
) -> None:
    """Initialize fundflow database and configuration."""
    init_command(force)


@app.command(name="match")
def match(
    start: str = typer.Option(None, "--start", help="Only transactions on or after this date"),
    end: str = typer.Option(None, "--end", help="Only transactions on or before this date"),
    account: list[str] = typer.Option(None, "--account", "-a", help="Only transactions from this account"),
    payment: list[int] = typer.Option(None, "--payment", "-p", help="Only this payment (default: open payments)"),
) -> None:
    """Suggest which imported transactions settle which payments."""
    transactions.match_command(start, end, account, payment)


# Budget categories


@category_app.command(name="add")
def category_add(
    name: str,
    percentage: str = typer.Argument(..., help="Target share of income, e.g. 12.5"),
) -> None:
    """Add a budget category."""
    categories.add_command(name, percentage)


@category_app.command(name="update")
def category_update(
    category_id: int,
    percentage: str = typer.Option(None, "--percentage", help="New target percentage"),
    name: str = typer.Option(None, "--name", help="New name"),
    sort_order: int = typer.Option(None, "--order", help="New sort position"),
) -> None:
    """Update a budget category."""
    categories.update_command(category_id, percentage, name, sort_order)


@category_app.command(name="deactivate")
def category_deactivate(category_id: int) -> None:
    """Deactivate a budget category."""
    categories.deactivate_command(category_id)


@category_app.command(name="reactivate")
def category_reactivate(category_id: int) -> None:
    """Reactivate a budget category."""
    categories.reactivate_command(category_id)


@category_app.command(name="list")
def category_list(
    all: bool = typer.Option(False, "--all", "-a", help="Include inactive categories"),
) -> None:
    """List budget categories."""
    categories.list_command(all)


@category_app.command(name="validate")
def category_validate() -> None:
    """Check that active categories total 100% and suggest fixes."""
    categories.validate_command()


# Income events


@income_app.command(name="add")
def income_add(
    name: str,
    amount: str,
    scheduled_date: str = typer.Argument(None, metavar="[DATE]", help="Scheduled date (default: today)"),
    status: str = typer.Option("scheduled", "--status", help="scheduled, received or cancelled"),
) -> None:
    """Record an income event."""
    records.income_add_command(name, amount, scheduled_date, status)


@income_app.command(name="list")
def income_list(
    since: str = typer.Option(None, "--since", help="Only income on or after this date"),
    until: str = typer.Option(None, "--until", help="Only income on or before this date"),
    month: str = typer.Option(None, "--month", "-m", help="Only income in this month (YYYY-MM)"),
) -> None:
    """List income events."""
    records.income_list_command(since, until, month)


@income_app.command(name="delete")
def income_delete(income_event_id: int) -> None:
    """Delete an income event with its allocations and attributions."""
    records.income_delete_command(income_event_id)


# Payments


@payment_app.command(name="add")
def payment_add(
    payee: str,
    amount: str,
    due_date: str = typer.Argument(None, metavar="[DATE]", help="Due date (default: today)"),
    status: str = typer.Option("scheduled", "--status", help="scheduled, paid, overdue, cancelled or partial"),
) -> None:
    """Record a payment."""
    records.payment_add_command(payee, amount, due_date, status)


@payment_app.command(name="list")
def payment_list(
    status: list[str] = typer.Option(None, "--status", "-s", help="Only payments with this status"),
) -> None:
    """List payments."""
    records.payment_list_command(status)


@payment_app.command(name="delete")
def payment_delete(payment_id: int) -> None:
    """Delete a payment with its attributions."""
    records.payment_delete_command(payment_id)


# Allocations


@allocate_app.command(name="generate")
def allocate_generate(
    income_event_id: int,
    override: list[str] = typer.Option(
        None, "--override", "-o", help="CATEGORY_ID=PERCENT to use instead of the category target"
    ),
) -> None:
    """Split an income event across the active budget categories."""
    allocations.generate_command(income_event_id, override)


@allocate_app.command(name="update")
def allocate_update(
    allocation_id: int,
    amount: str = typer.Option(None, "--amount", help="New amount"),
    percentage: str = typer.Option(None, "--percentage", help="New percentage of the income"),
) -> None:
    """Change one allocation by amount or by percentage."""
    allocations.update_command(allocation_id, amount, percentage)


@allocate_app.command(name="show")
def allocate_show(income_event_id: int) -> None:
    """Show an income event's allocations."""
    allocations.show_command(income_event_id)


# Attributions


@attribute_app.command(name="add")
def attribute_add(payment_id: int, income_event_id: int, amount: str) -> None:
    """Attribute part of a payment to an income event."""
    attributions.add_command(payment_id, income_event_id, amount)


@attribute_app.command(name="update")
def attribute_update(attribution_id: int, amount: str) -> None:
    """Change an attribution's amount."""
    attributions.update_command(attribution_id, amount)


@attribute_app.command(name="remove")
def attribute_remove(attribution_id: int) -> None:
    """Remove an attribution."""
    attributions.remove_command(attribution_id)


@attribute_app.command(name="show")
def attribute_show(payment_id: int) -> None:
    """Show what funds a payment."""
    attributions.show_command(payment_id)


@attribute_app.command(name="distribute")
def attribute_distribute(
    payment_id: int,
    income_event_ids: list[int] = typer.Argument(..., help="Candidate income event ids"),
) -> None:
    """Spread a payment's unattributed amount over income events."""
    attributions.distribute_command(payment_id, income_event_ids)


# Transactions


@transactions_app.command(name="import")
def transactions_import(
    csv_file: str,
    account: str = typer.Option(None, "--account", help="Account id for files without an account column"),
) -> None:
    """Import transactions from a bank CSV export."""
    transactions.import_command(csv_file, account)


@transactions_app.command(name="list")
def transactions_list(
    limit: int = typer.Option(50, help="Maximum transactions to show"),
    all: bool = typer.Option(False, "--all", help="Show all transactions"),
    account: list[str] = typer.Option(None, "--account", "-a", help="Only this account"),
) -> None:
    """List imported transactions."""
    transactions.list_command(limit, all, account)


if __name__ == "__main__":
    app()
