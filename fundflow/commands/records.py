"""Income event and payment commands."""

from datetime import date

from rich.table import Table

from fundflow.commands.common import (
    console,
    date_arg,
    fail,
    handle_errors,
    money_arg,
    money_display,
    open_settings,
)
from fundflow.config import Settings
from fundflow.dates import month_range, today
from fundflow.services.household import Household


def _household() -> tuple[Household, Settings]:
    settings, db_path = open_settings()
    return Household(db_path, settings.busy_timeout), settings


def _date_or_today(text: str | None) -> date:
    return date_arg(text) if text else today()


def income_add_command(name: str, amount: str, scheduled_date: str | None, status: str) -> None:
    """Record an income event."""
    household, settings = _household()
    with handle_errors():
        try:
            income = household.add_income(name, money_arg(amount), _date_or_today(scheduled_date), status)
        except ValueError as e:
            fail(str(e))
    console.print(
        f"[green]✓[/green] Added income #{income.id}: {income.name} "
        f"{money_display(income.amount, settings)} on {income.scheduled_date.isoformat()}"
    )


def income_list_command(since: str | None, until: str | None, month: str | None = None) -> None:
    """List income events, optionally for one YYYY-MM month."""
    household, settings = _household()
    start = date_arg(since) if since else None
    end = date_arg(until) if until else None
    if month:
        if since or until:
            fail("Use either --month or --since/--until, not both")
        try:
            start, end, _ = month_range(month)
        except ValueError:
            fail(f"Invalid month: {month} (expected YYYY-MM)")
    with handle_errors():
        incomes = household.list_incomes(start, end)

    if not incomes:
        console.print("[yellow]No income events found[/yellow]")
        return

    table = Table(title=f"Income events ({len(incomes)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Status", style="magenta")
    for income in incomes:
        table.add_row(
            str(income.id),
            income.scheduled_date.isoformat(),
            income.name,
            money_display(income.amount, settings),
            income.status,
        )
    console.print(table)


def income_delete_command(income_event_id: int) -> None:
    """Delete an income event and everything that references it."""
    household, _ = _household()
    with handle_errors():
        deleted = household.delete_income(income_event_id)
    if not deleted:
        fail(f"Income event not found: {income_event_id}")
    console.print(f"[green]✓[/green] Deleted income #{income_event_id}")


def payment_add_command(payee: str, amount: str, due_date: str | None, status: str) -> None:
    """Record a payment."""
    household, settings = _household()
    with handle_errors():
        try:
            payment = household.add_payment(payee, money_arg(amount), _date_or_today(due_date), status)
        except ValueError as e:
            fail(str(e))
    console.print(
        f"[green]✓[/green] Added payment #{payment.id}: {payment.payee} "
        f"{money_display(payment.amount, settings)} due {payment.due_date.isoformat()}"
    )


def payment_list_command(statuses: list[str] | None) -> None:
    """List payments."""
    household, settings = _household()
    with handle_errors():
        payments = household.list_payments(statuses or None)

    if not payments:
        console.print("[yellow]No payments found[/yellow]")
        return

    table = Table(title=f"Payments ({len(payments)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Due", style="cyan")
    table.add_column("Payee", style="white")
    table.add_column("Amount", justify="right", style="red")
    table.add_column("Status", style="magenta")
    for payment in payments:
        table.add_row(
            str(payment.id),
            payment.due_date.isoformat(),
            payment.payee,
            money_display(payment.amount, settings),
            payment.status,
        )
    console.print(table)


def payment_delete_command(payment_id: int) -> None:
    """Delete a payment and its attributions."""
    household, _ = _household()
    with handle_errors():
        deleted = household.delete_payment(payment_id)
    if not deleted:
        fail(f"Payment not found: {payment_id}")
    console.print(f"[green]✓[/green] Deleted payment #{payment_id}")
