"""Payment attribution commands."""

from rich.table import Table

from fundflow.commands.common import console, fail, handle_errors, money_arg, money_display, open_settings
from fundflow.config import Settings
from fundflow.domain.attribution import LedgerSummary
from fundflow.domain.money import format_percentage, ratio_as_percentage
from fundflow.services.attribution import AttributionLedger
from fundflow.services.distributor import AutoDistributor


def _ledger() -> tuple[AttributionLedger, Settings]:
    settings, db_path = open_settings()
    return AttributionLedger(db_path, settings.busy_timeout), settings


def render_ledger(summary: LedgerSummary, settings: Settings) -> None:
    """Print the attributions funding a payment."""
    table = Table(title=f"Attributions for payment #{summary.owner_id}")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Income", style="cyan", justify="right")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Share", justify="right")
    table.add_column("Type", style="magenta")
    for row in summary.rows:
        table.add_row(
            str(row.id),
            f"#{row.income_event_id}",
            money_display(row.amount, settings),
            format_percentage(ratio_as_percentage(row.amount, summary.owner_amount)),
            row.attribution_type,
        )
    console.print(table)
    console.print(
        f"Attributed {money_display(summary.total_attributed, settings)} of "
        f"{money_display(summary.owner_amount, settings)}"
    )
    style = "yellow" if summary.remaining else "dim"
    console.print(f"[{style}]Remaining: {money_display(summary.remaining, settings)}[/{style}]")


def add_command(payment_id: int, income_event_id: int, amount: str) -> None:
    """Attribute part of a payment to an income event."""
    ledger, settings = _ledger()
    with handle_errors():
        result = ledger.attribute(payment_id, income_event_id, money_arg(amount))
    console.print(
        f"[green]✓[/green] Attribution #{result.id}: {money_display(result.amount, settings)} "
        f"({format_percentage(result.percentage)}) of payment #{payment_id} from income #{income_event_id}"
    )


def update_command(attribution_id: int, amount: str) -> None:
    """Change an attribution's amount."""
    ledger, settings = _ledger()
    with handle_errors():
        result = ledger.update_attribution(attribution_id, money_arg(amount))
    console.print(
        f"[green]✓[/green] Attribution #{result.id} is now {money_display(result.amount, settings)} "
        f"({format_percentage(result.percentage)})"
    )


def remove_command(attribution_id: int) -> None:
    """Remove an attribution."""
    ledger, _ = _ledger()
    with handle_errors():
        removed = ledger.remove(attribution_id)
    if not removed:
        fail(f"Attribution not found: {attribution_id}")
    console.print(f"[green]✓[/green] Removed attribution #{attribution_id}")


def show_command(payment_id: int) -> None:
    """Show what funds a payment."""
    ledger, settings = _ledger()
    with handle_errors():
        summary = ledger.for_payment(payment_id)
    if not summary.rows:
        console.print(f"[yellow]Payment {payment_id} has no attributions[/yellow]")
        return
    render_ledger(summary, settings)


def distribute_command(payment_id: int, income_event_ids: list[int]) -> None:
    """Spread a payment's unattributed amount over income events."""
    ledger, settings = _ledger()
    distributor = AutoDistributor(ledger)
    with handle_errors():
        results = distributor.distribute(payment_id, income_event_ids)
        summary = ledger.for_payment(payment_id)

    if not results:
        if summary.remaining > 0:
            console.print("[yellow]The candidate income events have no capacity left[/yellow]")
        else:
            console.print(f"[dim]Payment {payment_id} is already fully attributed[/dim]")
        return
    console.print(f"[green]✓[/green] Wrote {len(results)} attribution(s)")
    render_ledger(summary, settings)
