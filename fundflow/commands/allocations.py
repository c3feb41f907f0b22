"""Budget allocation commands."""

from rich.table import Table

from fundflow.commands.common import (
    console,
    fail,
    handle_errors,
    money_arg,
    money_display,
    open_settings,
    percentage_arg,
)
from fundflow.config import Settings
from fundflow.domain.models import BasisPoints
from fundflow.domain.money import format_percentage
from fundflow.services.allocation import AllocationGenerator, AllocationSummary
from fundflow.services.registry import BudgetCategoryRegistry


def _services() -> tuple[AllocationGenerator, BudgetCategoryRegistry, Settings]:
    settings, db_path = open_settings()
    return (
        AllocationGenerator(db_path, settings.busy_timeout),
        BudgetCategoryRegistry(db_path, settings.busy_timeout),
        settings,
    )


def parse_overrides(values: list[str]) -> dict[int, BasisPoints]:
    """Parse CATEGORY_ID=PERCENT override options.

    Exits with status 1 on a malformed value.
    """
    overrides: dict[int, BasisPoints] = {}
    for value in values:
        category_part, sep, percent_part = value.partition("=")
        if not sep or not category_part.strip().isdigit():
            fail(f"Invalid override '{value}', expected CATEGORY_ID=PERCENT")
        overrides[int(category_part)] = percentage_arg(percent_part)
    return overrides


def render_summary(summary: AllocationSummary, names: dict[int, str], settings: Settings) -> None:
    """Print an income event's allocations with totals."""
    income = summary.income_event
    table = Table(title=f"Allocations for {income.name} ({money_display(income.amount, settings)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Category", style="cyan")
    table.add_column("Percent", justify="right")
    table.add_column("Amount", justify="right", style="green")
    for allocation in summary.allocations:
        table.add_row(
            str(allocation.id),
            names.get(allocation.budget_category_id, str(allocation.budget_category_id)),
            format_percentage(allocation.percentage),
            money_display(allocation.amount, settings),
        )
    console.print(table)
    console.print(f"Allocated: {money_display(summary.total_allocated, settings)}")
    style = "yellow" if summary.unallocated else "dim"
    console.print(f"[{style}]Unallocated: {money_display(summary.unallocated, settings)}[/{style}]")


def _category_names(registry: BudgetCategoryRegistry) -> dict[int, str]:
    return {c.id: c.name for c in registry.list_categories(include_inactive=True)}


def generate_command(income_event_id: int, overrides: list[str] | None) -> None:
    """Split an income event across the active budget categories."""
    generator, registry, settings = _services()
    parsed = parse_overrides(overrides or [])
    with handle_errors():
        generator.generate(income_event_id, parsed or None)
        summary = generator.for_income_event(income_event_id)
        names = _category_names(registry)
    render_summary(summary, names, settings)


def update_command(allocation_id: int, amount: str | None, percentage: str | None) -> None:
    """Change one allocation by amount or by percentage."""
    generator, _, settings = _services()
    new_amount = money_arg(amount) if amount is not None else None
    new_percentage = percentage_arg(percentage) if percentage is not None else None
    with handle_errors():
        allocation = generator.update(allocation_id, new_amount, new_percentage)
    console.print(
        f"[green]✓[/green] Allocation #{allocation.id} is now {money_display(allocation.amount, settings)} "
        f"({format_percentage(allocation.percentage)})"
    )


def show_command(income_event_id: int) -> None:
    """Show an income event's allocations."""
    generator, registry, settings = _services()
    with handle_errors():
        summary = generator.for_income_event(income_event_id)
        names = _category_names(registry)

    if not summary.allocations:
        console.print(f"[yellow]Income event {income_event_id} has no allocations[/yellow]")
        return
    render_summary(summary, names, settings)
