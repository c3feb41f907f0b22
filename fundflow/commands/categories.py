"""Budget category commands."""

from rich.table import Table

from fundflow.commands.common import console, handle_errors, open_settings, percentage_arg
from fundflow.domain.models import BasisPoints, BudgetCategory, PercentageValidation
from fundflow.domain.money import format_percentage
from fundflow.services.registry import BudgetCategoryRegistry


def _registry() -> BudgetCategoryRegistry:
    settings, db_path = open_settings()
    return BudgetCategoryRegistry(db_path, settings.busy_timeout)


def render_categories(categories: list[BudgetCategory]) -> None:
    """Print categories as a table with the active total."""
    table = Table(title="Budget categories")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Target", justify="right")
    table.add_column("Order", justify="right", style="dim")
    table.add_column("Status", justify="center")

    for category in categories:
        status = "[green]active[/green]" if category.is_active else "[dim]inactive[/dim]"
        table.add_row(
            str(category.id),
            category.name,
            format_percentage(category.target_percentage),
            str(category.sort_order),
            status,
        )

    console.print(table)
    total = BasisPoints(sum(c.target_percentage for c in categories if c.is_active))
    console.print(f"[dim]Active total: {format_percentage(total)}[/dim]")


def render_validation(validation: PercentageValidation, names: dict[int, str]) -> None:
    """Print a percentage validation with any suggestions."""
    if validation.is_valid:
        console.print(f"[green]✓ Categories total {format_percentage(validation.total_percentage)}[/green]")
        return

    console.print(
        f"[yellow]Categories total {format_percentage(validation.total_percentage)} "
        f"({format_percentage(validation.difference)} from 100%)[/yellow]"
    )
    table = Table(title="Suggested percentages")
    table.add_column("Category", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Suggested", justify="right")
    for suggestion in validation.suggestions:
        changed = suggestion.suggested != suggestion.current
        suggested = format_percentage(suggestion.suggested)
        table.add_row(
            names.get(suggestion.category_id, str(suggestion.category_id)),
            format_percentage(suggestion.current),
            f"[bold]{suggested}[/bold]" if changed else suggested,
        )
    console.print(table)


def add_command(name: str, percentage: str) -> None:
    """Add a budget category."""
    registry = _registry()
    with handle_errors():
        category = registry.add_category(name, percentage_arg(percentage))
    console.print(
        f"[green]✓[/green] Added {category.name} ({format_percentage(category.target_percentage)}) as #{category.id}"
    )


def update_command(category_id: int, percentage: str | None, name: str | None, sort_order: int | None) -> None:
    """Update a budget category."""
    registry = _registry()
    new_percentage = percentage_arg(percentage) if percentage is not None else None
    with handle_errors():
        category = registry.update_category(category_id, new_percentage, name, sort_order)
    console.print(
        f"[green]✓[/green] {category.name} now targets {format_percentage(category.target_percentage)}"
    )


def deactivate_command(category_id: int) -> None:
    """Deactivate a budget category."""
    registry = _registry()
    with handle_errors():
        category = registry.deactivate_category(category_id)
    console.print(f"[green]✓[/green] Deactivated {category.name}")


def reactivate_command(category_id: int) -> None:
    """Reactivate a budget category."""
    registry = _registry()
    with handle_errors():
        category = registry.reactivate_category(category_id)
    console.print(f"[green]✓[/green] Reactivated {category.name}")


def list_command(include_inactive: bool = False) -> None:
    """List budget categories."""
    registry = _registry()
    with handle_errors():
        categories = registry.list_categories(include_inactive)

    if not categories:
        console.print("[yellow]No budget categories found[/yellow]")
        return
    render_categories(categories)


def validate_command() -> None:
    """Check that active categories total 100%."""
    registry = _registry()
    with handle_errors():
        validation = registry.validate_active()
        names = {c.id: c.name for c in registry.list_categories()}
    render_validation(validation, names)
