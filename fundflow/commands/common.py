"""Helpers shared by the CLI commands."""

import sqlite3
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import NoReturn

from rich.console import Console

from fundflow.config import Settings, load_settings
from fundflow.dates import normalize_date
from fundflow.domain.errors import ReconciliationError
from fundflow.domain.models import BasisPoints, Money
from fundflow.domain.money import format_money, parse_money, parse_percentage
from fundflow.store.schema import database_exists, get_db_path

console = Console()


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]{message}[/red]", style="bold")
    sys.exit(1)


def resolve_db_path(settings: Settings) -> Path:
    """Database path from settings, or the XDG default."""
    return settings.db_path if settings.db_path is not None else get_db_path()


def open_settings() -> tuple[Settings, Path]:
    """Load settings and make sure the database exists.

    Exits with status 1 if the config is invalid or the database is missing.
    """
    try:
        settings = load_settings()
    except ValueError as e:
        fail(f"Config error: {e}")
    db_path = resolve_db_path(settings)
    if not database_exists(db_path):
        fail("Database not found. Run 'fundflow init' first.")
    return settings, db_path


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn domain and database failures into a red message and exit 1."""
    try:
        yield
    except ReconciliationError as e:
        fail(f"{e.kind}: {e.message}")
    except sqlite3.Error as e:
        fail(f"Database error: {e}")


def money_arg(text: str) -> Money:
    """Parse a money option, exiting on bad input."""
    try:
        return parse_money(text)
    except ValueError:
        fail(f"Invalid amount: {text}")


def percentage_arg(text: str) -> BasisPoints:
    """Parse a percentage option, exiting on bad input."""
    try:
        return parse_percentage(text)
    except ValueError:
        fail(f"Invalid percentage: {text}")


def date_arg(text: str) -> date:
    """Parse a date option, exiting on bad input."""
    try:
        return normalize_date(text)
    except ValueError:
        fail(f"Invalid date: {text}")


def money_display(amount: Money, settings: Settings) -> str:
    """Format an amount with the configured currency symbol."""
    return format_money(amount, settings.currency_symbol)
