"""Admin commands: initialization."""

import sqlite3
from pathlib import Path

from fundflow.commands.common import console, fail, resolve_db_path
from fundflow.config import create_default_config, get_config_path, load_settings
from fundflow.store.schema import init_database


def run_full_init(db_path: Path, config_path: Path) -> None:
    """Initialize new database and config."""
    console.print(f"[cyan]Initializing database at {db_path}...[/cyan]")
    init_database(db_path)
    console.print("[green]✓[/green] Database initialized")

    console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
    create_default_config(config_path)
    console.print("[green]✓[/green] Config file created (permissions: 600)")

    console.print("\n[green]Initialization complete![/green]", style="bold")
    console.print(f"[dim]Database: {db_path}[/dim]")
    console.print(f"[dim]Config: {config_path}[/dim]")


def init_command(force: bool = False) -> None:
    """Initialize fundflow database and configuration."""
    config_path = get_config_path()
    try:
        db_path = resolve_db_path(load_settings(config_path))
    except ValueError as e:
        fail(f"Config error: {e}")

    db_exists = db_path.exists()
    config_exists = config_path.exists()

    if not force and (db_exists or config_exists):
        console.print("[red]Initialization failed:[/red]", style="bold")
        if db_exists:
            console.print(f"  Database already exists: {db_path}")
        if config_exists:
            console.print(f"  Config already exists: {config_path}")
        console.print("\n[yellow]Use 'fundflow init --force' to overwrite[/yellow]")
        fail("Nothing was changed")

    try:
        if db_exists:
            db_path.unlink()
        run_full_init(db_path, config_path)
    except sqlite3.Error as e:
        fail(f"Database error: {e}")
    except OSError as e:
        fail(f"Filesystem error: {e}")
