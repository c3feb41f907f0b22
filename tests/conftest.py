"""Shared fixtures."""

from pathlib import Path

import pytest

from fundflow.store.schema import init_database


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Fresh database with the full schema."""
    path = tmp_path / "fundflow.db"
    init_database(path)
    return path
