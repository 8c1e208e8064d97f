"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from sqldb.database import Database


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop any structlog configuration a test installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Provide a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def db():
    """Provide a private in-memory database."""
    database = Database.open(":memory:")
    yield database
    database.close()


@pytest.fixture
def write_migrations(tmp_path: Path):
    """Write name -> SQL pairs into a migrations directory and return it."""

    def _write(files: dict[str, str], directory: Path | None = None) -> Path:
        target = directory or tmp_path / "migrations"
        target.mkdir(parents=True, exist_ok=True)
        for name, sql in files.items():
            (target / name).write_text(sql)
        return target

    return _write
