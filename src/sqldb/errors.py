"""Exceptions raised by the migration runner and its sources."""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for all migration failures."""


class SourceEnumerationError(MigrationError):
    """A migration source could not produce its list of migrations."""


class ExecutionError(MigrationError):
    """A migration's statement batch failed to execute.

    Migrations applied earlier in the same run stay applied.
    """

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"Migration {name} failed: {message}")
        self.name = name


class BookkeepingError(MigrationError):
    """Creating, querying or writing the migrations table failed."""
