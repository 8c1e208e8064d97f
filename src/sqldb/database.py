"""Database handle and bookkeeping schema for sqldb.

Uses SQLAlchemy Core (not ORM) for explicit SQL control. The handle is an
ordinary object owned by the caller; nothing here is a process-wide singleton.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import TIMESTAMP, Column, MetaData, Table, Text, create_engine, inspect, text
from sqlalchemy.engine import Engine

from sqldb.config import MEMORY_DATABASE
from sqldb.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.engine import Row
    from sqlalchemy.sql.base import Executable

    from sqldb.config import Config

log = get_logger("database")

metadata = MetaData()


# =============================================================================
# Bookkeeping
# =============================================================================

migrations = Table(
    "migrations",
    metadata,
    Column("file", Text, nullable=False),
    Column("md5", Text, primary_key=True),  # hex MD5 of the migration content
    Column("applied_at", TIMESTAMP, nullable=False),
)

# Fixed layout: existing databases were created with exactly this statement.
CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS migrations (
    file TEXT NOT NULL,
    md5 TEXT NOT NULL,
    applied_at TIMESTAMP NOT NULL,
    PRIMARY KEY (md5)
)
"""


# =============================================================================
# Handle
# =============================================================================


class Database:
    """A SQLite database the migration runner executes statements against."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def open(cls, path: Path | str, echo: bool = False) -> "Database":
        """Open a SQLite database file, or ``":memory:"`` for a private one.

        Args:
            path: Database file path. Parent directories are created.
            echo: Log every SQL statement through SQLAlchemy.

        Returns:
            Database handle.
        """
        in_memory = str(path) == MEMORY_DATABASE
        if in_memory:
            url = "sqlite://"
        else:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{path}"

        engine = create_engine(url, echo=echo)

        with engine.connect() as conn:
            if not in_memory:
                conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.execute(text("PRAGMA foreign_keys=ON"))
            conn.commit()

        log.debug("database_opened", path=str(path))
        return cls(engine)

    @classmethod
    def from_config(cls, config: Config) -> "Database":
        """Open the database described by configuration."""
        path = config.database_path or MEMORY_DATABASE
        return cls.open(path, echo=config.log_level == "DEBUG")

    def execute_script(self, script: str) -> None:
        """Execute a batch of one or more SQL statements.

        Runs through sqlite3's ``executescript``, which commits any pending
        transaction first and then runs the statements as written.

        Raises:
            sqlite3.Error: If any statement fails.
        """
        raw = self.engine.raw_connection()
        try:
            raw.driver_connection.executescript(script)
        finally:
            raw.close()

    def query_one(
        self, statement: Executable, parameters: dict[str, Any] | None = None
    ) -> Row | None:
        """Run a query and return its first row, or None when it has no rows."""
        with self.engine.connect() as conn:
            return conn.execute(statement, parameters).first()

    def query_all(
        self, statement: Executable, parameters: dict[str, Any] | None = None
    ) -> list[Row]:
        """Run a query and return every row."""
        with self.engine.connect() as conn:
            return list(conn.execute(statement, parameters))

    def execute(
        self, statement: Executable, parameters: dict[str, Any] | None = None
    ) -> None:
        """Execute a single statement in its own committed transaction."""
        with self.engine.begin() as conn:
            conn.execute(statement, parameters)

    def table_names(self) -> list[str]:
        """Names of the tables currently in the database."""
        return inspect(self.engine).get_table_names()

    def close(self) -> None:
        """Release all pooled connections.

        An in-memory database is discarded.
        """
        self.engine.dispose()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
