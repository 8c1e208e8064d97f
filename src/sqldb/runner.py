"""Migration runner for SQLite schema evolution.

This module provides the core migration functionality:
- Creating the ``migrations`` bookkeeping table
- Identifying migrations by the MD5 of their content
- Applying unapplied migrations in name order, exactly once each

A migration is recorded only after its statements ran successfully, and the
two steps are not atomic. If recording fails after the statements committed,
the next run executes the same content again.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from sqldb.database import CREATE_MIGRATIONS_TABLE, Database, migrations
from sqldb.errors import BookkeepingError, ExecutionError
from sqldb.logging import get_logger
from sqldb.models import Migration, MigrationRecord
from sqldb.sources import MigrationSource

log = get_logger("migrations")


def ordered(source: MigrationSource) -> list[Migration]:
    """List a source's migrations sorted by name.

    Names compare by code point, which matches UTF-8 byte order.

    Raises:
        SourceEnumerationError: If the source cannot list its migrations.
    """
    return sorted(source.migrations(), key=lambda m: m.name)


class MigrationRunner:
    """Applies migrations from a source to one database.

    Attributes:
        db: Database the migrations are applied to.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def ensure_table(self) -> None:
        """Create the bookkeeping table if it does not exist yet."""
        try:
            self.db.execute(text(CREATE_MIGRATIONS_TABLE))
        except SQLAlchemyError as e:
            log.error("migrations_table_failed", error=str(e))
            raise BookkeepingError(f"Failed to create migrations table: {e}") from e

    def is_applied(self, content_hash: str) -> bool:
        """Check whether a migration with this content hash was recorded."""
        try:
            row = self.db.query_one(
                select(migrations.c.file).where(migrations.c.md5 == content_hash)
            )
        except SQLAlchemyError as e:
            log.error("migration_lookup_failed", md5=content_hash, error=str(e))
            raise BookkeepingError(
                f"Failed to look up migration {content_hash}: {e}"
            ) from e
        return row is not None

    def applied(self) -> list[MigrationRecord]:
        """All recorded migrations, oldest first.

        Returns an empty list when the bookkeeping table does not exist.
        """
        if "migrations" not in self.db.table_names():
            return []
        try:
            rows = self.db.query_all(
                select(migrations).order_by(migrations.c.applied_at, migrations.c.file)
            )
        except SQLAlchemyError as e:
            log.error("migrations_read_failed", error=str(e))
            raise BookkeepingError(f"Failed to read migrations table: {e}") from e
        return [MigrationRecord.from_row(row) for row in rows]

    def pending(self, source: MigrationSource) -> list[Migration]:
        """Migrations from a source that a run would apply, in order.

        Content seen earlier in the list (or already recorded) is left out,
        matching what ``run`` would skip. Does not create the bookkeeping table.
        """
        known = {record.content_hash for record in self.applied()}
        result: list[Migration] = []
        for migration in ordered(source):
            if migration.content_hash in known:
                continue
            known.add(migration.content_hash)
            result.append(migration)
        return result

    def run(self, source: MigrationSource) -> list[MigrationRecord]:
        """Apply every migration from the source that has not been applied.

        Args:
            source: Where to read migrations from.

        Returns:
            Records of the migrations applied by this run, in order.

        Raises:
            SourceEnumerationError: If the source cannot list its migrations.
            ExecutionError: If a migration's statements fail. Later
                migrations are not attempted.
            BookkeepingError: If the bookkeeping table cannot be created,
                read or written.
        """
        self.ensure_table()

        log.info("running_migrations", source=repr(source))
        to_check = ordered(source)

        if not to_check:
            log.info("no_migrations_found")
            return []

        applied: list[MigrationRecord] = []

        for migration in to_check:
            if self.is_applied(migration.content_hash):
                log.debug(
                    "migration_skipped", file=migration.name, md5=migration.content_hash
                )
                continue

            log.info("applying_migration", file=migration.name, md5=migration.content_hash)
            self._execute(migration)
            applied.append(self._record(migration))
            log.info("migration_applied", file=migration.name)

        if not applied:
            log.info("no_pending_migrations")
        else:
            log.info("migrations_complete", count=len(applied))

        return applied

    def _execute(self, migration: Migration) -> None:
        try:
            self.db.execute_script(migration.sql)
        except (sqlite3.Error, SQLAlchemyError, UnicodeDecodeError) as e:
            log.error("migration_failed", file=migration.name, error=str(e))
            raise ExecutionError(migration.name, str(e)) from e

    def _record(self, migration: Migration) -> MigrationRecord:
        record = MigrationRecord(
            file=migration.name,
            md5=migration.content_hash,
            applied_at=datetime.now(timezone.utc),
        )
        try:
            self.db.execute(
                migrations.insert().values(
                    file=record.name,
                    md5=record.content_hash,
                    applied_at=record.applied_at,
                )
            )
        except SQLAlchemyError as e:
            log.error(
                "migration_record_failed",
                file=migration.name,
                md5=migration.content_hash,
                error=str(e),
            )
            raise BookkeepingError(
                f"Migration {migration.name} was applied but could not be recorded: {e}"
            ) from e
        return record


def run_migrations(db: Database, source: MigrationSource) -> list[MigrationRecord]:
    """Apply pending migrations from a source to a database.

    Shorthand for ``MigrationRunner(db).run(source)``.
    """
    return MigrationRunner(db).run(source)
