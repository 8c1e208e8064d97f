"""sqldb - content-addressed SQLite migrations.

Applies SQL migration files exactly once each, tracking them by the MD5 of
their content in a ``migrations`` bookkeeping table.
"""

__version__ = "0.1.0"

from sqldb.database import Database
from sqldb.errors import (
    BookkeepingError,
    ExecutionError,
    MigrationError,
    SourceEnumerationError,
)
from sqldb.models import Migration, MigrationRecord, SourceKind
from sqldb.runner import MigrationRunner, run_migrations
from sqldb.sources import DirectorySource, MigrationSource, PackageSource, StaticSource

__all__ = [
    "__version__",
    "BookkeepingError",
    "Database",
    "DirectorySource",
    "ExecutionError",
    "Migration",
    "MigrationError",
    "MigrationRecord",
    "MigrationRunner",
    "MigrationSource",
    "PackageSource",
    "SourceEnumerationError",
    "SourceKind",
    "StaticSource",
    "run_migrations",
]
