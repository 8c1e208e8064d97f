"""Data models for migrations and their bookkeeping records."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import cached_property

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    """Where migration files are read from."""

    DIRECTORY = "directory"
    PACKAGE = "package"


def content_hash(content: bytes) -> str:
    """Fingerprint migration content.

    MD5 is used as a dedup key only, never as a security boundary.
    """
    return hashlib.md5(content, usedforsecurity=False).hexdigest()


@dataclass(frozen=True)
class Migration:
    """One migration produced by a source: a name and its raw content."""

    name: str
    content: bytes

    @cached_property
    def content_hash(self) -> str:
        """Hex MD5 of the raw content; the migration's identity."""
        return content_hash(self.content)

    @property
    def sql(self) -> str:
        """Content decoded as UTF-8 SQL text."""
        return self.content.decode("utf-8")


class MigrationRecord(BaseModel):
    """A row of the migrations bookkeeping table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="file")
    content_hash: str = Field(alias="md5", min_length=32, max_length=32)
    applied_at: datetime

    @classmethod
    def from_row(cls, row) -> "MigrationRecord":
        """Build a record from a ``migrations`` table row.

        SQLite keeps no zone with the timestamp; stored values are UTC.
        """
        applied_at = row.applied_at
        if applied_at.tzinfo is None:
            applied_at = applied_at.replace(tzinfo=timezone.utc)
        return cls(file=row.file, md5=row.md5, applied_at=applied_at)
