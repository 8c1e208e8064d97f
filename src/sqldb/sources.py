"""Migration sources: where named SQL migrations come from.

A source returns (name, content) pairs in any order, with names unique
within one result. Ordering is the runner's job.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from sqldb.errors import SourceEnumerationError
from sqldb.logging import get_logger
from sqldb.models import Migration, SourceKind

if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

    from sqldb.config import MigrationsConfig

log = get_logger("sources")

DEFAULT_EXTENSION = ".sql"


class MigrationSource(Protocol):
    """Anything that can list migrations."""

    def migrations(self) -> list[Migration]:
        """Return every migration this source knows about.

        Raises:
            SourceEnumerationError: If the list cannot be produced.
        """
        ...


class DirectorySource:
    """Migration files directly inside a directory on disk.

    Subdirectories and files with other extensions are ignored.
    """

    def __init__(self, path: Path | str, extension: str = DEFAULT_EXTENSION) -> None:
        self.path = Path(path)
        self.extension = extension

    def migrations(self) -> list[Migration]:
        if not self.path.exists():
            raise SourceEnumerationError(f"Migrations directory not found: {self.path}")
        if not self.path.is_dir():
            raise SourceEnumerationError(f"Migrations path is not a directory: {self.path}")

        found: list[Migration] = []
        try:
            for file in self.path.iterdir():
                if file.is_file() and file.name.endswith(self.extension):
                    found.append(Migration(name=file.name, content=file.read_bytes()))
        except OSError as e:
            raise SourceEnumerationError(
                f"Failed to read migrations from {self.path}: {e}"
            ) from e

        log.debug("directory_source_listed", path=str(self.path), count=len(found))
        return found

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.path)!r})"


class PackageSource:
    """Migration files shipped as resources of an importable package.

    Files are collected from the top of the resource tree (or ``subpath``
    below it) and from its immediate subdirectories. Deeper nesting is not
    searched. Migrations are named by file name alone, so the same file name
    in two subdirectories is an error.
    """

    def __init__(
        self,
        package: str,
        subpath: str | None = None,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        self.package = package
        self.subpath = subpath
        self.extension = extension

    def _root(self) -> Traversable:
        try:
            root = resources.files(self.package)
        except (ModuleNotFoundError, TypeError) as e:
            raise SourceEnumerationError(
                f"Cannot load migrations from package {self.package!r}: {e}"
            ) from e

        if self.subpath:
            root = root.joinpath(self.subpath)
        if not root.is_dir():
            raise SourceEnumerationError(
                f"Migrations directory not found in package {self.package!r}: "
                f"{self.subpath}"
            )
        return root

    def _files(self, root: Traversable) -> Iterable[Traversable]:
        for entry in root.iterdir():
            if entry.is_dir():
                for nested in entry.iterdir():
                    if nested.is_file():
                        yield nested
            elif entry.is_file():
                yield entry

    def migrations(self) -> list[Migration]:
        root = self._root()

        found: dict[str, Migration] = {}
        try:
            for file in self._files(root):
                if not file.name.endswith(self.extension):
                    continue
                if file.name in found:
                    raise SourceEnumerationError(
                        f"Duplicate migration name {file.name!r} "
                        f"in package {self.package!r}"
                    )
                found[file.name] = Migration(name=file.name, content=file.read_bytes())
        except OSError as e:
            raise SourceEnumerationError(
                f"Failed to read migrations from package {self.package!r}: {e}"
            ) from e

        log.debug("package_source_listed", package=self.package, count=len(found))
        return list(found.values())

    def __repr__(self) -> str:
        if self.subpath:
            return f"PackageSource({self.package!r}, {self.subpath!r})"
        return f"PackageSource({self.package!r})"


class StaticSource:
    """Migrations held in memory, keyed by name."""

    def __init__(self, migrations: Mapping[str, str | bytes]) -> None:
        self._migrations = dict(migrations)

    def migrations(self) -> list[Migration]:
        return [
            Migration(
                name=name,
                content=content.encode("utf-8") if isinstance(content, str) else content,
            )
            for name, content in self._migrations.items()
        ]

    def __repr__(self) -> str:
        return f"StaticSource({len(self._migrations)} migrations)"


def source_from_config(config: MigrationsConfig) -> MigrationSource:
    """Build the migration source described by configuration."""
    if config.source is SourceKind.DIRECTORY:
        return DirectorySource(config.path, extension=config.extension)
    if config.source is SourceKind.PACKAGE:
        if not config.package:
            raise ValueError("A package migration source needs a package name")
        return PackageSource(
            config.package, subpath=config.subpath, extension=config.extension
        )
    raise ValueError(f"Unknown migration source kind: {config.source!r}")
