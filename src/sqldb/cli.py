"""Command-line interface for sqldb."""

from pathlib import Path

import click

from sqldb import __version__
from sqldb.config import Config
from sqldb.logging import get_logger, setup_logging

log = get_logger("cli")


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    log_level: str | None,
    log_json: bool | None,
) -> None:
    """sqldb - content-addressed SQLite migrations.

    Applies each SQL migration file once, tracked by the MD5 of its content.
    """
    ctx.ensure_object(dict)

    config = Config.load_or_default(config_file)
    ctx.obj["config"] = config
    ctx.obj["config_file"] = config_file

    # CLI overrides config
    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json

    setup_logging(json_output=effective_log_json, level=effective_log_level)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"sqldb {__version__}")


def _source_options(f):
    f = click.option(
        "--package",
        default=None,
        help="Read migrations from this importable package instead.",
    )(f)
    f = click.option(
        "--dir",
        "directory",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Read migrations from this directory instead.",
    )(f)
    return f


def _resolve_source(config: Config, directory: Path | None, package: str | None):
    from sqldb.sources import DirectorySource, PackageSource, source_from_config

    if directory is not None and package is not None:
        raise click.UsageError("--dir and --package are mutually exclusive")
    if directory is not None:
        return DirectorySource(directory, extension=config.migrations.extension)
    if package is not None:
        return PackageSource(package, extension=config.migrations.extension)
    return source_from_config(config.migrations)


def _database_label(config: Config) -> str:
    return str(config.database_path) if config.database_path else ":memory:"


@cli.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command(name="migrate")
@_source_options
@click.pass_context
def db_migrate(ctx: click.Context, directory: Path | None, package: str | None) -> None:
    """Apply pending database migrations."""
    from sqldb.database import Database
    from sqldb.errors import MigrationError
    from sqldb.runner import MigrationRunner

    config = ctx.obj["config"]
    source = _resolve_source(config, directory, package)

    log.info(
        "migrate_command_invoked",
        database=_database_label(config),
        source=repr(source),
    )

    with Database.from_config(config) as database:
        try:
            applied = MigrationRunner(database).run(source)
        except MigrationError as e:
            click.echo(f"Migration failed: {e}", err=True)
            raise SystemExit(1)

    if not applied:
        click.echo("No pending migrations")
        return

    click.echo(f"Applied {len(applied)} migration(s):")
    for record in applied:
        click.echo(f"  {record.name} ({record.content_hash})")


@db.command(name="status")
@_source_options
@click.pass_context
def db_status(ctx: click.Context, directory: Path | None, package: str | None) -> None:
    """Show database migration status."""
    from sqldb.database import Database
    from sqldb.errors import MigrationError
    from sqldb.runner import MigrationRunner

    config = ctx.obj["config"]
    source = _resolve_source(config, directory, package)

    with Database.from_config(config) as database:
        runner = MigrationRunner(database)
        try:
            applied = runner.applied()
            pending = runner.pending(source)
        except MigrationError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)

    click.echo(f"Database: {_database_label(config)}")
    click.echo(f"Source: {source!r}")
    click.echo(f"Applied migrations: {len(applied)}")

    if pending:
        click.echo(f"Pending migrations: {len(pending)}")
        for migration in pending:
            click.echo(f"  {migration.name}")
    else:
        click.echo("No pending migrations")


@db.command(name="history")
@click.pass_context
def db_history(ctx: click.Context) -> None:
    """List applied migrations, oldest first."""
    from sqldb.database import Database
    from sqldb.errors import MigrationError
    from sqldb.runner import MigrationRunner

    config = ctx.obj["config"]

    with Database.from_config(config) as database:
        try:
            records = MigrationRunner(database).applied()
        except MigrationError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)

    if not records:
        click.echo("No migrations applied")
        return

    for record in records:
        click.echo(
            f"{record.applied_at.isoformat(timespec='seconds')}  "
            f"{record.content_hash}  {record.name}"
        )


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="check")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    default="sqldb.yaml",
    help="Path to configuration file.",
)
def config_check(config_file: Path) -> None:
    """Validate configuration file."""
    try:
        cfg = Config.load(config_file)
        click.echo(f"Configuration valid: {config_file}")
        click.echo(f"  Data directory: {cfg.data_dir}")
        click.echo(f"  Database path: {_database_label(cfg)}")
        click.echo(f"  Log level: {cfg.log_level}")
        click.echo(f"  Migration source: {cfg.migrations.source.value}")

        if cfg.migrations.package:
            click.echo(f"  Migrations package: {cfg.migrations.package}")
        else:
            click.echo(f"  Migrations directory: {cfg.migrations.path}")

    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)
