"""Tests for the CLI module.

Covers:
- CLI help and version output
- Database management commands (migrate, status, history)
- Configuration validation and checking
- Error handling and user feedback
"""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from sqldb import __version__
from sqldb.cli import cli

CREATE_T = "CREATE TABLE t (a TEXT NOT NULL, b INT NOT NULL);"
INSERT_T = "INSERT INTO t (a, b) VALUES ('foo', 42);"


@pytest.fixture
def migrations_dir(write_migrations) -> Path:
    return write_migrations({"0.sql": CREATE_T, "1.sql": INSERT_T})


@pytest.fixture
def config_file(tmp_path: Path, migrations_dir: Path) -> Path:
    """Config pointing at a temp database and the migrations directory."""
    config_path = tmp_path / "sqldb.yaml"
    config_data = {
        "data_dir": str(tmp_path / "data"),
        "log_json": False,
        "migrations": {"path": str(migrations_dir)},
    }
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


def invoke(runner: CliRunner, config_file: Path, *args: str):
    return runner.invoke(cli, ["-c", str(config_file), *args])


class TestCliHelp:
    """Tests for help and basic command availability."""

    def test_cli_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "content-addressed SQLite migrations" in result.output
        assert "Database management commands" in result.output
        assert "Configuration management commands" in result.output

    def test_db_group_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["db", "--help"])
        assert result.exit_code == 0
        assert "migrate" in result.output
        assert "status" in result.output
        assert "history" in result.output

    def test_migrate_help_shows_source_options(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["db", "migrate", "--help"])
        assert result.exit_code == 0
        assert "--dir" in result.output
        assert "--package" in result.output


class TestVersion:
    """Tests for version command."""

    def test_cli_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert f"sqldb {__version__}" in result.output

    def test_version_with_config_file_missing(self, cli_runner: CliRunner) -> None:
        """Version works with defaults when the config file does not exist."""
        result = cli_runner.invoke(
            cli, ["--config-file", "/nonexistent/sqldb.yaml", "version"]
        )
        assert result.exit_code == 0
        assert __version__ in result.output


class TestDatabaseMigrate:
    """Tests for db migrate command."""

    def test_migrate_applies(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = invoke(cli_runner, config_file, "db", "migrate")

        assert result.exit_code == 0, result.output
        assert "Applied 2 migration(s)" in result.output
        assert "0.sql" in result.output
        assert "1.sql" in result.output

    def test_migrate_twice(self, cli_runner: CliRunner, config_file: Path) -> None:
        invoke(cli_runner, config_file, "db", "migrate")
        result = invoke(cli_runner, config_file, "db", "migrate")

        assert result.exit_code == 0
        assert "No pending migrations" in result.output

    def test_migrate_dir_override(
        self, cli_runner: CliRunner, config_file: Path, write_migrations, tmp_path
    ) -> None:
        other = write_migrations({"a.sql": "CREATE TABLE other (x INT);"}, tmp_path / "other")

        result = invoke(cli_runner, config_file, "db", "migrate", "--dir", str(other))

        assert result.exit_code == 0
        assert "a.sql" in result.output
        assert "Applied 1 migration(s)" in result.output

    def test_migrate_dir_and_package_conflict(
        self, cli_runner: CliRunner, config_file: Path, migrations_dir: Path
    ) -> None:
        result = invoke(
            cli_runner,
            config_file,
            "db",
            "migrate",
            "--dir",
            str(migrations_dir),
            "--package",
            "myapp",
        )

        assert result.exit_code == 2

    def test_migrate_missing_directory(
        self, cli_runner: CliRunner, config_file: Path, tmp_path: Path
    ) -> None:
        result = invoke(
            cli_runner, config_file, "db", "migrate", "--dir", str(tmp_path / "missing")
        )

        assert result.exit_code == 1
        assert "Migration failed" in result.output

    def test_migrate_broken_migration(
        self, cli_runner: CliRunner, config_file: Path, migrations_dir: Path
    ) -> None:
        (migrations_dir / "2.sql").write_text("CREATE TABLE broken (")

        result = invoke(cli_runner, config_file, "db", "migrate")

        assert result.exit_code == 1
        assert "2.sql" in result.output


class TestDatabaseStatus:
    """Tests for db status command."""

    def test_status_fresh(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = invoke(cli_runner, config_file, "db", "status")

        assert result.exit_code == 0, result.output
        assert "Database:" in result.output
        assert "Applied migrations: 0" in result.output
        assert "Pending migrations: 2" in result.output

    def test_status_after_migrate(self, cli_runner: CliRunner, config_file: Path) -> None:
        invoke(cli_runner, config_file, "db", "migrate")

        result = invoke(cli_runner, config_file, "db", "status")

        assert result.exit_code == 0
        assert "Applied migrations: 2" in result.output
        assert "No pending migrations" in result.output

    def test_status_missing_directory(
        self, cli_runner: CliRunner, config_file: Path, tmp_path: Path
    ) -> None:
        result = invoke(
            cli_runner, config_file, "db", "status", "--dir", str(tmp_path / "missing")
        )

        assert result.exit_code == 1


class TestDatabaseHistory:
    """Tests for db history command."""

    def test_history_empty(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = invoke(cli_runner, config_file, "db", "history")

        assert result.exit_code == 0
        assert "No migrations applied" in result.output

    def test_history_lists_records(self, cli_runner: CliRunner, config_file: Path) -> None:
        invoke(cli_runner, config_file, "db", "migrate")

        result = invoke(cli_runner, config_file, "db", "history")

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if ".sql" in line]
        assert len(lines) == 2
        assert lines[0].endswith("0.sql")
        assert lines[1].endswith("1.sql")


class TestConfigCheck:
    """Tests for config check command."""

    def test_config_check_missing_file(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["config", "check", "-c", "nonexistent.yaml"])
        assert result.exit_code == 2  # Click returns 2 for bad parameter

    def test_config_check_valid(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = cli_runner.invoke(cli, ["config", "check", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "Configuration valid" in result.output
        assert "Data directory" in result.output
        assert "Database path" in result.output
        assert "Migration source: directory" in result.output

    def test_config_check_invalid(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config_path = tmp_path / "bad.yaml"
        with open(config_path, "w") as f:
            yaml.dump({"migrations": {"source": "embedded"}}, f)

        result = cli_runner.invoke(cli, ["config", "check", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
