"""CLI entrypoint for running sqldb as a module."""

from sqldb.cli import cli
from sqldb.logging import setup_logging

if __name__ == "__main__":
    setup_logging()
    cli()
