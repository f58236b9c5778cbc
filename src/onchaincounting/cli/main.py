"""Main CLI entry point."""

import logging

import click
import structlog

from onchaincounting.config import Settings
from onchaincounting.database.factories import create_sqlite_database

# Import and register all commands at module level
from onchaincounting.cli.commands import (
    backup,
    dashboard,
    expense,
    invoice,
    orders,
    report,
    withdrawal,
)


def configure_logging(verbose: bool) -> None:
    """Route structlog through stdlib logging at DEBUG or WARNING."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides ONCHAINCOUNTING_DB_PATH environment variable)",
    envvar="ONCHAINCOUNTING_DB_PATH",
)
@click.option("--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Onchaincounting - bookkeeping for a crypto freelance business.

    Record invoices, expenses and withdrawals, mirror Monerium orders, and
    see yearly dashboards and tax reports in EUR.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("settings", Settings.from_env())

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
invoice.register_commands(cli)
expense.register_commands(cli)
withdrawal.register_commands(cli)
dashboard.register_commands(cli)
report.register_commands(cli)
orders.register_commands(cli)
backup.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
