"""Database backup and maintenance commands."""

from datetime import date
from pathlib import Path

import click

from onchaincounting.cli.error_handling import handle_domain_error
from onchaincounting.domain.backup import BackupService
from onchaincounting.domain.summary import SummaryService
from onchaincounting.utils.date_parser import current_year


@click.group()
def db_group():
    """Back up, restore and maintain the database."""
    pass


@db_group.command("export")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Output file (defaults to onchaincounting-backup-YYYY-MM-DD.json)",
)
@click.pass_context
def export_db(ctx, output: str | None):
    """Export the whole database to a JSON file."""
    db = ctx.obj["db"]
    service = BackupService(db)

    path = Path(output or f"onchaincounting-backup-{date.today().isoformat()}.json")
    path.write_text(service.export_data(), encoding="utf-8")
    click.echo(f"Exported database to {path}")


@db_group.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--merge", is_flag=True, help="Add to existing data instead of replacing it")
@click.pass_context
def import_db(ctx, file: str, merge: bool):
    """Import a JSON backup.

    By default every collection is cleared and replaced by the backup. With
    --merge, records are added or overwritten by ID and nothing is removed.
    Either way the import is all-or-nothing.
    """
    db = ctx.obj["db"]
    service = BackupService(db)

    if not merge and not click.confirm("This replaces all current data. Continue?"):
        click.echo("Import cancelled.")
        return

    text = Path(file).read_text(encoding="utf-8")
    try:
        service.import_data(text, merge=merge)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo("Database merged successfully" if merge else "Database imported successfully")


@db_group.command("refresh")
@click.option("--year", type=int, help="Year to refresh (defaults to the current year)")
@click.pass_context
def refresh_summaries(ctx, year: int | None):
    """Recompute the stored monthly and yearly summaries of a year."""
    db = ctx.obj["db"]
    service = SummaryService(db, ctx.obj.get("settings"))
    year = year or current_year()

    months, _ = service.refresh_year(year)
    click.echo(f"Refreshed {len(months)} monthly summaries for {year}")


def register_commands(cli):
    """Register database commands with main CLI."""
    cli.add_command(db_group, name="db")
