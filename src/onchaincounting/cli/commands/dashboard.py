"""Yearly dashboard command."""

import click

from onchaincounting.cli.formatting import format_amount, month_name
from onchaincounting.domain.summary import SummaryService
from onchaincounting.utils.date_parser import current_year


@click.command("dashboard")
@click.option("--year", type=int, help="Year to show (defaults to the current year)")
@click.pass_context
def dashboard(ctx, year: int | None):
    """Show yearly invoice and offramp totals with a monthly breakdown.

    Offramps are redeem orders mirrored from Monerium; run 'orders sync'
    first to include the latest ones.
    """
    db = ctx.obj["db"]
    service = SummaryService(db, ctx.obj.get("settings"))
    year = year or current_year()

    overview = service.get_year_overview(year)
    invoices = overview.summary.invoices
    offramps = overview.summary.offramps

    click.echo(f"\nDashboard {year}")
    click.echo("=" * 60)
    click.echo(f"Invoices: {invoices.count}")
    click.echo(
        f"  USD: {format_amount(invoices.total_before_tax_usd_amount)} before tax, "
        f"{format_amount(invoices.total_after_tax_usd_amount)} after tax, "
        f"{format_amount(invoices.total_vat_usd_amount)} VAT"
    )
    click.echo(
        f"  CHF: {format_amount(invoices.total_before_tax_chf_amount)} before tax, "
        f"{format_amount(invoices.total_after_tax_chf_amount)} after tax, "
        f"{format_amount(invoices.total_vat_chf_amount)} VAT"
    )
    click.echo(
        f"  EUR: {format_amount(invoices.total_before_tax_eur_amount)} before tax, "
        f"{format_amount(invoices.total_after_tax_eur_amount)} after tax, "
        f"{format_amount(invoices.total_vat_eur_amount)} VAT"
    )
    click.echo(f"Offramps: {offramps.count}, {format_amount(offramps.total_eur_amount)} EUR")

    click.echo(
        f"\n{'Month':10s} {'USD':>12s} {'CHF':>12s} {'EUR':>12s} {'VAT EUR':>10s} "
        f"{'Offramp EUR':>12s} {'Cum. EUR':>12s} {'Cum. offramp':>12s}"
    )
    click.echo("-" * 100)
    for month in overview.months:
        click.echo(
            f"{month_name(month.month + 1):10s} {format_amount(month.invoices_usd):>12s} "
            f"{format_amount(month.invoices_chf):>12s} {format_amount(month.invoices_eur):>12s} "
            f"{format_amount(month.vat_eur):>10s} {format_amount(month.offramps_eur):>12s} "
            f"{format_amount(month.cumulative_eur):>12s} "
            f"{format_amount(month.cumulative_offramp_eur):>12s}"
        )


def register_commands(cli):
    """Register dashboard command with main CLI."""
    cli.add_command(dashboard)
