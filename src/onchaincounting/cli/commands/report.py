"""Tax and profit/loss report command."""

import click

from onchaincounting.cli.formatting import format_amount, format_money
from onchaincounting.domain.summary import SummaryService
from onchaincounting.utils.date_parser import current_year


@click.command("report")
@click.option("--year", type=int, help="Year to report (defaults to the current year)")
@click.option("--slippage", is_flag=True, help="Show the slippage of every withdrawal")
@click.pass_context
def report(ctx, year: int | None, slippage: bool):
    """Show the yearly tax and profit/loss report.

    Deductible VAT is a fixed percentage (ONCHAINCOUNTING_VAT_RATE, default
    20) of every expense flagged as deductible.
    """
    db = ctx.obj["db"]
    service = SummaryService(db, ctx.obj.get("settings"))
    year = year or current_year()

    result = service.get_year_overview(year).report

    click.echo(f"\nReport {year}")
    click.echo("=" * 60)
    click.echo("Income")
    click.echo(f"  Total income:          {format_money(result.income.total_eur, 'EUR')}")
    click.echo(f"  VAT collected:         {format_money(result.income.total_vat_eur, 'EUR')}")

    click.echo("Expenses")
    click.echo(f"  USD expenses:          {format_money(result.expenses.total_usd, 'USD')}")
    click.echo(f"  EUR expenses:          {format_money(result.expenses.total_eur, 'EUR')}")
    click.echo(
        f"  Deductible VAT ({result.income.vat_rate:g}%): "
        f"{format_money(result.expenses.vat_deductible, 'EUR')}"
    )

    click.echo("Withdrawals")
    click.echo(f"  Tokens withdrawn:      {format_amount(result.withdrawals.total_source)}")
    click.echo(f"  EUR received:          {format_money(result.withdrawals.total_target_eur, 'EUR')}")
    click.echo(f"  Average rate:          {format_amount(result.withdrawals.average_exchange_rate)}")
    click.echo(f"  Profit/loss:           {format_money(result.withdrawals.profit_loss, 'EUR')}")
    if slippage:
        for index, value in enumerate(result.withdrawals.slippages, start=1):
            click.echo(f"    #{index}: {format_money(value, 'EUR')}")

    click.echo("Summary")
    click.echo(f"  Net income:            {format_money(result.summary.net_income_eur, 'EUR')}")
    click.echo(f"  Net profit/loss:       {format_money(result.summary.net_profit_loss, 'EUR')}")
    click.echo(f"  VAT payable:           {format_money(result.summary.vat_payable, 'EUR')}")


def register_commands(cli):
    """Register report command with main CLI."""
    cli.add_command(report)
