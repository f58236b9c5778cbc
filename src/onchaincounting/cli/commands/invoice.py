"""Invoice management commands."""

import click

from onchaincounting.cli.error_handling import handle_domain_error
from onchaincounting.cli.formatting import format_amount, format_date, month_name
from onchaincounting.domain.entities import (
    BlockchainNetwork,
    CryptoCurrency,
    CryptoPayment,
    Currency,
)
from onchaincounting.domain.errors import ExtractionError
from onchaincounting.domain.invoice import InvoiceService
from onchaincounting.domain.invoice_extraction import ExtractedInvoiceData, extract_invoice_data
from onchaincounting.domain.summary import SummaryService
from onchaincounting.utils.amount_parser import parse_amount
from onchaincounting.utils.date_parser import current_year, parse_date


def parse_payment(value: str) -> CryptoPayment:
    """Parse a settlement entry written as AMOUNT:TOKEN:NETWORK."""
    parts = value.split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid payment '{value}', expected AMOUNT:TOKEN:NETWORK")
    amount, token, network = parts
    tokens = {c.value.lower(): c for c in CryptoCurrency}
    if token.lower() not in tokens:
        raise ValueError(f"Unknown token '{token}'")
    return CryptoPayment(
        amount=parse_amount(amount),
        currency=tokens[token.lower()],
        network=BlockchainNetwork(network.lower()),
    )


def _invoice_field_options(f):
    options = [
        click.option("--date", "date_str", help="Invoice date (YYYY-MM-DD or relative like 'today')"),
        click.option("--number", "invoice_number", help="Invoice number"),
        click.option("--client", "client_name", help="Client name"),
        click.option(
            "--currency",
            type=click.Choice([c.value for c in Currency], case_sensitive=False),
            help="Invoice currency",
        ),
        click.option("--before-tax", help="Amount before tax"),
        click.option("--after-tax", help="Amount after tax"),
        click.option("--vat-rate", type=float, help="VAT rate in percent"),
        click.option("--exchange-rate", type=float, help="Invoice currency units per EUR"),
        click.option(
            "--payment",
            "payments",
            multiple=True,
            help="Crypto payment as AMOUNT:TOKEN:NETWORK (e.g. 500:USDC:starknet)",
        ),
        click.option("--notes", help="Notes"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _print_invoice_line(inv) -> None:
    click.echo(
        f"{inv.id:24s} | {format_date(inv.date)} | {inv.invoice_number:12s} | "
        f"{inv.client_name[:20]:20s} | {format_amount(inv.after_tax_amount):>12s} {inv.currency.value} | "
        f"{format_amount(inv.after_tax_eur_amount):>12s} EUR"
    )


@click.group()
def invoice_group():
    """Manage invoices."""
    pass


@invoice_group.command("add")
@click.option("--pdf", "pdf_path", type=click.Path(), help="Invoice PDF used to prefill fields")
@_invoice_field_options
@click.pass_context
def add_invoice(
    ctx,
    pdf_path: str | None,
    date_str: str | None,
    invoice_number: str | None,
    client_name: str | None,
    currency: str | None,
    before_tax: str | None,
    after_tax: str | None,
    vat_rate: float | None,
    exchange_rate: float | None,
    payments: tuple[str, ...],
    notes: str | None,
):
    """Add an invoice.

    With --pdf, fields found in the document are used unless given on the
    command line. If the document cannot be read, the command continues with
    the values given on the command line.

    Examples:
        onchaincounting invoice add --date 2024-06-15 --number 42 --client "Acme" \\
            --currency USD --before-tax 100 --after-tax 120 --vat-rate 20 --exchange-rate 1.1
        onchaincounting invoice add --pdf invoice.pdf --exchange-rate 1.08
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)

    extracted = ExtractedInvoiceData()
    if pdf_path is not None:
        try:
            extracted = extract_invoice_data(pdf_path)
        except ExtractionError as e:
            click.echo(f"Warning: {e}. Falling back to manual entry.", err=True)

    try:
        inv_date = parse_date(date_str) if date_str is not None else extracted.date
        before_amount = parse_amount(before_tax) if before_tax is not None else extracted.before_tax_amount
        after_amount = parse_amount(after_tax) if after_tax is not None else extracted.after_tax_amount
        inv_currency = Currency(currency.upper()) if currency is not None else extracted.currency
        rate = exchange_rate if exchange_rate is not None else extracted.exchange_rate
        vat = vat_rate if vat_rate is not None else extracted.vat_rate
        crypto_payments = [parse_payment(p) for p in payments]
    except ValueError as e:
        handle_domain_error(ctx, e)

    number = invoice_number or extracted.invoice_number
    client = client_name or extracted.client_name or ""

    missing = [
        name
        for name, value in [
            ("--date", inv_date),
            ("--number", number),
            ("--currency", inv_currency),
            ("--before-tax", before_amount),
            ("--after-tax", after_amount),
            ("--exchange-rate", rate),
        ]
        if value is None
    ]
    if missing:
        click.echo(f"Error: Missing required values: {', '.join(missing)}", err=True)
        ctx.exit(1)

    if vat is None:
        vat = (after_amount - before_amount) / before_amount * 100 if before_amount else 0.0

    try:
        invoice_id = service.create_invoice(
            date=inv_date,
            invoice_number=number,
            client_name=client,
            currency=inv_currency,
            before_tax_amount=before_amount,
            after_tax_amount=after_amount,
            vat_rate=vat,
            exchange_rate=rate,
            crypto_payments=crypto_payments,
            pdf_path=pdf_path,
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    invoice = service.get_invoice(invoice_id)
    click.echo(f"Created invoice {invoice.invoice_number} (ID: {invoice_id})")
    click.echo(
        f"  {format_amount(invoice.after_tax_amount)} {invoice.currency.value} = "
        f"{format_amount(invoice.after_tax_eur_amount)} EUR"
    )


@invoice_group.command("list")
@click.option("--year", type=int, help="Year to list (defaults to the current year)")
@click.pass_context
def list_invoices(ctx, year: int | None):
    """List invoices of a year grouped by month, newest month first."""
    db = ctx.obj["db"]
    service = SummaryService(db, ctx.obj.get("settings"))
    year = year or current_year()

    groups = service.get_monthly_invoices(year)
    if not groups:
        click.echo(f"No invoices found for {year}.")
        return

    for group in groups:
        click.echo(f"\n{month_name(group.month + 1)} {group.year}")
        click.echo("-" * 110)
        for inv in group.invoices:
            _print_invoice_line(inv)
        click.echo("-" * 110)
        click.echo(
            f"Total: {format_amount(group.total_after_tax_usd_amount)} USD | "
            f"{format_amount(group.total_after_tax_chf_amount)} CHF | "
            f"{format_amount(group.total_after_tax_eur_amount)} EUR "
            f"(VAT {format_amount(group.total_vat_eur_amount)} EUR)"
        )


@invoice_group.command("show")
@click.argument("invoice_id")
@click.pass_context
def show_invoice(ctx, invoice_id: str):
    """Show an invoice."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        inv = service.require_invoice(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Invoice {inv.invoice_number} (ID: {inv.id})")
    click.echo(f"  Date:          {format_date(inv.date)}")
    click.echo(f"  Client:        {inv.client_name}")
    click.echo(f"  Before tax:    {format_amount(inv.before_tax_amount)} {inv.currency.value}")
    click.echo(f"  VAT ({inv.vat_rate:g}%):    {format_amount(inv.vat_amount)} {inv.currency.value}")
    click.echo(f"  After tax:     {format_amount(inv.after_tax_amount)} {inv.currency.value}")
    click.echo(f"  Exchange rate: {inv.exchange_rate} {inv.currency.value}/EUR")
    click.echo(f"  After tax EUR: {format_amount(inv.after_tax_eur_amount)} EUR")
    click.echo(f"  VAT EUR:       {format_amount(inv.vat_eur_amount)} EUR")
    for payment in inv.crypto_payments:
        click.echo(
            f"  Paid:          {format_amount(payment.amount)} {payment.currency.value} "
            f"on {payment.network.value}"
        )
    if inv.pdf_path:
        click.echo(f"  PDF:           {inv.pdf_path}")
    if inv.notes:
        click.echo(f"  Notes:         {inv.notes}")


@invoice_group.command("edit")
@click.argument("invoice_id")
@_invoice_field_options
@click.pass_context
def edit_invoice(
    ctx,
    invoice_id: str,
    date_str: str | None,
    invoice_number: str | None,
    client_name: str | None,
    currency: str | None,
    before_tax: str | None,
    after_tax: str | None,
    vat_rate: float | None,
    exchange_rate: float | None,
    payments: tuple[str, ...],
    notes: str | None,
):
    """Edit an invoice.

    Only the given fields change; the EUR amounts are recomputed from the
    resulting values.

    Examples:
        onchaincounting invoice edit lx2k9f0abc --exchange-rate 1.08
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        existing = service.require_invoice(invoice_id)
        invoice = service.update_invoice(
            invoice_id,
            date=parse_date(date_str) if date_str is not None else existing.date,
            invoice_number=invoice_number if invoice_number is not None else existing.invoice_number,
            client_name=client_name if client_name is not None else existing.client_name,
            currency=Currency(currency.upper()) if currency is not None else existing.currency,
            before_tax_amount=(
                parse_amount(before_tax) if before_tax is not None else existing.before_tax_amount
            ),
            after_tax_amount=(
                parse_amount(after_tax) if after_tax is not None else existing.after_tax_amount
            ),
            vat_rate=vat_rate if vat_rate is not None else existing.vat_rate,
            exchange_rate=exchange_rate if exchange_rate is not None else existing.exchange_rate,
            crypto_payments=(
                [parse_payment(p) for p in payments] if payments else existing.crypto_payments
            ),
            pdf_path=existing.pdf_path,
            notes=notes if notes is not None else existing.notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated invoice {invoice.invoice_number} (ID: {invoice_id})")


@invoice_group.command("delete")
@click.argument("invoice_id")
@click.pass_context
def delete_invoice(ctx, invoice_id: str):
    """Delete an invoice."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        inv = service.require_invoice(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not click.confirm(f"Are you sure you want to delete invoice {inv.invoice_number} (ID: {inv.id})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_invoice(invoice_id)
        click.echo(f"Deleted invoice {inv.invoice_number}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
