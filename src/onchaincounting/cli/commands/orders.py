"""Monerium order mirror commands."""

import click

from onchaincounting.cli.error_handling import handle_domain_error
from onchaincounting.cli.formatting import format_amount, format_date, month_name
from onchaincounting.domain.aggregator import order_effective_date
from onchaincounting.domain.entities import OrderKind, PaymentStandard
from onchaincounting.domain.errors import SyncError
from onchaincounting.domain.order_sync import OrderSyncService, group_orders_by_month
from onchaincounting.integrations.monerium import MoneriumClient

DIRECTIONS = {"all": None, "incoming": OrderKind.ISSUE, "outgoing": OrderKind.REDEEM}
TYPES = {"all": None, "iban": PaymentStandard.IBAN, "onchain": PaymentStandard.CHAIN}


def _client(ctx) -> MoneriumClient:
    return ctx.obj.get("monerium_client") or MoneriumClient.from_settings(ctx.obj["settings"])


@click.group()
def orders_group():
    """Mirror and browse Monerium orders."""
    pass


@orders_group.command("sync")
@click.pass_context
def sync_orders(ctx):
    """Fetch orders from Monerium into the local mirror.

    When Monerium cannot be reached, or no access token is configured, the
    local mirror is left as it is and the command reports offline mode.
    """
    db = ctx.obj["db"]
    service = OrderSyncService(db)

    try:
        client = _client(ctx)
    except SyncError as e:
        click.echo(f"Warning: {e}", err=True)
        client = None

    result = service.refresh_or_local(client)
    if result.offline:
        if result.error:
            click.echo(f"Warning: {result.error}", err=True)
        click.echo(f"Offline mode: {len(result.orders)} orders available locally.")
        return
    click.echo(f"Synced {len(result.orders)} orders.")


@orders_group.command("list")
@click.option(
    "--direction",
    type=click.Choice(list(DIRECTIONS)),
    default="outgoing",
    show_default=True,
    help="Incoming (issue) or outgoing (redeem) orders",
)
@click.option(
    "--type",
    "standard",
    type=click.Choice(list(TYPES)),
    default="iban",
    show_default=True,
    help="Wire (IBAN) or on-chain counterparts",
)
@click.option("--year", type=int, help="Only list orders of this year")
@click.pass_context
def list_orders(ctx, direction: str, standard: str, year: int | None):
    """List mirrored orders grouped by month, newest first."""
    db = ctx.obj["db"]
    service = OrderSyncService(db)

    orders = service.list_orders(year=year, direction=DIRECTIONS[direction], standard=TYPES[standard])
    if not orders:
        click.echo("No orders found.")
        return

    for group in group_orders_by_month(orders):
        click.echo(f"\n{month_name(group.month)} {group.year}")
        click.echo("-" * 100)
        for order in group.orders:
            sign = "+" if order.kind == OrderKind.ISSUE else "-"
            label = "Onchain" if order.counterpart_standard == PaymentStandard.CHAIN else "Wire"
            counterpart = order.counterpart_name or order.counterpart_identifier
            click.echo(
                f"{format_date(order_effective_date(order))} | {sign}{format_amount(order.amount):>12s} EUR | "
                f"{label:7s} | {order.state.value:9s} | {counterpart}"
            )


@orders_group.command("status")
@click.pass_context
def sync_status(ctx):
    """Show when the local mirror was last synced."""
    db = ctx.obj["db"]
    service = OrderSyncService(db)

    status = service.get_sync_status()
    if status.last_synced is None:
        click.echo("Never synced.")
    else:
        click.echo(f"Last synced: {status.last_synced.isoformat(sep=' ', timespec='seconds')} UTC")
    click.echo(f"Local data: {'yes' if status.has_local_data else 'no'}")


@orders_group.command("balance")
@click.option("--address", help="Address to query (defaults to MONERIUM_ADDRESS)")
@click.option("--chain", help="Chain of the address (defaults to MONERIUM_CHAIN)")
@click.pass_context
def show_balance(ctx, address: str | None, chain: str | None):
    """Show the EURe balance of an address."""
    settings = ctx.obj["settings"]
    address = address or settings.monerium_address
    chain = chain or settings.monerium_chain
    if not address:
        click.echo("Error: No address given (use --address or MONERIUM_ADDRESS)", err=True)
        ctx.exit(1)

    try:
        balances = _client(ctx).get_balances(address, chain)
    except SyncError as e:
        handle_domain_error(ctx, e)

    if not balances:
        click.echo(f"EURe balance: {format_amount(0.0)} EUR")
        return
    for balance in balances:
        click.echo(f"{balance.currency.upper()} balance: {format_amount(balance.amount)} EUR")


def register_commands(cli):
    """Register order commands with main CLI."""
    cli.add_command(orders_group, name="orders")
