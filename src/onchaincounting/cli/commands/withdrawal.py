"""Withdrawal management commands."""

import click

from onchaincounting.cli.error_handling import handle_domain_error
from onchaincounting.cli.formatting import format_amount, format_date
from onchaincounting.domain.aggregator import storage_year_range
from onchaincounting.domain.entities import (
    BlockchainNetwork,
    CryptoCurrency,
    WithdrawalStatus,
)
from onchaincounting.domain.withdrawal import WithdrawalService
from onchaincounting.utils.amount_parser import parse_amount
from onchaincounting.utils.date_parser import parse_date


@click.group()
def withdrawal_group():
    """Manage withdrawals from tokens to EUR."""
    pass


@withdrawal_group.command("add")
@click.option("--date", "date_str", default="today", show_default=True, help="Withdrawal date")
@click.option("--source-amount", required=True, help="Amount of tokens withdrawn")
@click.option(
    "--token",
    type=click.Choice([c.value for c in CryptoCurrency]),
    default=CryptoCurrency.USDC.value,
    show_default=True,
    help="Token withdrawn",
)
@click.option(
    "--network",
    type=click.Choice([n.value for n in BlockchainNetwork]),
    default=BlockchainNetwork.STARKNET.value,
    show_default=True,
    help="Network the tokens left from",
)
@click.option("--target-amount", required=True, help="EUR received")
@click.option("--rate", type=float, help="EUR per token (derived from the amounts if omitted)")
@click.option(
    "--status",
    type=click.Choice([s.value for s in WithdrawalStatus]),
    default=WithdrawalStatus.COMPLETED.value,
    show_default=True,
    help="Withdrawal status",
)
@click.option("--reference", help="Monerium reference")
@click.option("--tx-hash", help="Transaction hash")
@click.option("--notes", help="Notes")
@click.pass_context
def add_withdrawal(
    ctx,
    date_str: str,
    source_amount: str,
    token: str,
    network: str,
    target_amount: str,
    rate: float | None,
    status: str,
    reference: str | None,
    tx_hash: str | None,
    notes: str | None,
):
    """Add a withdrawal.

    Examples:
        onchaincounting withdrawal add --source-amount 1000 --target-amount 920
        onchaincounting withdrawal add --date 2024-05-02 --source-amount 500 --token STRK \\
            --target-amount 310 --status pending
    """
    db = ctx.obj["db"]
    service = WithdrawalService(db)

    try:
        withdrawal_id = service.create_withdrawal(
            date=parse_date(date_str),
            source_amount=parse_amount(source_amount),
            source_currency=CryptoCurrency(token),
            source_network=BlockchainNetwork(network),
            target_amount=parse_amount(target_amount),
            status=WithdrawalStatus(status),
            exchange_rate=rate,
            monerium_reference=reference,
            transaction_hash=tx_hash,
            notes=notes,
        )
        click.echo(f"Created withdrawal (ID: {withdrawal_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@withdrawal_group.command("list")
@click.option("--year", type=int, help="Only list withdrawals of this year")
@click.pass_context
def list_withdrawals(ctx, year: int | None):
    """List withdrawals."""
    db = ctx.obj["db"]
    service = WithdrawalService(db)

    start, end = storage_year_range(year) if year is not None else (None, None)
    withdrawals = service.list_withdrawals(start=start, end=end)
    if not withdrawals:
        click.echo("No withdrawals found.")
        return

    click.echo("\nWithdrawals:")
    click.echo("-" * 100)
    for w in withdrawals:
        click.echo(
            f"{w.id:24s} | {format_date(w.date)} | "
            f"{format_amount(w.source_amount):>10s} {w.source_currency.value:5s} ({w.source_network.value}) -> "
            f"{format_amount(w.target_amount):>10s} EUR | rate {w.exchange_rate:.4f} | {w.status.value}"
        )


@withdrawal_group.command("status")
@click.argument("withdrawal_id")
@click.argument("status", type=click.Choice([s.value for s in WithdrawalStatus]))
@click.pass_context
def set_status(ctx, withdrawal_id: str, status: str):
    """Change the status of a withdrawal."""
    db = ctx.obj["db"]
    service = WithdrawalService(db)

    try:
        service.update_status(withdrawal_id, WithdrawalStatus(status))
        click.echo(f"Withdrawal {withdrawal_id} is now {status}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@withdrawal_group.command("delete")
@click.argument("withdrawal_id")
@click.pass_context
def delete_withdrawal(ctx, withdrawal_id: str):
    """Delete a withdrawal."""
    db = ctx.obj["db"]
    service = WithdrawalService(db)

    if service.get_withdrawal(withdrawal_id) is None:
        click.echo(f"Error: Withdrawal {withdrawal_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete withdrawal {withdrawal_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_withdrawal(withdrawal_id)
        click.echo(f"Deleted withdrawal {withdrawal_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register withdrawal commands with main CLI."""
    cli.add_command(withdrawal_group, name="withdrawal")
