"""Expense management commands."""

import click

from onchaincounting.cli.error_handling import handle_domain_error
from onchaincounting.cli.formatting import format_amount, format_date
from onchaincounting.domain.aggregator import storage_year_range
from onchaincounting.domain.entities import ExpenseCategory, ExpenseCurrency
from onchaincounting.domain.expense import ExpenseService
from onchaincounting.utils.amount_parser import parse_amount
from onchaincounting.utils.date_parser import parse_date


@click.group()
def expense_group():
    """Manage expenses."""
    pass


@expense_group.command("add")
@click.option("--date", "date_str", default="today", show_default=True, help="Expense date")
@click.option(
    "--category",
    type=click.Choice([c.value for c in ExpenseCategory]),
    default=ExpenseCategory.OTHER.value,
    show_default=True,
    help="Expense category",
)
@click.option("--description", required=True, help="What was paid for")
@click.option("--amount", required=True, help="Amount (e.g., 49.99)")
@click.option(
    "--currency",
    type=click.Choice([c.value for c in ExpenseCurrency], case_sensitive=False),
    default=ExpenseCurrency.EUR.value,
    show_default=True,
    help="Expense currency",
)
@click.option("--deductible", is_flag=True, help="VAT on this expense is deductible")
@click.option("--receipt", type=click.Path(), help="Path to the receipt")
@click.option("--notes", help="Notes")
@click.pass_context
def add_expense(
    ctx,
    date_str: str,
    category: str,
    description: str,
    amount: str,
    currency: str,
    deductible: bool,
    receipt: str | None,
    notes: str | None,
):
    """Add an expense.

    Examples:
        onchaincounting expense add --description "Hosting" --amount 20 --category service
        onchaincounting expense add --date 2024-03-01 --description "Laptop" --amount 1500 --deductible
    """
    db = ctx.obj["db"]
    service = ExpenseService(db)

    try:
        expense_id = service.create_expense(
            date=parse_date(date_str),
            category=ExpenseCategory(category),
            description=description,
            amount=parse_amount(amount),
            currency=ExpenseCurrency(currency.upper()),
            vat_deductible=deductible,
            receipt=receipt,
            notes=notes,
        )
        click.echo(f"Created expense '{description}' (ID: {expense_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("list")
@click.option("--year", type=int, help="Only list expenses of this year")
@click.pass_context
def list_expenses(ctx, year: int | None):
    """List expenses."""
    db = ctx.obj["db"]
    service = ExpenseService(db)

    start, end = storage_year_range(year) if year is not None else (None, None)
    expenses = service.list_expenses(start=start, end=end)
    if not expenses:
        click.echo("No expenses found.")
        return

    click.echo("\nExpenses:")
    click.echo("-" * 100)
    for exp in expenses:
        flag = " (VAT deductible)" if exp.vat_deductible else ""
        click.echo(
            f"{exp.id:24s} | {format_date(exp.date)} | {exp.category.value:12s} | "
            f"{exp.description[:30]:30s} | {format_amount(exp.amount):>10s} {exp.currency.value}{flag}"
        )


@expense_group.command("delete")
@click.argument("expense_id")
@click.pass_context
def delete_expense(ctx, expense_id: str):
    """Delete an expense."""
    db = ctx.obj["db"]
    service = ExpenseService(db)

    exp = service.get_expense(expense_id)
    if exp is None:
        click.echo(f"Error: Expense {expense_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete expense '{exp.description}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_expense(expense_id)
        click.echo(f"Deleted expense '{exp.description}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
