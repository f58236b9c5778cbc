"""Period aggregation over invoices, orders, withdrawals and expenses.

Every function here is pure: it takes a year and already-loaded entity
collections and returns fresh summary objects. Arithmetic is plain float
arithmetic without intermediate rounding, and edge cases such as a zero
denominator produce non-finite values instead of raising.
"""

import math
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import TypeVar

from onchaincounting.domain.entities import (
    Currency,
    Expense,
    ExpenseCurrency,
    ExpenseReport,
    IncomeReport,
    Invoice,
    InvoiceTotals,
    MonthInvoiceGroup,
    MonthSummary,
    OfframpTotals,
    Order,
    OrderKind,
    Report,
    ReportSummary,
    Withdrawal,
    WithdrawalReport,
    YearOverview,
    YearSummary,
)

DEFAULT_DEDUCTIBLE_VAT_RATE = 20.0
MONTHS_PER_YEAR = 12

T = TypeVar("T")


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Return the first and last second of a year."""
    return datetime(year, 1, 1), datetime(year, 12, 31, 23, 59, 59)


def storage_year_range(year: int) -> tuple[datetime, datetime]:
    """Year bounds for storage range queries, covering the last second fully."""
    start, end = year_bounds(year)
    return start, end.replace(microsecond=999999)


def in_range(value: datetime, start: datetime, end: datetime) -> bool:
    """Check inclusive range membership at second resolution."""
    return start <= value.replace(microsecond=0) <= end


def order_effective_date(order: Order) -> datetime:
    """Date an order is booked on: approval time, else placement time."""
    return order.approved_at or order.placed_at


def divide(numerator: float, denominator: float) -> float:
    """Divide like IEEE 754 does instead of raising on zero."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _filter_year(
    items: Iterable[T], year: int, date_of: Callable[[T], datetime]
) -> list[T]:
    start, end = year_bounds(year)
    return [item for item in items if in_range(date_of(item), start, end)]


def invoices_for_year(invoices: Iterable[Invoice], year: int) -> list[Invoice]:
    """Invoices dated inside the year."""
    return _filter_year(invoices, year, lambda inv: inv.date)


def offramps_for_year(orders: Iterable[Order], year: int) -> list[Order]:
    """Redeem orders whose effective date falls inside the year."""
    redeems = [order for order in orders if order.kind == OrderKind.REDEEM]
    return _filter_year(redeems, year, order_effective_date)


def withdrawals_for_year(withdrawals: Iterable[Withdrawal], year: int) -> list[Withdrawal]:
    """Withdrawals dated inside the year."""
    return _filter_year(withdrawals, year, lambda w: w.date)


def expenses_for_year(expenses: Iterable[Expense], year: int) -> list[Expense]:
    """Expenses dated inside the year."""
    return _filter_year(expenses, year, lambda exp: exp.date)


def _by_currency(invoices: Sequence[Invoice], currency: Currency) -> list[Invoice]:
    return [inv for inv in invoices if inv.currency == currency]


def build_year_summary(
    year: int, invoices: Iterable[Invoice], orders: Iterable[Order]
) -> YearSummary:
    """Build yearly invoice and offramp totals."""
    year_invoices = invoices_for_year(invoices, year)
    offramps = offramps_for_year(orders, year)

    usd = _by_currency(year_invoices, Currency.USD)
    chf = _by_currency(year_invoices, Currency.CHF)

    invoice_totals = InvoiceTotals(
        count=len(year_invoices),
        total_before_tax_usd_amount=sum(inv.before_tax_amount for inv in usd),
        total_after_tax_usd_amount=sum(inv.after_tax_amount for inv in usd),
        total_vat_usd_amount=sum(inv.vat_amount for inv in usd),
        total_before_tax_chf_amount=sum(inv.before_tax_amount for inv in chf),
        total_after_tax_chf_amount=sum(inv.after_tax_amount for inv in chf),
        total_vat_chf_amount=sum(inv.vat_amount for inv in chf),
        total_before_tax_eur_amount=sum(inv.before_tax_eur_amount for inv in year_invoices),
        total_after_tax_eur_amount=sum(inv.after_tax_eur_amount for inv in year_invoices),
        total_vat_eur_amount=sum(inv.vat_eur_amount for inv in year_invoices),
    )
    offramp_totals = OfframpTotals(
        count=len(offramps),
        total_eur_amount=sum(order.amount for order in offramps),
    )
    return YearSummary(year=year, invoices=invoice_totals, offramps=offramp_totals)


def build_month_summaries(
    year: int, invoices: Iterable[Invoice], orders: Iterable[Order]
) -> list[MonthSummary]:
    """Build the twelve monthly summaries of a year.

    Monthly totals are computed first; cumulative totals follow in a second
    pass in ascending month order, so months before the first activity stay
    at zero and later months carry the running total forward.
    """
    year_invoices = invoices_for_year(invoices, year)
    offramps = offramps_for_year(orders, year)

    monthly: list[dict[str, float]] = []
    for month in range(MONTHS_PER_YEAR):
        month_invoices = [inv for inv in year_invoices if inv.date.month - 1 == month]
        month_offramps = [
            order for order in offramps if order_effective_date(order).month - 1 == month
        ]
        monthly.append(
            {
                "invoices_usd": sum(
                    inv.after_tax_amount for inv in _by_currency(month_invoices, Currency.USD)
                ),
                "invoices_chf": sum(
                    inv.after_tax_amount for inv in _by_currency(month_invoices, Currency.CHF)
                ),
                "invoices_eur": sum(inv.after_tax_eur_amount for inv in month_invoices),
                "vat_eur": sum(inv.vat_eur_amount for inv in month_invoices),
                "offramps_eur": sum(order.amount for order in month_offramps),
            }
        )

    summaries: list[MonthSummary] = []
    running_eur = 0.0
    running_offramp_eur = 0.0
    for month, values in enumerate(monthly):
        running_eur += values["invoices_eur"]
        running_offramp_eur += values["offramps_eur"]
        summaries.append(
            MonthSummary(
                month=month,
                cumulative_eur=running_eur,
                cumulative_offramp_eur=running_offramp_eur,
                **values,
            )
        )
    return summaries


def build_report(
    year: int,
    invoices: Iterable[Invoice],
    withdrawals: Iterable[Withdrawal],
    expenses: Iterable[Expense],
    deductible_vat_rate: float = DEFAULT_DEDUCTIBLE_VAT_RATE,
) -> Report:
    """Build the tax and profit/loss report of a year.

    Deductible VAT is ``deductible_vat_rate`` percent of every expense
    flagged as deductible, regardless of the expense's own VAT. The average
    exchange rate is total target over total source and is NaN when nothing
    was withdrawn.
    """
    year_invoices = invoices_for_year(invoices, year)
    year_withdrawals = withdrawals_for_year(withdrawals, year)
    year_expenses = expenses_for_year(expenses, year)

    total_income = sum(inv.after_tax_eur_amount for inv in year_invoices)
    total_vat = sum(inv.vat_eur_amount for inv in year_invoices)

    expenses_usd = sum(
        exp.amount for exp in year_expenses if exp.currency == ExpenseCurrency.USD
    )
    expenses_eur = sum(
        exp.amount for exp in year_expenses if exp.currency == ExpenseCurrency.EUR
    )
    vat_deductible = sum(
        exp.amount * deductible_vat_rate / 100 for exp in year_expenses if exp.vat_deductible
    )

    total_source = sum(w.source_amount for w in year_withdrawals)
    total_target = sum(w.target_amount for w in year_withdrawals)
    average_rate = divide(total_target, total_source)
    slippages = tuple(
        w.target_amount - w.source_amount * average_rate for w in year_withdrawals
    )
    profit_loss = sum(slippages)

    return Report(
        year=year,
        income=IncomeReport(
            total_eur=total_income,
            total_vat_eur=total_vat,
            vat_rate=deductible_vat_rate,
        ),
        expenses=ExpenseReport(
            total_usd=expenses_usd,
            total_eur=expenses_eur,
            vat_deductible=vat_deductible,
        ),
        withdrawals=WithdrawalReport(
            total_source=total_source,
            total_target_eur=total_target,
            average_exchange_rate=average_rate,
            slippages=slippages,
            profit_loss=profit_loss,
        ),
        summary=ReportSummary(
            net_income_eur=total_income - expenses_eur,
            net_profit_loss=profit_loss,
            vat_payable=total_vat - vat_deductible,
        ),
    )


def aggregate_year(
    year: int,
    invoices: Sequence[Invoice],
    orders: Sequence[Order],
    withdrawals: Sequence[Withdrawal],
    expenses: Sequence[Expense],
    deductible_vat_rate: float = DEFAULT_DEDUCTIBLE_VAT_RATE,
) -> YearOverview:
    """Derive the year summary, monthly series and report in one call."""
    return YearOverview(
        summary=build_year_summary(year, invoices, orders),
        months=tuple(build_month_summaries(year, invoices, orders)),
        report=build_report(
            year, invoices, withdrawals, expenses, deductible_vat_rate=deductible_vat_rate
        ),
    )


def group_invoices_by_month(year: int, invoices: Iterable[Invoice]) -> list[MonthInvoiceGroup]:
    """Group a year's invoices by month, newest month first, skipping empty months."""
    year_invoices = invoices_for_year(invoices, year)
    groups: list[MonthInvoiceGroup] = []
    for month in range(MONTHS_PER_YEAR):
        month_invoices = [inv for inv in year_invoices if inv.date.month - 1 == month]
        if not month_invoices:
            continue
        usd = _by_currency(month_invoices, Currency.USD)
        chf = _by_currency(month_invoices, Currency.CHF)
        groups.append(
            MonthInvoiceGroup(
                year=year,
                month=month,
                invoices=tuple(month_invoices),
                total_before_tax_usd_amount=sum(inv.before_tax_amount for inv in usd),
                total_after_tax_usd_amount=sum(inv.after_tax_amount for inv in usd),
                total_before_tax_chf_amount=sum(inv.before_tax_amount for inv in chf),
                total_after_tax_chf_amount=sum(inv.after_tax_amount for inv in chf),
                total_before_tax_eur_amount=sum(
                    inv.before_tax_eur_amount for inv in month_invoices
                ),
                total_after_tax_eur_amount=sum(
                    inv.after_tax_eur_amount for inv in month_invoices
                ),
                total_vat_eur_amount=sum(inv.vat_eur_amount for inv in month_invoices),
            )
        )
    return sorted(groups, key=lambda group: group.month, reverse=True)
