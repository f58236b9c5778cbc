"""Summary service: loads a year from storage and runs the aggregator."""

from typing import Optional

import structlog

from onchaincounting.config import Settings
from onchaincounting.database.base import Database
from onchaincounting.domain.aggregator import (
    MONTHS_PER_YEAR,
    aggregate_year,
    expenses_for_year,
    group_invoices_by_month,
    invoices_for_year,
    storage_year_range,
    withdrawals_for_year,
)
from onchaincounting.domain.entities import (
    Currency,
    ExpenseCurrency,
    MonthInvoiceGroup,
    MonthSummaryRecord,
    YearOverview,
    YearSummaryRecord,
)

logger = structlog.get_logger(__name__)


class SummaryService:
    """Service for yearly dashboards, reports and summary snapshots."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        """Initialize summary service.

        Args:
            db: Database instance
            settings: Reporting settings (defaults apply if not provided)
        """
        self.db = db
        self.settings = settings or Settings()

    def get_year_overview(self, year: int) -> YearOverview:
        """Compute the year summary, monthly series and report of a year."""
        start, end = storage_year_range(year)
        invoices = self.db.list_invoices(start=start, end=end)
        orders = self.db.list_orders(start=start, end=end)
        withdrawals = self.db.list_withdrawals(start=start, end=end)
        expenses = self.db.list_expenses(start=start, end=end)
        logger.debug(
            "summary.aggregating",
            year=year,
            invoices=len(invoices),
            orders=len(orders),
            withdrawals=len(withdrawals),
            expenses=len(expenses),
        )
        return aggregate_year(
            year,
            invoices,
            orders,
            withdrawals,
            expenses,
            deductible_vat_rate=self.settings.deductible_vat_rate,
        )

    def get_monthly_invoices(self, year: int) -> list[MonthInvoiceGroup]:
        """Invoices of a year grouped by month, newest month first."""
        start, end = storage_year_range(year)
        return group_invoices_by_month(year, self.db.list_invoices(start=start, end=end))

    def refresh_year(self, year: int) -> tuple[list[MonthSummaryRecord], YearSummaryRecord]:
        """Recompute and replace the stored summary snapshots of a year.

        Stored snapshots are derived data; they are rebuilt from the
        entities on every refresh and never read back for reporting.

        Returns:
            Tuple of (month records for months 1-12, year record)
        """
        start, end = storage_year_range(year)
        invoices = invoices_for_year(self.db.list_invoices(start=start, end=end), year)
        withdrawals = withdrawals_for_year(self.db.list_withdrawals(start=start, end=end), year)
        expenses = expenses_for_year(self.db.list_expenses(start=start, end=end), year)

        months: list[MonthSummaryRecord] = []
        for month in range(1, MONTHS_PER_YEAR + 1):
            month_invoices = [inv for inv in invoices if inv.date.month == month]
            invoiced_eur = sum(inv.after_tax_eur_amount for inv in month_invoices)
            expenses_eur = sum(
                exp.amount
                for exp in expenses
                if exp.date.month == month and exp.currency == ExpenseCurrency.EUR
            )
            months.append(
                MonthSummaryRecord(
                    year=year,
                    month=month,
                    total_invoiced_usd=sum(
                        inv.after_tax_amount
                        for inv in month_invoices
                        if inv.currency == Currency.USD
                    ),
                    total_invoiced_chf=sum(
                        inv.after_tax_amount
                        for inv in month_invoices
                        if inv.currency == Currency.CHF
                    ),
                    total_invoiced_eur=invoiced_eur,
                    total_vat_collected_eur=sum(inv.vat_eur_amount for inv in month_invoices),
                    total_expenses_eur=expenses_eur,
                    total_withdrawals_eur=sum(
                        w.target_amount for w in withdrawals if w.date.month == month
                    ),
                    profit_loss_eur=invoiced_eur - expenses_eur,
                )
            )

        year_record = YearSummaryRecord(
            year=year,
            total_invoiced_usd=sum(m.total_invoiced_usd for m in months),
            total_invoiced_chf=sum(m.total_invoiced_chf for m in months),
            total_invoiced_eur=sum(m.total_invoiced_eur for m in months),
            total_vat_collected_eur=sum(m.total_vat_collected_eur for m in months),
            total_expenses_eur=sum(m.total_expenses_eur for m in months),
            total_withdrawals_eur=sum(m.total_withdrawals_eur for m in months),
            profit_loss_eur=sum(m.profit_loss_eur for m in months),
        )
        self.db.replace_summaries(year, months, year_record)
        logger.info("summary.refreshed", year=year)
        return months, year_record
