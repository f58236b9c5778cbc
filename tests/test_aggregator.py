"""Tests for period aggregation."""

import math
from datetime import datetime

import pytest

from conftest import make_expense, make_invoice, make_order, make_withdrawal
from onchaincounting.domain.aggregator import (
    aggregate_year,
    build_month_summaries,
    build_report,
    build_year_summary,
    divide,
    group_invoices_by_month,
    in_range,
    order_effective_date,
    year_bounds,
)
from onchaincounting.domain.entities import Currency, ExpenseCurrency, OrderKind


def test_year_bounds_cover_whole_year():
    start, end = year_bounds(2024)
    assert start == datetime(2024, 1, 1, 0, 0, 0)
    assert end == datetime(2024, 12, 31, 23, 59, 59)


def test_in_range_is_inclusive_at_second_resolution():
    start, end = year_bounds(2024)
    assert in_range(datetime(2024, 12, 31, 23, 59, 59, 500000), start, end)
    assert in_range(start, start, end)
    assert not in_range(datetime(2025, 1, 1), start, end)
    assert not in_range(datetime(2023, 12, 31, 23, 59, 59), start, end)


def test_order_effective_date_prefers_approval():
    placed = datetime(2024, 3, 15, 10, 0, 0)
    approved = datetime(2024, 4, 2, 8, 30, 0)

    assert order_effective_date(make_order(placed_at=placed)) == placed
    assert order_effective_date(make_order(placed_at=placed, approved_at=approved)) == approved


class TestDivide:
    def test_regular_division(self):
        assert divide(9.0, 3.0) == 3.0

    def test_zero_over_zero_is_nan(self):
        assert math.isnan(divide(0.0, 0.0))

    def test_positive_over_zero_is_infinite(self):
        assert divide(5.0, 0.0) == math.inf

    def test_negative_over_zero_is_negative_infinite(self):
        assert divide(-5.0, 0.0) == -math.inf


class TestYearSummary:
    def test_single_usd_invoice_converted_to_eur(self):
        summary = build_year_summary(2024, [make_invoice()], [])

        assert summary.invoices.count == 1
        assert summary.invoices.total_before_tax_usd_amount == 100.0
        assert summary.invoices.total_after_tax_usd_amount == 120.0
        assert summary.invoices.total_vat_usd_amount == pytest.approx(20.0)
        assert summary.invoices.total_after_tax_eur_amount == pytest.approx(109.0909, abs=1e-4)
        assert summary.invoices.total_vat_eur_amount == pytest.approx(18.1818, abs=1e-4)
        assert summary.invoices.total_after_tax_chf_amount == 0.0

    def test_currencies_bucketed_separately(self):
        invoices = [
            make_invoice("a", currency=Currency.USD, before_tax_amount=100, after_tax_amount=100),
            make_invoice(
                "b",
                currency=Currency.CHF,
                before_tax_amount=200,
                after_tax_amount=200,
                exchange_rate=0.95,
            ),
        ]

        summary = build_year_summary(2024, invoices, [])

        assert summary.invoices.total_after_tax_usd_amount == 100
        assert summary.invoices.total_after_tax_chf_amount == 200
        assert summary.invoices.total_after_tax_eur_amount == pytest.approx(
            100 / 1.1 + 200 / 0.95
        )

    def test_year_boundaries(self):
        invoices = [
            make_invoice("last", date=datetime(2024, 12, 31, 23, 59, 59)),
            make_invoice("next", date=datetime(2025, 1, 1, 0, 0, 0)),
            make_invoice("prev", date=datetime(2023, 12, 31, 23, 59, 59)),
        ]

        summary = build_year_summary(2024, invoices, [])

        assert summary.invoices.count == 1

    def test_only_redeem_orders_count_as_offramps(self):
        orders = [
            make_order("r1", kind=OrderKind.REDEEM, amount=300),
            make_order("r2", kind=OrderKind.REDEEM, amount=200),
            make_order("i1", kind=OrderKind.ISSUE, amount=1000),
        ]

        summary = build_year_summary(2024, [], orders)

        assert summary.offramps.count == 2
        assert summary.offramps.total_eur_amount == 500

    def test_empty_year_is_all_zero(self):
        summary = build_year_summary(2024, [], [])

        assert summary.year == 2024
        assert summary.invoices.count == 0
        assert summary.invoices.total_after_tax_eur_amount == 0.0
        assert summary.offramps.count == 0


class TestMonthSummaries:
    def test_twelve_months_zero_indexed(self):
        months = build_month_summaries(2024, [], [])

        assert [m.month for m in months] == list(range(12))
        assert all(m.cumulative_eur == 0.0 for m in months)

    def test_monthly_sum_matches_year_total(self):
        invoices = [
            make_invoice("a", date=datetime(2024, 1, 10), after_tax_amount=300),
            make_invoice("b", date=datetime(2024, 6, 15)),
            make_invoice("c", date=datetime(2024, 6, 30), currency=Currency.CHF, exchange_rate=0.9),
            make_invoice("d", date=datetime(2024, 11, 2), after_tax_amount=1000),
        ]

        months = build_month_summaries(2024, invoices, [])
        summary = build_year_summary(2024, invoices, [])

        assert sum(m.invoices_eur for m in months) == pytest.approx(
            summary.invoices.total_after_tax_eur_amount
        )
        assert months[11].cumulative_eur == pytest.approx(
            summary.invoices.total_after_tax_eur_amount
        )

    def test_cumulative_totals_are_monotonic(self):
        invoices = [
            make_invoice("a", date=datetime(2024, 2, 1)),
            make_invoice("b", date=datetime(2024, 5, 1)),
            make_invoice("c", date=datetime(2024, 9, 1)),
        ]
        orders = [make_order("o1", placed_at=datetime(2024, 4, 1))]

        months = build_month_summaries(2024, invoices, orders)

        for previous, current in zip(months, months[1:]):
            assert current.cumulative_eur >= previous.cumulative_eur
            assert current.cumulative_offramp_eur >= previous.cumulative_offramp_eur

    def test_months_before_first_activity_stay_zero(self):
        months = build_month_summaries(2024, [make_invoice(date=datetime(2024, 6, 15))], [])

        assert all(m.cumulative_eur == 0.0 for m in months[:5])
        assert months[5].invoices_usd == 120.0
        assert months[5].invoices_eur == pytest.approx(109.0909, abs=1e-4)
        assert months[11].cumulative_eur == pytest.approx(109.0909, abs=1e-4)

    def test_order_without_approval_uses_placement_month(self):
        order = make_order(placed_at=datetime(2024, 3, 15), approved_at=None, amount=250)

        months = build_month_summaries(2024, [], [order])

        assert months[2].offramps_eur == 250
        assert months[1].offramps_eur == 0.0

    def test_order_approved_in_later_month(self):
        order = make_order(
            placed_at=datetime(2024, 3, 30), approved_at=datetime(2024, 4, 1), amount=250
        )

        months = build_month_summaries(2024, [], [order])

        assert months[2].offramps_eur == 0.0
        assert months[3].offramps_eur == 250


class TestReport:
    def test_average_rate_is_nan_without_withdrawals(self):
        report = build_report(2024, [], [], [])

        assert math.isnan(report.withdrawals.average_exchange_rate)
        assert report.withdrawals.slippages == ()
        assert report.withdrawals.profit_loss == 0

    def test_withdrawal_slippage_against_average_rate(self):
        withdrawals = [
            make_withdrawal("w1", source_amount=1000, target_amount=920),
            make_withdrawal("w2", source_amount=1000, target_amount=880),
        ]

        report = build_report(2024, [], withdrawals, [])

        assert report.withdrawals.total_source == 2000
        assert report.withdrawals.total_target_eur == 1800
        assert report.withdrawals.average_exchange_rate == pytest.approx(0.9)
        assert report.withdrawals.slippages == pytest.approx((20.0, -20.0))
        assert report.withdrawals.profit_loss == pytest.approx(0.0)
        assert report.summary.net_profit_loss == pytest.approx(0.0)

    def test_deductible_vat_is_fixed_percentage(self):
        expenses = [
            make_expense("e1", amount=100, vat_deductible=True),
            make_expense("e2", amount=50, vat_deductible=False),
            make_expense("e3", amount=30, currency=ExpenseCurrency.USD, vat_deductible=True),
        ]

        report = build_report(2024, [], [], expenses)

        assert report.expenses.total_eur == 150
        assert report.expenses.total_usd == 30
        assert report.expenses.vat_deductible == pytest.approx(26.0)
        assert report.income.vat_rate == 20.0

    def test_custom_deductible_rate(self):
        report = build_report(
            2024, [], [], [make_expense(amount=100, vat_deductible=True)], deductible_vat_rate=7.7
        )

        assert report.expenses.vat_deductible == pytest.approx(7.7)
        assert report.income.vat_rate == 7.7

    def test_summary_figures(self):
        invoices = [make_invoice()]
        expenses = [make_expense(amount=40, vat_deductible=True)]

        report = build_report(2024, invoices, [], expenses)

        assert report.income.total_eur == pytest.approx(109.0909, abs=1e-4)
        assert report.summary.net_income_eur == pytest.approx(109.0909 - 40, abs=1e-4)
        assert report.summary.vat_payable == pytest.approx(18.1818 - 8.0, abs=1e-4)

    def test_other_years_ignored(self):
        report = build_report(
            2024,
            [make_invoice(date=datetime(2023, 6, 1))],
            [make_withdrawal(date=datetime(2025, 1, 1))],
            [make_expense(date=datetime(2023, 12, 31))],
        )

        assert report.income.total_eur == 0
        assert report.expenses.total_eur == 0
        assert math.isnan(report.withdrawals.average_exchange_rate)


def test_aggregate_year_is_repeatable():
    invoices = [make_invoice("a"), make_invoice("b", date=datetime(2024, 8, 1))]
    orders = [make_order()]

    first = aggregate_year(2024, invoices, orders, [], [])
    second = aggregate_year(2024, invoices, orders, [], [])

    assert first.summary == second.summary
    assert first.months == second.months
    assert first.report.income == second.report.income
    # NaN never compares equal, so compare the rest of the withdrawal figures directly
    assert math.isnan(first.report.withdrawals.average_exchange_rate)
    assert math.isnan(second.report.withdrawals.average_exchange_rate)
    assert first.report.withdrawals.slippages == second.report.withdrawals.slippages


class TestGroupInvoicesByMonth:
    def test_newest_month_first_and_empty_months_skipped(self):
        invoices = [
            make_invoice("a", date=datetime(2024, 1, 10)),
            make_invoice("b", date=datetime(2024, 6, 15)),
            make_invoice("c", date=datetime(2024, 6, 20)),
        ]

        groups = group_invoices_by_month(2024, invoices)

        assert [g.month for g in groups] == [5, 0]
        assert [inv.id for inv in groups[0].invoices] == ["b", "c"]
        assert groups[0].total_after_tax_usd_amount == 240

    def test_other_years_excluded(self):
        groups = group_invoices_by_month(2024, [make_invoice(date=datetime(2025, 1, 1))])

        assert groups == []
