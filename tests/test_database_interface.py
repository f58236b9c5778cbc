"""Tests for Database interface returning domain models."""

import pytest
from datetime import datetime

from onchaincounting.domain import entities

from conftest import make_expense, make_invoice, make_order, make_withdrawal


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_invoice_returns_domain_model(self, temp_db):
        """Test that get_invoice returns a domain Invoice entity."""
        temp_db.add_invoice(make_invoice("inv-1"))

        invoice = temp_db.get_invoice("inv-1")

        assert isinstance(invoice, entities.Invoice)
        assert invoice.currency == entities.Currency.USD
        assert invoice.date == datetime(2024, 6, 15)

    def test_get_missing_returns_none(self, temp_db):
        """Test that lookups of unknown IDs return None."""
        assert temp_db.get_invoice("nope") is None
        assert temp_db.get_expense("nope") is None
        assert temp_db.get_withdrawal("nope") is None

    def test_delete_missing_raises(self, temp_db):
        """Test that deleting unknown IDs raises."""
        with pytest.raises(ValueError):
            temp_db.delete_invoice("nope")
        with pytest.raises(ValueError):
            temp_db.delete_expense("nope")

    def test_list_ranges_are_inclusive(self, temp_db):
        """Test that range queries include both bounds."""
        temp_db.add_expense(make_expense("a", date=datetime(2024, 1, 1)))
        temp_db.add_expense(make_expense("b", date=datetime(2024, 1, 31, 23, 59, 59)))
        temp_db.add_expense(make_expense("c", date=datetime(2024, 2, 1)))

        expenses = temp_db.list_expenses(
            start=datetime(2024, 1, 1), end=datetime(2024, 1, 31, 23, 59, 59)
        )

        assert [e.id for e in expenses] == ["a", "b"]
        assert all(isinstance(e, entities.Expense) for e in expenses)

    def test_replace_withdrawal(self, temp_db):
        """Test that replace_withdrawal overwrites every field."""
        original = make_withdrawal("w1")
        temp_db.add_withdrawal(original)

        temp_db.replace_withdrawal(
            make_withdrawal("w1", target_amount=950.0, status=entities.WithdrawalStatus.FAILED)
        )

        stored = temp_db.get_withdrawal("w1")
        assert stored.target_amount == 950.0
        assert stored.status == entities.WithdrawalStatus.FAILED

    def test_upsert_orders_by_id(self, temp_db):
        """Test that orders are inserted or replaced by ID."""
        temp_db.upsert_orders([make_order("o1", amount=100), make_order("o2", amount=200)])
        temp_db.upsert_orders([make_order("o1", amount=150)])

        orders = {order.id: order for order in temp_db.list_orders()}

        assert temp_db.count_orders() == 2
        assert orders["o1"].amount == 150
        assert orders["o2"].amount == 200

    def test_list_orders_by_effective_date(self, temp_db):
        """Test that order ranges use approval time, else placement time."""
        temp_db.upsert_orders(
            [
                make_order(
                    "approved-in-april",
                    placed_at=datetime(2024, 3, 30),
                    approved_at=datetime(2024, 4, 1),
                ),
                make_order("placed-in-march", placed_at=datetime(2024, 3, 15)),
            ]
        )

        march = temp_db.list_orders(start=datetime(2024, 3, 1), end=datetime(2024, 3, 31, 23, 59, 59))
        april = temp_db.list_orders(start=datetime(2024, 4, 1), end=datetime(2024, 4, 30, 23, 59, 59))

        assert [o.id for o in march] == ["placed-in-march"]
        assert [o.id for o in april] == ["approved-in-april"]

    def test_sync_values(self, temp_db):
        """Test reading and writing sync bookkeeping values."""
        assert temp_db.get_sync_value("monerium_last_sync") is None

        temp_db.set_sync_value("monerium_last_sync", "2024-06-01T10:00:00")
        temp_db.set_sync_value("monerium_last_sync", "2024-06-02T10:00:00")

        assert temp_db.get_sync_value("monerium_last_sync") == "2024-06-02T10:00:00"

    def test_export_snapshot(self, temp_db):
        """Test that export_snapshot returns every collection."""
        temp_db.add_invoice(make_invoice())
        temp_db.add_expense(make_expense())
        temp_db.add_withdrawal(make_withdrawal())
        temp_db.upsert_orders([make_order()])

        snapshot = temp_db.export_snapshot()

        assert isinstance(snapshot, entities.StoreSnapshot)
        assert len(snapshot.invoices) == 1
        assert len(snapshot.expenses) == 1
        assert len(snapshot.withdrawals) == 1
        assert len(snapshot.orders) == 1
        assert snapshot.month_summaries == ()
