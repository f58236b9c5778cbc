"""Generic SQLAlchemy database implementation."""

from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from onchaincounting.database.base import Database
from onchaincounting.database.models import (
    Invoice,
    Expense,
    Withdrawal,
    Order,
    MonthSummary,
    YearSummary,
    SyncState,
    create_session_factory,
)
from onchaincounting.database.mappers import (
    invoice_to_domain,
    invoice_to_orm,
    expense_to_domain,
    expense_to_orm,
    withdrawal_to_domain,
    withdrawal_to_orm,
    order_to_domain,
    order_to_orm,
    month_summary_to_domain,
    month_summary_to_orm,
    year_summary_to_domain,
    year_summary_to_orm,
)
from onchaincounting.domain.entities import (
    Invoice as DomainInvoice,
    Expense as DomainExpense,
    Withdrawal as DomainWithdrawal,
    Order as DomainOrder,
    MonthSummaryRecord,
    YearSummaryRecord,
    StoreSnapshot,
)


def _apply_range(query, column, start: Optional[datetime], end: Optional[datetime]):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    def _commit(self) -> None:
        session = self._get_session()
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise

    # Invoice operations
    def add_invoice(self, invoice: DomainInvoice) -> str:
        """Insert an invoice. Returns invoice ID."""
        session = self._get_session()
        session.add(invoice_to_orm(invoice))
        self._commit()
        return invoice.id

    def replace_invoice(self, invoice: DomainInvoice) -> None:
        """Replace every field of an existing invoice."""
        session = self._get_session()
        if session.get(Invoice, invoice.id) is None:
            raise ValueError(f"Invoice {invoice.id} not found")
        session.merge(invoice_to_orm(invoice))
        self._commit()

    def get_invoice(self, invoice_id: str) -> Optional[DomainInvoice]:
        """Get invoice by ID."""
        session = self._get_session()
        invoice = session.get(Invoice, invoice_id)
        if invoice is None:
            return None
        return invoice_to_domain(invoice)

    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice."""
        session = self._get_session()
        invoice = session.get(Invoice, invoice_id)
        if invoice is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        session.delete(invoice)
        self._commit()

    def list_invoices(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[DomainInvoice]:
        """List invoices dated inside [start, end], oldest first."""
        session = self._get_session()
        query = _apply_range(session.query(Invoice), Invoice.date, start, end)
        invoices = query.order_by(Invoice.date, Invoice.id).all()
        return [invoice_to_domain(inv) for inv in invoices]

    # Expense operations
    def add_expense(self, expense: DomainExpense) -> str:
        """Insert an expense. Returns expense ID."""
        session = self._get_session()
        session.add(expense_to_orm(expense))
        self._commit()
        return expense.id

    def get_expense(self, expense_id: str) -> Optional[DomainExpense]:
        """Get expense by ID."""
        session = self._get_session()
        expense = session.get(Expense, expense_id)
        if expense is None:
            return None
        return expense_to_domain(expense)

    def delete_expense(self, expense_id: str) -> None:
        """Delete an expense."""
        session = self._get_session()
        expense = session.get(Expense, expense_id)
        if expense is None:
            raise ValueError(f"Expense {expense_id} not found")
        session.delete(expense)
        self._commit()

    def list_expenses(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[DomainExpense]:
        """List expenses dated inside [start, end], oldest first."""
        session = self._get_session()
        query = _apply_range(session.query(Expense), Expense.date, start, end)
        expenses = query.order_by(Expense.date, Expense.id).all()
        return [expense_to_domain(exp) for exp in expenses]

    # Withdrawal operations
    def add_withdrawal(self, withdrawal: DomainWithdrawal) -> str:
        """Insert a withdrawal. Returns withdrawal ID."""
        session = self._get_session()
        session.add(withdrawal_to_orm(withdrawal))
        self._commit()
        return withdrawal.id

    def replace_withdrawal(self, withdrawal: DomainWithdrawal) -> None:
        """Replace every field of an existing withdrawal."""
        session = self._get_session()
        if session.get(Withdrawal, withdrawal.id) is None:
            raise ValueError(f"Withdrawal {withdrawal.id} not found")
        session.merge(withdrawal_to_orm(withdrawal))
        self._commit()

    def get_withdrawal(self, withdrawal_id: str) -> Optional[DomainWithdrawal]:
        """Get withdrawal by ID."""
        session = self._get_session()
        withdrawal = session.get(Withdrawal, withdrawal_id)
        if withdrawal is None:
            return None
        return withdrawal_to_domain(withdrawal)

    def delete_withdrawal(self, withdrawal_id: str) -> None:
        """Delete a withdrawal."""
        session = self._get_session()
        withdrawal = session.get(Withdrawal, withdrawal_id)
        if withdrawal is None:
            raise ValueError(f"Withdrawal {withdrawal_id} not found")
        session.delete(withdrawal)
        self._commit()

    def list_withdrawals(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[DomainWithdrawal]:
        """List withdrawals dated inside [start, end], oldest first."""
        session = self._get_session()
        query = _apply_range(session.query(Withdrawal), Withdrawal.date, start, end)
        withdrawals = query.order_by(Withdrawal.date, Withdrawal.id).all()
        return [withdrawal_to_domain(w) for w in withdrawals]

    # Order mirror operations
    def upsert_orders(self, orders: list[DomainOrder]) -> None:
        """Insert or replace orders by ID in one transaction."""
        session = self._get_session()
        for order in orders:
            session.merge(order_to_orm(order))
        self._commit()

    def list_orders(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[DomainOrder]:
        """List orders whose effective date (approval, else placement) is in range."""
        session = self._get_session()
        effective_date = func.coalesce(Order.approved_at, Order.placed_at)
        query = _apply_range(session.query(Order), effective_date, start, end)
        orders = query.order_by(effective_date.desc(), Order.id).all()
        return [order_to_domain(order) for order in orders]

    def count_orders(self) -> int:
        """Count mirrored orders."""
        session = self._get_session()
        return session.query(Order).count()

    # Summary snapshot operations
    def replace_summaries(
        self, year: int, months: list[MonthSummaryRecord], year_record: YearSummaryRecord
    ) -> None:
        """Replace the stored month and year snapshots of a year."""
        session = self._get_session()
        try:
            session.query(MonthSummary).filter(MonthSummary.year == year).delete()
            session.query(YearSummary).filter(YearSummary.year == year).delete()
            session.add_all([month_summary_to_orm(record) for record in months])
            session.add(year_summary_to_orm(year_record))
            session.commit()
        except Exception:
            session.rollback()
            raise

    def list_month_summaries(self, year: Optional[int] = None) -> list[MonthSummaryRecord]:
        """List stored month snapshots, optionally for one year."""
        session = self._get_session()
        query = session.query(MonthSummary)
        if year is not None:
            query = query.filter(MonthSummary.year == year)
        records = query.order_by(MonthSummary.year, MonthSummary.month).all()
        return [month_summary_to_domain(record) for record in records]

    def list_year_summaries(self) -> list[YearSummaryRecord]:
        """List stored year snapshots."""
        session = self._get_session()
        records = session.query(YearSummary).order_by(YearSummary.year).all()
        return [year_summary_to_domain(record) for record in records]

    # Sync bookkeeping
    def get_sync_value(self, key: str) -> Optional[str]:
        """Get a sync bookkeeping value."""
        session = self._get_session()
        state = session.get(SyncState, key)
        return state.value if state is not None else None

    def set_sync_value(self, key: str, value: Optional[str]) -> None:
        """Set a sync bookkeeping value."""
        session = self._get_session()
        session.merge(SyncState(key=key, value=value))
        self._commit()

    # Backup operations
    def export_snapshot(self) -> StoreSnapshot:
        """Read every collection."""
        session = self._get_session()
        return StoreSnapshot(
            invoices=tuple(self.list_invoices()),
            expenses=tuple(self.list_expenses()),
            withdrawals=tuple(self.list_withdrawals()),
            month_summaries=tuple(self.list_month_summaries()),
            year_summaries=tuple(self.list_year_summaries()),
            orders=tuple(
                order_to_domain(order)
                for order in session.query(Order).order_by(Order.placed_at, Order.id).all()
            ),
        )

    def apply_snapshot(self, snapshot: StoreSnapshot, replace: bool) -> None:
        """Write every collection of a snapshot atomically.

        Replace mode clears each collection and inserts, so duplicate keys in
        the snapshot fail the whole operation. Merge mode upserts by key.
        Any failure rolls back every collection.
        """
        session = self._get_session()
        collections = [
            (Invoice, [invoice_to_orm(inv) for inv in snapshot.invoices]),
            (Expense, [expense_to_orm(exp) for exp in snapshot.expenses]),
            (Withdrawal, [withdrawal_to_orm(w) for w in snapshot.withdrawals]),
            (MonthSummary, [month_summary_to_orm(m) for m in snapshot.month_summaries]),
            (YearSummary, [year_summary_to_orm(y) for y in snapshot.year_summaries]),
            (Order, [order_to_orm(order) for order in snapshot.orders]),
        ]
        try:
            for model, rows in collections:
                if replace:
                    session.query(model).delete()
                    session.add_all(rows)
                    session.flush()
                else:
                    for row in rows:
                        session.merge(row)
            session.commit()
        except Exception:
            session.rollback()
            raise
