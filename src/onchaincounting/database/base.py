"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from onchaincounting.domain.entities import (
    Expense,
    Invoice,
    MonthSummaryRecord,
    Order,
    StoreSnapshot,
    Withdrawal,
    YearSummaryRecord,
)


class Database(ABC):
    """Abstract database interface for onchaincounting.

    Every collection is keyed by its primary key and supports inclusive
    range queries over its date field.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Invoice operations
    @abstractmethod
    def add_invoice(self, invoice: Invoice) -> str:
        """Insert an invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def replace_invoice(self, invoice: Invoice) -> None:
        """Replace every field of an existing invoice."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice."""
        pass

    @abstractmethod
    def list_invoices(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Invoice]:
        """List invoices dated inside [start, end], oldest first."""
        pass

    # Expense operations
    @abstractmethod
    def add_expense(self, expense: Expense) -> str:
        """Insert an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> None:
        """Delete an expense."""
        pass

    @abstractmethod
    def list_expenses(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Expense]:
        """List expenses dated inside [start, end], oldest first."""
        pass

    # Withdrawal operations
    @abstractmethod
    def add_withdrawal(self, withdrawal: Withdrawal) -> str:
        """Insert a withdrawal. Returns withdrawal ID."""
        pass

    @abstractmethod
    def replace_withdrawal(self, withdrawal: Withdrawal) -> None:
        """Replace every field of an existing withdrawal."""
        pass

    @abstractmethod
    def get_withdrawal(self, withdrawal_id: str) -> Optional[Withdrawal]:
        """Get withdrawal by ID."""
        pass

    @abstractmethod
    def delete_withdrawal(self, withdrawal_id: str) -> None:
        """Delete a withdrawal."""
        pass

    @abstractmethod
    def list_withdrawals(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Withdrawal]:
        """List withdrawals dated inside [start, end], oldest first."""
        pass

    # Order mirror operations
    @abstractmethod
    def upsert_orders(self, orders: list[Order]) -> None:
        """Insert or replace orders by ID in one transaction."""
        pass

    @abstractmethod
    def list_orders(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Order]:
        """List orders whose effective date (approval, else placement) is in range."""
        pass

    @abstractmethod
    def count_orders(self) -> int:
        """Count mirrored orders."""
        pass

    # Summary snapshot operations
    @abstractmethod
    def replace_summaries(
        self, year: int, months: list[MonthSummaryRecord], year_record: YearSummaryRecord
    ) -> None:
        """Replace the stored month and year snapshots of a year."""
        pass

    @abstractmethod
    def list_month_summaries(self, year: Optional[int] = None) -> list[MonthSummaryRecord]:
        """List stored month snapshots, optionally for one year."""
        pass

    @abstractmethod
    def list_year_summaries(self) -> list[YearSummaryRecord]:
        """List stored year snapshots."""
        pass

    # Sync bookkeeping
    @abstractmethod
    def get_sync_value(self, key: str) -> Optional[str]:
        """Get a sync bookkeeping value."""
        pass

    @abstractmethod
    def set_sync_value(self, key: str, value: Optional[str]) -> None:
        """Set a sync bookkeeping value."""
        pass

    # Backup operations
    @abstractmethod
    def export_snapshot(self) -> StoreSnapshot:
        """Read every collection."""
        pass

    @abstractmethod
    def apply_snapshot(self, snapshot: StoreSnapshot, replace: bool) -> None:
        """Write every collection of a snapshot atomically.

        Args:
            snapshot: Collections to write
            replace: If True, clear each collection before inserting;
                otherwise upsert by key
        """
        pass
