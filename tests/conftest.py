"""Shared pytest fixtures for onchaincounting tests."""

import tempfile
import os
from datetime import datetime
from typing import Optional

import pytest

from onchaincounting.database.factories import create_sqlite_database
from onchaincounting.domain.backup import BackupService
from onchaincounting.domain.entities import (
    BlockchainNetwork,
    CryptoCurrency,
    Currency,
    Expense,
    ExpenseCategory,
    ExpenseCurrency,
    Invoice,
    Order,
    OrderKind,
    OrderState,
    PaymentStandard,
    Withdrawal,
    WithdrawalStatus,
)
from onchaincounting.domain.expense import ExpenseService
from onchaincounting.domain.invoice import InvoiceService, derive_invoice_amounts
from onchaincounting.domain.order_sync import OrderSyncService
from onchaincounting.domain.summary import SummaryService
from onchaincounting.domain.withdrawal import WithdrawalService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def expense_service(temp_db):
    """Create an ExpenseService with a temporary database."""
    return ExpenseService(temp_db)


@pytest.fixture
def withdrawal_service(temp_db):
    """Create a WithdrawalService with a temporary database."""
    return WithdrawalService(temp_db)


@pytest.fixture
def summary_service(temp_db):
    """Create a SummaryService with a temporary database."""
    return SummaryService(temp_db)


@pytest.fixture
def backup_service(temp_db):
    """Create a BackupService with a temporary database."""
    return BackupService(temp_db)


@pytest.fixture
def order_sync_service(temp_db):
    """Create an OrderSyncService with a temporary database."""
    return OrderSyncService(temp_db)


def make_invoice(
    invoice_id: str = "inv-1",
    date: datetime = datetime(2024, 6, 15),
    currency: Currency = Currency.USD,
    before_tax_amount: float = 100.0,
    after_tax_amount: float = 120.0,
    vat_rate: float = 20.0,
    exchange_rate: float = 1.1,
    invoice_number: Optional[str] = None,
    **kwargs,
) -> Invoice:
    """Build an invoice entity with derived EUR amounts."""
    return Invoice(
        id=invoice_id,
        date=date,
        invoice_number=invoice_number or invoice_id.upper(),
        client_name=kwargs.pop("client_name", "Acme"),
        currency=currency,
        before_tax_amount=before_tax_amount,
        after_tax_amount=after_tax_amount,
        vat_rate=vat_rate,
        exchange_rate=exchange_rate,
        **derive_invoice_amounts(before_tax_amount, after_tax_amount, exchange_rate),
        **kwargs,
    )


def make_expense(
    expense_id: str = "exp-1",
    date: datetime = datetime(2024, 6, 20),
    amount: float = 50.0,
    currency: ExpenseCurrency = ExpenseCurrency.EUR,
    vat_deductible: bool = False,
    **kwargs,
) -> Expense:
    """Build an expense entity."""
    return Expense(
        id=expense_id,
        date=date,
        category=kwargs.pop("category", ExpenseCategory.SOFTWARE),
        description=kwargs.pop("description", "Hosting"),
        amount=amount,
        currency=currency,
        vat_deductible=vat_deductible,
        **kwargs,
    )


def make_withdrawal(
    withdrawal_id: str = "wd-1",
    date: datetime = datetime(2024, 6, 25),
    source_amount: float = 1000.0,
    target_amount: float = 900.0,
    **kwargs,
) -> Withdrawal:
    """Build a withdrawal entity."""
    return Withdrawal(
        id=withdrawal_id,
        date=date,
        source_amount=source_amount,
        source_currency=kwargs.pop("source_currency", CryptoCurrency.USDC),
        source_network=kwargs.pop("source_network", BlockchainNetwork.STARKNET),
        target_amount=target_amount,
        exchange_rate=kwargs.pop("exchange_rate", target_amount / source_amount),
        status=kwargs.pop("status", WithdrawalStatus.COMPLETED),
        **kwargs,
    )


def make_order(
    order_id: str = "ord-1",
    kind: OrderKind = OrderKind.REDEEM,
    amount: float = 500.0,
    placed_at: datetime = datetime(2024, 6, 10, 9, 0, 0),
    approved_at: Optional[datetime] = None,
    standard: PaymentStandard = PaymentStandard.IBAN,
    **kwargs,
) -> Order:
    """Build a mirrored order entity."""
    identifier = "0xabc" if standard == PaymentStandard.CHAIN else "CH9300762011623852957"
    return Order(
        id=order_id,
        kind=kind,
        amount=amount,
        currency=kwargs.pop("currency", "eur"),
        counterpart_standard=standard,
        counterpart_identifier=kwargs.pop("counterpart_identifier", identifier),
        counterpart_name=kwargs.pop("counterpart_name", "Jane Doe"),
        state=kwargs.pop("state", OrderState.PROCESSED),
        placed_at=placed_at,
        approved_at=approved_at,
        **kwargs,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
