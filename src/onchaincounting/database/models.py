"""SQLAlchemy models for onchaincounting database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Invoice(Base):
    """Invoice model."""

    __tablename__ = "invoices"

    id = Column(String, primary_key=True)
    date = Column(DateTime, nullable=False, index=True)
    invoice_number = Column(String, nullable=False, index=True)
    client_name = Column(String, nullable=False, index=True)
    currency = Column(String(3), nullable=False)
    before_tax_amount = Column(Float, nullable=False)
    after_tax_amount = Column(Float, nullable=False)
    vat_rate = Column(Float, nullable=False, default=0.0)
    vat_amount = Column(Float, nullable=False)
    exchange_rate = Column(Float, nullable=False)
    before_tax_eur_amount = Column(Float, nullable=False)
    after_tax_eur_amount = Column(Float, nullable=False)
    vat_eur_amount = Column(Float, nullable=False)
    # List of {"amount", "currency", "network"} settlement entries
    crypto_payments = Column(JSON, nullable=False, default=list)
    pdf_path = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, nullable=True)


class Expense(Base):
    """Business expense model."""

    __tablename__ = "expenses"

    id = Column(String, primary_key=True)
    date = Column(DateTime, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False)
    vat_deductible = Column(Boolean, nullable=False, default=False)
    receipt = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, nullable=True)


class Withdrawal(Base):
    """Withdrawal model."""

    __tablename__ = "withdrawals"

    id = Column(String, primary_key=True)
    date = Column(DateTime, nullable=False, index=True)
    source_amount = Column(Float, nullable=False)
    source_currency = Column(String, nullable=False)
    source_network = Column(String, nullable=False)
    target_amount = Column(Float, nullable=False)
    exchange_rate = Column(Float, nullable=False)
    status = Column(String, nullable=False, index=True)
    monerium_reference = Column(String, nullable=True)
    transaction_hash = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, nullable=True)


class Order(Base):
    """Mirrored payment institution order."""

    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    kind = Column(String, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False)
    counterpart_standard = Column(String, nullable=False)
    counterpart_identifier = Column(String, nullable=False)
    counterpart_name = Column(String, nullable=True)
    state = Column(String, nullable=False, index=True)
    placed_at = Column(DateTime, nullable=False, index=True)
    approved_at = Column(DateTime, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    address = Column(String, nullable=True)
    chain = Column(String, nullable=True)
    memo = Column(String, nullable=True)
    last_synced = Column(DateTime, nullable=True)


class MonthSummary(Base):
    """Snapshot of monthly totals, keyed by year and month (1-12)."""

    __tablename__ = "month_summaries"

    year = Column(Integer, primary_key=True)
    month = Column(Integer, primary_key=True)
    total_invoiced_usd = Column(Float, nullable=False, default=0.0)
    total_invoiced_chf = Column(Float, nullable=False, default=0.0)
    total_invoiced_eur = Column(Float, nullable=False, default=0.0)
    total_vat_collected_eur = Column(Float, nullable=False, default=0.0)
    total_expenses_eur = Column(Float, nullable=False, default=0.0)
    total_withdrawals_eur = Column(Float, nullable=False, default=0.0)
    profit_loss_eur = Column(Float, nullable=False, default=0.0)


class YearSummary(Base):
    """Snapshot of yearly totals."""

    __tablename__ = "year_summaries"

    year = Column(Integer, primary_key=True)
    total_invoiced_usd = Column(Float, nullable=False, default=0.0)
    total_invoiced_chf = Column(Float, nullable=False, default=0.0)
    total_invoiced_eur = Column(Float, nullable=False, default=0.0)
    total_vat_collected_eur = Column(Float, nullable=False, default=0.0)
    total_expenses_eur = Column(Float, nullable=False, default=0.0)
    total_withdrawals_eur = Column(Float, nullable=False, default=0.0)
    profit_loss_eur = Column(Float, nullable=False, default=0.0)


class SyncState(Base):
    """Key/value bookkeeping for external synchronisation."""

    __tablename__ = "sync_state"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
