"""Domain model entities for onchaincounting.

These are pure data classes representing business concepts, independent of
database schema. Monetary values are floats; rounding only happens when a
value is rendered.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

REPORTING_CURRENCY = "EUR"


class Currency(str, Enum):
    """Currencies invoices are issued in."""

    USD = "USD"
    CHF = "CHF"


class ExpenseCurrency(str, Enum):
    """Currencies expenses are paid in."""

    USD = "USD"
    EUR = "EUR"


class CryptoCurrency(str, Enum):
    """Tokens received as payment or withdrawn."""

    USDC = "USDC"
    STRK = "STRK"
    EURE = "EURe"


class BlockchainNetwork(str, Enum):
    """Networks tokens are held on."""

    STARKNET = "starknet"
    GNOSIS = "gnosis"


class ExpenseCategory(str, Enum):
    """Categories for business expenses."""

    SOFTWARE = "software"
    HARDWARE = "hardware"
    SUBSCRIPTION = "subscription"
    SERVICE = "service"
    OTHER = "other"


class WithdrawalStatus(str, Enum):
    """Lifecycle of a withdrawal."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class OrderKind(str, Enum):
    """Direction of a payment institution order."""

    ISSUE = "issue"
    REDEEM = "redeem"


class OrderState(str, Enum):
    """Lifecycle state of a payment institution order."""

    PLACED = "placed"
    PENDING = "pending"
    PROCESSED = "processed"
    REJECTED = "rejected"


class PaymentStandard(str, Enum):
    """How an order counterpart is identified."""

    IBAN = "iban"
    CHAIN = "chain"


@dataclass(frozen=True)
class CryptoPayment:
    """Settlement entry of an invoice."""

    amount: float
    currency: CryptoCurrency
    network: BlockchainNetwork


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity.

    The ``*_eur_amount`` fields are cached conversions computed when the
    invoice is written; they are never recomputed on read.
    """

    id: str
    date: datetime
    invoice_number: str
    client_name: str
    currency: Currency
    before_tax_amount: float
    after_tax_amount: float
    vat_rate: float
    vat_amount: float
    exchange_rate: float
    before_tax_eur_amount: float
    after_tax_eur_amount: float
    vat_eur_amount: float
    crypto_payments: tuple[CryptoPayment, ...] = ()
    pdf_path: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Expense:
    """Business expense domain entity."""

    id: str
    date: datetime
    category: ExpenseCategory
    description: str
    amount: float
    currency: ExpenseCurrency
    vat_deductible: bool
    receipt: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Withdrawal:
    """Conversion of a token balance into EUR."""

    id: str
    date: datetime
    source_amount: float
    source_currency: CryptoCurrency
    source_network: BlockchainNetwork
    target_amount: float
    exchange_rate: float
    status: WithdrawalStatus
    monerium_reference: Optional[str] = None
    transaction_hash: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Order:
    """Local mirror of an order owned by the payment institution."""

    id: str
    kind: OrderKind
    amount: float
    currency: str
    counterpart_standard: PaymentStandard
    counterpart_identifier: str
    state: OrderState
    placed_at: datetime
    approved_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    counterpart_name: Optional[str] = None
    address: Optional[str] = None
    chain: Optional[str] = None
    memo: Optional[str] = None
    last_synced: Optional[datetime] = None


@dataclass(frozen=True)
class Balance:
    """Token balance reported by the payment institution."""

    currency: str
    amount: float
    address: Optional[str] = None
    chain: Optional[str] = None


@dataclass(frozen=True)
class SyncStatus:
    """State of the local order mirror."""

    last_synced: Optional[datetime]
    has_local_data: bool


@dataclass(frozen=True)
class InvoiceTotals:
    """Invoice totals of a year, bucketed by native currency."""

    count: int = 0
    total_before_tax_usd_amount: float = 0.0
    total_after_tax_usd_amount: float = 0.0
    total_vat_usd_amount: float = 0.0
    total_before_tax_chf_amount: float = 0.0
    total_after_tax_chf_amount: float = 0.0
    total_vat_chf_amount: float = 0.0
    total_before_tax_eur_amount: float = 0.0
    total_after_tax_eur_amount: float = 0.0
    total_vat_eur_amount: float = 0.0


@dataclass(frozen=True)
class OfframpTotals:
    """Offramp totals of a year."""

    count: int = 0
    total_eur_amount: float = 0.0


@dataclass(frozen=True)
class YearSummary:
    """Yearly totals."""

    year: int
    invoices: InvoiceTotals = field(default_factory=InvoiceTotals)
    offramps: OfframpTotals = field(default_factory=OfframpTotals)


@dataclass(frozen=True)
class MonthSummary:
    """Totals of one calendar month (0 = January) with running sums."""

    month: int
    invoices_usd: float = 0.0
    invoices_chf: float = 0.0
    invoices_eur: float = 0.0
    vat_eur: float = 0.0
    offramps_eur: float = 0.0
    cumulative_eur: float = 0.0
    cumulative_offramp_eur: float = 0.0


@dataclass(frozen=True)
class IncomeReport:
    total_eur: float
    total_vat_eur: float
    vat_rate: float


@dataclass(frozen=True)
class ExpenseReport:
    total_usd: float
    total_eur: float
    vat_deductible: float


@dataclass(frozen=True)
class WithdrawalReport:
    total_source: float
    total_target_eur: float
    average_exchange_rate: float
    slippages: tuple[float, ...]
    profit_loss: float


@dataclass(frozen=True)
class ReportSummary:
    net_income_eur: float
    net_profit_loss: float
    vat_payable: float


@dataclass(frozen=True)
class Report:
    """Tax and profit/loss figures of a year."""

    year: int
    income: IncomeReport
    expenses: ExpenseReport
    withdrawals: WithdrawalReport
    summary: ReportSummary


@dataclass(frozen=True)
class YearOverview:
    """Everything derived for one year."""

    summary: YearSummary
    months: tuple[MonthSummary, ...]
    report: Report


@dataclass(frozen=True)
class MonthInvoiceGroup:
    """Invoices of one month with their totals."""

    year: int
    month: int
    invoices: tuple[Invoice, ...]
    total_before_tax_usd_amount: float
    total_after_tax_usd_amount: float
    total_before_tax_chf_amount: float
    total_after_tax_chf_amount: float
    total_before_tax_eur_amount: float
    total_after_tax_eur_amount: float
    total_vat_eur_amount: float


@dataclass(frozen=True)
class MonthSummaryRecord:
    """Persisted snapshot of a month (month is 1-12)."""

    year: int
    month: int
    total_invoiced_usd: float
    total_invoiced_chf: float
    total_invoiced_eur: float
    total_vat_collected_eur: float
    total_expenses_eur: float
    total_withdrawals_eur: float
    profit_loss_eur: float


@dataclass(frozen=True)
class YearSummaryRecord:
    """Persisted snapshot of a year."""

    year: int
    total_invoiced_usd: float
    total_invoiced_chf: float
    total_invoiced_eur: float
    total_vat_collected_eur: float
    total_expenses_eur: float
    total_withdrawals_eur: float
    profit_loss_eur: float


@dataclass(frozen=True)
class StoreSnapshot:
    """Contents of every collection, as exported to or imported from a backup."""

    invoices: tuple[Invoice, ...] = ()
    expenses: tuple[Expense, ...] = ()
    withdrawals: tuple[Withdrawal, ...] = ()
    month_summaries: tuple[MonthSummaryRecord, ...] = ()
    year_summaries: tuple[YearSummaryRecord, ...] = ()
    orders: tuple[Order, ...] = ()
