"""JSON export and import of the whole store."""

import json
import re
from datetime import datetime
from typing import Any

import structlog

from onchaincounting.database.base import Database
from onchaincounting.domain.entities import (
    BlockchainNetwork,
    CryptoCurrency,
    CryptoPayment,
    Currency,
    Expense,
    ExpenseCategory,
    ExpenseCurrency,
    Invoice,
    MonthSummaryRecord,
    StoreSnapshot,
    Withdrawal,
    WithdrawalStatus,
    YearSummaryRecord,
)
from onchaincounting.domain.errors import BackupError, import_failed
from onchaincounting.integrations.monerium import order_from_payload, order_to_payload
from onchaincounting.utils.date_parser import to_naive_utc

logger = structlog.get_logger(__name__)

ISO_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}.*Z$")

_SUMMARY_FIELDS = {
    "totalInvoicedUsd": "total_invoiced_usd",
    "totalInvoicedChf": "total_invoiced_chf",
    "totalInvoicedEur": "total_invoiced_eur",
    "totalVatCollectedEur": "total_vat_collected_eur",
    "totalExpensesEur": "total_expenses_eur",
    "totalWithdrawalsEur": "total_withdrawals_eur",
    "profitLossEur": "profit_loss_eur",
}


def _encode_datetime(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat() + "Z"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _revive(value: Any) -> Any:
    """Turn every ISO-8601 UTC string inside a decoded document into a datetime."""
    if isinstance(value, dict):
        return {key: _revive(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_revive(item) for item in value]
    if isinstance(value, str) and ISO_TIMESTAMP.match(value):
        return to_naive_utc(datetime.fromisoformat(value))
    return value


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _require_datetime(value: Any, field: str) -> datetime:
    if not isinstance(value, datetime):
        raise ValueError(f"{field} is not a timestamp: {value!r}")
    return value


def _optional_datetime(value: Any, field: str):
    return None if value is None else _require_datetime(value, field)


def invoice_to_dict(invoice: Invoice) -> dict[str, Any]:
    return _compact(
        {
            "id": invoice.id,
            "date": invoice.date,
            "invoiceNumber": invoice.invoice_number,
            "clientName": invoice.client_name,
            "beforeTaxAmount": invoice.before_tax_amount,
            "afterTaxAmount": invoice.after_tax_amount,
            "vatRate": invoice.vat_rate,
            "vatAmount": invoice.vat_amount,
            "currency": invoice.currency.value,
            "beforeTaxEurAmount": invoice.before_tax_eur_amount,
            "afterTaxEurAmount": invoice.after_tax_eur_amount,
            "vatEurAmount": invoice.vat_eur_amount,
            "exchangeRate": invoice.exchange_rate,
            "cryptoPayments": [
                {
                    "amount": payment.amount,
                    "currency": payment.currency.value,
                    "network": payment.network.value,
                }
                for payment in invoice.crypto_payments
            ],
            "pdfPath": invoice.pdf_path,
            "notes": invoice.notes,
            "createdAt": invoice.created_at,
            "updatedAt": invoice.updated_at,
        }
    )


def invoice_from_dict(data: dict[str, Any]) -> Invoice:
    # Cached EUR amounts are taken as stored, never recomputed.
    return Invoice(
        id=str(data["id"]),
        date=_require_datetime(data["date"], "date"),
        invoice_number=str(data["invoiceNumber"]),
        client_name=str(data.get("clientName", "")),
        currency=Currency(data["currency"]),
        before_tax_amount=float(data["beforeTaxAmount"]),
        after_tax_amount=float(data["afterTaxAmount"]),
        vat_rate=float(data["vatRate"]),
        vat_amount=float(data["vatAmount"]),
        exchange_rate=float(data["exchangeRate"]),
        before_tax_eur_amount=float(data["beforeTaxEurAmount"]),
        after_tax_eur_amount=float(data["afterTaxEurAmount"]),
        vat_eur_amount=float(data["vatEurAmount"]),
        crypto_payments=tuple(
            CryptoPayment(
                amount=float(payment["amount"]),
                currency=CryptoCurrency(payment["currency"]),
                network=BlockchainNetwork(payment["network"]),
            )
            for payment in data.get("cryptoPayments") or []
        ),
        pdf_path=data.get("pdfPath"),
        notes=data.get("notes"),
        created_at=_optional_datetime(data.get("createdAt"), "createdAt"),
        updated_at=_optional_datetime(data.get("updatedAt"), "updatedAt"),
    )


def expense_to_dict(expense: Expense) -> dict[str, Any]:
    return _compact(
        {
            "id": expense.id,
            "date": expense.date,
            "category": expense.category.value,
            "description": expense.description,
            "amount": expense.amount,
            "currency": expense.currency.value,
            "vatDeductible": expense.vat_deductible,
            "receipt": expense.receipt,
            "notes": expense.notes,
            "createdAt": expense.created_at,
            "updatedAt": expense.updated_at,
        }
    )


def expense_from_dict(data: dict[str, Any]) -> Expense:
    return Expense(
        id=str(data["id"]),
        date=_require_datetime(data["date"], "date"),
        category=ExpenseCategory(data["category"]),
        description=str(data.get("description", "")),
        amount=float(data["amount"]),
        currency=ExpenseCurrency(data["currency"]),
        vat_deductible=bool(data.get("vatDeductible", False)),
        receipt=data.get("receipt"),
        notes=data.get("notes"),
        created_at=_optional_datetime(data.get("createdAt"), "createdAt"),
        updated_at=_optional_datetime(data.get("updatedAt"), "updatedAt"),
    )


def withdrawal_to_dict(withdrawal: Withdrawal) -> dict[str, Any]:
    return _compact(
        {
            "id": withdrawal.id,
            "date": withdrawal.date,
            "sourceAmount": withdrawal.source_amount,
            "sourceCurrency": withdrawal.source_currency.value,
            "sourceNetwork": withdrawal.source_network.value,
            "targetAmount": withdrawal.target_amount,
            "exchangeRate": withdrawal.exchange_rate,
            "transactionHash": withdrawal.transaction_hash,
            "status": withdrawal.status.value,
            "moneriumReference": withdrawal.monerium_reference,
            "notes": withdrawal.notes,
            "createdAt": withdrawal.created_at,
            "updatedAt": withdrawal.updated_at,
        }
    )


def withdrawal_from_dict(data: dict[str, Any]) -> Withdrawal:
    # Early backups spell the reference key "moneuriumReference".
    reference = data.get("moneriumReference", data.get("moneuriumReference"))
    return Withdrawal(
        id=str(data["id"]),
        date=_require_datetime(data["date"], "date"),
        source_amount=float(data["sourceAmount"]),
        source_currency=CryptoCurrency(data["sourceCurrency"]),
        source_network=BlockchainNetwork(data["sourceNetwork"]),
        target_amount=float(data["targetAmount"]),
        exchange_rate=float(data["exchangeRate"]),
        status=WithdrawalStatus(data["status"]),
        monerium_reference=reference,
        transaction_hash=data.get("transactionHash"),
        notes=data.get("notes"),
        created_at=_optional_datetime(data.get("createdAt"), "createdAt"),
        updated_at=_optional_datetime(data.get("updatedAt"), "updatedAt"),
    )


def month_summary_to_dict(record: MonthSummaryRecord) -> dict[str, Any]:
    data: dict[str, Any] = {"year": record.year, "month": record.month}
    data.update({key: getattr(record, attr) for key, attr in _SUMMARY_FIELDS.items()})
    return data


def month_summary_from_dict(data: dict[str, Any]) -> MonthSummaryRecord:
    return MonthSummaryRecord(
        year=int(data["year"]),
        month=int(data["month"]),
        **{attr: float(data.get(key, 0.0)) for key, attr in _SUMMARY_FIELDS.items()},
    )


def year_summary_to_dict(record: YearSummaryRecord) -> dict[str, Any]:
    data: dict[str, Any] = {"year": record.year}
    data.update({key: getattr(record, attr) for key, attr in _SUMMARY_FIELDS.items()})
    return data


def year_summary_from_dict(data: dict[str, Any]) -> YearSummaryRecord:
    return YearSummaryRecord(
        year=int(data["year"]),
        **{attr: float(data.get(key, 0.0)) for key, attr in _SUMMARY_FIELDS.items()},
    )


class BackupService:
    """Service for exporting and importing the whole store as JSON."""

    def __init__(self, db: Database):
        """Initialize backup service.

        Args:
            db: Database instance
        """
        self.db = db

    def export_data(self) -> str:
        """Serialize every collection to a JSON document."""
        snapshot = self.db.export_snapshot()
        data = {
            "invoices": [invoice_to_dict(inv) for inv in snapshot.invoices],
            "expenses": [expense_to_dict(exp) for exp in snapshot.expenses],
            "withdrawals": [withdrawal_to_dict(w) for w in snapshot.withdrawals],
            "monthlySummaries": [month_summary_to_dict(m) for m in snapshot.month_summaries],
            "yearlySummaries": [year_summary_to_dict(y) for y in snapshot.year_summaries],
            "moneriumOrders": [_compact(order_to_payload(o)) for o in snapshot.orders],
        }
        logger.info(
            "backup.exported",
            invoices=len(snapshot.invoices),
            expenses=len(snapshot.expenses),
            withdrawals=len(snapshot.withdrawals),
            orders=len(snapshot.orders),
        )
        return json.dumps(data, default=_encode_datetime, indent=2)

    def parse_snapshot(self, text: str) -> StoreSnapshot:
        """Decode a JSON document into a snapshot.

        Raises:
            ValueError, KeyError, TypeError: If the document is malformed
        """
        data = _revive(json.loads(text))
        if not isinstance(data, dict):
            raise ValueError("Backup document must be a JSON object")
        return StoreSnapshot(
            invoices=tuple(invoice_from_dict(item) for item in data["invoices"]),
            expenses=tuple(expense_from_dict(item) for item in data["expenses"]),
            withdrawals=tuple(withdrawal_from_dict(item) for item in data["withdrawals"]),
            month_summaries=tuple(
                month_summary_from_dict(item) for item in data["monthlySummaries"]
            ),
            year_summaries=tuple(
                year_summary_from_dict(item) for item in data["yearlySummaries"]
            ),
            orders=tuple(
                order_from_payload(item) for item in data.get("moneriumOrders") or []
            ),
        )

    def import_data(self, text: str, merge: bool = False) -> StoreSnapshot:
        """Apply a JSON document to the store in one transaction.

        Args:
            text: JSON document as produced by export_data
            merge: If True, upsert by key; otherwise replace every collection

        Returns:
            The applied snapshot

        Raises:
            BackupError: If the document is malformed or cannot be written;
                the store is left unchanged
        """
        try:
            snapshot = self.parse_snapshot(text)
            self.db.apply_snapshot(snapshot, replace=not merge)
        except Exception as e:
            logger.error("backup.import_failed", merge=merge, error=str(e))
            raise BackupError(import_failed(merge)) from e

        logger.info(
            "backup.imported",
            mode="merge" if merge else "replace",
            invoices=len(snapshot.invoices),
            expenses=len(snapshot.expenses),
            withdrawals=len(snapshot.withdrawals),
            orders=len(snapshot.orders),
        )
        return snapshot
