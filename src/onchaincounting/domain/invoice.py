"""Invoice domain service."""

from collections.abc import Sequence
from datetime import datetime
from typing import Optional

import structlog

from onchaincounting.database.base import Database
from onchaincounting.domain.aggregator import storage_year_range
from onchaincounting.domain.entities import CryptoPayment, Currency, Invoice
from onchaincounting.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_id,
    invoice_not_found,
)
from onchaincounting.utils.date_parser import utcnow
from onchaincounting.utils.ids import generate_id

logger = structlog.get_logger(__name__)


def derive_invoice_amounts(
    before_tax_amount: float, after_tax_amount: float, exchange_rate: float
) -> dict[str, float]:
    """Derive the VAT amount and the cached EUR conversions of an invoice.

    The exchange rate is quoted as native currency per EUR, so every EUR
    amount is the native amount times ``1 / exchange_rate``.

    Args:
        before_tax_amount: Native amount before tax
        after_tax_amount: Native amount after tax
        exchange_rate: Native currency units per EUR

    Returns:
        Dict with vat_amount, before_tax_eur_amount, after_tax_eur_amount
        and vat_eur_amount
    """
    to_eur = 1 / exchange_rate
    vat_amount = after_tax_amount - before_tax_amount
    return {
        "vat_amount": vat_amount,
        "before_tax_eur_amount": before_tax_amount * to_eur,
        "after_tax_eur_amount": after_tax_amount * to_eur,
        "vat_eur_amount": vat_amount * to_eur,
    }


class InvoiceService:
    """Service for managing invoices."""

    def __init__(self, db: Database):
        """Initialize invoice service.

        Args:
            db: Database instance
        """
        self.db = db

    def _validate(
        self,
        invoice_number: str,
        before_tax_amount: float,
        after_tax_amount: float,
        vat_rate: float,
        exchange_rate: float,
    ) -> None:
        if not invoice_number or not invoice_number.strip():
            raise ValidationError("Invoice number is required")
        if before_tax_amount < 0 or after_tax_amount < 0:
            raise ValidationError("Invoice amounts must not be negative")
        if not 0 <= vat_rate <= 100:
            raise ValidationError(f"VAT rate must be between 0 and 100, got {vat_rate}")
        if exchange_rate <= 0:
            raise ValidationError(f"Exchange rate must be positive, got {exchange_rate}")

    def _build_invoice(
        self,
        invoice_id: str,
        date: datetime,
        invoice_number: str,
        client_name: str,
        currency: Currency,
        before_tax_amount: float,
        after_tax_amount: float,
        vat_rate: float,
        exchange_rate: float,
        crypto_payments: Sequence[CryptoPayment],
        pdf_path: Optional[str],
        notes: Optional[str],
        created_at: datetime,
        updated_at: datetime,
    ) -> Invoice:
        self._validate(invoice_number, before_tax_amount, after_tax_amount, vat_rate, exchange_rate)
        return Invoice(
            id=invoice_id,
            date=date,
            invoice_number=invoice_number.strip(),
            client_name=client_name.strip(),
            currency=Currency(currency),
            before_tax_amount=before_tax_amount,
            after_tax_amount=after_tax_amount,
            vat_rate=vat_rate,
            exchange_rate=exchange_rate,
            crypto_payments=tuple(crypto_payments),
            pdf_path=pdf_path,
            notes=notes,
            created_at=created_at,
            updated_at=updated_at,
            **derive_invoice_amounts(before_tax_amount, after_tax_amount, exchange_rate),
        )

    def create_invoice(
        self,
        date: datetime,
        invoice_number: str,
        client_name: str,
        currency: Currency,
        before_tax_amount: float,
        after_tax_amount: float,
        vat_rate: float,
        exchange_rate: float,
        crypto_payments: Sequence[CryptoPayment] = (),
        pdf_path: Optional[str] = None,
        notes: Optional[str] = None,
        invoice_id: Optional[str] = None,
    ) -> str:
        """Create an invoice.

        Args:
            date: Issue date
            invoice_number: Invoice number as printed on the document
            client_name: Client name
            currency: Native currency
            before_tax_amount: Native amount before tax
            after_tax_amount: Native amount after tax
            vat_rate: VAT rate in percent
            exchange_rate: Native currency units per EUR at invoice time
            crypto_payments: Settlement entries
            pdf_path: Optional path to the invoice document
            notes: Optional notes
            invoice_id: Optional explicit ID (generated if not provided)

        Returns:
            Invoice ID

        Raises:
            ValidationError: If amounts, rate or number are invalid
            ConflictError: If the ID is already taken
        """
        invoice_id = invoice_id or generate_id()
        if self.db.get_invoice(invoice_id) is not None:
            raise ConflictError(duplicate_id("Invoice", invoice_id))

        now = utcnow()
        invoice = self._build_invoice(
            invoice_id=invoice_id,
            date=date,
            invoice_number=invoice_number,
            client_name=client_name,
            currency=currency,
            before_tax_amount=before_tax_amount,
            after_tax_amount=after_tax_amount,
            vat_rate=vat_rate,
            exchange_rate=exchange_rate,
            crypto_payments=crypto_payments,
            pdf_path=pdf_path,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self.db.add_invoice(invoice)
        logger.info("invoice.created", invoice_id=invoice_id, invoice_number=invoice.invoice_number)
        return invoice_id

    def update_invoice(
        self,
        invoice_id: str,
        date: datetime,
        invoice_number: str,
        client_name: str,
        currency: Currency,
        before_tax_amount: float,
        after_tax_amount: float,
        vat_rate: float,
        exchange_rate: float,
        crypto_payments: Sequence[CryptoPayment] = (),
        pdf_path: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Invoice:
        """Replace an invoice, re-deriving every cached EUR amount.

        Returns:
            The stored invoice

        Raises:
            NotFoundError: If the invoice doesn't exist
            ValidationError: If amounts, rate or number are invalid
        """
        existing = self.db.get_invoice(invoice_id)
        if existing is None:
            raise NotFoundError(invoice_not_found(invoice_id))

        invoice = self._build_invoice(
            invoice_id=invoice_id,
            date=date,
            invoice_number=invoice_number,
            client_name=client_name,
            currency=currency,
            before_tax_amount=before_tax_amount,
            after_tax_amount=after_tax_amount,
            vat_rate=vat_rate,
            exchange_rate=exchange_rate,
            crypto_payments=crypto_payments,
            pdf_path=pdf_path,
            notes=notes,
            created_at=existing.created_at or utcnow(),
            updated_at=utcnow(),
        )
        self.db.replace_invoice(invoice)
        logger.info("invoice.updated", invoice_id=invoice_id, invoice_number=invoice.invoice_number)
        return invoice

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        """Get invoice by ID."""
        return self.db.get_invoice(invoice_id)

    def require_invoice(self, invoice_id: str) -> Invoice:
        """Get invoice by ID or raise NotFoundError."""
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice.

        Raises:
            NotFoundError: If the invoice doesn't exist
        """
        self.require_invoice(invoice_id)
        self.db.delete_invoice(invoice_id)
        logger.info("invoice.deleted", invoice_id=invoice_id)

    def list_invoices(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Invoice]:
        """List invoices, optionally restricted to an inclusive date range."""
        return self.db.list_invoices(start=start, end=end)

    def list_invoices_for_year(self, year: int) -> list[Invoice]:
        """List the invoices of a calendar year."""
        start, end = storage_year_range(year)
        return self.db.list_invoices(start=start, end=end)
