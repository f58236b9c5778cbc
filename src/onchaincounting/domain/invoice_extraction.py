"""Best-effort extraction of invoice fields from PDF text.

Each field has an ordered list of patterns covering the invoice layouts
seen so far (OnlyDust, Request Finance and a personal template). The first
pattern that matches wins. A field that cannot be found is left as None;
only an unreadable file raises.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from dateutil import parser as date_parser
from pypdf import PdfReader
from pypdf.errors import PyPdfError
import structlog

from onchaincounting.domain.entities import Currency
from onchaincounting.domain.errors import ExtractionError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExtractedInvoiceData:
    """Invoice fields found in a document; every field is optional."""

    invoice_number: Optional[str] = None
    after_tax_amount: Optional[float] = None
    before_tax_amount: Optional[float] = None
    currency: Optional[Currency] = None
    vat_rate: Optional[float] = None
    exchange_rate: Optional[float] = None
    date: Optional[datetime] = None
    client_name: Optional[str] = None


_TOTAL_PATTERNS = [
    # OnlyDust
    (re.compile(r"Total After Tax\s*([\d,]+\.?\d*)\s*([A-Z]{3})", re.I), "amount_first"),
    # Request Finance
    (re.compile(r"Total Amount\s*([A-Z]{3})\s*([\d,]+\.?\d*)", re.I), "currency_first"),
    (re.compile(r"Total Amount\s*([\d,]+\.?\d*)\s*([A-Z]{3})", re.I), "amount_first"),
    (re.compile(r"Total Amount\s*\$\s*([\d,]+\.?\d*)", re.I), "dollar"),
    # Personal template
    (re.compile(r"Total gross price\s*([\d\s,]+(?:\.\s?\d*)?)\s*([A-Z]{3})", re.I), "amount_first"),
]

_INVOICE_NUMBER_PATTERNS = [
    re.compile(r"INVOICE NO:\s*#([A-Z0-9-]+)", re.I),
    re.compile(r"Invoice #(\d+)", re.I),
    re.compile(r"Invoice No\.:\s*(\d+\s*\d+)", re.I),
]

_BEFORE_TAX_PATTERNS = [
    re.compile(r"Total Before Tax\s*([\d,]+\.?\d*)", re.I),
    re.compile(r"Total without Tax\s*(?:CHF)?\s*([\d,]+\.?\d*)", re.I),
    re.compile(r"Total without Tax\s*\$\s*([\d\s,]+(?:\.\d+)?)"),
    re.compile(r"Total net price\s*([\d\s,]+(?:\.\d+)?)\s*USD"),
]

_VAT_RATE_PATTERNS = [
    re.compile(r"Total VAT\s*\((\d+(?:\.\d+)?)\s*%\)", re.I),
    re.compile(r"VAT\s+(\d+)%", re.I),
]

_DATE_PATTERNS = [
    re.compile(r"Issue Date\s*([A-Za-z]+\s+\d{1,2},?\s+\d{4})", re.I),
    re.compile(r"Date[:\s]+(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})", re.I),
    re.compile(r"Invoice Date[:\s]+(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})", re.I),
    re.compile(r"Issued on:\s*([A-Za-z]+\s+\d{1,2},?\s+\d{4})", re.I),
    re.compile(r"Issue Date:\s*(\d{1,2}\s*\d?\s*/\s*\d{1,2}\s*\d?\s*/\s*\d{2,4}\s*\d?)", re.I),
]

_CLIENT_PATTERNS = [
    re.compile(r"Billed to\s*([A-Za-z0-9\s]+)(?:\n|\d)", re.I),
    re.compile(r"Bill To:?\s*([A-Za-z0-9\s.,]+)(?:\n|Invoice)", re.I),
    re.compile(r"Client:?\s*([A-Za-z0-9\s.,]+)(?:\n|Invoice)", re.I),
    re.compile(
        r"Billed to\s*(?:[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\s*"
        r"([A-Za-z0-9\s]+?(?:\s{2}|\n|$))",
        re.I,
    ),
    re.compile(r"Buyer\s*([\w\s]+)(?:\n|\d)", re.I),
]

_NUMERIC_DATE = re.compile(r"^\d{1,2}[-/]\d{1,2}[-/]\d{2,4}$")


def _to_number(raw: str) -> float:
    return float(re.sub(r"[,\s]", "", raw))


def _first_group(patterns: list[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None


def extract_total(text: str) -> tuple[Optional[float], Optional[Currency]]:
    """Find the after-tax total and the invoice currency."""
    for pattern, layout in _TOTAL_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        if layout == "dollar":
            amount_raw, code = match.group(1), "USD"
        elif layout == "currency_first":
            code, amount_raw = match.group(1), match.group(2)
        else:
            amount_raw, code = match.group(1), match.group(2)
        try:
            amount = _to_number(amount_raw)
        except ValueError:
            continue
        if code.upper() in Currency.__members__:
            return amount, Currency(code.upper())
    return None, None


def extract_invoice_number(text: str) -> Optional[str]:
    return _first_group(_INVOICE_NUMBER_PATTERNS, text)


def extract_before_tax_amount(text: str) -> Optional[float]:
    raw = _first_group(_BEFORE_TAX_PATTERNS, text)
    if raw is None:
        return None
    try:
        return _to_number(raw)
    except ValueError:
        return None


def extract_vat_rate(text: str) -> Optional[float]:
    raw = _first_group(_VAT_RATE_PATTERNS, text)
    return float(raw) if raw is not None else None


def extract_exchange_rate(text: str) -> Optional[float]:
    """Find the rate as native currency per EUR.

    A "1 USD = x EUR" quote is inverted and rounded to four decimals.
    """
    match = re.search(r"EUR/USD[:\s]+([\d.]+)", text, re.I)
    if match:
        return float(match.group(1))
    match = re.search(r"EUR/CHF=([\d.]+)", text, re.I)
    if match:
        return float(match.group(1))
    match = re.search(r"1\s*USD\s*=\s*([\d.]+)\s*EUR", text, re.I)
    if match and float(match.group(1)) > 0:
        return round(1 / float(match.group(1)), 4)
    return None


def extract_date(text: str) -> Optional[datetime]:
    """Find the issue date; numeric dates are read as day/month/year."""
    for pattern in _DATE_PATTERNS:
        match = pattern.search(text)
        if not match or not match.group(1):
            continue
        raw = match.group(1)
        compact = re.sub(r"\s", "", raw)
        try:
            if _NUMERIC_DATE.match(compact):
                day, month, year = (int(part) for part in re.split(r"[-/]", compact))
                return datetime(year, month, day)
            return date_parser.parse(raw)
        except (ValueError, OverflowError):
            continue
    return None


def extract_client_name(text: str) -> Optional[str]:
    raw = _first_group(_CLIENT_PATTERNS, text)
    if raw is None:
        return None
    return raw.strip() or None


def extract_invoice_fields(text: str) -> ExtractedInvoiceData:
    """Extract every known invoice field from document text."""
    after_tax_amount, currency = extract_total(text)
    data = ExtractedInvoiceData(
        invoice_number=extract_invoice_number(text),
        after_tax_amount=after_tax_amount,
        before_tax_amount=extract_before_tax_amount(text),
        currency=currency,
        vat_rate=extract_vat_rate(text),
        exchange_rate=extract_exchange_rate(text),
        date=extract_date(text),
        client_name=extract_client_name(text),
    )
    missing = [name for name, value in vars(data).items() if value is None]
    if missing:
        logger.warning("invoice_extraction.fields_missing", fields=missing)
    return data


def read_pdf_text(pdf_path: Union[str, Path]) -> str:
    """Concatenate the text of every page of a PDF.

    Raises:
        ExtractionError: If the file cannot be read
    """
    try:
        reader = PdfReader(str(pdf_path))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except (OSError, ValueError, PyPdfError) as e:
        raise ExtractionError(f"Failed to parse PDF: {e}") from e


def extract_invoice_data(pdf_path: Union[str, Path]) -> ExtractedInvoiceData:
    """Read a PDF invoice and extract its fields.

    Raises:
        ExtractionError: If the file cannot be read
    """
    text = read_pdf_text(pdf_path)
    logger.debug("invoice_extraction.text_read", path=str(pdf_path), characters=len(text))
    return extract_invoice_fields(text)
