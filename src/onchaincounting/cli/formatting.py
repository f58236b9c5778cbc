"""Plain text rendering of amounts and dates."""

import calendar
import math
from datetime import datetime
from typing import Optional

NOT_AVAILABLE = "n/a"


def format_amount(value: float) -> str:
    """Two decimals with thousands separators; non-finite values render as n/a."""
    if not math.isfinite(value):
        return NOT_AVAILABLE
    return f"{value:,.2f}"


def format_money(value: float, currency: str) -> str:
    if not math.isfinite(value):
        return NOT_AVAILABLE
    return f"{format_amount(value)} {currency}"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d")


def month_name(month: int) -> str:
    """Name of a month given 1-12."""
    return calendar.month_name[month]
