"""Date parsing utilities."""

from datetime import date, datetime, timedelta, UTC
from typing import Optional, Union
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are returned as-is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(UTC).replace(tzinfo=None)


def parse_date(date_str: str) -> datetime:
    """Parse a date string into a datetime.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "2024-01-15T10:30:00Z", "Dec 22, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Relative dates resolve to midnight. Timezone-aware input is converted to
    naive UTC.

    Args:
        date_str: Date string in various formats

    Returns:
        Naive datetime

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    resolved: Optional[date] = relative_dates.get(date_str)

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            resolved = (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            resolved = today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            resolved = today - timedelta(days=today.weekday() + 7)
    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            resolved = today.replace(day=1)
        elif period == "year":
            resolved = today.replace(month=1, day=1)
        elif period == "week":
            resolved = today - timedelta(days=today.weekday())

    if resolved is not None:
        return datetime(resolved.year, resolved.month, resolved.day)

    try:
        return to_naive_utc(date_parser.parse(date_str))
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from an API payload into naive UTC.

    Returns None for missing values. Datetimes are normalized as-is.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    try:
        return to_naive_utc(date_parser.isoparse(value))
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse timestamp '{value}': {e}")


def current_year() -> int:
    """Year of today's date."""
    return date.today().year
