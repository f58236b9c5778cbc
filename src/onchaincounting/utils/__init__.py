"""Utility functions for onchaincounting."""

from onchaincounting.utils.date_parser import parse_date, parse_timestamp
from onchaincounting.utils.amount_parser import parse_amount
from onchaincounting.utils.ids import generate_id

__all__ = ["parse_date", "parse_timestamp", "parse_amount", "generate_id"]
