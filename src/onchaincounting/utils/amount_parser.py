"""Amount parsing utilities."""

import re


def parse_amount(amount_str: str) -> float:
    """Parse an amount string into a float.

    Handles various formats:
    - "123.45"
    - "$123.45", "€123.45", "CHF 123.45"
    - "-123.45"
    - "1,234.56", "1 234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Float amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£]|\b(?:USD|CHF|EUR)\b", "", amount_str, flags=re.IGNORECASE)

    # Remove thousands separators
    amount_str = re.sub(r"[,\s]", "", amount_str)

    try:
        amount = float(amount_str)
    except ValueError as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    return -amount if is_negative else amount
