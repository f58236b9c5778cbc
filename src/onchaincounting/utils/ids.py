"""Identifier generation."""

import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits)) or "0"


def generate_id() -> str:
    """Generate an entity ID: base-36 millisecond timestamp plus a random suffix."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(11))
    return _to_base36(int(time.time() * 1000)) + suffix
