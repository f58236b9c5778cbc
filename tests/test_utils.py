"""Tests for amount parsing and id generation."""

import pytest

from onchaincounting.utils.amount_parser import parse_amount
from onchaincounting.utils.ids import generate_id


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123.45", 123.45),
        ("$123.45", 123.45),
        ("€1,234.56", 1234.56),
        ("CHF 1 234.50", 1234.5),
        ("-42", -42.0),
        ("(99.90)", -99.9),
        ("100 USD", 100.0),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "   ", "abc"])
def test_parse_amount_invalid(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_generate_id_is_unique_and_lowercase_base36():
    ids = {generate_id() for _ in range(200)}

    assert len(ids) == 200
    for value in ids:
        assert value.isalnum()
        assert value == value.lower()
        assert len(value) >= 19
