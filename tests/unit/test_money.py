from __future__ import annotations

import datetime as dt
from decimal import Decimal
import logging

import pytest

from fintrack.exceptions import ParseError
from fintrack.money import (
    floor_money,
    format_money,
    parse_date_or_today,
    parse_money,
    parse_money_strict,
    round_money,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("₹1,234.50", "1234.50"),
        ("$ 12", "12.00"),
        ("€0.005", "0.01"),
        ("-£3.10", "-3.10"),
        (Decimal("2.345"), "2.35"),
        (7, "7.00"),
        (0.1, "0.10"),
    ],
)
def test_parse_money_strict(raw, expected) -> None:
    assert parse_money_strict(raw) == Decimal(expected)


@pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "NaN", None])
def test_parse_money_strict_rejects(raw) -> None:
    with pytest.raises(ParseError):
        parse_money_strict(raw)


def test_parse_money_falls_back_to_zero(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="fintrack.money"):
        assert parse_money("twelve") == Decimal("0.00")
    assert "twelve" in caplog.text


def test_round_money_half_up() -> None:
    assert round_money(Decimal("0.125")) == Decimal("0.13")
    assert round_money(Decimal("-0.125")) == Decimal("-0.13")
    assert round_money("1") == Decimal("1.00")


def test_floor_money_truncates() -> None:
    assert floor_money(Decimal("33.3333")) == Decimal("33.33")
    assert floor_money(Decimal("0.019")) == Decimal("0.01")


def test_format_money() -> None:
    assert format_money(Decimal("1234.5")) == "$1,234.50"
    assert format_money(Decimal("-1234.5"), "₹") == "-₹1,234.50"


def test_parse_date_or_today() -> None:
    assert parse_date_or_today("2026-01-05") == dt.date(2026, 1, 5)
    assert parse_date_or_today("not-a-date") == dt.date.today()
    assert parse_date_or_today(None) == dt.date.today()
