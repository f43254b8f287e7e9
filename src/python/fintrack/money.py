"""Money helpers: parsing, rounding and display formatting."""

from __future__ import annotations

import datetime as dt
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
import logging
import re

from fintrack.exceptions import ParseError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
CURRENCY_GLYPHS = "₹$€£¥₽₩₪₫₨₴₸₺₼₾₿"
_STRIP_PATTERN = re.compile(f"[{re.escape(CURRENCY_GLYPHS)},\\s]")


def round_money(value: Decimal | str | int) -> Decimal:
    """Round to cents using round-half-up."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    """Truncate to cents toward zero."""
    return value.quantize(CENT, rounding=ROUND_DOWN)


def parse_money_strict(value: object) -> Decimal:
    """Parse an amount, raising ParseError on malformed input.

    Currency glyphs, thousands separators and whitespace are stripped before
    parsing, so ``"₹1,234.50"`` parses to ``Decimal("1234.50")``.
    """
    if isinstance(value, Decimal):
        return round_money(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return round_money(Decimal(value))
    if isinstance(value, float):
        return round_money(Decimal(repr(value)))
    if not isinstance(value, str):
        raise ParseError(f"Unsupported amount type: {type(value).__name__}", value)
    cleaned = _STRIP_PATTERN.sub("", value)
    if not cleaned:
        raise ParseError("Amount is empty", value)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ParseError(f"Invalid amount: {value!r}", value) from exc
    if not amount.is_finite():
        raise ParseError(f"Invalid amount: {value!r}", value)
    return round_money(amount)


def parse_money(value: object) -> Decimal:
    """Parse an amount, returning zero for malformed input."""
    try:
        return parse_money_strict(value)
    except ParseError:
        logger.warning("Unparseable amount %r, using 0.00", value)
        return ZERO


def parse_date_or_today(value: str | dt.date | None) -> dt.date:
    """Parse an ISO date, falling back to today."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if value:
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            logger.warning("Unparseable date %r, using today", value)
    return dt.date.today()


def format_money(value: Decimal, symbol: str = "$") -> str:
    """Format an amount for display, e.g. ``-$1,234.50``."""
    amount = round_money(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"
