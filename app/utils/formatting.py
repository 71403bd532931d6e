"""Display helpers for invoice amounts and dates."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

_CENT = Decimal("0.01")


def to_cents(amount: Union[Decimal, float, int, str]) -> int:
    """Convert a dollar amount to whole cents, rounding half up."""

    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_cents(cents: int | None) -> Decimal:
    """Return the dollar value for ``cents`` as a two place Decimal."""

    return (Decimal(cents or 0) / 100).quantize(_CENT)


def format_currency(cents: int | None) -> str:
    """Format an amount in cents as US dollars, e.g. ``$1,234.56``."""

    value = from_cents(cents)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_date(value: Union[date, datetime, str, None], fmt: str = "%b %-d, %Y") -> str:
    """Format a date for display, e.g. ``Oct 18, 2026``.

    ISO formatted strings are accepted as well as ``date`` and ``datetime``
    objects.  ``None`` and empty strings render as an empty string.
    """

    if not value:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    # ``%-d`` is not portable, so strip the leading zero by hand.
    if "%-d" in fmt:
        fmt = fmt.replace("%-d", str(value.day))
    return value.strftime(fmt)


__all__ = ["to_cents", "from_cents", "format_currency", "format_date"]
