"""Display helpers shared by the dashboard pages."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from babel.numbers import format_decimal

PAID_STATUS = "оплачено"
DEFAULT_LOCALE = "ru_RU"


def format_time(timestamp: str) -> str:
    """Return ``HH:MM`` from a ``DD.MM.YYYY H:MM:SS`` string, dropping seconds."""
    parts = (timestamp or "").split(" ")
    time_part = parts[1] if len(parts) > 1 else ""
    pieces = time_part.split(":")
    hour = pieces[0] if pieces and pieces[0] else "00"
    minute = pieces[1] if len(pieces) > 1 and pieces[1] else "00"
    return f"{hour.zfill(2)}:{minute.zfill(2)}"


def date_part(timestamp: str) -> str:
    return (timestamp or "").split(" ")[0]


def format_currency(amount: float | int, locale: str = DEFAULT_LOCALE) -> str:
    # Grouping only; the clinic bills in whole som, halves round up.
    whole = Decimal(str(amount or 0)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return format_decimal(whole, format="#,##0", locale=locale)


def is_paid(status: str | None) -> bool:
    return (status or "").strip().lower() == PAID_STATUS


def today_label(today: date | None = None) -> str:
    today = today or date.today()
    return today.strftime("%d.%m.%Y")


def parse_date_label(label: str) -> tuple[int, int, int]:
    """Split ``DD.MM.YYYY`` into a sortable ``(year, month, day)`` tuple.

    Missing or non-numeric parts fall back to 0 for the year and 1 for
    month/day so malformed labels still compare.
    """
    pieces = (label or "").strip().split(".")

    def _part(index: int, default: int) -> int:
        try:
            value = int(pieces[index])
        except (IndexError, ValueError):
            return default
        return value or default

    return _part(2, 0), _part(1, 1), _part(0, 1)


def year_of(label: str) -> int:
    """Year component of a ``DD.MM.YYYY`` label, 0 when absent."""
    pieces = (label or "").strip().split(".")
    try:
        return int(pieces[2])
    except (IndexError, ValueError):
        return 0
