from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional, Union

NOT_AVAILABLE = "N/A"
PERCENT_DECIMALS = 4
MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def parse_number(raw: Union[str, float, int, None]) -> Optional[float]:
    """Parse a finite float from text; None for blanks and non-numeric input."""

    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def _render_number(value: float) -> str:
    text = f"{round(value, PERCENT_DECIMALS):.{PERCENT_DECIMALS}f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_percentage(value: Union[str, float, int, None]) -> str:
    """
    Render a level as a percentage string, e.g. ``87.5 -> "87.5%"``.

    At most four fractional digits are kept and trailing zeros dropped. Text
    that already carries a "%" is re-parsed, so formatting is idempotent.
    Blank, sentinel and other non-numeric text is returned unchanged.
    """

    if value is None:
        return ""
    if isinstance(value, (int, float)):
        number = parse_number(value)
        return f"{_render_number(number)}%" if number is not None else ""

    text = str(value).strip()
    number = parse_number(text[:-1] if text.endswith("%") else text)
    if number is None:
        return text
    return f"{_render_number(number)}%"


def parse_iso_date(raw: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` calendar date; None when blank or invalid."""

    text = (raw or "").strip()
    if not text:
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(raw: str) -> str:
    """``"2024-01-05" -> "05-Jan-24"``; "" when the input does not parse."""

    parsed = parse_iso_date(raw)
    if parsed is None:
        return ""
    # Fixed English month names; strftime("%b") follows LC_TIME.
    return f"{parsed.day:02d}-{MONTH_ABBREVIATIONS[parsed.month - 1]}-{parsed.year % 100:02d}"


def format_tenor(raw_months: str) -> str:
    """Whole years for multiples of 12 above a year (``"24" -> "2Y"``), months otherwise."""

    number = parse_number(raw_months)
    if number is None:
        return ""
    months = int(number)
    if months <= 0:
        return ""
    if months > 12 and months % 12 == 0:
        return f"{months // 12}Y"
    return f"{months}M"


def month_difference(start: date, end: date) -> int:
    """Calendar month distance between two dates, ignoring the day of month."""

    return (end.year - start.year) * 12 + (end.month - start.month)


def format_month_period(start_raw: str, end_raw: str) -> str:
    """``"<N>M"`` for a positive month distance between two ISO dates, else ""."""

    start = parse_iso_date(start_raw)
    end = parse_iso_date(end_raw)
    if start is None or end is None:
        return ""
    months = month_difference(start, end)
    return f"{months}M" if months > 0 else ""
