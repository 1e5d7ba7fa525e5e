"""
app/validators/scalar_parser.py

Explicit coercion of uploaded cell values into numbers and dates.

Uploaded data has no schema, so every helper here accepts any scalar and
returns ``None`` instead of raising when the value does not fit.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any

TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def is_blank(value: Any) -> bool:
    """
    Return True for ``None`` and whitespace-only strings.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def to_number(value: Any) -> float | None:
    """
    Coerce a scalar into a finite float, or ``None`` when it is not numeric.

    Booleans are not numbers here even though Python treats them as ints.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            number = float(raw)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def number_or_zero(value: Any) -> float:
    number = to_number(value)
    return 0.0 if number is None else number


def parse_date_string(raw: str) -> datetime | None:
    """
    Parse a date/time string into an aware UTC datetime.
    """

    text = raw.strip()
    if not text:
        return None

    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except ValueError:
        pass

    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def is_date_string(value: Any) -> bool:
    """
    True when the value is a string (or date object) holding a calendar date.

    Numbers never count, so numeric columns are not mistaken for epochs.
    """

    if isinstance(value, (datetime, date)):
        return True
    if isinstance(value, str):
        return parse_date_string(value) is not None
    return False


def parse_date(value: Any) -> datetime | None:
    """
    Coerce a scalar into an aware UTC datetime.

    Numbers are read as epoch milliseconds.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except OverflowError:
            return None
    if isinstance(value, str):
        return parse_date_string(value)
    return None
