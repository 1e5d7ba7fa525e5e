"""
app/services/formatting.py

Display formatting for KPI cards and chart labels.

Only the ``display`` strings are abbreviated; numeric values stay exact.
"""

from __future__ import annotations

import re

from kpi.monetization import round_half_up

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def format_number(value: float) -> str:
    """
    Abbreviate large numbers: 1234 -> ``1.2K``, 2500000 -> ``2.5M``.
    """

    magnitude = abs(value)
    if magnitude >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if magnitude >= 1_000:
        return f"{value / 1_000:.1f}K"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_currency(value: float) -> str:
    return "$" + format_number(value)


def format_duration(seconds: float) -> str:
    """
    Render a duration in seconds as ``45s``, ``8m`` or ``1.5h``.
    """

    if seconds < 60:
        return f"{round_half_up(seconds)}s"
    if seconds < 3600:
        return f"{round_half_up(seconds / 60)}m"
    return f"{seconds / 3600:.1f}h"


def format_column_name(column: str) -> str:
    """
    Turn ``avg_coins`` or ``avgCoins`` into ``Avg Coins``.
    """

    spaced = _CAMEL_BOUNDARY.sub(" ", column.replace("_", " "))
    return " ".join(word.capitalize() for word in spaced.split())


def format_label(value: object) -> str:
    """
    String form of a categorical value as shown on charts.
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
