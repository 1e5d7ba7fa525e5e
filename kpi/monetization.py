"""
kpi/monetization.py

Monetization KPI formulas for game telemetry.

Formulas
--------
ARPU              = total_revenue / users
Payer Conversion  = paying_users / users
Spender Tier      = Whale   if lifetime revenue >= 100
                    Dolphin if lifetime revenue >= 20
                    Minnow  if lifetime revenue >  0
                    Non-Payer otherwise
Growth Rate       = (last - first) / first / n, clamped to [-0.5, 0.5]

Division-by-zero cases return 0.0 (or the default growth rate); dashboards
always need a number to render.
"""

from __future__ import annotations

import math
from typing import Sequence

WHALE = "Whale"
DOLPHIN = "Dolphin"
MINNOW = "Minnow"
NON_PAYER = "Non-Payer"

SPENDER_TIER_ORDER: tuple[str, ...] = (WHALE, DOLPHIN, MINNOW, NON_PAYER)

WHALE_THRESHOLD = 100.0
DOLPHIN_THRESHOLD = 20.0

DEFAULT_GROWTH_RATE = 0.02
MAX_GROWTH_RATE = 0.5
GROWTH_WINDOW = 7


def classify_spender(lifetime_revenue: float) -> str:
    """Return the spender tier name for one user's summed revenue."""
    if lifetime_revenue >= WHALE_THRESHOLD:
        return WHALE
    if lifetime_revenue >= DOLPHIN_THRESHOLD:
        return DOLPHIN
    if lifetime_revenue > 0:
        return MINNOW
    return NON_PAYER


def arpu(total_revenue: float, users: int) -> float:
    """ARPU = total_revenue / users; 0.0 when there are no users."""
    if users <= 0:
        return 0.0
    return total_revenue / users


def payer_conversion(paying_users: int, users: int) -> float:
    """Share of users with positive revenue, as a fraction 0-1."""
    if users <= 0:
        return 0.0
    return paying_users / users


def growth_rate(values: Sequence[float], *, window: int = GROWTH_WINDOW) -> float:
    """
    Average per-point growth over the last ``window`` values.

    Returns :data:`DEFAULT_GROWTH_RATE` when fewer than two points exist or
    the first point of the window is zero.
    """
    recent = list(values)[-window:]
    if len(recent) < 2:
        return DEFAULT_GROWTH_RATE

    first, last = recent[0], recent[-1]
    if first == 0:
        return DEFAULT_GROWTH_RATE

    rate = (last - first) / first / len(recent)
    return max(-MAX_GROWTH_RATE, min(MAX_GROWTH_RATE, rate))


def percentage(part: float, whole: float) -> float:
    """part / whole * 100, or 0.0 when whole is zero."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, as dashboards display it."""
    return math.floor(value + 0.5)
