"""
Unit conversions and number formatting used by the writers.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal

KM_TO_M = 1000.0
KMH_TO_MS = 1000.0 / 3600.0

DEFAULT_COORDINATE_DECIMALS = 6


def km_to_m(km: float) -> float:
    return km * KM_TO_M


def kmh_to_ms(kmh: float) -> float:
    return kmh * KMH_TO_MS


def format_fixed(value: float, decimals: int) -> str:
    return f"{value:.{decimals}f}"


def format_decimal(value: float, decimals: int = DEFAULT_COORDINATE_DECIMALS) -> str:
    """
    Round half-even to at most `decimals` places and drop trailing zeros.

      format_decimal(1.50, 6)      -> "1.5"
      format_decimal(2.0, 6)       -> "2"
      format_decimal(0.1234565, 6) -> "0.123456"
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    if not math.isfinite(value):
        raise ValueError(f"cannot format non-finite value {value!r}")
    q = Decimal(repr(float(value))).quantize(
        Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_EVEN
    )
    text = format(q, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text
