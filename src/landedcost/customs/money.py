"""Rounding helpers for local-currency amounts.

The local currency has no fractional units, so every monetary output of the
engine is a whole number.  Rounding is half-up on exact halves; the built-in
``round`` uses banker's rounding and would drift by one unit.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional


def round_amount(value: float) -> int:
    """Round *value* half-up to a whole currency unit."""
    return int(math.floor(float(value) + 0.5))


def sum_amounts(values: Iterable[Optional[int]]) -> int:
    """Sum resolved amounts, skipping ``None`` placeholders."""
    return sum(v for v in values if v is not None)
