"""Goods-value conversion and CAF aggregation."""

from __future__ import annotations

import logging
from typing import Optional

from landedcost.customs.models import IncotermClass
from landedcost.customs.money import round_amount
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)

_MULTIPLIER_KEYS = {
    IncotermClass.EX_WORKS: "fob_multiplier_exw",
    IncotermClass.FREE_CARRIER: "fob_multiplier_fca",
}


def incoterm_multiplier(incoterm: IncotermClass, settings: Settings) -> Optional[float]:
    """Uplift that brings the invoiced price to a free-on-board equivalent.

    ``None`` for :attr:`IncotermClass.UNSUPPORTED`.
    """
    if incoterm is IncotermClass.UNSUPPORTED:
        return None
    key = _MULTIPLIER_KEYS.get(incoterm)
    if key is None:
        return 1.0
    return settings.require(key)


def convert_goods_value(
    line_sum: float,
    incoterm: IncotermClass,
    exchange_rate: float,
    settings: Settings,
) -> Optional[int]:
    """Return the FOB-equivalent goods value in local currency, or ``None``."""
    multiplier = incoterm_multiplier(incoterm, settings)
    if multiplier is None:
        logger.debug("No goods-value multiplier for incoterm %s", incoterm.value)
        return None
    return round_amount(line_sum * multiplier * exchange_rate)


def compute_caf(goods_value: int, freight: int, insurance: int) -> int:
    """Cost-Assurance-Fret: the customs value every ad-valorem levy is based on."""
    return int(goods_value) + int(freight) + int(insurance)
