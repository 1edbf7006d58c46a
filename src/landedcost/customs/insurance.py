"""Cargo insurance premium.

The insured value is (goods + freight) uplifted by the insurance multiplier.
The ordinary-risk premium is floored at a minimum; air shipments add a tax
proportional to the ordinary premium and the war-risk premium is opt-in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from landedcost.customs.models import TransportMode
from landedcost.customs.money import round_amount
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsuranceQuote:
    insured_value: int
    ordinary_rate: float
    ordinary_premium: int
    accessories: int
    air_tax: int
    war_risk: int
    total: int

    def as_dict(self) -> Dict[str, float]:
        return {
            "insured_value": self.insured_value,
            "ordinary_rate": self.ordinary_rate,
            "ordinary_premium": self.ordinary_premium,
            "accessories": self.accessories,
            "air_tax": self.air_tax,
            "war_risk": self.war_risk,
            "total": self.total,
        }


def compute_insurance(
    goods_value: int,
    freight: int,
    transport_mode: TransportMode,
    settings: Settings,
    include_war_risk: bool = False,
    ordinary_risk_rate: Optional[float] = None,
) -> InsuranceQuote:
    """Compute the insurance premium breakdown.

    ``ordinary_risk_rate`` overrides the configured rate when positive.
    """
    insured_value = round_amount((goods_value + freight) * settings.require("insurance_value_multiplier"))

    rate = ordinary_risk_rate if ordinary_risk_rate is not None and ordinary_risk_rate > 0 else None
    if rate is None:
        rate = settings.require("ordinary_risk_rate")
    minimum = settings.require("ordinary_risk_minimum")
    ordinary = round_amount(insured_value * rate)
    if ordinary < minimum:
        ordinary = round_amount(minimum)

    accessories = round_amount(settings.require("accessories_flat"))

    air_tax = 0
    if transport_mode is TransportMode.AIR:
        air_tax = round_amount(ordinary * settings.require("air_tax_multiplier"))

    war_risk = 0
    if include_war_risk:
        war_risk = round_amount(insured_value * settings.require("war_risk_rate"))

    total = round_amount(ordinary + accessories + air_tax + war_risk)
    logger.debug("Insurance premium %d on insured value %d", total, insured_value)
    return InsuranceQuote(
        insured_value=insured_value,
        ordinary_rate=rate,
        ordinary_premium=ordinary,
        accessories=accessories,
        air_tax=air_tax,
        war_risk=war_risk,
        total=total,
    )
