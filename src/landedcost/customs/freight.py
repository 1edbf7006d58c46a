"""Container freight estimate.

A per-container cost is the sum of a handling/documentation block and a
carriage/surcharge block, both quoted in the shipment currency.  Only 20' and
40' dry containers have a published schedule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from landedcost.customs.models import ContainerType
from landedcost.customs.money import round_amount
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)

HANDLING_ITEMS: Tuple[str, ...] = (
    "reception_unloading",
    "customs_file_t1",
    "fixed_fee",
    "transit_commission",
    "container_haulage",
    "customs_clearance",
    "quay_handling",
    "stuffing",
)

CARRIAGE_ITEMS: Tuple[str, ...] = (
    "base_freight",
    "caf",
    "baf_maritime",
    "ot_supplement",
    "dangerous_goods_supplement",
    "ebs",
    "bsc_management",
    "bl_issuance",
    "export_customs",
    "dangerous_goods_surcharge",
    "security_freight",
    "isps_security",
)

_SCHEDULES = {
    ContainerType.TC20: "tc20",
    ContainerType.TC40: "tc40",
}


@dataclass(frozen=True)
class FreightQuote:
    container_type: ContainerType
    container_count: int
    handling_per_container: float
    carriage_per_container: float
    amount: int

    @property
    def per_container(self) -> float:
        return self.handling_per_container + self.carriage_per_container


def freight_items(container_type: ContainerType, settings: Settings) -> Optional[Dict[str, float]]:
    """Resolve every schedule item for *container_type*, keyed by item name."""
    schedule = _SCHEDULES.get(container_type)
    if schedule is None:
        return None
    return {
        item: settings.require(f"freight_{schedule}_{item}")
        for item in HANDLING_ITEMS + CARRIAGE_ITEMS
    }


def compute_freight(
    container_type: ContainerType,
    container_count: int,
    exchange_rate: float,
    settings: Settings,
) -> Optional[FreightQuote]:
    items = freight_items(container_type, settings)
    if items is None:
        logger.debug("No freight schedule for container type %s", container_type.value)
        return None
    handling = sum(items[name] for name in HANDLING_ITEMS)
    carriage = sum(items[name] for name in CARRIAGE_ITEMS)
    amount = round_amount((handling + carriage) * exchange_rate * container_count)
    return FreightQuote(
        container_type=container_type,
        container_count=container_count,
        handling_per_container=handling,
        carriage_per_container=carriage,
        amount=amount,
    )
