"""Forwarding-agent (transitaire) fee.

The fee is built in three stages:

1. an intervention subtotal of disbursements, document fees, weight-based port
   and municipal levies, and container/zone-indexed handling charges;
2. a funds-advance commission on that subtotal plus fixed service fees;
3. the HAD ad-valorem fee on the CAF, picked from five bands whose lower
   bounds are inclusive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from landedcost.customs.models import ContainerType, Zone
from landedcost.customs.money import round_amount
from landedcost.customs.rate_tables import PortFeeEntry
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)

HAD_BANDS = 5

_CONTAINER_SIZES = {
    ContainerType.TC20: "tc20",
    ContainerType.TC40: "tc40",
}


@dataclass(frozen=True)
class ForwardingInputs:
    container_type: ContainerType
    container_count: int
    zone: Zone
    weight_tonnes: float
    caf: float


@dataclass(frozen=True)
class HadBand:
    index: int
    lower: Optional[float]
    upper: Optional[float]
    rate: float
    fixed_fee: float


@dataclass(frozen=True)
class ForwardingQuote:
    items: Tuple[Tuple[str, float], ...]
    intervention_subtotal: float
    funds_advance_commission: float
    had_band: HadBand
    had_fee: float
    had_fixed_fee: float
    total: int
    warnings: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, object]:
        return {
            "items": dict(self.items),
            "intervention_subtotal": self.intervention_subtotal,
            "funds_advance_commission": self.funds_advance_commission,
            "had_band": self.had_band.index,
            "had_fee": self.had_fee,
            "had_fixed_fee": self.had_fixed_fee,
            "total": self.total,
        }


def had_bands(settings: Settings) -> List[HadBand]:
    thresholds = settings.require_many(f"forwarding_had_threshold_{i}" for i in range(1, HAD_BANDS))
    bands: List[HadBand] = []
    for i in range(1, HAD_BANDS + 1):
        bands.append(
            HadBand(
                index=i,
                lower=thresholds[i - 2] if i > 1 else None,
                upper=thresholds[i - 1] if i < HAD_BANDS else None,
                rate=settings.require(f"forwarding_had_rate_{i}"),
                fixed_fee=settings.require(f"forwarding_had_fixed_{i}"),
            )
        )
    return bands


def select_had_band(caf: float, settings: Settings) -> HadBand:
    """Band whose ``[lower, upper)`` interval contains *caf*."""
    bands = had_bands(settings)
    for band in bands:
        if band.upper is None or caf < band.upper:
            return band
    return bands[-1]


def _container_charge(prefix: str, size: Optional[str], count: int, settings: Settings, suffix: str = "") -> float:
    # Only 20' and 40' containers have handling schedules.
    if size is None:
        return 0.0
    return settings.require(f"forwarding_{prefix}_{size}{suffix}") * count


def compute_forwarding_fee(
    inputs: ForwardingInputs,
    settings: Settings,
    port_fee: Optional[PortFeeEntry],
) -> Optional[ForwardingQuote]:
    """Compute the forwarding-agent fee, or ``None`` for an unsupported zone."""
    zone_number = inputs.zone.number
    if zone_number is None:
        logger.debug("No forwarding schedule for zone %s", inputs.zone.value)
        return None

    warnings: List[str] = []
    size = _CONTAINER_SIZES.get(inputs.container_type)
    count = inputs.container_count
    weight = inputs.weight_tonnes

    if port_fee is None:
        warnings.append("No port-fee entry for this shipment; port and municipal levies set to zero")
        port_rate = municipal_rate = 0.0
    else:
        port_rate = port_fee.port_rate_per_tonne
        municipal_rate = port_fee.municipal_rate_per_tonne

    zone_suffix = f"_zone_{zone_number}"
    items: List[Tuple[str, float]] = [
        ("diverse_disbursements", settings.require("forwarding_diverse_disbursements")),
        ("fdi_form", settings.require("forwarding_fdi_form")),
        ("rfcv", settings.require("forwarding_rfcv")),
        ("port_levy", port_rate * weight),
        ("municipal_levy", municipal_rate * weight),
        ("import_stevedoring", settings.require("forwarding_import_stevedoring")),
        ("delivery", _container_charge("delivery", size, count, settings, zone_suffix)),
        ("lifting", _container_charge("lifting", size, count, settings, zone_suffix)),
        ("disbursements_2", settings.require("forwarding_disbursements_2")),
        ("bl_exchange", settings.require("forwarding_bl_exchange")),
        ("container_cleaning", _container_charge("cleaning", size, count, settings)),
        ("isps_tax", _container_charge("isps", size, count, settings)),
        ("scanner", settings.require("forwarding_scanner")),
        ("bl_stamp", settings.require("forwarding_bl_stamp")),
        ("container_service_charge", settings.require("forwarding_container_service_charge")),
        ("file_opening", settings.require("forwarding_file_opening")),
    ]
    subtotal = sum(amount for _, amount in items)

    commission = subtotal * settings.require("forwarding_funds_advance_commission")
    fixed_fees = (
        settings.require("forwarding_print_fax")
        + settings.require("forwarding_transit_commission")
        + settings.require("forwarding_sydam_tax")
    )

    band = select_had_band(inputs.caf, settings)
    had_fee = inputs.caf * band.rate

    total = round_amount(subtotal + commission + fixed_fees + had_fee + band.fixed_fee)
    logger.debug("Forwarding fee %d (HAD band %d)", total, band.index)
    return ForwardingQuote(
        items=tuple(items),
        intervention_subtotal=subtotal,
        funds_advance_commission=commission,
        had_band=band,
        had_fee=had_fee,
        had_fixed_fee=band.fixed_fee,
        total=total,
        warnings=tuple(warnings),
    )
