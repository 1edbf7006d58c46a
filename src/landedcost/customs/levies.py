"""Statutory levies charged on top of the customs duty.

RRR and RCP are line-level rates and go through :mod:`allocation`; the levies
here are shipment-level formulas.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from landedcost.customs.models import AllocatedLine, ContainerType, LineItem, Route
from landedcost.customs.money import round_amount
from landedcost.customs.rate_tables import RateTables
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# RPI
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RpiQuote:
    band: str  # zero | flat | licence
    goods_value: float
    licence_amount: int
    amount: int


def compute_rpi(goods_value: float, settings: Settings) -> RpiQuote:
    """Import-programme levy, a step function of the goods value.

    Below ``rpi_threshold_min`` nothing is due; up to ``rpi_threshold_mid``
    (exclusive) a flat amount; from there the licence rate applies with a
    minimum.
    """
    threshold_min, threshold_mid, flat, licence_rate, licence_min = settings.require_many(
        ("rpi_threshold_min", "rpi_threshold_mid", "rpi_flat_mid", "rpi_licence_rate", "rpi_licence_min")
    )
    if goods_value < threshold_min:
        return RpiQuote(band="zero", goods_value=goods_value, licence_amount=0, amount=0)
    if goods_value < threshold_mid:
        return RpiQuote(band="flat", goods_value=goods_value, licence_amount=0, amount=round_amount(flat))
    licence = round_amount(goods_value * licence_rate)
    return RpiQuote(
        band="licence",
        goods_value=goods_value,
        licence_amount=licence,
        amount=max(licence, round_amount(licence_min)),
    )


def check_rpi_continuity(settings: Settings) -> List[str]:
    """Return problems that would make RPI drop when crossing the mid threshold."""
    problems: List[str] = []
    threshold_min, threshold_mid, flat, licence_min = settings.require_many(
        ("rpi_threshold_min", "rpi_threshold_mid", "rpi_flat_mid", "rpi_licence_min")
    )
    if threshold_mid < threshold_min:
        problems.append(f"rpi_threshold_mid ({threshold_mid}) is below rpi_threshold_min ({threshold_min})")
    if licence_min < flat:
        problems.append(f"rpi_licence_min ({licence_min}) is below rpi_flat_mid ({flat})")
    return problems


# ---------------------------------------------------------------------------
# COC
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CocQuote:
    route: Route
    certified_value: float
    certified_lines: int
    uncapped_amount: int
    amount: int


def certified_value(
    lines: Sequence[LineItem],
    duty_lines: Sequence[AllocatedLine],
    tables: RateTables,
) -> tuple[float, int]:
    """Sum the imputed values of lines listed in the exemption table."""
    total = 0.0
    count = 0
    for line, allocated in zip(lines, duty_lines):
        if tables.exemption(line.code) is None:
            continue
        total += allocated.imputed_value
        count += 1
    return total, count


def compute_coc(
    route: Route,
    lines: Sequence[LineItem],
    duty_lines: Sequence[AllocatedLine],
    tables: RateTables,
    settings: Settings,
) -> Optional[CocQuote]:
    """Conformity-certificate fee, or ``None`` for an unsupported route."""
    if route is Route.UNSUPPORTED:
        return None
    value, count = certified_value(lines, duty_lines, tables)
    threshold = settings.require("coc_threshold")
    suffix = route.value.lower()
    rate, minimum, maximum = settings.require_many(
        (f"coc_rate_route_{suffix}", f"coc_min_route_{suffix}", f"coc_max_route_{suffix}")
    )
    if count == 0 or value < threshold:
        return CocQuote(route=route, certified_value=value, certified_lines=count, uncapped_amount=0, amount=0)
    raw = round_amount(value * rate)
    amount = round_amount(min(max(raw, minimum), maximum))
    return CocQuote(route=route, certified_value=value, certified_lines=count, uncapped_amount=raw, amount=amount)


# ---------------------------------------------------------------------------
# Flat and proportional levies
# ---------------------------------------------------------------------------
_BSC_KEYS = {
    ContainerType.TC20: "bsc_rate_tc20",
    ContainerType.TC40: "bsc_rate_tc40",
    ContainerType.TC40HQ: "bsc_rate_tc40hq",
    ContainerType.CONVENTIONAL: "bsc_rate_conventional",
    ContainerType.GROUPAGE: "bsc_rate_groupage",
}


def compute_bsc(container_type: ContainerType, container_count: int, settings: Settings) -> Optional[int]:
    key = _BSC_KEYS.get(container_type)
    if key is None:
        return None
    return round_amount(settings.require(key) * container_count)


def compute_incidental_costs(caf: float, settings: Settings) -> int:
    return round_amount(caf * settings.require("incidental_costs_rate"))


def compute_removal_credit(customs_duty: float, settings: Settings) -> int:
    return round_amount(customs_duty * settings.require("removal_credit_rate"))


def compute_funds_advance(customs_duty: float, settings: Settings) -> int:
    return round_amount(customs_duty * settings.require("funds_advance_rate"))


def compute_customs_stamp(settings: Settings) -> int:
    return round_amount(settings.require("customs_stamp_fee"))
