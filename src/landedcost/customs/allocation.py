"""Proportional allocation of the shipment CAF across invoice lines.

Each line receives ``share = line_total / sum(line_totals)`` of the CAF as its
imputed value.  A rate selector picks the percentage rate that applies to the
line (cumulative duty, RRR, RCP, consumption tax); the line amount is the
rounded imputed value times that rate.  Lines without a tariff snapshot
contribute nothing and are reported back as unmatched.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from landedcost.customs.models import AllocatedLine, AllocationResult, LineItem
from landedcost.customs.money import round_amount
from landedcost.customs.rate_tables import RateTables, TariffEntry

logger = logging.getLogger(__name__)

RateSelector = Callable[[TariffEntry], Optional[float]]


def cumulative_rate(include_consumption_tax: bool) -> RateSelector:
    """Selector for the customs duty: cumulative rate with or without VAT."""

    def _select(entry: TariffEntry) -> Optional[float]:
        if include_consumption_tax:
            return entry.cumulative_with_tax
        return entry.cumulative_without_tax

    return _select


def rrr_rate(entry: TariffEntry) -> Optional[float]:
    return entry.rrr


def rcp_rate(entry: TariffEntry) -> Optional[float]:
    return entry.rcp


def consumption_tax_rate(entry: TariffEntry) -> Optional[float]:
    return entry.consumption_tax


def line_shares(lines: Sequence[LineItem]) -> List[float]:
    """Fraction of the summed line totals carried by each line.

    A zero (or empty) sum yields all-zero shares.
    """
    total = sum(line.line_total for line in lines)
    if total <= 0:
        return [0.0 for _ in lines]
    return [line.line_total / total for line in lines]


def allocate(lines: Sequence[LineItem], caf: float, rate_selector: RateSelector) -> AllocationResult:
    shares = line_shares(lines)
    allocated: List[AllocatedLine] = []
    unmatched: List[int] = []
    total = 0
    for index, (line, share) in enumerate(zip(lines, shares)):
        imputed = share * caf
        rate: Optional[float] = None
        amount = 0
        if line.tariff is None:
            unmatched.append(index)
        else:
            rate = rate_selector(line.tariff)
            if rate is not None:
                amount = round_amount(imputed * rate / 100.0)
        total += amount
        allocated.append(
            AllocatedLine(
                index=index,
                code=line.code,
                line_total=line.line_total,
                share=share,
                imputed_value=imputed,
                rate=rate,
                amount=amount,
                matched=line.tariff is not None,
            )
        )
    if unmatched:
        logger.debug("Allocation skipped %d unmatched line(s)", len(unmatched))
    return AllocationResult(lines=tuple(allocated), total=total, unmatched_indices=tuple(unmatched))


def attach_tariffs(lines: Iterable[LineItem], tables: RateTables) -> List[LineItem]:
    """Return new lines carrying the tariff snapshot found for each code.

    Lines that already hold a snapshot keep it.
    """
    resolved: List[LineItem] = []
    for line in lines:
        if line.tariff is not None:
            resolved.append(line)
            continue
        resolved.append(line.with_tariff(tables.tariff(line.code)))
    return resolved
