"""Declared-versus-computed checks on the invoice.

Findings are advisory: they flag a shipment for review but never change what
the calculators compute.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from landedcost.customs.models import (
    Discrepancy,
    DiscrepancyLevel,
    LineItem,
    LineTotalMismatch,
    ReconciliationReport,
    ShipmentContext,
)

logger = logging.getLogger(__name__)

NEGLIGIBLE_PCT = 1.0
MODERATE_PCT = 5.0
LINE_TOTAL_TOLERANCE = 0.01
_EPSILON = 1e-9


def percentage_difference(a: float, b: float) -> float:
    """Symmetric relative difference in percent.

    ``|a - b| / max(|a|, |b|, eps) * 100``.  The denominator is the larger
    magnitude, not the declared value: declared and computed may be swapped
    without changing the classification.  A declared 100 against a computed
    105.2 is therefore 4.94% (moderate), where dividing by the declared value
    would give 5.2% (material).  Two zeros compare equal.
    """
    scale = max(abs(a), abs(b), _EPSILON)
    return abs(a - b) / scale * 100.0


def classify(percentage: float) -> DiscrepancyLevel:
    if percentage <= NEGLIGIBLE_PCT:
        return DiscrepancyLevel.NEGLIGIBLE
    if percentage <= MODERATE_PCT:
        return DiscrepancyLevel.MODERATE
    return DiscrepancyLevel.MATERIAL


def compare(quantity: str, declared: float, computed: float) -> Discrepancy:
    pct = percentage_difference(declared, computed)
    return Discrepancy(
        quantity=quantity,
        declared=declared,
        computed=computed,
        difference=computed - declared,
        absolute_difference=abs(computed - declared),
        percentage=pct,
        level=classify(pct),
    )


def line_total_mismatches(lines: Sequence[LineItem]) -> List[LineTotalMismatch]:
    mismatches: List[LineTotalMismatch] = []
    for index, line in enumerate(lines):
        if line.declared_total is None:
            continue
        if abs(line.declared_total - line.line_total) > LINE_TOTAL_TOLERANCE:
            mismatches.append(
                LineTotalMismatch(
                    index=index,
                    code=line.code,
                    declared_total=line.declared_total,
                    computed_total=line.line_total,
                )
            )
    return mismatches


def reconcile(shipment: ShipmentContext, lines: Sequence[LineItem]) -> ReconciliationReport:
    computed_total = sum(line.line_total for line in lines)
    declared_total = shipment.invoice_total
    rate = shipment.exchange_rate

    amount = compare("amount", declared_total, computed_total)
    amount_local = compare("amount_local", declared_total * rate, computed_total * rate)

    weight = None
    if shipment.declared_weight_tonnes is not None and shipment.declared_weight_tonnes > 0:
        computed_kg = sum(line.net_weight_kg for line in lines)
        weight = compare("weight_kg", shipment.declared_weight_tonnes * 1000.0, computed_kg)

    report = ReconciliationReport(
        amount=amount,
        amount_local=amount_local,
        weight=weight,
        line_total_mismatches=tuple(line_total_mismatches(lines)),
        accepted_invoice_total=computed_total,
    )
    if report.requires_review:
        logger.info(
            "Invoice reconciliation requires review: amount %.2f%%, worst level %s",
            amount.percentage,
            report.worst_level.value,
        )
    return report
