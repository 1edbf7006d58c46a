"""Single entry point that turns a shipment into a landed-cost breakdown.

Order of evaluation::

    goods value -> freight -> insurance -> CAF
      -> duty / RRR / RCP / consumption tax (allocated per line)
      -> RPI / COC / BSC / incidental costs / financial fees
      -> removal credit / funds advance (duty based)
      -> forwarding-agent fee -> customs stamp
      -> administrative decisions

Every fee can be switched to manual.  A manual fee takes its amount from
``FeeToggles.manual_values``; when no amount was supplied the fee is reported
in ``pending_manual_inputs`` and left as ``None``.  A fee whose automatic
calculator has no answer (unsupported enumeration value) is handled the same
way, and so is every fee that depends on a pending one.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from landedcost.customs.allocation import (
    allocate,
    attach_tariffs,
    consumption_tax_rate,
    cumulative_rate,
    rcp_rate,
    rrr_rate,
)
from landedcost.customs.decisions import generate_decisions
from landedcost.customs.financial import compute_financial_fees
from landedcost.customs.forwarding import ForwardingInputs, compute_forwarding_fee
from landedcost.customs.freight import compute_freight
from landedcost.customs.insurance import compute_insurance
from landedcost.customs.levies import (
    check_rpi_continuity,
    compute_bsc,
    compute_coc,
    compute_customs_stamp,
    compute_funds_advance,
    compute_incidental_costs,
    compute_removal_credit,
    compute_rpi,
)
from landedcost.customs.missing_codes import find_unmatched
from landedcost.customs.models import (
    AllocationResult,
    CostBreakdown,
    FeeToggles,
    IncotermClass,
    LandedCostResult,
    LineItem,
    ResultStatus,
    ShipmentContext,
)
from landedcost.customs.money import round_amount
from landedcost.customs.rate_tables import RateTables
from landedcost.customs.reconciliation import reconcile
from landedcost.customs.settings import Settings
from landedcost.customs.valuation import compute_caf, convert_goods_value
from landedcost.observability import log_event

logger = logging.getLogger(__name__)


class _FeeResolver:
    """Applies the auto/manual/pending rules for one computation."""

    def __init__(self, toggles: FeeToggles) -> None:
        self.toggles = toggles
        self.pending: List[str] = []
        self.warnings: List[str] = []

    def resolve(
        self,
        key: str,
        compute: Callable[[], Optional[int]],
        depends_on: Sequence[Optional[int]] = (),
    ) -> Optional[int]:
        manual = self.toggles.manual_value(key)
        if not self.toggles.is_auto(key):
            return self._manual_or_pending(key, manual)
        if any(value is None for value in depends_on):
            return self._manual_or_pending(key, manual)
        value = compute()
        if value is None:
            self.warnings.append(f"Automatic {key.replace('_', ' ')} unavailable for this shipment; enter it manually")
            return self._manual_or_pending(key, manual)
        return value

    def _manual_or_pending(self, key: str, manual: Optional[float]) -> Optional[int]:
        if manual is not None:
            return round_amount(manual)
        self.pending.append(key)
        return None


def _status(unmatched: bool, deferred: bool, pending: bool) -> ResultStatus:
    if unmatched and not deferred:
        return ResultStatus.UNRESOLVED_CODES
    if pending:
        return ResultStatus.MANUAL_INPUT_REQUIRED
    if unmatched:
        return ResultStatus.CODES_DEFERRED
    return ResultStatus.COMPLETE


def compute_landed_cost(
    shipment: ShipmentContext,
    lines: Sequence[LineItem],
    settings: Settings,
    tables: RateTables,
    toggles: FeeToggles | None = None,
) -> LandedCostResult:
    """Compute the full landed-cost result.

    Pure: no input is mutated and identical inputs give identical results.
    Raises :class:`~landedcost.customs.settings.MissingSettingError` when a
    required setting is absent.
    """
    toggles = toggles or FeeToggles()
    fees = _FeeResolver(toggles)

    lines = attach_tariffs(lines, tables)
    reconciliation = reconcile(shipment, lines)
    unmatched = find_unmatched(lines, tables)
    for line in unmatched:
        fees.warnings.append(f"Code {line.code or '<empty>'} (line {line.index}) not found in tariff; duty counted as zero")
    if reconciliation.requires_review:
        fees.warnings.append(
            f"Declared invoice total differs from line items by {reconciliation.amount.percentage:.2f}% "
            f"({reconciliation.worst_level.value})"
        )

    line_sum = sum(line.line_total for line in lines)
    rate = shipment.exchange_rate
    count = shipment.container_count

    # -- goods value, freight, insurance, CAF ----------------------------------
    goods_value = fees.resolve(
        "goods_value",
        lambda: convert_goods_value(line_sum, shipment.incoterm, rate, settings),
    )

    non_multimodal = shipment.incoterm is IncotermClass.NON_MULTIMODAL
    if non_multimodal:
        fees.warnings.append("Non-multimodal incoterm: freight and insurance are not computed automatically")

    def _freight() -> Optional[int]:
        if non_multimodal:
            return None
        quote = compute_freight(shipment.container_type, count, rate, settings)
        return quote.amount if quote else None

    freight = fees.resolve("freight", _freight)

    insured_value: Optional[float] = None

    def _insurance() -> Optional[int]:
        nonlocal insured_value
        if non_multimodal:
            return None
        quote = compute_insurance(
            goods_value,
            freight,
            shipment.transport_mode,
            settings,
            include_war_risk=toggles.include_war_risk,
            ordinary_risk_rate=toggles.ordinary_risk_rate_override,
        )
        insured_value = quote.insured_value
        return quote.total

    insurance = fees.resolve("insurance", _insurance, depends_on=(goods_value, freight))

    caf: Optional[int] = None
    if goods_value is not None and freight is not None and insurance is not None:
        caf = compute_caf(goods_value, freight, insurance)

    # -- line-level allocation ------------------------------------------------
    duty_allocation: Optional[AllocationResult] = None
    consumption_tax: Optional[int] = None
    if caf is not None:
        duty_allocation = allocate(lines, caf, cumulative_rate(toggles.include_consumption_tax))
        consumption_tax = allocate(lines, caf, consumption_tax_rate).total

    customs_duty = fees.resolve("customs_duty", lambda: duty_allocation.total, depends_on=(caf,))
    rrr = fees.resolve("rrr", lambda: allocate(lines, caf, rrr_rate).total, depends_on=(caf,))
    rcp = fees.resolve("rcp", lambda: allocate(lines, caf, rcp_rate).total, depends_on=(caf,))

    # -- shipment-level levies ------------------------------------------------
    def _rpi() -> int:
        for problem in check_rpi_continuity(settings):
            fees.warnings.append(f"RPI settings: {problem}")
        return compute_rpi(goods_value, settings).amount

    rpi = fees.resolve("rpi", _rpi, depends_on=(goods_value,))

    def _coc() -> Optional[int]:
        quote = compute_coc(shipment.route, lines, duty_allocation.lines, tables, settings)
        return quote.amount if quote else None

    coc = fees.resolve("coc", _coc, depends_on=(caf,))
    bsc = fees.resolve("bsc", lambda: compute_bsc(shipment.container_type, count, settings))
    incidental_costs = fees.resolve(
        "incidental_costs", lambda: compute_incidental_costs(caf, settings), depends_on=(caf,)
    )

    def _financial() -> Optional[int]:
        quote = compute_financial_fees(shipment.invoice_total, rate, shipment.payment_mode, settings)
        return quote.total if quote else None

    financial_fees = fees.resolve("financial_fees", _financial)

    removal_credit = fees.resolve(
        "removal_credit", lambda: compute_removal_credit(customs_duty, settings), depends_on=(customs_duty,)
    )
    funds_advance = fees.resolve(
        "funds_advance", lambda: compute_funds_advance(customs_duty, settings), depends_on=(customs_duty,)
    )

    # -- forwarding agent -----------------------------------------------------
    def _forwarding() -> Optional[int]:
        if not toggles.include_forwarding:
            return 0
        weight_tonnes = shipment.declared_weight_tonnes
        if weight_tonnes is None:
            weight_tonnes = sum(line.net_weight_kg for line in lines) / 1000.0
        port_fee = tables.port_fee(shipment.port_fee_category) if shipment.port_fee_category else None
        quote = compute_forwarding_fee(
            ForwardingInputs(
                container_type=shipment.container_type,
                container_count=count,
                zone=shipment.zone,
                weight_tonnes=weight_tonnes,
                caf=caf,
            ),
            settings,
            port_fee,
        )
        if quote is None:
            return None
        fees.warnings.extend(quote.warnings)
        return quote.total

    forwarding_fee = fees.resolve(
        "forwarding", _forwarding, depends_on=(caf, customs_duty) if toggles.include_forwarding else ()
    )
    customs_stamp = fees.resolve("customs_stamp", lambda: compute_customs_stamp(settings))

    breakdown = CostBreakdown(
        goods_value=goods_value,
        freight=freight,
        insurance=insurance,
        customs_duty=customs_duty,
        financial_fees=financial_fees,
        forwarding_fee=forwarding_fee,
        rpi=rpi,
        coc=coc,
        bsc=bsc,
        rrr=rrr,
        rcp=rcp,
        customs_stamp=customs_stamp,
        removal_credit=removal_credit,
        funds_advance=funds_advance,
        incidental_costs=incidental_costs,
        consumption_tax=consumption_tax,
        caf=caf,
    )
    decisions = generate_decisions(shipment, breakdown, settings, insured_value=insured_value)
    status = _status(bool(unmatched), toggles.defer_missing_codes, bool(fees.pending))
    log_event(
        "landed_cost.computed",
        status=status.value,
        total=breakdown.total,
        lines=len(lines),
        pending=len(fees.pending),
    )
    return LandedCostResult(
        breakdown=breakdown,
        duty_lines=duty_allocation.lines if duty_allocation else (),
        reconciliation=reconciliation,
        unmatched_lines=tuple(unmatched),
        pending_manual_inputs=tuple(fees.pending),
        warnings=tuple(fees.warnings),
        status=status,
        decisions=tuple(decisions),
    )
