"""Administrative advisories derived from a computed breakdown.

Each rule compares one quantity of the shipment (RPI licence amount, goods
value, goods + freight, insurance premium, cost coefficient, RCP/RRR) with a
threshold read from :class:`Settings`, or reads a declared parameter
(payment mode, route, incoterm, supplier country).  Decisions tell the
importer which formalities apply; they never change an amount.

Rules whose input is pending are skipped.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from landedcost.customs.models import (
    AdminDecision,
    CostBreakdown,
    DecisionCategory,
    DecisionLevel,
    IncotermClass,
    PaymentMode,
    Route,
    ShipmentContext,
)
from landedcost.customs.money import round_amount
from landedcost.customs.settings import Settings

logger = logging.getLogger(__name__)

# West African Economic and Monetary Union member states (ISO 3166 alpha-2).
UEMOA_COUNTRIES = frozenset({"BF", "BJ", "CI", "GW", "ML", "NE", "SN", "TG"})

DECISION_SETTING_KEYS: Tuple[str, ...] = (
    "decision_licence_arrival_control",
    "decision_licence_fdi_admission",
    "decision_rfcv_dispensed_below",
    "decision_rfcv_required_from",
    "decision_voc_refused_below",
    "decision_voc_admitted_from",
    "decision_insurance_refused_below",
    "decision_insurance_receivable_from",
    "decision_insured_value_min_caf_ratio",
    "decision_cost_coefficient_max",
)

_ROUTE_DECISIONS: Dict[Route, Tuple[DecisionLevel, str]] = {
    Route.A: (
        DecisionLevel.WARNING,
        "Route A: mandatory physical inspection (irregular imports or sensitive goods)",
    ),
    Route.B: (
        DecisionLevel.INFO,
        "Route B: regular imports of homogeneous, non-sensitive, pre-registered goods",
    ),
    Route.C: (
        DecisionLevel.INFO,
        "Route C: certified goods, documentary inspection only",
    ),
}

_PAYMENT_DECISIONS: Dict[PaymentMode, Tuple[DecisionLevel, str, str]] = {
    PaymentMode.DOCUMENTARY_CREDIT: (
        DecisionLevel.SUCCESS,
        "Documentary credit",
        "Strong payment security; bank charges are higher when irrevocable and confirmed",
    ),
    PaymentMode.DOCUMENTARY_COLLECTION: (
        DecisionLevel.INFO,
        "Documentary collection",
        "Documents against payment; good security when documents are compliant",
    ),
    PaymentMode.BANK_TRANSFER: (
        DecisionLevel.WARNING,
        "Bank transfer",
        "Very low payment security",
    ),
}

_INCOTERM_DECISIONS: Dict[IncotermClass, str] = {
    IncotermClass.EX_WORKS: "Importer bears risks and costs from the supplier's premises",
    IncotermClass.FREE_CARRIER: "Importer bears risks and costs from the agreed place of delivery",
    IncotermClass.FREE_ON_BOARD: "Importer bears risks and costs once goods are on board at export",
    IncotermClass.NON_MULTIMODAL: "Supplier bears risks and costs up to the destination named in the contract",
}


def is_uemoa_country(country: Optional[str]) -> bool:
    return bool(country) and country.strip().upper() in UEMOA_COUNTRIES


def _decision(category: DecisionCategory, level: DecisionLevel, title: str, message: str) -> AdminDecision:
    return AdminDecision(category=category, level=level, title=title, message=message)


def generate_decisions(
    shipment: ShipmentContext,
    breakdown: CostBreakdown,
    settings: Settings,
    insured_value: Optional[float] = None,
) -> List[AdminDecision]:
    """Return the advisories for a computed shipment, in presentation order.

    ``insured_value`` is only known when the insurance premium was computed
    automatically; the insured-value check is skipped otherwise.
    """
    (
        licence_control,
        licence_fdi,
        rfcv_dispensed_below,
        rfcv_required_from,
        voc_refused_below,
        voc_admitted_from,
        insurance_refused_below,
        insurance_receivable_from,
        insured_caf_ratio,
        coefficient_max,
    ) = settings.require_many(DECISION_SETTING_KEYS)

    decisions: List[AdminDecision] = []

    # -- licence (RPI amount) -------------------------------------------------
    if breakdown.rpi is not None:
        if breakdown.rpi == round_amount(licence_control):
            decisions.append(
                _decision(
                    DecisionCategory.LICENCE, DecisionLevel.WARNING, "Arrival control", "Goods subject to arrival control"
                )
            )
        elif breakdown.rpi >= licence_fdi:
            decisions.append(
                _decision(
                    DecisionCategory.LICENCE,
                    DecisionLevel.SUCCESS,
                    "FDI admission",
                    "Import declaration (FDI) can be raised through the single window",
                )
            )

    # -- goods value: inspection certificate and VOC ------------------------
    goods_value = breakdown.goods_value
    if goods_value is not None:
        if goods_value < rfcv_dispensed_below:
            decisions.append(
                _decision(DecisionCategory.RFCV, DecisionLevel.INFO, "RFCV dispensed", "No inspection certificate (RFCV) required")
            )
        elif goods_value >= rfcv_required_from:
            decisions.append(
                _decision(
                    DecisionCategory.RFCV,
                    DecisionLevel.WARNING,
                    "RFCV required",
                    "Subject to the inspection certificate (RFCV) and quality control through the single window",
                )
            )

        voc_value = goods_value + (breakdown.freight or 0)
        if voc_value < voc_refused_below:
            decisions.append(
                _decision(
                    DecisionCategory.VOC,
                    DecisionLevel.ERROR,
                    "VOC not admitted",
                    "Verification of conformity (VOC) cannot be raised through the single window",
                )
            )
        elif voc_value >= voc_admitted_from:
            decisions.append(
                _decision(
                    DecisionCategory.VOC,
                    DecisionLevel.SUCCESS,
                    "VOC admitted",
                    "Verification of conformity admitted; inspection before shipment follows the chosen route",
                )
            )
            route_decision = _ROUTE_DECISIONS.get(shipment.route)
            if route_decision is not None:
                level, message = route_decision
                decisions.append(_decision(DecisionCategory.ROUTE, level, f"Route {shipment.route.value}", message))

    # -- insurance ------------------------------------------------------------
    premium = breakdown.insurance
    if premium is not None:
        if premium < insurance_refused_below:
            decisions.append(
                _decision(
                    DecisionCategory.INSURANCE,
                    DecisionLevel.ERROR,
                    "Premium not receivable",
                    f"Customs will not accept a premium below {round_amount(insurance_refused_below)}; "
                    "expect a customs adjustment",
                )
            )
        elif premium >= insurance_receivable_from:
            decisions.append(
                _decision(
                    DecisionCategory.INSURANCE,
                    DecisionLevel.SUCCESS,
                    "Premium receivable",
                    "Cargo insurance premium potentially receivable by customs",
                )
            )
        else:
            decisions.append(
                _decision(
                    DecisionCategory.INSURANCE,
                    DecisionLevel.INFO,
                    "Insurance certificate",
                    "Raise an insurance certificate through the single window",
                )
            )
        if insured_value is not None and breakdown.caf is not None:
            floor = insured_caf_ratio * breakdown.caf
            if insured_value < floor:
                decisions.append(
                    _decision(
                        DecisionCategory.INSURANCE,
                        DecisionLevel.WARNING,
                        "Insured value too low",
                        f"Insured value must be at least {insured_caf_ratio:.0%} of CAF ({round_amount(floor)})",
                    )
                )

    # -- declared parameters --------------------------------------------------
    if is_uemoa_country(shipment.supplier_country):
        decisions.append(
            _decision(
                DecisionCategory.EXCHANGE,
                DecisionLevel.SUCCESS,
                "Exchange authorisation",
                "Exchange authorisation can be raised",
            )
        )

    payment_decision = _PAYMENT_DECISIONS.get(shipment.payment_mode)
    if payment_decision is not None:
        level, title, message = payment_decision
        decisions.append(_decision(DecisionCategory.PAYMENT, level, title, message))

    incoterm_message = _INCOTERM_DECISIONS.get(shipment.incoterm)
    if incoterm_message is not None:
        decisions.append(
            _decision(DecisionCategory.INCOTERM, DecisionLevel.INFO, shipment.incoterm.value, incoterm_message)
        )

    # -- cost coefficient -----------------------------------------------------
    coefficient = breakdown.cost_coefficient
    if coefficient is not None:
        if coefficient <= coefficient_max:
            decisions.append(
                _decision(
                    DecisionCategory.COEFFICIENT,
                    DecisionLevel.SUCCESS,
                    "Coefficient satisfactory",
                    f"Cost coefficient {coefficient:.2f} is satisfactory for sea freight",
                )
            )
        else:
            decisions.append(
                _decision(
                    DecisionCategory.COEFFICIENT,
                    DecisionLevel.WARNING,
                    "Coefficient too high",
                    f"Cost coefficient {coefficient:.2f} exceeds {coefficient_max:.2f}; "
                    "weight and value are low for this transport mode",
                )
            )

    decisions.append(
        _decision(DecisionCategory.BSC, DecisionLevel.SUCCESS, "BSC", "Cargo tracking note (BSC) can be raised")
    )

    if breakdown.rcp or breakdown.rrr:
        decisions.append(
            _decision(
                DecisionCategory.REGULATORY,
                DecisionLevel.INFO,
                "RCP/RRR levy",
                "Subject to the RCP / RRR regulatory levies",
            )
        )

    logger.debug("Generated %d administrative decisions", len(decisions))
    return decisions
