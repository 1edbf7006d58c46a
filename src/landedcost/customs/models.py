"""Domain model for the landed-cost engine.

Enumerated shipment parameters are closed enumerations with an explicit
``UNSUPPORTED`` member: an unrecognised raw value never falls through to a
silent default, it dispatches to "manual input required" instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from landedcost.customs.money import sum_amounts
from landedcost.customs.rate_tables import TariffEntry


class LineItemValidationError(ValueError):
    """Raised when a line item carries a negative or non-numeric field."""


class ShipmentValidationError(ValueError):
    """Raised when shipment parameters cannot be used for computation."""


def _clean(raw: object) -> str:
    return str(raw if raw is not None else "").strip().lower()


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------
class IncotermClass(str, Enum):
    """Incoterm grouped by how it affects the goods-value multiplier."""

    EX_WORKS       = "ex_works"        # EXW
    FREE_CARRIER   = "free_carrier"    # FCA
    FREE_ON_BOARD  = "free_on_board"   # FOB
    NON_MULTIMODAL = "non_multimodal"  # CFR, CIF, CPT, CIP, DAP, DPU, DDP, FAS
    UNSUPPORTED    = "unsupported"

    @classmethod
    def parse(cls, raw: object) -> "IncotermClass":
        value = _clean(raw)
        if value in {"exw", "ex_works", "ex works"}:
            return cls.EX_WORKS
        if value in {"fca", "free_carrier"}:
            return cls.FREE_CARRIER
        if value in {"fob", "free_on_board"}:
            return cls.FREE_ON_BOARD
        if value in _NON_MULTIMODAL_TERMS or value == "non_multimodal":
            return cls.NON_MULTIMODAL
        return cls.UNSUPPORTED


_NON_MULTIMODAL_TERMS = frozenset({"cfr", "cif", "cpt", "cip", "dap", "dpu", "ddp", "fas"})


class TransportMode(str, Enum):
    SEA         = "sea"
    AIR         = "air"
    ROAD        = "road"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, raw: object) -> "TransportMode":
        value = _clean(raw)
        if value in {"sea", "maritime", "mer"}:
            return cls.SEA
        if value in {"air", "aerien", "aérien"}:
            return cls.AIR
        if value in {"road", "routier", "route", "terrestre"}:
            return cls.ROAD
        return cls.UNSUPPORTED


class ContainerType(str, Enum):
    TC20         = "tc20"
    TC40         = "tc40"
    TC40HQ       = "tc40hq"
    CONVENTIONAL = "conventional"
    GROUPAGE     = "groupage"
    UNSUPPORTED  = "unsupported"

    @classmethod
    def parse(cls, raw: object) -> "ContainerType":
        value = _clean(raw)
        return _CONTAINER_ALIASES.get(value, cls.UNSUPPORTED)


_CONTAINER_ALIASES: Dict[str, ContainerType] = {
    "tc20": ContainerType.TC20,
    "20_pieds": ContainerType.TC20,
    "20ft": ContainerType.TC20,
    "tc40": ContainerType.TC40,
    "40_pieds": ContainerType.TC40,
    "40ft": ContainerType.TC40,
    "tc40hq": ContainerType.TC40HQ,
    "40_pieds_hc": ContainerType.TC40HQ,
    "40hc": ContainerType.TC40HQ,
    "conventional": ContainerType.CONVENTIONAL,
    "conventionnel": ContainerType.CONVENTIONAL,
    "groupage": ContainerType.GROUPAGE,
}


class Route(str, Enum):
    """Customs clearance route; selects the COC rate band."""

    A           = "A"
    B           = "B"
    C           = "C"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, raw: object) -> "Route":
        value = _clean(raw).upper()
        if value in {"A", "B", "C"}:
            return cls(value)
        return cls.UNSUPPORTED


class PaymentMode(str, Enum):
    BANK_TRANSFER          = "bank_transfer"
    DOCUMENTARY_COLLECTION = "documentary_collection"
    DOCUMENTARY_CREDIT     = "documentary_credit"
    UNSUPPORTED            = "unsupported"

    @classmethod
    def parse(cls, raw: object) -> "PaymentMode":
        value = _clean(raw)
        if value in {"virement", "bank_transfer", "transfer"}:
            return cls.BANK_TRANSFER
        if value in {"remise_documentaire", "documentary_collection", "remdoc"}:
            return cls.DOCUMENTARY_COLLECTION
        if value in {"credit_documentaire", "documentary_credit", "credoc", "letter_of_credit"}:
            return cls.DOCUMENTARY_CREDIT
        return cls.UNSUPPORTED


class Zone(str, Enum):
    """Forwarding-agent delivery zone of the importing actor."""

    ZONE_1      = "zone_1"
    ZONE_2      = "zone_2"
    ZONE_3      = "zone_3"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, raw: object) -> "Zone":
        if raw is None or _clean(raw) == "":
            return cls.ZONE_1
        value = _clean(raw).replace(" ", "_").replace("-", "_")
        if value.startswith("zone_"):
            value = value[len("zone_"):]
        elif value.startswith("zone"):
            value = value[len("zone"):]
        return {"1": cls.ZONE_1, "2": cls.ZONE_2, "3": cls.ZONE_3}.get(value, cls.UNSUPPORTED)

    @property
    def number(self) -> Optional[int]:
        if self is Zone.UNSUPPORTED:
            return None
        return int(self.value[-1])


class DiscrepancyLevel(str, Enum):
    NEGLIGIBLE = "negligible"  # <= 1%
    MODERATE   = "moderate"    # <= 5%
    MATERIAL   = "material"    # > 5%

    @property
    def severity(self) -> int:
        return _LEVEL_SEVERITY[self]


_LEVEL_SEVERITY = {
    DiscrepancyLevel.NEGLIGIBLE: 0,
    DiscrepancyLevel.MODERATE: 1,
    DiscrepancyLevel.MATERIAL: 2,
}


class ResultStatus(str, Enum):
    COMPLETE              = "COMPLETE"
    MANUAL_INPUT_REQUIRED = "MANUAL_INPUT_REQUIRED"
    UNRESOLVED_CODES      = "UNRESOLVED_CODES"
    CODES_DEFERRED        = "CODES_DEFERRED"


class DecisionCategory(str, Enum):
    LICENCE     = "licence"
    RFCV        = "rfcv"
    VOC         = "voc"
    ROUTE       = "route"
    INSURANCE   = "insurance"
    EXCHANGE    = "exchange"
    PAYMENT     = "payment"
    INCOTERM    = "incoterm"
    COEFFICIENT = "coefficient"
    BSC         = "bsc"
    REGULATORY  = "regulatory"


class DecisionLevel(str, Enum):
    SUCCESS = "success"
    INFO    = "info"
    WARNING = "warning"
    ERROR   = "error"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
def _non_negative(name: str, value: Any, error: type[ValueError]) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise error(f"{name} must be numeric, got {value!r}") from None
    if math.isnan(number) or math.isinf(number):
        raise error(f"{name} must be finite, got {value!r}")
    if number < 0:
        raise error(f"{name} must be non-negative, got {value!r}")
    return number


@dataclass(frozen=True)
class LineItem:
    """One invoice line.  ``line_total`` is always quantity x unit price."""

    code: str
    description: str = ""
    quantity: int = 0
    unit_price: float = 0.0
    net_weight_kg: float = 0.0
    declared_total: Optional[float] = None
    tariff: Optional[TariffEntry] = None

    def __post_init__(self) -> None:
        quantity = _non_negative("quantity", self.quantity, LineItemValidationError)
        if quantity != int(quantity):
            raise LineItemValidationError(f"quantity must be a whole number, got {self.quantity!r}")
        object.__setattr__(self, "quantity", int(quantity))
        object.__setattr__(self, "unit_price", _non_negative("unit_price", self.unit_price, LineItemValidationError))
        object.__setattr__(
            self, "net_weight_kg", _non_negative("net_weight_kg", self.net_weight_kg, LineItemValidationError)
        )
        if self.declared_total is not None:
            object.__setattr__(
                self,
                "declared_total",
                _non_negative("declared_total", self.declared_total, LineItemValidationError),
            )
        object.__setattr__(self, "code", str(self.code if self.code is not None else "").strip())

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price

    @property
    def is_matched(self) -> bool:
        return self.tariff is not None

    def with_tariff(self, tariff: Optional[TariffEntry]) -> "LineItem":
        return LineItem(
            code=self.code,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            net_weight_kg=self.net_weight_kg,
            declared_total=self.declared_total,
            tariff=tariff,
        )


@dataclass(frozen=True)
class ShipmentContext:
    """Shipment-level parameters declared by the importer."""

    incoterm: IncotermClass
    transport_mode: TransportMode
    container_type: ContainerType
    container_count: int
    route: Route
    payment_mode: PaymentMode
    invoice_total: float
    currency: str
    exchange_rate: float
    declared_weight_tonnes: Optional[float] = None
    zone: Zone = Zone.ZONE_1
    port_fee_category: Optional[str] = None
    supplier_country: Optional[str] = None

    @classmethod
    def build(
        cls,
        *,
        incoterm: object,
        transport_mode: object,
        container_type: object,
        container_count: object = 1,
        route: object = "A",
        payment_mode: object,
        invoice_total: object,
        currency: str = "EUR",
        exchange_rate: object,
        declared_weight_tonnes: object = None,
        zone: object = None,
        port_fee_category: Optional[str] = None,
        supplier_country: Optional[str] = None,
    ) -> "ShipmentContext":
        """Parse raw user input into a validated context."""
        rate = _non_negative("exchange_rate", exchange_rate, ShipmentValidationError)
        if rate <= 0:
            raise ShipmentValidationError(f"exchange_rate must be positive, got {exchange_rate!r}")
        count = _non_negative("container_count", container_count, ShipmentValidationError)
        if count != int(count):
            raise ShipmentValidationError(f"container_count must be a whole number, got {container_count!r}")
        weight = None
        if declared_weight_tonnes not in (None, ""):
            weight = _non_negative("declared_weight_tonnes", declared_weight_tonnes, ShipmentValidationError)
        return cls(
            incoterm=incoterm if isinstance(incoterm, IncotermClass) else IncotermClass.parse(incoterm),
            transport_mode=(
                transport_mode if isinstance(transport_mode, TransportMode) else TransportMode.parse(transport_mode)
            ),
            container_type=(
                container_type if isinstance(container_type, ContainerType) else ContainerType.parse(container_type)
            ),
            container_count=int(count),
            route=route if isinstance(route, Route) else Route.parse(route),
            payment_mode=payment_mode if isinstance(payment_mode, PaymentMode) else PaymentMode.parse(payment_mode),
            invoice_total=_non_negative("invoice_total", invoice_total, ShipmentValidationError),
            currency=str(currency or "").strip().upper(),
            exchange_rate=rate,
            declared_weight_tonnes=weight,
            zone=zone if isinstance(zone, Zone) else Zone.parse(zone),
            port_fee_category=(str(port_fee_category).strip() or None) if port_fee_category is not None else None,
            supplier_country=(str(supplier_country).strip().upper() or None) if supplier_country is not None else None,
        )


FEE_KEYS: Tuple[str, ...] = (
    "goods_value",
    "freight",
    "insurance",
    "customs_duty",
    "financial_fees",
    "forwarding",
    "rpi",
    "coc",
    "bsc",
    "rrr",
    "rcp",
    "incidental_costs",
    "removal_credit",
    "funds_advance",
    "customs_stamp",
)


@dataclass(frozen=True)
class FeeToggles:
    """Auto/manual switch per fee plus the criteria flags.

    A fee switched to manual takes its amount from ``manual_values``; without
    one it is reported as a pending manual input.
    """

    goods_value: bool = True
    freight: bool = True
    insurance: bool = True
    customs_duty: bool = True
    financial_fees: bool = True
    forwarding: bool = True
    rpi: bool = True
    coc: bool = True
    bsc: bool = True
    rrr: bool = True
    rcp: bool = True
    incidental_costs: bool = True
    removal_credit: bool = True
    funds_advance: bool = True
    customs_stamp: bool = True

    include_consumption_tax: bool = False
    include_war_risk: bool = False
    include_forwarding: bool = True
    defer_missing_codes: bool = False
    ordinary_risk_rate_override: Optional[float] = None
    manual_values: Mapping[str, float] = field(default_factory=dict)

    def is_auto(self, key: str) -> bool:
        return bool(getattr(self, key))

    def manual_value(self, key: str) -> Optional[float]:
        value = self.manual_values.get(key)
        return None if value is None else float(value)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------
_TOTAL_FIELDS: Tuple[str, ...] = (
    "goods_value",
    "freight",
    "insurance",
    "customs_duty",
    "financial_fees",
    "forwarding_fee",
    "rpi",
    "coc",
    "bsc",
    "rrr",
    "rcp",
    "customs_stamp",
    "removal_credit",
    "funds_advance",
    "incidental_costs",
)

_STATUTORY_FIELDS: Tuple[str, ...] = ("rpi", "coc", "bsc", "rrr", "rcp", "customs_stamp")


@dataclass(frozen=True)
class CostBreakdown:
    """Landed-cost components in whole local-currency units.

    ``None`` means the component is pending a manual input.
    ``consumption_tax`` is informational only and never part of ``total``.
    """

    goods_value: Optional[int] = None
    freight: Optional[int] = None
    insurance: Optional[int] = None
    customs_duty: Optional[int] = None
    financial_fees: Optional[int] = None
    forwarding_fee: Optional[int] = None
    rpi: Optional[int] = None
    coc: Optional[int] = None
    bsc: Optional[int] = None
    rrr: Optional[int] = None
    rcp: Optional[int] = None
    customs_stamp: Optional[int] = None
    removal_credit: Optional[int] = None
    funds_advance: Optional[int] = None
    incidental_costs: Optional[int] = None
    consumption_tax: Optional[int] = None
    caf: Optional[int] = None

    @property
    def total(self) -> int:
        return sum_amounts(getattr(self, name) for name in _TOTAL_FIELDS)

    @property
    def statutory_levies(self) -> int:
        return sum_amounts(getattr(self, name) for name in _STATUTORY_FIELDS)

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, name) is not None for name in _TOTAL_FIELDS)

    @property
    def cost_coefficient(self) -> Optional[float]:
        """Landed cost per unit of goods value; ``None`` while any fee is pending."""
        if not self.goods_value or not self.is_complete:
            return None
        return self.total / self.goods_value

    def as_dict(self) -> Dict[str, Optional[int]]:
        payload: Dict[str, Optional[int]] = {f.name: getattr(self, f.name) for f in fields(self)}
        payload["statutory_levies"] = self.statutory_levies
        payload["total"] = self.total
        return payload


@dataclass(frozen=True)
class Discrepancy:
    quantity: str
    declared: float
    computed: float
    difference: float
    absolute_difference: float
    percentage: float
    level: DiscrepancyLevel

    def as_dict(self) -> Dict[str, Any]:
        return {
            "quantity": self.quantity,
            "declared": self.declared,
            "computed": self.computed,
            "difference": self.difference,
            "absolute_difference": self.absolute_difference,
            "percentage": self.percentage,
            "level": self.level.value,
        }


@dataclass(frozen=True)
class AdminDecision:
    """Administrative advisory attached to a result.  Never changes an amount."""

    category: DecisionCategory
    level: DecisionLevel
    title: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "category": self.category.value,
            "level": self.level.value,
            "title": self.title,
            "message": self.message,
        }


@dataclass(frozen=True)
class LineTotalMismatch:
    index: int
    code: str
    declared_total: float
    computed_total: float

    @property
    def difference(self) -> float:
        return self.computed_total - self.declared_total


@dataclass(frozen=True)
class ReconciliationReport:
    amount: Discrepancy
    amount_local: Discrepancy
    weight: Optional[Discrepancy] = None
    line_total_mismatches: Tuple[LineTotalMismatch, ...] = ()
    accepted_invoice_total: float = 0.0

    @property
    def comparisons(self) -> List[Discrepancy]:
        return [d for d in (self.amount, self.amount_local, self.weight) if d is not None]

    @property
    def worst_level(self) -> DiscrepancyLevel:
        return max((d.level for d in self.comparisons), key=lambda level: level.severity)

    @property
    def requires_review(self) -> bool:
        return self.worst_level is not DiscrepancyLevel.NEGLIGIBLE

    def as_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount.as_dict(),
            "amount_local": self.amount_local.as_dict(),
            "weight": self.weight.as_dict() if self.weight else None,
            "line_total_mismatches": [
                {
                    "index": m.index,
                    "code": m.code,
                    "declared_total": m.declared_total,
                    "computed_total": m.computed_total,
                    "difference": m.difference,
                }
                for m in self.line_total_mismatches
            ],
            "worst_level": self.worst_level.value,
            "requires_review": self.requires_review,
            "accepted_invoice_total": self.accepted_invoice_total,
        }


@dataclass(frozen=True)
class AllocatedLine:
    index: int
    code: str
    line_total: float
    share: float
    imputed_value: float
    rate: Optional[float]
    amount: int
    matched: bool


@dataclass(frozen=True)
class AllocationResult:
    lines: Tuple[AllocatedLine, ...]
    total: int
    unmatched_indices: Tuple[int, ...] = ()


@dataclass(frozen=True)
class UnmatchedLine:
    index: int
    code: str
    description: str
    line_total: float


@dataclass(frozen=True)
class LandedCostResult:
    breakdown: CostBreakdown
    duty_lines: Tuple[AllocatedLine, ...]
    reconciliation: ReconciliationReport
    unmatched_lines: Tuple[UnmatchedLine, ...]
    pending_manual_inputs: Tuple[str, ...]
    warnings: Tuple[str, ...]
    status: ResultStatus
    decisions: Tuple[AdminDecision, ...] = ()

    @property
    def is_final(self) -> bool:
        return self.status is ResultStatus.COMPLETE

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "is_final": self.is_final,
            "breakdown": self.breakdown.as_dict(),
            "cost_coefficient": self.breakdown.cost_coefficient,
            "duty_lines": [
                {
                    "index": line.index,
                    "code": line.code,
                    "line_total": line.line_total,
                    "share": line.share,
                    "imputed_value": line.imputed_value,
                    "rate": line.rate,
                    "amount": line.amount,
                    "matched": line.matched,
                }
                for line in self.duty_lines
            ],
            "reconciliation": self.reconciliation.as_dict(),
            "unmatched_lines": [
                {"index": u.index, "code": u.code, "description": u.description, "line_total": u.line_total}
                for u in self.unmatched_lines
            ],
            "pending_manual_inputs": list(self.pending_manual_inputs),
            "warnings": list(self.warnings),
            "decisions": [decision.as_dict() for decision in self.decisions],
        }
