"""Pydantic request/response models for the HTTP API and scenario files."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from landedcost.customs.missing_codes import CorrectionOutcome
from landedcost.customs.models import (
    FEE_KEYS,
    Discrepancy,
    FeeToggles,
    LandedCostResult,
    LineItem,
    ReconciliationReport,
    ShipmentContext,
    UnmatchedLine,
)
from landedcost.customs.rate_tables import TariffEntry


class ShipmentModel(BaseModel):
    """Raw shipment parameters as entered by the importer."""

    incoterm: str
    transport_mode: str = "sea"
    container_type: str = "tc20"
    container_count: int = Field(default=1, ge=0)
    route: str = "A"
    payment_mode: str = "virement"
    invoice_total: float = Field(ge=0)
    currency: str = "EUR"
    exchange_rate: float = Field(gt=0)
    declared_weight_tonnes: Optional[float] = Field(default=None, ge=0)
    zone: Optional[str] = None
    port_fee_category: Optional[str] = None
    supplier_country: Optional[str] = Field(default=None, max_length=2)

    model_config = ConfigDict(extra="forbid")

    def to_context(self) -> ShipmentContext:
        return ShipmentContext.build(**self.model_dump())


class LineItemModel(BaseModel):
    code: str = ""
    description: str = ""
    quantity: int = Field(ge=0)
    unit_price: float = Field(ge=0)
    net_weight_kg: float = Field(default=0.0, ge=0)
    declared_total: Optional[float] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")

    def to_line_item(self) -> LineItem:
        return LineItem(**self.model_dump())


class FeeTogglesModel(BaseModel):
    """Per-fee auto switches (omitted keys stay automatic) and criteria."""

    auto: Dict[str, bool] = Field(default_factory=dict)
    manual_values: Dict[str, float] = Field(default_factory=dict)
    include_consumption_tax: bool = False
    include_war_risk: bool = False
    include_forwarding: bool = True
    defer_missing_codes: bool = False
    ordinary_risk_rate_override: Optional[float] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("auto", "manual_values")
    @classmethod
    def _known_fee_keys(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(value) - set(FEE_KEYS))
        if unknown:
            raise ValueError(f"Unknown fee keys: {', '.join(unknown)}")
        return value

    def to_toggles(self) -> FeeToggles:
        return FeeToggles(
            **self.auto,
            include_consumption_tax=self.include_consumption_tax,
            include_war_risk=self.include_war_risk,
            include_forwarding=self.include_forwarding,
            defer_missing_codes=self.defer_missing_codes,
            ordinary_risk_rate_override=self.ordinary_risk_rate_override,
            manual_values=dict(self.manual_values),
        )


class LandedCostRequestModel(BaseModel):
    shipment: ShipmentModel
    lines: List[LineItemModel] = Field(min_length=1)
    toggles: FeeTogglesModel = Field(default_factory=FeeTogglesModel)
    settings_overrides: Dict[str, float] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    def line_items(self) -> List[LineItem]:
        return [line.to_line_item() for line in self.lines]


class ReconcileRequestModel(BaseModel):
    shipment: ShipmentModel
    lines: List[LineItemModel] = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


class MissingCodesRequestModel(BaseModel):
    lines: List[LineItemModel] = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


class ResolveCodesRequestModel(BaseModel):
    lines: List[LineItemModel] = Field(min_length=1)
    corrections: Dict[int, str]

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class DiscrepancyModel(BaseModel):
    quantity: str
    declared: float
    computed: float
    difference: float
    absolute_difference: float
    percentage: float
    level: str

    @classmethod
    def from_discrepancy(cls, item: Discrepancy) -> "DiscrepancyModel":
        return cls(**item.as_dict())


class LineTotalMismatchModel(BaseModel):
    index: int
    code: str
    declared_total: float
    computed_total: float
    difference: float


class ReconciliationResponseModel(BaseModel):
    amount: DiscrepancyModel
    amount_local: DiscrepancyModel
    weight: Optional[DiscrepancyModel] = None
    line_total_mismatches: List[LineTotalMismatchModel] = Field(default_factory=list)
    worst_level: str
    requires_review: bool
    accepted_invoice_total: float

    @classmethod
    def from_report(cls, report: ReconciliationReport) -> "ReconciliationResponseModel":
        return cls.model_validate(report.as_dict())


class AllocatedLineModel(BaseModel):
    index: int
    code: str
    line_total: float
    share: float
    imputed_value: float
    rate: Optional[float] = None
    amount: int
    matched: bool


class UnmatchedLineModel(BaseModel):
    index: int
    code: str
    description: str
    line_total: float

    @classmethod
    def from_unmatched(cls, item: UnmatchedLine) -> "UnmatchedLineModel":
        return cls(index=item.index, code=item.code, description=item.description, line_total=item.line_total)


class AdminDecisionModel(BaseModel):
    category: str
    level: str
    title: str
    message: str


class LandedCostResponseModel(BaseModel):
    status: str
    is_final: bool
    breakdown: Dict[str, Optional[int]]
    cost_coefficient: Optional[float] = None
    duty_lines: List[AllocatedLineModel]
    reconciliation: ReconciliationResponseModel
    unmatched_lines: List[UnmatchedLineModel]
    pending_manual_inputs: List[str]
    warnings: List[str]
    decisions: List[AdminDecisionModel] = Field(default_factory=list)
    engine_version: str
    run_id: Optional[str] = None

    @classmethod
    def from_result(
        cls, result: LandedCostResult, *, engine_version: str, run_id: Optional[str] = None
    ) -> "LandedCostResponseModel":
        return cls.model_validate({**result.as_dict(), "engine_version": engine_version, "run_id": run_id})


class MissingCodesResponseModel(BaseModel):
    unmatched: List[UnmatchedLineModel]
    total_lines: int


class TariffSuggestionModel(BaseModel):
    code: str
    short_code: str
    description: str
    cumulative_without_tax: float
    cumulative_with_tax: float

    @classmethod
    def from_entry(cls, entry: TariffEntry) -> "TariffSuggestionModel":
        return cls(
            code=entry.code,
            short_code=entry.short_code,
            description=entry.description,
            cumulative_without_tax=entry.cumulative_without_tax,
            cumulative_with_tax=entry.cumulative_with_tax,
        )


class CodeSearchResponseModel(BaseModel):
    query: str
    results: List[TariffSuggestionModel]


class CodeCorrectionModel(BaseModel):
    index: int
    previous_code: str
    new_code: str
    resolved: bool


class ResolvedLineModel(BaseModel):
    code: str
    description: str
    quantity: int
    unit_price: float
    net_weight_kg: float
    declared_total: Optional[float] = None
    matched: bool


class ResolveCodesResponseModel(BaseModel):
    lines: List[ResolvedLineModel]
    history: List[CodeCorrectionModel]
    still_unmatched: List[int]

    @classmethod
    def from_outcome(cls, outcome: CorrectionOutcome) -> "ResolveCodesResponseModel":
        return cls(
            lines=[
                ResolvedLineModel(
                    code=line.code,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    net_weight_kg=line.net_weight_kg,
                    declared_total=line.declared_total,
                    matched=line.is_matched,
                )
                for line in outcome.lines
            ],
            history=[
                CodeCorrectionModel(
                    index=item.index,
                    previous_code=item.previous_code,
                    new_code=item.new_code,
                    resolved=item.resolved,
                )
                for item in outcome.history
            ],
            still_unmatched=outcome.still_unmatched,
        )
