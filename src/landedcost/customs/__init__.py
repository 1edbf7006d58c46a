"""Customs cost computation: calculators, reference tables and the pipeline."""

from landedcost.customs.allocation import (
    allocate,
    attach_tariffs,
    consumption_tax_rate,
    cumulative_rate,
    rcp_rate,
    rrr_rate,
)
from landedcost.customs.decisions import generate_decisions, is_uemoa_country
from landedcost.customs.financial import Charge, FinancialQuote, compute_financial_fees
from landedcost.customs.forwarding import ForwardingInputs, ForwardingQuote, compute_forwarding_fee
from landedcost.customs.freight import FreightQuote, compute_freight
from landedcost.customs.insurance import InsuranceQuote, compute_insurance
from landedcost.customs.levies import (
    RpiQuote,
    check_rpi_continuity,
    compute_bsc,
    compute_coc,
    compute_customs_stamp,
    compute_funds_advance,
    compute_incidental_costs,
    compute_removal_credit,
    compute_rpi,
)
from landedcost.customs.missing_codes import (
    CorrectionOutcome,
    apply_corrections,
    find_unmatched,
    suggest_codes,
)
from landedcost.customs.models import (
    AdminDecision,
    ContainerType,
    CostBreakdown,
    DecisionCategory,
    DecisionLevel,
    DiscrepancyLevel,
    FeeToggles,
    IncotermClass,
    LandedCostResult,
    LineItem,
    LineItemValidationError,
    PaymentMode,
    ReconciliationReport,
    ResultStatus,
    Route,
    ShipmentContext,
    ShipmentValidationError,
    TransportMode,
    Zone,
)
from landedcost.customs.pipeline import compute_landed_cost
from landedcost.customs.rate_tables import (
    ExemptionEntry,
    InMemoryRateTables,
    PortFeeEntry,
    RateTables,
    TariffEntry,
    get_rate_tables,
    load_rate_tables,
)
from landedcost.customs.reconciliation import reconcile
from landedcost.customs.settings import MissingSettingError, Settings, load_settings
from landedcost.customs.valuation import compute_caf, convert_goods_value

__all__ = [
    "AdminDecision",
    "Charge",
    "ContainerType",
    "CorrectionOutcome",
    "CostBreakdown",
    "DecisionCategory",
    "DecisionLevel",
    "DiscrepancyLevel",
    "ExemptionEntry",
    "FeeToggles",
    "FinancialQuote",
    "ForwardingInputs",
    "ForwardingQuote",
    "FreightQuote",
    "InMemoryRateTables",
    "IncotermClass",
    "InsuranceQuote",
    "LandedCostResult",
    "LineItem",
    "LineItemValidationError",
    "MissingSettingError",
    "PaymentMode",
    "PortFeeEntry",
    "RateTables",
    "ReconciliationReport",
    "ResultStatus",
    "Route",
    "RpiQuote",
    "Settings",
    "ShipmentContext",
    "ShipmentValidationError",
    "TariffEntry",
    "TransportMode",
    "Zone",
    "allocate",
    "apply_corrections",
    "attach_tariffs",
    "check_rpi_continuity",
    "compute_bsc",
    "compute_caf",
    "compute_coc",
    "compute_customs_stamp",
    "compute_financial_fees",
    "compute_forwarding_fee",
    "compute_freight",
    "compute_funds_advance",
    "compute_incidental_costs",
    "compute_insurance",
    "compute_landed_cost",
    "compute_removal_credit",
    "compute_rpi",
    "consumption_tax_rate",
    "convert_goods_value",
    "cumulative_rate",
    "find_unmatched",
    "generate_decisions",
    "get_rate_tables",
    "is_uemoa_country",
    "load_rate_tables",
    "load_settings",
    "rcp_rate",
    "reconcile",
    "rrr_rate",
    "suggest_codes",
]
