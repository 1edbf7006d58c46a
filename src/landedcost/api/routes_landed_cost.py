from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from landedcost.api.deps import get_settings, get_tables
from landedcost.api.security import ENGINE_VERSION, require_api_key
from landedcost.customs.pipeline import compute_landed_cost
from landedcost.customs.rate_tables import RateTables
from landedcost.customs.reconciliation import reconcile
from landedcost.customs.schemas import (
    LandedCostRequestModel,
    LandedCostResponseModel,
    ReconcileRequestModel,
    ReconciliationResponseModel,
)
from landedcost.customs.settings import Settings
from landedcost.observability import current_run_id

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/landed-cost",
    tags=["landed-cost"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/compute", response_model=LandedCostResponseModel)
def compute_endpoint(
    request: LandedCostRequestModel,
    settings: Settings = Depends(get_settings),
    tables: RateTables = Depends(get_tables),
) -> LandedCostResponseModel:
    result = compute_landed_cost(
        request.shipment.to_context(),
        request.line_items(),
        settings.with_overrides(request.settings_overrides),
        tables,
        request.toggles.to_toggles(),
    )
    return LandedCostResponseModel.from_result(result, engine_version=ENGINE_VERSION, run_id=current_run_id())


@router.post("/reconcile", response_model=ReconciliationResponseModel)
def reconcile_endpoint(request: ReconcileRequestModel) -> ReconciliationResponseModel:
    report = reconcile(request.shipment.to_context(), [line.to_line_item() for line in request.lines])
    return ReconciliationResponseModel.from_report(report)
