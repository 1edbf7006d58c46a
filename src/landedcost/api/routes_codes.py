from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from landedcost.api.deps import get_tables
from landedcost.api.security import require_api_key
from landedcost.customs.allocation import attach_tariffs
from landedcost.customs.missing_codes import apply_corrections, find_unmatched, suggest_codes
from landedcost.customs.rate_tables import RateTables
from landedcost.customs.schemas import (
    CodeSearchResponseModel,
    MissingCodesRequestModel,
    MissingCodesResponseModel,
    ResolveCodesRequestModel,
    ResolveCodesResponseModel,
    TariffSuggestionModel,
    UnmatchedLineModel,
)

router = APIRouter(
    prefix="/api/codes",
    tags=["codes"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/missing", response_model=MissingCodesResponseModel)
def missing_codes_endpoint(
    request: MissingCodesRequestModel,
    tables: RateTables = Depends(get_tables),
) -> MissingCodesResponseModel:
    lines = [line.to_line_item() for line in request.lines]
    unmatched = find_unmatched(lines, tables)
    return MissingCodesResponseModel(
        unmatched=[UnmatchedLineModel.from_unmatched(item) for item in unmatched],
        total_lines=len(lines),
    )


@router.get("/search", response_model=CodeSearchResponseModel)
def search_codes_endpoint(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=100),
    tables: RateTables = Depends(get_tables),
) -> CodeSearchResponseModel:
    results = suggest_codes(q, tables, limit=limit)
    return CodeSearchResponseModel(query=q, results=[TariffSuggestionModel.from_entry(e) for e in results])


@router.post("/resolve", response_model=ResolveCodesResponseModel)
def resolve_codes_endpoint(
    request: ResolveCodesRequestModel,
    tables: RateTables = Depends(get_tables),
) -> ResolveCodesResponseModel:
    lines = attach_tariffs([line.to_line_item() for line in request.lines], tables)
    try:
        outcome = apply_corrections(lines, request.corrections, tables)
    except (IndexError, ValueError) as exc:
        raise HTTPException(status_code=422, detail={"message": str(exc)}) from exc
    return ResolveCodesResponseModel.from_outcome(outcome)
