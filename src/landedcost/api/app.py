from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from landedcost.api.deps import get_settings, get_tables
from landedcost.api.routes_codes import router as codes_router
from landedcost.api.routes_landed_cost import router as landed_cost_router
from landedcost.api.security import ENGINE_VERSION
from landedcost.customs.models import LineItemValidationError, ShipmentValidationError
from landedcost.customs.settings import MissingSettingError
from landedcost.observability import log_event, redact_api_key, run_scope

# -----------------------------------------------------------------------------
# App setup
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Reference data is loaded once per process.
    settings = get_settings()
    tables = get_tables()
    logger.info("Reference data ready: %d settings, backend %s", len(settings), type(tables).__name__)
    yield


app = FastAPI(title="landed-cost-engine API", version="v1", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(landed_cost_router)
app.include_router(codes_router)


@app.middleware("http")
async def attach_run_id(request: Request, call_next):
    redacted_key = redact_api_key(request.headers.get("X-API-Key"))
    with run_scope(request.headers.get("X-Run-ID")) as run_id:
        log_event("request.start", path=request.url.path, api_key=redacted_key)
        response = await call_next(request)
        response.headers["X-Run-ID"] = run_id
        log_event("request.end", path=request.url.path, status=response.status_code)
        return response


# -----------------------------------------------------------------------------
# Error mapping
# -----------------------------------------------------------------------------
def _redact_message(msg: str) -> str:
    if msg.lower().startswith("value error, "):
        msg = msg.split(", ", 1)[1]
    lowered = msg.lower()
    if "api key" in lowered or "token" in lowered or "secret" in lowered:
        return "Invalid request payload"
    return msg


def _normalize_validation_errors(raw_errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    fields: List[Dict[str, str]] = []
    for err in raw_errors:
        loc = err.get("loc", [])
        loc_parts = [str(part) for part in loc if part != "body"]
        path = ".".join(["request", *loc_parts]) if loc_parts else "request"
        message = _redact_message(err.get("msg", "Invalid request"))
        fields.append({"path": path, "message": message})
    return {"error": "VALIDATION_ERROR", "fields": fields}


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=_normalize_validation_errors(exc.errors()))


@app.exception_handler(ValidationError)
async def handle_pydantic_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content=_normalize_validation_errors(exc.errors()))


@app.exception_handler(LineItemValidationError)
@app.exception_handler(ShipmentValidationError)
async def handle_input_error(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=422,
        content={"error": "VALIDATION_ERROR", "fields": [{"path": "request", "message": str(exc)}]},
    )


@app.exception_handler(MissingSettingError)
async def handle_missing_setting(request: Request, exc: MissingSettingError):
    logger.error("Computation aborted, missing setting %s", exc.key)
    return JSONResponse(
        status_code=500,
        content={"error": "MISSING_SETTING", "setting": exc.key, "message": str(exc)},
    )


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@app.get("/v1/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "status": "ok", "engine_version": ENGINE_VERSION}
