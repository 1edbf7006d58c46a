from __future__ import annotations

import os
from typing import Optional

from fastapi import Header, HTTPException

from landedcost.version import __version__

ENGINE_VERSION = os.getenv("LCE_ENGINE_VERSION", __version__)


def _parse_api_keys(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {key.strip() for key in raw.split(",") if key.strip()}


def allowed_api_keys() -> set[str]:
    """Return the configured API keys from env or fallback to a dev key."""

    keys = _parse_api_keys(os.getenv("LCE_API_KEYS"))
    if not keys:
        keys = {"dev-key"}
    return keys


def require_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    """Validate the ``X-API-Key`` header against the configured keys."""

    if not x_api_key:
        raise HTTPException(status_code=401, detail={"message": "Missing API key"})
    if x_api_key not in allowed_api_keys():
        raise HTTPException(status_code=401, detail={"message": "Invalid API key"})
    return x_api_key
