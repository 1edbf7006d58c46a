"""Reference-data providers injected into the routes."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from landedcost.customs.rate_tables import RateTables, get_rate_tables
from landedcost.customs.settings import Settings, load_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def get_tables() -> RateTables:
    """Rate tables for the configured backend (``LCE_REFERENCE_BACKEND``)."""
    backend = os.getenv("LCE_REFERENCE_BACKEND", "memory").strip().lower()
    if backend == "sql":
        from landedcost.db.repository import get_sql_rate_tables

        return get_sql_rate_tables()
    if backend != "memory":
        logger.warning("Unknown reference backend %r, using in-memory tables", backend)
    return get_rate_tables()
