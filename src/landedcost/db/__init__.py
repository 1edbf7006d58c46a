"""Relational storage for the reference tables.

Provides SQLAlchemy models, session management and the SQL rate-table
repository.
"""

from landedcost.db.models import Base, ExemptionRow, PortFeeRow, TariffRow
from landedcost.db.repository import SqlRateTables, load_packaged_seed, load_seed
from landedcost.db.session import (
    SessionLocal,
    build_engine,
    drop_all,
    engine,
    get_standalone_session,
    init_db,
)

__all__ = [
    # Models
    "Base",
    "TariffRow",
    "ExemptionRow",
    "PortFeeRow",
    # Repository
    "SqlRateTables",
    "load_seed",
    "load_packaged_seed",
    # Session management
    "engine",
    "SessionLocal",
    "build_engine",
    "get_standalone_session",
    "init_db",
    "drop_all",
]
