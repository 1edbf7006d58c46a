"""SQL-backed implementation of the :class:`RateTables` repository."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from landedcost.customs.codes import normalize_code, short_code
from landedcost.customs.rate_tables import (
    ExemptionEntry,
    PortFeeEntry,
    TariffEntry,
    load_exemptions,
    load_port_fees,
    load_tariffs,
    seed_path,
)
from landedcost.db.models import ExemptionRow, PortFeeRow, TariffRow

logger = logging.getLogger(__name__)

_TARIFF_RATE_COLUMNS = (
    "customs_duty",
    "statistical_tax",
    "community_levy",
    "solidarity_levy",
    "other_levy",
    "consumption_tax",
    "rrr",
    "rcp",
    "cumulative_without_tax",
    "cumulative_with_tax",
)


def _tariff_from_row(row: TariffRow) -> TariffEntry:
    return TariffEntry(
        code=row.raw_code,
        description=row.description or "",
        short_code=row.short_code,
        **{name: float(getattr(row, name) or 0.0) for name in _TARIFF_RATE_COLUMNS},
    )


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlRateTables:
    """Read-only rate tables over an SQLAlchemy session factory.

    Every lookup opens a short-lived session, so one instance can be shared
    across requests.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def tariff(self, code: str) -> Optional[TariffEntry]:
        key = normalize_code(code)
        if not key:
            return None
        with self._session_factory() as session:
            row = session.get(TariffRow, key)
            if row is None:
                row = session.scalars(
                    select(TariffRow).where(TariffRow.short_code == key).order_by(TariffRow.code).limit(1)
                ).first()
            return _tariff_from_row(row) if row is not None else None

    def exemption(self, code: str) -> Optional[ExemptionEntry]:
        key = normalize_code(code)
        if not key:
            return None
        with self._session_factory() as session:
            row = session.get(ExemptionRow, key)
            if row is None:
                return None
            return ExemptionEntry(code=row.raw_code, description=row.description or "", exempt=bool(row.exempt))

    def port_fee(self, category: str) -> Optional[PortFeeEntry]:
        key = str(category or "").strip().upper()
        if not key:
            return None
        with self._session_factory() as session:
            row = session.get(PortFeeRow, key)
            if row is None:
                return None
            return PortFeeEntry(
                category=row.category,
                label=row.label or "",
                port_rate_per_tonne=float(row.port_rate_per_tonne or 0.0),
                municipal_rate_per_tonne=float(row.municipal_rate_per_tonne or 0.0),
            )

    def search_tariffs_by_code(self, query: str, limit: int = 10) -> List[TariffEntry]:
        needle = normalize_code(query)
        if not needle:
            return []
        pattern = f"%{_like_escape(needle)}%"
        stmt = (
            select(TariffRow)
            .where(or_(TariffRow.code.like(pattern, escape="\\"), TariffRow.short_code.like(pattern, escape="\\")))
            .order_by(TariffRow.code)
        )
        with self._session_factory() as session:
            rows = session.scalars(stmt).all()
            entries = [_tariff_from_row(row) for row in rows]
        entries.sort(key=lambda e: (not e.normalized_code.startswith(needle), e.normalized_code))
        return entries[:limit]

    def search_tariffs_by_description(self, query: str, limit: int = 10) -> List[TariffEntry]:
        needle = query.strip().lower()
        if not needle:
            return []
        pattern = f"%{_like_escape(needle)}%"
        stmt = (
            select(TariffRow)
            .where(TariffRow.description.ilike(pattern, escape="\\"))
            .order_by(TariffRow.code)
            .limit(limit)
        )
        with self._session_factory() as session:
            return [_tariff_from_row(row) for row in session.scalars(stmt).all()]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------
def load_seed(
    session: Session,
    tariffs: Iterable[TariffEntry] = (),
    exemptions: Iterable[ExemptionEntry] = (),
    port_fees: Iterable[PortFeeEntry] = (),
) -> Dict[str, int]:
    """Upsert reference entries; the caller owns the transaction."""
    counts = {"tariffs": 0, "exemptions": 0, "port_fees": 0}
    for entry in tariffs:
        session.merge(
            TariffRow(
                code=entry.normalized_code,
                raw_code=entry.code,
                short_code=normalize_code(entry.short_code) or short_code(entry.code),
                description=entry.description,
                **{name: getattr(entry, name) for name in _TARIFF_RATE_COLUMNS},
            )
        )
        counts["tariffs"] += 1
    for entry in exemptions:
        session.merge(
            ExemptionRow(
                code=normalize_code(entry.code),
                raw_code=entry.code,
                description=entry.description,
                exempt=entry.exempt,
            )
        )
        counts["exemptions"] += 1
    for entry in port_fees:
        session.merge(
            PortFeeRow(
                category=entry.category.strip().upper(),
                label=entry.label,
                port_rate_per_tonne=entry.port_rate_per_tonne,
                municipal_rate_per_tonne=entry.municipal_rate_per_tonne,
            )
        )
        counts["port_fees"] += 1
    session.flush()
    logger.info(
        "Seeded %d tariffs, %d exemptions, %d port fees",
        counts["tariffs"],
        counts["exemptions"],
        counts["port_fees"],
    )
    return counts


def load_packaged_seed(session: Session) -> Dict[str, int]:
    """Seed from the files named by ``LCE_*_PATH`` or the packaged samples."""
    return load_seed(
        session,
        tariffs=load_tariffs(seed_path("LCE_TARIFFS_PATH", "sample_tariffs.json")),
        exemptions=load_exemptions(seed_path("LCE_EXEMPTIONS_PATH", "sample_exemptions.json")),
        port_fees=load_port_fees(seed_path("LCE_PORT_FEES_PATH", "sample_port_fees.json")),
    )


@lru_cache(maxsize=1)
def get_sql_rate_tables() -> SqlRateTables:
    from landedcost.db.session import SessionLocal

    return SqlRateTables(SessionLocal)
