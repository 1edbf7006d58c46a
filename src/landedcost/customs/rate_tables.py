"""Reference rate tables consumed by the landed-cost engine.

Three independent, read-only lookups keyed by a normalized code:

* the Tariff Table (product code -> duty component rates and the two
  precomputed cumulative rates);
* the Exemption Table (product code -> exemption flag; membership marks a line
  as subject to the conformity certificate, COC);
* the Port-Fee Table (category -> per-tonne port and municipal levy rates).

The engine only ever talks to the :class:`RateTables` protocol so it can be
tested without a live data source.  :class:`InMemoryRateTables` is loaded from
JSON or CSV seed files; an SQL-backed implementation lives in
:mod:`landedcost.db.repository`.
"""

from __future__ import annotations

import csv
import json
import logging
import os
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from landedcost.customs.codes import normalize_code, short_code

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).resolve().parent / "data"


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TariffEntry:
    """Single tariff line.  All rates are percentages (``20.3`` means 20.3%)."""

    code: str
    description: str = ""
    customs_duty: float = 0.0
    statistical_tax: float = 0.0
    community_levy: float = 0.0
    solidarity_levy: float = 0.0
    other_levy: float = 0.0
    consumption_tax: float = 0.0
    rrr: float = 0.0
    rcp: float = 0.0
    cumulative_without_tax: float = 0.0
    cumulative_with_tax: float = 0.0
    short_code: str = ""

    @property
    def normalized_code(self) -> str:
        return normalize_code(self.code)

    @property
    def components(self) -> Dict[str, float]:
        return {
            "customs_duty": self.customs_duty,
            "statistical_tax": self.statistical_tax,
            "community_levy": self.community_levy,
            "solidarity_levy": self.solidarity_levy,
            "other_levy": self.other_levy,
        }

    def validate(self) -> List[str]:
        """Return invariant violations (empty when the entry is consistent)."""
        problems: List[str] = []
        for name, value in {**self.components, "consumption_tax": self.consumption_tax}.items():
            if value < 0:
                problems.append(f"{name} is negative ({value})")
        for name, value in self.components.items():
            if value > self.cumulative_without_tax + 1e-9:
                problems.append(f"{name} {value} exceeds cumulative_without_tax {self.cumulative_without_tax}")
            if value > self.cumulative_with_tax + 1e-9:
                problems.append(f"{name} {value} exceeds cumulative_with_tax {self.cumulative_with_tax}")
        if self.consumption_tax > self.cumulative_with_tax + 1e-9:
            problems.append(
                f"consumption_tax {self.consumption_tax} exceeds cumulative_with_tax {self.cumulative_with_tax}"
            )
        return problems

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ExemptionEntry:
    """Product subject to origin verification / conformity certification."""

    code: str
    description: str = ""
    exempt: bool = True


@dataclass(frozen=True)
class PortFeeEntry:
    """Per-tonne port and municipal levy rates for a goods category."""

    category: str
    label: str = ""
    port_rate_per_tonne: float = 0.0
    municipal_rate_per_tonne: float = 0.0


# ---------------------------------------------------------------------------
# Repository interface
# ---------------------------------------------------------------------------
class RateTables(Protocol):
    """Read-only repository over the three reference tables."""

    def tariff(self, code: str) -> Optional[TariffEntry]:
        ...

    def exemption(self, code: str) -> Optional[ExemptionEntry]:
        ...

    def port_fee(self, category: str) -> Optional[PortFeeEntry]:
        ...

    def search_tariffs_by_code(self, query: str, limit: int = 10) -> List[TariffEntry]:
        ...

    def search_tariffs_by_description(self, query: str, limit: int = 10) -> List[TariffEntry]:
        ...


# ---------------------------------------------------------------------------
# Row coercion
# ---------------------------------------------------------------------------
_TARIFF_ALIASES: Dict[str, str] = {
    "sh10code": "code",
    "sh10_code": "code",
    "hs_code": "code",
    "designation": "description",
    "sh6code": "short_code",
    "sh6_code": "short_code",
    "dd": "customs_duty",
    "rsta": "statistical_tax",
    "pcs": "community_levy",
    "pua": "solidarity_levy",
    "pcc": "other_levy",
    "tva": "consumption_tax",
    "cumulsanstva": "cumulative_without_tax",
    "cumulavectva": "cumulative_with_tax",
}

_TARIFF_RATE_FIELDS = (
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


def _as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        value = value.replace(" ", "").replace(" ", "").replace(",", ".").rstrip("%")
    return float(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "oui", "y"}
    return bool(value)


def tariff_from_record(record: Mapping[str, Any]) -> TariffEntry:
    """Build a :class:`TariffEntry` from a seed row, accepting legacy column names."""
    canonical: Dict[str, Any] = {}
    for key, value in record.items():
        name = str(key).strip()
        name = _TARIFF_ALIASES.get(name.lower().replace(" ", ""), name)
        canonical[name] = value

    code = str(canonical.get("code", "")).strip()
    if not normalize_code(code):
        raise ValueError("tariff row has no code")
    rates = {name: _as_float(canonical.get(name)) for name in _TARIFF_RATE_FIELDS}
    if not rates["cumulative_without_tax"]:
        rates["cumulative_without_tax"] = sum(
            rates[name] for name in ("customs_duty", "statistical_tax", "community_levy", "solidarity_levy", "other_levy")
        )
    if not rates["cumulative_with_tax"]:
        rates["cumulative_with_tax"] = rates["cumulative_without_tax"] + rates["consumption_tax"]
    return TariffEntry(
        code=code,
        description=str(canonical.get("description", "") or ""),
        short_code=normalize_code(canonical.get("short_code") or "") or short_code(code),
        **rates,
    )


def exemption_from_record(record: Mapping[str, Any]) -> ExemptionEntry:
    code = str(record.get("code", record.get("codeSH", ""))).strip()
    if not normalize_code(code):
        raise ValueError("exemption row has no code")
    return ExemptionEntry(
        code=code,
        description=str(record.get("description", record.get("designation", "")) or ""),
        exempt=_as_bool(record.get("exempt", record.get("exempte", True))),
    )


def port_fee_from_record(record: Mapping[str, Any]) -> PortFeeEntry:
    category = str(record.get("category", record.get("tp", ""))).strip()
    if not category:
        raise ValueError("port-fee row has no category")
    return PortFeeEntry(
        category=category,
        label=str(record.get("label", record.get("libelle_produit", "")) or ""),
        port_rate_per_tonne=_as_float(record.get("port_rate_per_tonne")),
        municipal_rate_per_tonne=_as_float(record.get("municipal_rate_per_tonne")),
    )


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------
class InMemoryRateTables:
    """Indexed in-memory rate tables.

    Tariff lookups try the full normalized code first and then the 6-digit
    short code, mirroring how invoices mix 10-digit and 6-digit codes.
    """

    def __init__(
        self,
        tariffs: Iterable[TariffEntry] = (),
        exemptions: Iterable[ExemptionEntry] = (),
        port_fees: Iterable[PortFeeEntry] = (),
    ) -> None:
        self._tariffs: Dict[str, TariffEntry] = {}
        self._tariffs_by_short: Dict[str, TariffEntry] = {}
        self._exemptions: Dict[str, ExemptionEntry] = {}
        self._port_fees: Dict[str, PortFeeEntry] = {}
        for entry in tariffs:
            self._add_tariff(entry)
        for entry in exemptions:
            self._exemptions[normalize_code(entry.code)] = entry
        for entry in port_fees:
            self._port_fees[entry.category.strip().upper()] = entry

    def _add_tariff(self, entry: TariffEntry) -> None:
        key = entry.normalized_code
        self._tariffs[key] = entry
        short = normalize_code(entry.short_code) or short_code(entry.code)
        if not short:
            return
        # A heading shared by several codes resolves to the lowest code.
        current = self._tariffs_by_short.get(short)
        if current is None or key < current.normalized_code:
            self._tariffs_by_short[short] = entry

    # -- lookups -----------------------------------------------------------

    def tariff(self, code: str) -> Optional[TariffEntry]:
        key = normalize_code(code)
        if not key:
            return None
        return self._tariffs.get(key) or self._tariffs_by_short.get(key)

    def exemption(self, code: str) -> Optional[ExemptionEntry]:
        key = normalize_code(code)
        if not key:
            return None
        return self._exemptions.get(key)

    def port_fee(self, category: str) -> Optional[PortFeeEntry]:
        return self._port_fees.get(str(category or "").strip().upper())

    def search_tariffs_by_code(self, query: str, limit: int = 10) -> List[TariffEntry]:
        needle = normalize_code(query)
        if not needle:
            return []
        matches = [
            entry
            for key, entry in self._tariffs.items()
            if needle in key or needle in normalize_code(entry.short_code)
        ]
        matches.sort(key=lambda e: (not e.normalized_code.startswith(needle), e.normalized_code))
        return matches[:limit]

    def search_tariffs_by_description(self, query: str, limit: int = 10) -> List[TariffEntry]:
        needle = query.strip().lower()
        if not needle:
            return []
        matches = [entry for entry in self._tariffs.values() if needle in entry.description.lower()]
        matches.sort(key=lambda e: e.normalized_code)
        return matches[:limit]

    # -- introspection -----------------------------------------------------

    @property
    def tariffs(self) -> Sequence[TariffEntry]:
        return tuple(self._tariffs.values())

    @property
    def exemptions(self) -> Sequence[ExemptionEntry]:
        return tuple(self._exemptions.values())

    @property
    def port_fees(self) -> Sequence[PortFeeEntry]:
        return tuple(self._port_fees.values())

    def counts(self) -> Dict[str, int]:
        return {
            "tariffs": len(self._tariffs),
            "exemptions": len(self._exemptions),
            "port_fees": len(self._port_fees),
        }


# ---------------------------------------------------------------------------
# Seed loaders
# ---------------------------------------------------------------------------
def _read_rows(path: Path, key: str) -> List[Mapping[str, Any]]:
    if path.suffix.lower() == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as handle:
            return list(csv.DictReader(handle))
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return data
    return list(data.get(key, []))


def load_tariffs(path: Path) -> List[TariffEntry]:
    """Load tariff lines from a JSON (``{"tariffs": [...]}``) or CSV seed."""
    entries: List[TariffEntry] = []
    for row_number, row in enumerate(_read_rows(path, "tariffs"), start=1):
        try:
            entry = tariff_from_record(row)
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping tariff row %d in %s: %s", row_number, path.name, exc)
            continue
        problems = entry.validate()
        if problems:
            logger.warning("Skipping tariff %s in %s: %s", entry.code, path.name, "; ".join(problems))
            continue
        entries.append(entry)
    logger.info("Loaded %d tariff entries from %s", len(entries), path.name)
    return entries


def load_exemptions(path: Path) -> List[ExemptionEntry]:
    entries: List[ExemptionEntry] = []
    for row_number, row in enumerate(_read_rows(path, "exemptions"), start=1):
        try:
            entries.append(exemption_from_record(row))
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping exemption row %d in %s: %s", row_number, path.name, exc)
    logger.info("Loaded %d exemption entries from %s", len(entries), path.name)
    return entries


def load_port_fees(path: Path) -> List[PortFeeEntry]:
    entries: List[PortFeeEntry] = []
    for row_number, row in enumerate(_read_rows(path, "port_fees"), start=1):
        try:
            entries.append(port_fee_from_record(row))
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping port-fee row %d in %s: %s", row_number, path.name, exc)
    logger.info("Loaded %d port-fee entries from %s", len(entries), path.name)
    return entries


def load_rate_tables(
    tariffs_path: Path | None = None,
    exemptions_path: Path | None = None,
    port_fees_path: Path | None = None,
) -> InMemoryRateTables:
    """Build in-memory tables, defaulting to the packaged sample seeds."""
    return InMemoryRateTables(
        tariffs=load_tariffs(tariffs_path or seed_path("LCE_TARIFFS_PATH", "sample_tariffs.json")),
        exemptions=load_exemptions(exemptions_path or seed_path("LCE_EXEMPTIONS_PATH", "sample_exemptions.json")),
        port_fees=load_port_fees(port_fees_path or seed_path("LCE_PORT_FEES_PATH", "sample_port_fees.json")),
    )


def seed_path(env_var: str, default_name: str) -> Path:
    raw = os.getenv(env_var)
    return Path(raw) if raw else _DATA_DIR / default_name


@lru_cache(maxsize=1)
def get_rate_tables() -> InMemoryRateTables:
    """Process-wide default tables (built once, never mutated)."""
    return load_rate_tables()
