"""Detection and correction of invoice lines whose code is not in the tariff."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

from landedcost.customs.codes import normalize_code
from landedcost.customs.models import LineItem, UnmatchedLine
from landedcost.customs.rate_tables import RateTables, TariffEntry

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


@dataclass(frozen=True)
class CodeCorrection:
    index: int
    previous_code: str
    new_code: str
    resolved: bool


@dataclass(frozen=True)
class CorrectionOutcome:
    lines: Tuple[LineItem, ...]
    history: Tuple[CodeCorrection, ...]

    @property
    def still_unmatched(self) -> List[int]:
        return [index for index, line in enumerate(self.lines) if line.tariff is None]


def find_unmatched(lines: Sequence[LineItem], tables: RateTables) -> List[UnmatchedLine]:
    """Lines with no tariff snapshot and no tariff entry for their code."""
    unmatched: List[UnmatchedLine] = []
    for index, line in enumerate(lines):
        if line.tariff is not None or tables.tariff(line.code) is not None:
            continue
        unmatched.append(
            UnmatchedLine(index=index, code=line.code, description=line.description, line_total=line.line_total)
        )
    return unmatched


def suggest_codes(query: str, tables: RateTables, limit: int = 10) -> List[TariffEntry]:
    """Code-substring matches first, then description matches, de-duplicated."""
    text = (query or "").strip()
    if len(text) < MIN_QUERY_LENGTH or limit <= 0:
        return []
    seen: Dict[str, TariffEntry] = {}
    for entry in tables.search_tariffs_by_code(text, limit=limit):
        seen.setdefault(entry.normalized_code, entry)
    if len(seen) < limit:
        for entry in tables.search_tariffs_by_description(text, limit=limit):
            seen.setdefault(entry.normalized_code, entry)
    return list(seen.values())[:limit]


def apply_corrections(
    lines: Sequence[LineItem],
    corrections: Mapping[int, str],
    tables: RateTables,
) -> CorrectionOutcome:
    """Return new lines with corrected codes and freshly looked-up snapshots.

    The whole snapshot is replaced; a corrected code that is itself absent from
    the tariff leaves the line unmatched.
    """
    updated: List[LineItem] = list(lines)
    history: List[CodeCorrection] = []
    for index in sorted(corrections):
        if index < 0 or index >= len(updated):
            raise IndexError(f"No line at index {index}")
        new_code = str(corrections[index]).strip()
        if not normalize_code(new_code):
            raise ValueError(f"Empty replacement code for line {index}")
        line = updated[index]
        tariff = tables.tariff(new_code)
        updated[index] = LineItem(
            code=new_code,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            net_weight_kg=line.net_weight_kg,
            declared_total=line.declared_total,
            tariff=tariff,
        )
        history.append(
            CodeCorrection(index=index, previous_code=line.code, new_code=new_code, resolved=tariff is not None)
        )
        if tariff is None:
            logger.info("Corrected code %s for line %d is not in the tariff", new_code, index)
    return CorrectionOutcome(lines=tuple(updated), history=tuple(history))
