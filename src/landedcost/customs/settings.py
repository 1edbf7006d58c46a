"""Named numeric parameters consumed by the calculators.

Calculators never invent defaults: a key they need and do not find raises
:class:`MissingSettingError`.  Defaults are shipped as package data and applied
only by :func:`load_settings` (used by the API and CLI).
"""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent / "data" / "default_settings.json"


class MissingSettingError(KeyError):
    """A calculator needed a setting that is absent from the bag."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Missing required setting: {self.key}"


class Settings(Mapping[str, float]):
    """Immutable mapping of setting name to numeric value."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        cleaned: Dict[str, float] = {}
        for key, value in (values or {}).items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"Setting {key!r} must be numeric, got {value!r}")
            if math.isnan(value) or math.isinf(value):
                raise ValueError(f"Setting {key!r} must be finite, got {value!r}")
            cleaned[str(key)] = float(value)
        self._values = cleaned

    def __getitem__(self, key: str) -> float:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Settings({len(self._values)} keys)"

    def require(self, key: str) -> float:
        try:
            return self._values[key]
        except KeyError:
            raise MissingSettingError(key) from None

    def require_many(self, keys: Iterable[str]) -> List[float]:
        return [self.require(key) for key in keys]

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> "Settings":
        """Return a new bag with *overrides* layered on top."""
        if not overrides:
            return self
        merged: Dict[str, Any] = dict(self._values)
        merged.update(overrides)
        return Settings(merged)


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from JSON.

    Resolution order: explicit *path*, ``LCE_SETTINGS_PATH``, packaged defaults.
    A file that is not the packaged defaults is layered on top of them, so a
    deployment only needs to list the keys it changes.
    """
    defaults = _read_settings_file(DEFAULT_SETTINGS_PATH)
    source = path or os.getenv("LCE_SETTINGS_PATH")
    if not source:
        return Settings(defaults)
    source_path = Path(source)
    overrides = _read_settings_file(source_path)
    logger.info("Loaded %d setting overrides from %s", len(overrides), source_path.name)
    return Settings(defaults).with_overrides(overrides)


def _read_settings_file(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    data.pop("_comment", None)
    return data
