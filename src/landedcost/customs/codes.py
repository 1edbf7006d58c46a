"""Product-code normalization shared by every reference table."""

from __future__ import annotations

import re

_CODE_NOISE_RE = re.compile(r"[\s.\-_/,;:]")


def normalize_code(code: object) -> str:
    """Strip whitespace and punctuation from a tariff code.

    ``"8471.30 00.00"`` and ``"8471300000"`` normalize to the same key.  Codes
    read from spreadsheets sometimes arrive as floats; a trailing ``.0`` is
    dropped before stripping so ``8471300000.0`` does not gain a digit.
    """
    text = str(code if code is not None else "").strip()
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return _CODE_NOISE_RE.sub("", text).upper()


def short_code(code: object) -> str:
    """Return the 6-digit heading of a normalized code."""
    return normalize_code(code)[:6]
