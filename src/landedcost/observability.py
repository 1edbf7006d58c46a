"""Run-scoped logging context for landed-cost computations.

Each API request or CLI invocation gets a run id held in a ``ContextVar``.
:class:`RunIdFilter` stamps it on every log record so one computation can be
followed across the calculators, and :func:`log_event` emits structured
events carrying it in ``record.payload``.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_run_id_ctx: ContextVar[Optional[str]] = ContextVar("landedcost_run_id", default=None)


def current_run_id() -> Optional[str]:
    return _run_id_ctx.get()


@contextmanager
def run_scope(run_id: Optional[str] = None) -> Iterator[str]:
    """Bind *run_id* (or a fresh one) for the duration of the block."""
    value = run_id or uuid.uuid4().hex
    token = _run_id_ctx.set(value)
    try:
        yield value
    finally:
        _run_id_ctx.reset(token)


class RunIdFilter(logging.Filter):
    """Copy the active run id onto ``record.run_id`` ("-" outside a run)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = current_run_id() or "-"
        return True


def redact_api_key(raw: Optional[str]) -> str:
    """Keep the first four characters of an API key for log correlation."""

    if not raw:
        return "<missing>"
    if len(raw) <= 4:
        return "****"
    return f"{raw[:4]}{'*' * min(len(raw) - 4, 8)}"


def log_event(message: str, level: int = logging.INFO, **fields: object) -> None:
    """Log a structured event; *fields* and the run id land in ``record.payload``."""

    payload = {"run_id": current_run_id(), **fields}
    logger.log(level, message, extra={"payload": payload})
