"""
Lightweight observability utilities.

Every outbound call to the leave-management API and every submission
attempt produces a structured latency record, so a slow or failing backend
can be told apart from a validation problem in the form itself.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger("leave_form.trace")


def _format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)


@contextmanager
def trace_span(name: str, **metadata) -> Iterator[dict[str, Any]]:
    """
    Record duration and outcome of one operation.

    Yields a dict the caller may enrich while the span is open (e.g. the
    number of rows returned or the id of the created permission). Those
    fields are logged together with the initial metadata.

    Example logs:
    [TRACE] create_leave_request outcome=ok duration_ms=43.21 employee=Ana id=42
    [TRACE] create_leave_request outcome=NetworkError duration_ms=10.02 employee=Ana

    Successful spans log at INFO, failed ones at WARNING. The exception is
    always re-raised.
    """
    span: dict[str, Any] = dict(metadata)
    outcome = "ok"
    start = time.perf_counter()
    try:
        yield span
    except BaseException as e:
        outcome = type(e).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.INFO if outcome == "ok" else logging.WARNING
        logger.log(
            level,
            "[TRACE] %s outcome=%s duration_ms=%.2f %s",
            name,
            outcome,
            duration_ms,
            _format_fields(span),
        )
