"""
dashboard/logging_utils.py

Structured log lines for pipeline milestones.

Each line is one compact JSON object: ``event`` and ``component`` first,
then the caller's fields in sorted order. Fields whose value is ``None`` are
left out; tuples, sets and frozensets are written as lists.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def _jsonable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, tuple):
        return list(value)
    return value


def build_event_payload(component: str, event: str, fields: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {"event": event, "component": component}
    for key in sorted(fields):
        if fields[key] is not None:
            payload[key] = _jsonable(fields[key])
    return payload


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one pipeline milestone; ``component`` is the last part of the
    logger name (``analysis_service``, ``period_aggregator``, ...).
    """

    if not logger.isEnabledFor(level):
        return
    component = logger.name.rsplit(".", 1)[-1]
    logger.log(level, json.dumps(build_event_payload(component, event, fields), default=str))
