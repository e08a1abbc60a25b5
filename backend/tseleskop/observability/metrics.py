"""Counters and timings recorded as short Opik traces."""
from __future__ import annotations

from typing import Any, Dict, Optional

from tseleskop.observability.tracing import trace


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    with trace(f"metric:{name}", metadata=payload):
        pass
