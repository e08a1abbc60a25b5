"""Recover a JSON value from free-form model output."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _candidates(text: str) -> Iterator[Tuple[str, str]]:
    fenced = _FENCED_JSON.search(text)
    if fenced and fenced.group(1).strip():
        yield "fenced", fenced.group(1).strip()

    # Greedy spans from the first opening bracket to the last closing one.
    for label, opener, closer in (("object", "{", "}"), ("array", "[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            yield label, text[start : end + 1]

    yield "whole", text


def extract_json(text: Any) -> Optional[Any]:
    """Return the first JSON value found, or None.

    Candidates are tried in a fixed order: a fenced code block, the widest
    ``{...}`` span, the widest ``[...]`` span, then the whole text. Malformed
    input never raises.
    """
    if not isinstance(text, str):
        return None
    clean = text.strip()
    if not clean:
        return None

    for label, candidate in _candidates(clean):
        try:
            return json.loads(candidate)
        except (ValueError, RecursionError) as exc:
            logger.debug("JSON candidate %s did not parse: %s", label, exc)
    return None
