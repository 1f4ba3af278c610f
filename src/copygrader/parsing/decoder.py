"""Robust JSON recovery for unreliable model output.

``robust_json_parse`` never raises. Strategies run in order and the first one
that yields a value wins:

1. the whole text parsed as JSON;
2. the span from the first ``{`` to the last ``}``;
3. that span after textual repair;
4. the first fenced code block, parsed as-is and then after repair.

Repair is purely textual. ``normalize_quotes`` rewrites every single quote,
including apostrophes inside string values (``l'élève`` becomes ``l"élève``).
That corrupts some free text but recovers otherwise unparseable payloads; the
normalizers downstream tolerate the damage.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

_OBJECT_SPAN_RE = re.compile(r"\{.*\}", re.DOTALL)
_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"//[^\n]*")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_line_comments(text: str) -> str:
    """Remove ``// ...`` comments up to the end of the line."""
    return _LINE_COMMENT_RE.sub("", text)


def strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace or bracket."""
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def normalize_quotes(text: str) -> str:
    """Replace every single quote with a double quote."""
    return text.replace("'", '"')


def balance_brackets(text: str) -> str:
    """Append the closing ``}`` and ``]`` needed to match the opening counts."""
    missing_braces = text.count("{") - text.count("}")
    if missing_braces > 0:
        text += "}" * missing_braces
    missing_brackets = text.count("[") - text.count("]")
    if missing_brackets > 0:
        text += "]" * missing_brackets
    return text


RepairStep = Callable[[str], str]

REPAIR_STEPS: tuple[RepairStep, ...] = (
    strip_line_comments,
    strip_trailing_commas,
    normalize_quotes,
    balance_brackets,
)


def repair_json(text: str) -> str:
    """Apply every repair step in order."""
    for step in REPAIR_STEPS:
        text = step(text)
    return text


_MISSING = object()


def _try_loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return _MISSING


def robust_json_parse(raw: str | None) -> Any:
    """Recover a JSON value from model text, or return ``None``."""
    if not isinstance(raw, str):
        return None

    value = _try_loads(raw)
    if value is not _MISSING:
        return value

    span = _OBJECT_SPAN_RE.search(raw)
    if span:
        value = _try_loads(span.group(0))
        if value is not _MISSING:
            return value
        value = _try_loads(repair_json(span.group(0)))
        if value is not _MISSING:
            return value

    fenced = _FENCED_BLOCK_RE.search(raw)
    if fenced:
        inner = fenced.group(1)
        value = _try_loads(inner)
        if value is not _MISSING:
            return value
        value = _try_loads(repair_json(inner))
        if value is not _MISSING:
            return value

    return None
