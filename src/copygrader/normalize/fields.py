"""Field lookup and coercion helpers shared by the normalizers.

Every helper is total: bad input degrades to the supplied default.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

_POINTS_IN_TEXT_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:pts?|points?)\b", re.IGNORECASE)
_POINTS_IN_PARENS_RE = re.compile(r"\((\d+(?:[.,]\d+)?)\s*(?:pts?|points?)\)", re.IGNORECASE)


def to_number(value: Any) -> int | float | None:
    """Coerce ints, floats and numeric strings; ``bool`` is not a number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first value among ``keys`` that is present and not null."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def first_number(
    data: Mapping[str, Any], keys: Iterable[str], default: int | float = 0
) -> int | float:
    for key in keys:
        number = to_number(data.get(key))
        if number is not None:
            return number
    return default


def first_text(data: Mapping[str, Any], keys: Iterable[str], default: str = "") -> str:
    """Return the first non-empty value among ``keys`` as text."""
    for key in keys:
        value = data.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return default


def first_list(data: Mapping[str, Any], keys: Iterable[str]) -> list[Any] | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, list):
            return value
    return None


def text_list(value: Any) -> tuple[str, ...]:
    """Coerce a list of anything into a tuple of non-empty strings."""
    if not isinstance(value, list):
        return ()
    items: list[str] = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, Mapping):
            text = first_text(item, ("description", "text", "message", "erreur", "error"))
        else:
            text = str(item).strip()
        if text:
            items.append(text)
    return tuple(items)


def points_from_text(text: str, *, parenthesized: bool = False) -> int | float:
    """Read a ``2 pts`` style amount out of free text, ``0`` when absent."""
    pattern = _POINTS_IN_PARENS_RE if parenthesized else _POINTS_IN_TEXT_RE
    match = pattern.search(text)
    if not match:
        return 0
    number = to_number(match.group(1))
    return number if number is not None else 0


def sum_points(values: Iterable[int | float]) -> int | float:
    total: int | float = 0
    for value in values:
        total += value
    if isinstance(total, float) and total.is_integer():
        return int(total)
    return total
