"""Centralized timeout policy and helpers."""

from __future__ import annotations

import math
from typing import Any

import httpx


# Grading and rubric calls routinely take minutes on reasoning models.
DEFAULT_TIMEOUT_SEC = 300

# Shared provider HTTP timeout buckets.
AI_HTTP_CONNECT_TIMEOUT_SEC = 10.0
AI_HTTP_WRITE_TIMEOUT_SEC = 60.0
AI_HTTP_POOL_TIMEOUT_SEC = 5.0

# Submit-then-poll OCR defaults.
POLL_INTERVAL_SEC = 1.0
POLL_MAX_ATTEMPTS = 60


def normalize_timeout(value: Any, fallback: int | float = DEFAULT_TIMEOUT_SEC) -> int | float:
    """Normalize timeout-like values to non-negative finite int/float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        normalized = float(fallback)
    else:
        normalized = float(value)
    if not math.isfinite(normalized) or normalized < 0:
        normalized = float(fallback)
    if normalized.is_integer():
        return int(normalized)
    return normalized


def build_ai_httpx_timeout(read_timeout_sec: int | float) -> httpx.Timeout | None:
    """Build httpx timeout config for provider clients.

    ``0`` means "wait forever" and yields ``None``.
    """
    timeout_sec = normalize_timeout(read_timeout_sec)
    if timeout_sec <= 0:
        return None
    return httpx.Timeout(
        connect=AI_HTTP_CONNECT_TIMEOUT_SEC,
        read=timeout_sec,
        write=AI_HTTP_WRITE_TIMEOUT_SEC,
        pool=AI_HTTP_POOL_TIMEOUT_SEC,
    )


def poll_budget_sec(interval_sec: float, max_attempts: int) -> float:
    """Hard wall-clock budget of a polling loop."""
    return float(interval_sec) * int(max_attempts)
