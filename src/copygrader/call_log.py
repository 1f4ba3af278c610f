"""Fire-and-forget reporting of outbound model calls.

A record is written as one JSON file per call when a directory is configured,
otherwise it is emitted as an ``llm_call`` log event. Reporting never raises
into the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import aiofiles  # type: ignore[import-untyped]

from .constants import CALL_LOG_FILE_EXTENSION
from .logging import log_event, summarize_text
from .time_utils import filename_timestamp, utc_now_iso

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Strong references so scheduled writes are not garbage-collected mid-flight.
_pending: set[asyncio.Task[Optional[Path]]] = set()


@dataclass(slots=True)
class CallRecord:
    """One outbound model call, as reported after it completed or failed."""

    task_type: str
    model_id: str
    provider: str
    prompt: dict[str, Any] = field(default_factory=dict)
    response_raw: str = ""
    response_parsed: Any = None
    elapsed_ms: float = 0.0
    options: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["meta"] = {"timestamp": utc_now_iso(), "elapsed_ms": self.elapsed_ms, **self.meta}
        return payload


def build_call_log_path(log_dir: str | Path, record: CallRecord) -> Path:
    """Build a unique file path for a call record."""
    directory = Path(log_dir)
    label = _UNSAFE_FILENAME_CHARS.sub("-", f"{record.task_type}_{record.model_id}")
    base_name = f"{filename_timestamp()}_{label}"
    candidate = directory / f"{base_name}{CALL_LOG_FILE_EXTENSION}"

    suffix = 1
    while candidate.exists():
        candidate = directory / f"{base_name}_{suffix}{CALL_LOG_FILE_EXTENSION}"
        suffix += 1
    return candidate


async def write_call_record(record: CallRecord, log_dir: str | Path) -> Optional[Path]:
    """Write one record to ``log_dir``; failures are logged and yield ``None``."""
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        path = build_call_log_path(log_dir, record)
        json_str = json.dumps(record.to_dict(), indent=2, ensure_ascii=False, default=str)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json_str)
    except (OSError, TypeError, ValueError) as e:
        log_event(
            "provider_log",
            level=logging.WARNING,
            provider=record.provider,
            message=f"Call log write failed: {type(e).__name__}: {e}",
        )
        return None
    return path


def _emit_call_event(record: CallRecord) -> None:
    log_event(
        "llm_call",
        level=logging.INFO,
        task_type=record.task_type,
        model=record.model_id,
        provider=record.provider,
        elapsed_ms=record.elapsed_ms,
        response_chars=len(record.response_raw),
        response_preview=summarize_text(record.response_raw[:200]),
        error=record.error,
    )


def report_call(
    record: CallRecord, log_dir: Optional[str | Path] = None
) -> Optional[asyncio.Task[Optional[Path]]]:
    """Report a call without blocking the caller.

    Returns the scheduled write task when a directory is configured and a
    loop is running, else ``None``.
    """
    if not log_dir:
        _emit_call_event(record)
        return None

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        log_event(
            "provider_log",
            level=logging.WARNING,
            provider=record.provider,
            message="Call log skipped: no running event loop",
        )
        return None

    task = loop.create_task(write_call_record(record, log_dir))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain_reports() -> None:
    """Wait for every scheduled call-log write to finish."""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
