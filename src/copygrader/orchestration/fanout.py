"""Fan-out of independent calls joined at the end."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Mapping, TypeVar

from ..logging import log_event
from .types import FanOutResult

T = TypeVar("T")


async def fan_out(
    primary: Awaitable[T],
    side_tasks: Mapping[str, Awaitable[Any]],
) -> FanOutResult[T]:
    """Run the primary call and named side calls concurrently.

    Every task runs to completion before this returns or raises. A failed
    side task yields ``None`` under its name; a failed primary task is
    re-raised once all side tasks have settled.
    """
    names = list(side_tasks)
    results = await asyncio.gather(primary, *side_tasks.values(), return_exceptions=True)

    side: dict[str, Any] = {}
    for name, result in zip(names, results[1:]):
        if isinstance(result, BaseException):
            log_event(
                "provider_log",
                level=logging.WARNING,
                provider=name,
                message=f"Side task failed (non-blocking): {type(result).__name__}: {result}",
            )
            side[name] = None
        else:
            side[name] = result

    primary_result = results[0]
    if isinstance(primary_result, BaseException):
        raise primary_result
    return FanOutResult(primary=primary_result, side=side)
