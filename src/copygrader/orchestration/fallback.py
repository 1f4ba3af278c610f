"""Ordered fallback across a ranked list of candidates."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from ..ai.catalog import get_model_label
from ..ai.errors import AggregateFallbackError, is_content_policy_error
from ..logging import log_event
from .types import AttemptFailure, FailureKind, FallbackOutcome

C = TypeVar("C")
R = TypeVar("R")


class RejectedResultError(Exception):
    """A candidate returned a result that failed the acceptance check."""


def classify_failure(error: BaseException) -> FailureKind:
    return "content-policy" if is_content_policy_error(error) else "error"


def describe_candidate(candidate: Any) -> tuple[str, str]:
    """Return ``(model_id, label)`` for a model id or a step-like object."""
    if isinstance(candidate, str):
        return candidate, get_model_label(candidate)
    model_id = str(getattr(candidate, "model_id"))
    return model_id, str(getattr(candidate, "label", None) or get_model_label(model_id))


def _accept_any(value: Any) -> bool:
    return True


async def run_ordered_fallback(
    candidates: Sequence[C],
    attempt: Callable[[C], Awaitable[R]],
    *,
    accept: Callable[[R], bool] = _accept_any,
    classify: Callable[[BaseException], FailureKind] = classify_failure,
    skip: Optional[Callable[[C, list[AttemptFailure]], bool]] = None,
    task: str = "",
) -> FallbackOutcome[R]:
    """Try candidates one at a time until one yields an accepted result.

    Candidates are attempted strictly in order and never concurrently. Every
    exception raised by a candidate is recorded; a result rejected by
    ``accept`` counts as a failure too. ``skip`` may drop a candidate given
    the failures so far.

    Raises:
        AggregateFallbackError: Every candidate failed or was skipped
    """
    failures: list[AttemptFailure] = []

    for candidate in candidates:
        model_id, label = describe_candidate(candidate)
        if skip is not None and skip(candidate, failures):
            log_event(
                "fallback_attempt",
                level=logging.INFO,
                task=task,
                model=model_id,
                label=label,
                outcome="skipped",
            )
            continue

        try:
            value = await attempt(candidate)
            if not accept(value):
                raise RejectedResultError(f"{label}: unusable result")
        except Exception as e:
            kind = classify(e)
            failures.append(AttemptFailure(model_id=model_id, label=label, kind=kind, error=e))
            log_event(
                "fallback_attempt",
                level=logging.WARNING,
                task=task,
                model=model_id,
                label=label,
                outcome="failed",
                kind=kind,
                error_type=type(e).__name__,
                error=str(e),
            )
            continue

        log_event(
            "fallback_attempt",
            level=logging.INFO,
            task=task,
            model=model_id,
            label=label,
            outcome="succeeded",
            failed_before=len(failures),
        )
        return FallbackOutcome(model_id=model_id, value=value, failures=tuple(failures))

    raise AggregateFallbackError(failures, task=task)
