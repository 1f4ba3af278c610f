"""Copy grading with per-model fallbacks."""

from __future__ import annotations

import time
from typing import Mapping, Optional, Sequence, cast

from ..ai.capabilities import supports_forced_json
from ..ai.catalog import resolve_model
from ..ai.dispatcher import call_model
from ..ai.types import DispatchOptions
from ..call_log import CallRecord, report_call
from ..domain.grading import GradingResult, Rubric
from ..domain.messages import Message
from ..keys.credentials import Credentials
from ..normalize.grading import align_with_rubric, normalize_grading_result
from ..parsing.decoder import robust_json_parse
from ..settings import Settings
from .fallback import run_ordered_fallback
from .types import GradedCopy

# Models tried, in order, after the requested model fails.
FALLBACK_MODELS: Mapping[str, Sequence[str]] = {
    "deepseek-v3.2": ("mistral-large", "gemini-3-pro"),
}


def decode_grading(raw: str, rubric: Optional[Rubric] = None) -> Optional[GradingResult]:
    """Decode and normalize raw model text; align on the rubric when given."""
    result = normalize_grading_result(robust_json_parse(raw))
    if result is None or rubric is None:
        return result
    return align_with_rubric(result, rubric)


async def grade_copy(
    model_id: str,
    message: Message,
    credentials: Credentials,
    *,
    rubric: Optional[Rubric] = None,
    fallbacks: Optional[Sequence[str]] = None,
    settings: Optional[Settings] = None,
) -> GradedCopy:
    """Grade one copy, falling back to other models on failure.

    A response that decodes to no graded question counts as a failure.

    Raises:
        AggregateFallbackError: The requested model and its fallbacks all failed
    """
    chain = [model_id, *(FALLBACK_MODELS.get(model_id, ()) if fallbacks is None else fallbacks)]
    started = time.perf_counter()

    async def attempt(candidate: str) -> tuple[str, Optional[GradingResult]]:
        options = DispatchOptions(forced_json=supports_forced_json(candidate))
        raw = await call_model(candidate, message, credentials, options, settings=settings)
        result = decode_grading(raw, rubric)
        report_call(
            CallRecord(
                task_type="correction",
                model_id=candidate,
                provider=resolve_model(candidate).provider,
                prompt={"system": message.system_text, "user": message.user_text},
                response_raw=raw,
                response_parsed=result.to_dict() if result else None,
                elapsed_ms=round((time.perf_counter() - started) * 1000),
                options={"forced_json": options.forced_json},
            ),
            settings.call_log_dir if settings else None,
        )
        return raw, result

    outcome = await run_ordered_fallback(
        chain,
        attempt,
        accept=lambda value: value[1] is not None and bool(value[1].questions),
        task="correction",
    )
    raw, result = outcome.value
    return GradedCopy(
        result=cast(GradingResult, result),
        model_id=outcome.model_id,
        raw_text=raw,
        failures=outcome.failures,
    )
