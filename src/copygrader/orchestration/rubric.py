"""Rubric generation, run alongside the document transcriptions it needs."""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Iterable, Optional

from ..ai.capabilities import is_multimodal
from ..ai.catalog import resolve_model
from ..ai.dispatcher import call_model
from ..ai.types import DispatchOptions
from ..call_log import CallRecord, report_call
from ..domain.messages import ImageContent, Message
from ..keys.credentials import Credentials
from ..logging import log_event
from ..normalize.rubric import normalize_rubric, placeholder_rubric
from ..parsing.decoder import robust_json_parse
from ..settings import Settings
from .fanout import fan_out
from .types import RubricGeneration

# Fast multimodal model used for the side transcriptions.
SIDE_TRANSCRIPTION_MODEL = "gemini-3-flash"

STATEMENT_TASK = "statement"
ANSWER_KEY_TASK = "answer_key"


async def transcribe_for_rubric(
    images: tuple[ImageContent, ...],
    prompt: str,
    credentials: Credentials,
    *,
    settings: Optional[Settings] = None,
) -> str:
    """One-shot transcription of a reference document, no fallback."""
    return await call_model(
        SIDE_TRANSCRIPTION_MODEL,
        Message(user_text=prompt, images=images),
        credentials,
        settings=settings,
    )


async def generate_rubric(
    model_id: str,
    message: Message,
    credentials: Credentials,
    *,
    statement_images: Iterable[ImageContent],
    answer_key_images: Iterable[ImageContent] = (),
    transcription_prompt: str,
    statement_text: Optional[str] = None,
    answer_key_text: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> RubricGeneration:
    """Generate a rubric while transcribing the statement and answer key.

    The rubric call asks for forced JSON and a ``{`` prefill; the dispatcher
    keeps whichever the model supports. Texts already supplied skip their
    transcription. Transcription failures yield ``None`` texts; a rubric
    call failure propagates. A rubric with no section is replaced by the
    editable placeholder rubric.
    """
    statement = tuple(statement_images)
    answer_key = tuple(answer_key_images)
    rubric_message = message if is_multimodal(model_id) else message.with_images(())
    options = DispatchOptions(forced_json=True, prefill=True)
    started = time.perf_counter()

    side_tasks: dict[str, Awaitable[Any]] = {}
    if statement_text is None and statement:
        side_tasks[STATEMENT_TASK] = transcribe_for_rubric(
            statement, transcription_prompt, credentials, settings=settings
        )
    if answer_key_text is None and answer_key:
        side_tasks[ANSWER_KEY_TASK] = transcribe_for_rubric(
            answer_key, transcription_prompt, credentials, settings=settings
        )

    joined = await fan_out(
        call_model(model_id, rubric_message, credentials, options, settings=settings),
        side_tasks,
    )
    raw = joined.primary

    rubric = normalize_rubric(robust_json_parse(raw))
    used_placeholder = rubric.is_empty
    if used_placeholder:
        log_event(
            "provider_log",
            level=logging.WARNING,
            provider=resolve_model(model_id).provider,
            message="No rubric section extracted, using placeholder rubric",
        )
        rubric = placeholder_rubric()

    report_call(
        CallRecord(
            task_type="bareme",
            model_id=model_id,
            provider=resolve_model(model_id).provider,
            prompt={"system": message.system_text, "user": message.user_text},
            response_raw=raw,
            response_parsed=rubric.to_dict(),
            elapsed_ms=round((time.perf_counter() - started) * 1000),
            options={"forced_json": options.forced_json, "prefill": options.prefill},
            meta={
                "images_count": len(rubric_message.images),
                "used_placeholder": used_placeholder,
            },
        ),
        settings.call_log_dir if settings else None,
    )

    return RubricGeneration(
        rubric=rubric,
        model_id=model_id,
        raw_text=raw,
        statement_text=statement_text if statement_text is not None else joined.side.get(STATEMENT_TASK),
        answer_key_text=(
            answer_key_text if answer_key_text is not None else joined.side.get(ANSWER_KEY_TASK)
        ),
        used_placeholder=used_placeholder,
    )
