"""Document and student-copy transcription pipelines."""

from __future__ import annotations

import re
import time
from typing import Iterable, Optional, Sequence

from ..ai.capabilities import is_ocr_provider
from ..ai.catalog import resolve_model
from ..ai.dispatcher import call_model
from ..call_log import CallRecord, report_call
from ..constants import MIN_TRANSCRIPTION_CHARS, PAGE_SEPARATOR
from ..domain.messages import ImageContent, Message
from ..keys.credentials import Credentials
from ..settings import Settings
from .fallback import run_ordered_fallback
from .types import AttemptFailure, CopyTranscription, Transcription, TranscriptionStep

# Official documents trip Gemini's RECITATION filter, so the numbered-line
# workaround prompt goes first.
DOCUMENT_PIPELINE: tuple[TranscriptionStep, ...] = (
    TranscriptionStep("gemini-3-flash", "Gemini Flash [Lx]", workaround=True),
    TranscriptionStep("gemini-3-pro", "Gemini Pro [Lx]", workaround=True),
    TranscriptionStep("gemini-3-flash", "Gemini Flash"),
    TranscriptionStep("mistral-ocr", "Mistral OCR"),
)

COPY_PIPELINE: tuple[TranscriptionStep, ...] = (
    TranscriptionStep("gemini-3-flash", "Gemini Flash"),
    TranscriptionStep("gemini-3-pro", "Gemini Pro"),
    TranscriptionStep("mistral-ocr", "Mistral OCR"),
)

COPY_PAGE_SEPARATOR = "\n\n"

_LINE_MARKER_RE = re.compile(r"^([ \t]*)\[L\d+\][ \t]?", re.MULTILINE)
_STUDENT_NAME_RE = re.compile(r"^NOM\s*:\s*(.+)$", re.IGNORECASE)


def strip_line_markers(text: str) -> str:
    """Remove the ``[L12]`` line numbers requested by the workaround prompt."""
    return _LINE_MARKER_RE.sub(r"\1", text)


def extract_student_name(raw: str) -> tuple[str, Optional[str]]:
    """Split a leading ``NOM: <name>`` line off a copy transcription.

    Blank lines after the name line are dropped too. Returns the remaining
    text and the name, or the text unchanged and ``None``.
    """
    lines = raw.split("\n")
    first_line = lines[0].strip() if lines else ""
    match = _STUDENT_NAME_RE.match(first_line)
    if not match:
        return raw, None

    start = 1
    while start < len(lines) and not lines[start].strip():
        start += 1
    name = match.group(1).strip()
    return "\n".join(lines[start:]), name or None


async def transcribe_pages(
    model_id: str,
    pages: Sequence[ImageContent],
    credentials: Credentials,
    *,
    separator: str = PAGE_SEPARATOR,
    settings: Optional[Settings] = None,
) -> str:
    """OCR one page per call, in page order, and join the page texts."""
    texts: list[str] = []
    for page in pages:
        texts.append(await call_model(model_id, Message(images=(page,)), credentials, settings=settings))
    return separator.join(texts)


def _skip_workaround(
    pipeline: Sequence[TranscriptionStep], workaround_prompt: Optional[str]
):
    standard_labels = {step.label for step in pipeline if not step.workaround}

    def skip(step: TranscriptionStep, failures: list[AttemptFailure]) -> bool:
        if not step.workaround:
            return False
        if workaround_prompt is None:
            return True
        # A non-policy failure on the standard prompt will not be fixed by
        # the workaround prompt on the same model.
        return any(
            failure.model_id == step.model_id
            and failure.label in standard_labels
            and failure.kind != "content-policy"
            for failure in failures
        )

    return skip


def _report(
    task_type: str,
    model_id: str,
    prompt: str,
    raw: str,
    parsed: object,
    started: float,
    settings: Optional[Settings],
    **meta: object,
) -> None:
    report_call(
        CallRecord(
            task_type=task_type,
            model_id=model_id,
            provider=resolve_model(model_id).provider,
            prompt={"full": prompt},
            response_raw=raw,
            response_parsed=parsed,
            elapsed_ms=round((time.perf_counter() - started) * 1000),
            meta=dict(meta),
        ),
        settings.call_log_dir if settings else None,
    )


async def transcribe_document(
    images: Iterable[ImageContent],
    prompt: str,
    credentials: Credentials,
    *,
    workaround_prompt: Optional[str] = None,
    pipeline: Sequence[TranscriptionStep] = DOCUMENT_PIPELINE,
    settings: Optional[Settings] = None,
) -> Transcription:
    """Transcribe a statement or answer-key document with ordered fallback.

    Raises:
        ValueError: No images were given
        AggregateFallbackError: Every pipeline step failed
    """
    pages = tuple(images)
    if not pages:
        raise ValueError("No document images to transcribe")
    started = time.perf_counter()

    async def attempt(step: TranscriptionStep) -> str:
        if is_ocr_provider(resolve_model(step.model_id).provider):
            return await transcribe_pages(step.model_id, pages, credentials, settings=settings)
        text = await call_model(
            step.model_id,
            Message(user_text=workaround_prompt if step.workaround else prompt, images=pages),
            credentials,
            settings=settings,
        )
        return strip_line_markers(text) if step.workaround else text

    outcome = await run_ordered_fallback(
        pipeline,
        attempt,
        accept=lambda text: len(text.strip()) >= MIN_TRANSCRIPTION_CHARS,
        skip=_skip_workaround(pipeline, workaround_prompt),
        task="transcription-doc",
    )
    _report(
        "transcription-doc",
        outcome.model_id,
        prompt,
        outcome.value,
        None,
        started,
        settings,
        images_count=len(pages),
        failed_steps=[f"{f.label}: {f.reason}" for f in outcome.failures],
    )
    return Transcription(text=outcome.value, model_id=outcome.model_id, failures=outcome.failures)


async def transcribe_copy(
    copy_images: Iterable[ImageContent],
    prompt: str,
    credentials: Credentials,
    *,
    statement_images: Iterable[ImageContent] = (),
    pipeline: Sequence[TranscriptionStep] = COPY_PIPELINE,
    settings: Optional[Settings] = None,
) -> CopyTranscription:
    """Transcribe a student copy and split off the student name.

    Multimodal steps see the statement images before the copy pages; OCR
    steps only read the copy pages.

    Raises:
        ValueError: No copy images were given
        AggregateFallbackError: Every pipeline step failed
    """
    pages = tuple(copy_images)
    if not pages:
        raise ValueError("No copy images to transcribe")
    reference = tuple(statement_images)
    started = time.perf_counter()

    async def attempt(step: TranscriptionStep) -> str:
        if is_ocr_provider(resolve_model(step.model_id).provider):
            text = await transcribe_pages(
                step.model_id,
                pages,
                credentials,
                separator=COPY_PAGE_SEPARATOR,
                settings=settings,
            )
            return text.strip()
        return await call_model(
            step.model_id,
            Message(user_text=prompt, images=reference + pages),
            credentials,
            settings=settings,
        )

    outcome = await run_ordered_fallback(
        pipeline,
        attempt,
        accept=lambda text: bool(text.strip()),
        task="transcription-copie",
    )
    text, student_name = extract_student_name(outcome.value)
    _report(
        "transcription-copie",
        outcome.model_id,
        prompt,
        outcome.value,
        {"transcription": text, "nom_eleve": student_name},
        started,
        settings,
        images_count=len(reference) + len(pages),
        failed_models=[f"{f.label}: {f.reason}" for f in outcome.failures],
    )
    return CopyTranscription(
        text=text,
        student_name=student_name,
        model_id=outcome.model_id,
        failures=outcome.failures,
    )
