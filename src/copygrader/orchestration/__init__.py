"""Ordered fallback, fan-out and the grading workflows built on them."""

from .fallback import run_ordered_fallback
from .fanout import fan_out
from .grading import FALLBACK_MODELS, grade_copy
from .rubric import generate_rubric
from .transcription import (
    COPY_PIPELINE,
    DOCUMENT_PIPELINE,
    extract_student_name,
    transcribe_copy,
    transcribe_document,
)
from .types import (
    AttemptFailure,
    CopyTranscription,
    FallbackOutcome,
    FanOutResult,
    GradedCopy,
    RubricGeneration,
    Transcription,
    TranscriptionStep,
)

__all__ = [
    "AttemptFailure",
    "COPY_PIPELINE",
    "CopyTranscription",
    "DOCUMENT_PIPELINE",
    "FALLBACK_MODELS",
    "FallbackOutcome",
    "FanOutResult",
    "GradedCopy",
    "RubricGeneration",
    "Transcription",
    "TranscriptionStep",
    "extract_student_name",
    "fan_out",
    "generate_rubric",
    "grade_copy",
    "run_ordered_fallback",
    "transcribe_copy",
    "transcribe_document",
]
