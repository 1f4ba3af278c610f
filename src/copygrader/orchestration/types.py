"""Typed results exchanged by the orchestration workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Optional, TypeVar

from ..domain.grading import GradingResult, Rubric

T = TypeVar("T")

FailureKind = Literal["content-policy", "error"]


@dataclass(slots=True, frozen=True)
class AttemptFailure:
    """One failed candidate of an ordered fallback."""

    model_id: str
    label: str
    kind: FailureKind
    error: BaseException

    @property
    def reason(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass(slots=True, frozen=True)
class FallbackOutcome(Generic[T]):
    """The first accepted result and the failures that preceded it."""

    model_id: str
    value: T
    failures: tuple[AttemptFailure, ...] = ()


@dataclass(slots=True, frozen=True)
class FanOutResult(Generic[T]):
    """Primary result plus side results (``None`` for failed side tasks)."""

    primary: T
    side: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class TranscriptionStep:
    """One rung of a transcription pipeline."""

    model_id: str
    label: str
    workaround: bool = False


@dataclass(slots=True, frozen=True)
class Transcription:
    text: str
    model_id: str
    failures: tuple[AttemptFailure, ...] = ()


@dataclass(slots=True, frozen=True)
class CopyTranscription:
    """A student copy transcription with the name line split off."""

    text: str
    student_name: Optional[str]
    model_id: str
    failures: tuple[AttemptFailure, ...] = ()


@dataclass(slots=True, frozen=True)
class GradedCopy:
    result: GradingResult
    model_id: str
    raw_text: str
    failures: tuple[AttemptFailure, ...] = ()


@dataclass(slots=True, frozen=True)
class RubricGeneration:
    """Rubric plus the document transcriptions produced alongside it."""

    rubric: Rubric
    model_id: str
    raw_text: str
    statement_text: Optional[str] = None
    answer_key_text: Optional[str] = None
    used_placeholder: bool = False
