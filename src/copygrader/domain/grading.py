"""Canonical rubric and graded-copy values.

All values are created fresh per request from untrusted model output and are
never mutated afterwards. ``to_dict`` produces the field names the editing UI
and the grading prompts exchange (``titre``, ``criteres``, ``note_globale``...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class RubricCriterion:
    """One points-bearing criterion; ``question_ref`` may be empty."""

    description: str
    points: float = 0
    question_ref: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question_ref,
            "description": self.description,
            "points": self.points,
        }


@dataclass(slots=True, frozen=True)
class RubricSection:
    id: str
    title: str
    points: float
    criteria: tuple[RubricCriterion, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "titre": self.title,
            "points": self.points,
            "criteres": [criterion.to_dict() for criterion in self.criteria],
        }


@dataclass(slots=True, frozen=True)
class Rubric:
    total: float
    sections: tuple[RubricSection, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.sections

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "questions": [section.to_dict() for section in self.sections],
        }


@dataclass(slots=True, frozen=True)
class GradedQuestion:
    id: str
    title: str
    awarded_points: float = 0
    max_points: float = 0
    justification: str = ""
    mistakes: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "titre": self.title,
            "note": self.awarded_points,
            "points_max": self.max_points,
            "justification": self.justification,
            "erreurs": list(self.mistakes),
        }


@dataclass(slots=True, frozen=True)
class GradingResult:
    awarded_total: float
    max_total: float
    questions: tuple[GradedQuestion, ...] = field(default_factory=tuple)
    improvement_points: tuple[str, ...] = field(default_factory=tuple)
    comment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "note_globale": self.awarded_total,
            "total": self.max_total,
            "questions": [question.to_dict() for question in self.questions],
            "points_a_corriger": list(self.improvement_points),
            "commentaire": self.comment,
        }
