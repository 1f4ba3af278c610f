"""Graded-copy normalization and rubric alignment."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..domain.grading import GradedQuestion, GradingResult, Rubric
from .fields import first_list, first_number, first_text, sum_points, text_list, to_number

QUESTION_LIST_KEYS = ("questions", "resultats", "résultats", "notes", "corrections")
AWARDED_KEYS = ("note", "score", "points")
MAX_KEYS = ("points_max", "max", "bareme", "sur")
JUSTIFICATION_KEYS = ("justification", "commentaire", "explication")
MISTAKE_KEYS = ("erreurs", "errors")
AWARDED_TOTAL_KEYS = ("note_globale", "awarded_total")
MAX_TOTAL_KEYS = ("total", "max_total", "total_points")
IMPROVEMENT_KEYS = ("points_a_corriger", "points_amelioration")
COMMENT_KEYS = ("commentaire", "comment", "appreciation")

NOT_EVALUATED = "Non évalué par le modèle."
_TITLE_MATCH_PREFIX = 20


def _normalize_question(raw: Mapping[str, Any], index: int) -> GradedQuestion:
    position = index + 1
    return GradedQuestion(
        id=first_text(raw, ("id",), default=str(position)),
        title=first_text(raw, ("titre", "title", "question"), default=f"Item {position}"),
        awarded_points=first_number(raw, AWARDED_KEYS),
        max_points=first_number(raw, MAX_KEYS),
        justification=first_text(raw, JUSTIFICATION_KEYS),
        mistakes=text_list(first_list(raw, MISTAKE_KEYS)),
    )


def _explicit_total(value: Mapping[str, Any], keys: tuple[str, ...]) -> int | float | None:
    for key in keys:
        number = to_number(value.get(key))
        if number is not None:
            return number
    return None


def normalize_grading_result(value: Any) -> GradingResult | None:
    """Build a canonical graded copy from decoded model output.

    Returns ``None`` only when there is nothing to show (no object at all);
    any object yields a result, possibly with no questions.
    """
    if not isinstance(value, Mapping):
        return None

    raw_questions = first_list(value, QUESTION_LIST_KEYS) or []
    questions = tuple(
        _normalize_question(raw, index)
        for index, raw in enumerate(item for item in raw_questions if isinstance(item, Mapping))
    )

    awarded_total = _explicit_total(value, AWARDED_TOTAL_KEYS)
    if awarded_total is None:
        awarded_total = sum_points(question.awarded_points for question in questions)
    max_total = _explicit_total(value, MAX_TOTAL_KEYS)
    if max_total is None:
        max_total = sum_points(question.max_points for question in questions)

    return GradingResult(
        awarded_total=awarded_total,
        max_total=max_total,
        questions=questions,
        improvement_points=text_list(first_list(value, IMPROVEMENT_KEYS)),
        comment=first_text(value, COMMENT_KEYS),
    )


def _titles_match(left: str, right: str) -> bool:
    if not left or not right:
        return False
    left, right = left.lower(), right.lower()
    return right[:_TITLE_MATCH_PREFIX] in left or left[:_TITLE_MATCH_PREFIX] in right


def align_with_rubric(result: GradingResult, rubric: Rubric) -> GradingResult:
    """Re-key graded questions on the rubric sections.

    Questions are matched by id, then by title prefix. Awarded points are
    capped at the section points, unmatched sections score zero, and totals
    are recomputed (the rubric total wins when it is positive).
    """
    if rubric.is_empty:
        return result

    aligned: list[GradedQuestion] = []
    for section in rubric.sections:
        match = next((q for q in result.questions if q.id == section.id), None)
        if match is None:
            match = next(
                (q for q in result.questions if _titles_match(q.title, section.title)),
                None,
            )
        if match is None:
            aligned.append(
                GradedQuestion(
                    id=section.id,
                    title=section.title,
                    awarded_points=0,
                    max_points=section.points,
                    justification=NOT_EVALUATED,
                )
            )
            continue
        aligned.append(
            GradedQuestion(
                id=section.id,
                title=section.title,
                awarded_points=max(min(match.awarded_points, section.points), 0),
                max_points=section.points,
                justification=match.justification,
                mistakes=match.mistakes,
            )
        )

    max_total = rubric.total if rubric.total > 0 else sum_points(q.max_points for q in aligned)
    return GradingResult(
        awarded_total=sum_points(q.awarded_points for q in aligned),
        max_total=max_total,
        questions=tuple(aligned),
        improvement_points=result.improvement_points,
        comment=result.comment,
    )
