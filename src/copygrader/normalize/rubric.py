"""Rubric normalization.

Models name rubric fields differently from one call to the next (``titre`` or
``title``, ``criteres`` or ``criteria``, sections wrapped in an object keyed by
title...). ``normalize_rubric`` accepts all of these and always returns a
structurally valid :class:`Rubric`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..domain.grading import Rubric, RubricCriterion, RubricSection
from .fields import (
    first_list,
    first_number,
    first_present,
    first_text,
    points_from_text,
    sum_points,
    to_number,
)

SECTION_LIST_KEYS = ("questions", "sections", "exercices", "items", "criteres", "bareme", "barème")
_INNER_LIST_KEYS = ("questions", "sections", "exercices", "items")
ID_KEYS = ("id", "numero")
TITLE_KEYS = ("titre", "title", "question", "nom", "name", "intitule")
POINTS_KEYS = ("points", "Points", "note_max", "max", "bareme")
CRITERIA_KEYS = ("criteres", "critères", "Criteres", "Critères", "criteria", "Criteria", "details")
SINGLE_CRITERION_KEYS = ("description", "justification")
TOTAL_KEYS = ("total", "total_points", "totalPoints", "note_totale")

CRITERION_REF_KEYS = ("question", "ref", "numero")
CRITERION_TEXT_KEYS = ("description", "critere", "label", "titre", "text")
CRITERION_POINTS_KEYS = ("points", "pts", "note_max")

PLACEHOLDER_CRITERION = "Critère à préciser"
PLACEHOLDER_SECTION_TITLE = "Item 1 — À compléter"
PLACEHOLDER_SECTION_CRITERION = "Critère à définir par le professeur"


def _entries_as_sections(mapping: Mapping[str, Any]) -> list[Any]:
    """Turn ``{"Q1 title": {...}}`` into ``[{"titre": "Q1 title", ...}]``."""
    sections: list[Any] = []
    for title, value in mapping.items():
        section: dict[str, Any] = {"titre": str(title)}
        if isinstance(value, Mapping):
            section.update(value)
        else:
            number = to_number(value)
            if number is not None:
                section["points"] = number
        sections.append(section)
    return sections


def _sections_from_mapping(candidate: Mapping[str, Any]) -> list[Any]:
    inner = first_list(candidate, _INNER_LIST_KEYS)
    if inner:
        return inner

    # Categories that each hold their own question list: flatten them.
    values = list(candidate.values())
    if values and all(
        isinstance(value, Mapping) and first_list(value, _INNER_LIST_KEYS) is not None
        for value in values
    ):
        flattened: list[Any] = []
        for value in values:
            flattened.extend(first_list(value, _INNER_LIST_KEYS) or [])
        return flattened

    return _entries_as_sections(candidate)


def _locate_sections(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        for key in SECTION_LIST_KEYS:
            candidate = value.get(key)
            if isinstance(candidate, list) and candidate:
                return candidate
            if isinstance(candidate, Mapping) and candidate:
                return _sections_from_mapping(candidate)
        return []

    if isinstance(value, list):
        # A single object whose keys are section titles.
        if len(value) == 1 and isinstance(value[0], Mapping):
            only = value[0]
            keys = list(only.keys())
            if len(keys) > 1 and isinstance(only[keys[0]], Mapping):
                return _entries_as_sections(only)
        return value

    return []


def _unwrap_section(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, str):
        return {"titre": raw}
    if not isinstance(raw, Mapping):
        return {}
    # ``{"Q1 title": {"points": 2, "criteres": [...]}}`` carries one section.
    if len(raw) == 1:
        title, inner = next(iter(raw.items()))
        if isinstance(inner, Mapping) and (
            "points" in inner or first_present(inner, CRITERIA_KEYS) is not None
        ):
            return {"titre": str(title), **inner}
    return raw


def _criterion_from_item(item: Any) -> RubricCriterion:
    if isinstance(item, str):
        return RubricCriterion(
            description=item,
            points=points_from_text(item, parenthesized=True),
        )
    if isinstance(item, Mapping):
        return RubricCriterion(
            description=first_text(item, CRITERION_TEXT_KEYS),
            points=max(first_number(item, CRITERION_POINTS_KEYS), 0),
            question_ref=first_text(item, CRITERION_REF_KEYS),
        )
    return RubricCriterion(description=str(item))


def _criteria_from_mapping(raw: Mapping[str, Any]) -> list[RubricCriterion]:
    entries = list(raw.items())

    # ``{"description": points}``
    numeric = [
        (desc, number)
        for desc, number in ((desc, to_number(v)) for desc, v in entries)
        if number is not None and number > 0
    ]
    if numeric:
        return [RubricCriterion(description=str(desc), points=pts) for desc, pts in numeric]

    # ``{"0": "Correct answer: 2 pts", ...}``
    texts = [value for _, value in entries if isinstance(value, str)]
    if texts:
        return [RubricCriterion(description=text, points=points_from_text(text)) for text in texts]

    return [
        RubricCriterion(description=str(desc), points=max(to_number(value) or 0, 0))
        for desc, value in entries
    ]


def _normalize_criteria(section: Mapping[str, Any], section_points: int | float) -> list[RubricCriterion]:
    raw = first_present(section, CRITERIA_KEYS)

    if isinstance(raw, list) and raw:
        return [_criterion_from_item(item) for item in raw]
    if isinstance(raw, Mapping) and raw:
        return _criteria_from_mapping(raw)

    single = first_text(section, SINGLE_CRITERION_KEYS)
    if single:
        return [RubricCriterion(description=single, points=section_points)]

    return [RubricCriterion(description=PLACEHOLDER_CRITERION, points=section_points)]


def _normalize_section(raw: Any, index: int) -> RubricSection:
    section = _unwrap_section(raw)
    position = index + 1

    declared_points = max(first_number(section, POINTS_KEYS), 0)
    criteria = _normalize_criteria(section, declared_points)
    criteria_sum = sum_points(criterion.points for criterion in criteria)

    return RubricSection(
        id=first_text(section, ID_KEYS, default=str(position)),
        title=first_text(section, TITLE_KEYS, default=f"Item {position}"),
        points=criteria_sum if criteria_sum > 0 else declared_points,
        criteria=tuple(criteria),
    )


def normalize_rubric(value: Any) -> Rubric:
    """Build a canonical rubric from decoded model output. Never raises."""
    if not isinstance(value, (Mapping, list)):
        return Rubric(total=0, sections=())

    sections = tuple(
        _normalize_section(raw, index) for index, raw in enumerate(_locate_sections(value))
    )

    total = None
    if isinstance(value, Mapping):
        for key in TOTAL_KEYS:
            total = to_number(value.get(key))
            if total is not None:
                break
    if total is None:
        total = sum_points(section.points for section in sections)

    return Rubric(total=total, sections=sections)


def placeholder_rubric(total: int | float = 20) -> Rubric:
    """One editable section used when no section could be extracted."""
    return Rubric(
        total=total,
        sections=(
            RubricSection(
                id="1",
                title=PLACEHOLDER_SECTION_TITLE,
                points=total,
                criteria=(RubricCriterion(description=PLACEHOLDER_SECTION_CRITERION, points=total),),
            ),
        ),
    )
