"""Normalization of loosely-shaped model JSON into canonical values."""

from .grading import align_with_rubric, normalize_grading_result
from .rubric import normalize_rubric, placeholder_rubric

__all__ = [
    "align_with_rubric",
    "normalize_grading_result",
    "normalize_rubric",
    "placeholder_rubric",
]
