"""Multi-provider AI dispatch, JSON recovery and grading normalization."""

from .ai.dispatcher import DispatchOptions, call_model
from .domain.grading import GradedQuestion, GradingResult, Rubric, RubricCriterion, RubricSection
from .domain.messages import ImageContent, Message
from .keys.credentials import Credentials
from .normalize import normalize_grading_result, normalize_rubric
from .orchestration import generate_rubric, grade_copy, transcribe_copy, transcribe_document
from .parsing.decoder import robust_json_parse
from .settings import Settings, load_settings

__all__ = [
    "Credentials",
    "DispatchOptions",
    "GradedQuestion",
    "GradingResult",
    "ImageContent",
    "Message",
    "Rubric",
    "RubricCriterion",
    "RubricSection",
    "Settings",
    "call_model",
    "generate_rubric",
    "grade_copy",
    "load_settings",
    "normalize_grading_result",
    "normalize_rubric",
    "robust_json_parse",
    "transcribe_copy",
    "transcribe_document",
]
