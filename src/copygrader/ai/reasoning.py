"""Answer recovery for reasoning ("thinking") responses.

Reasoning models sometimes put their whole JSON answer inside the reasoning
payload and leave the answer block empty or nearly so. The helpers here pick
the best answer text without ever raising.
"""

from __future__ import annotations

import json
import re
from typing import Iterable, Optional

from .types import FinalAnswer, ReasoningOnly, ReasoningResponse

# Answer blocks shorter than this are treated as unusable.
MIN_ANSWER_CHARS = 10
# Brace-scan candidates must be longer than this to count as an answer.
MIN_RECOVERED_JSON_CHARS = 50

_ANCHORED_JSON_RE = re.compile(r'\{[\s\S]*?("questions"|"note_globale"|"total")[\s\S]*\}')


def classify_response(
    text_blocks: Iterable[str], reasoning_blocks: Iterable[str]
) -> ReasoningResponse:
    """Tag a response as usable answer or reasoning-only."""
    texts = [text for text in text_blocks if text]
    best = max(texts, key=len, default="")
    reasoning = "\n".join(block for block in reasoning_blocks if block)
    if len(best) >= MIN_ANSWER_CHARS or not reasoning:
        return FinalAnswer(best)
    return ReasoningOnly(best, reasoning)


def _parses(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except ValueError:
        return False
    return True


def extract_balanced_json(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span longer than 50 chars that parses."""
    for start, char in enumerate(text):
        if char != "{":
            continue
        depth = 0
        for index in range(start, len(text)):
            if text[index] == "{":
                depth += 1
            elif text[index] == "}":
                depth -= 1
                if depth == 0:
                    candidate = text[start : index + 1]
                    if len(candidate) > MIN_RECOVERED_JSON_CHARS and _parses(candidate):
                        return candidate
                    break
    return None


def recover_from_reasoning(reasoning: str) -> Optional[str]:
    match = _ANCHORED_JSON_RE.search(reasoning)
    if match and _parses(match.group(0)):
        return match.group(0)
    return extract_balanced_json(reasoning)


def resolve_answer(response: ReasoningResponse) -> str:
    """Pick the text to return for a tagged reasoning response."""
    if isinstance(response, FinalAnswer):
        return response.text
    recovered = recover_from_reasoning(response.reasoning)
    if recovered is not None:
        return recovered
    return response.text
