"""Tests for copy grading with fallbacks."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from copygrader.ai.errors import AggregateFallbackError, ProviderError
from copygrader.domain.grading import Rubric, RubricSection
from copygrader.domain.messages import Message
from copygrader.keys.credentials import Credentials
from copygrader.orchestration.grading import FALLBACK_MODELS, decode_grading, grade_copy

CREDENTIALS = Credentials(
    keys={"google": "AIza", "anthropic": "sk-ant", "deepseek": "sk-ds", "mistral": "mistral-key"}
)
MESSAGE = Message("Tu es correcteur.", "Corrige la copie.")
GRADING_JSON = json.dumps(
    {
        "note_globale": 7,
        "total": 10,
        "questions": [
            {"id": "1", "titre": "Dérivées", "note": 3, "points_max": 4},
            {"id": "2", "titre": "Intégrales", "note": 4, "points_max": 6},
        ],
        "commentaire": "Correct",
    }
)
RUBRIC = Rubric(
    total=10,
    sections=(RubricSection("1", "Dérivées", 4), RubricSection("2", "Intégrales", 6)),
)


class FakeModels:
    def __init__(self, replies):
        self.replies = replies
        self.calls: list[tuple[str, object]] = []

    async def __call__(self, model_id, message, credentials, options=None, *, settings=None):
        self.calls.append((model_id, options))
        reply = self.replies[model_id]
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_decode_grading_with_and_without_rubric():
    result = decode_grading("```json\n" + GRADING_JSON + "\n```")
    assert result is not None
    assert result.awarded_total == 7

    aligned = decode_grading('{"questions": [{"id": "1", "note": 9}]}', RUBRIC)
    assert aligned is not None
    assert [q.awarded_points for q in aligned.questions] == [4, 0]

    assert decode_grading("pas de JSON") is None


def test_deepseek_fallback_chain():
    assert FALLBACK_MODELS["deepseek-v3.2"] == ("mistral-large", "gemini-3-pro")


@pytest.mark.asyncio
async def test_grade_copy_success_uses_forced_json_when_supported():
    fake = FakeModels({"gemini-3-pro": GRADING_JSON})

    with patch("copygrader.orchestration.grading.call_model", fake), patch(
        "copygrader.orchestration.grading.report_call"
    ) as mock_report:
        graded = await grade_copy("gemini-3-pro", MESSAGE, CREDENTIALS, rubric=RUBRIC)

    assert graded.model_id == "gemini-3-pro"
    assert graded.raw_text == GRADING_JSON
    assert graded.result.awarded_total == 7
    assert graded.result.max_total == 10
    assert graded.failures == ()
    assert fake.calls[0][1].forced_json is True
    record = mock_report.call_args.args[0]
    assert record.task_type == "correction"
    assert record.response_parsed["note_globale"] == 7


@pytest.mark.asyncio
async def test_grade_copy_claude_does_not_request_json_mode():
    fake = FakeModels({"claude-sonnet-4-5": GRADING_JSON})

    with patch("copygrader.orchestration.grading.call_model", fake):
        await grade_copy("claude-sonnet-4-5", MESSAGE, CREDENTIALS)

    assert fake.calls[0][1].forced_json is False


@pytest.mark.asyncio
async def test_grade_copy_falls_back_on_error_and_empty_grading():
    fake = FakeModels(
        {
            "deepseek-v3.2": ProviderError("deepseek", 500, "boom"),
            "mistral-large": '{"commentaire": "Je ne peux pas noter."}',
            "gemini-3-pro": GRADING_JSON,
        }
    )

    with patch("copygrader.orchestration.grading.call_model", fake):
        graded = await grade_copy("deepseek-v3.2", MESSAGE, CREDENTIALS)

    assert graded.model_id == "gemini-3-pro"
    assert [f.model_id for f in graded.failures] == ["deepseek-v3.2", "mistral-large"]
    assert [model_id for model_id, _ in fake.calls] == ["deepseek-v3.2", "mistral-large", "gemini-3-pro"]


@pytest.mark.asyncio
async def test_grade_copy_explicit_fallbacks_replace_defaults():
    fake = FakeModels(
        {"deepseek-v3.2": ProviderError("deepseek", 500, "boom"), "claude-haiku-4-5": GRADING_JSON}
    )

    with patch("copygrader.orchestration.grading.call_model", fake):
        graded = await grade_copy(
            "deepseek-v3.2", MESSAGE, CREDENTIALS, fallbacks=["claude-haiku-4-5"]
        )

    assert graded.model_id == "claude-haiku-4-5"


@pytest.mark.asyncio
async def test_grade_copy_without_fallbacks_raises_aggregate_error():
    fake = FakeModels({"gemini-3-flash": "not json at all"})

    with patch("copygrader.orchestration.grading.call_model", fake):
        with pytest.raises(AggregateFallbackError) as excinfo:
            await grade_copy("gemini-3-flash", MESSAGE, CREDENTIALS)

    assert excinfo.value.task == "correction"
    assert [f.model_id for f in excinfo.value.failures] == ["gemini-3-flash"]
