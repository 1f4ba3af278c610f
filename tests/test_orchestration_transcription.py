"""Tests for the document and copy transcription pipelines."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from copygrader.ai.errors import AggregateFallbackError, EmptyResponseError, ProviderError
from copygrader.constants import PAGE_SEPARATOR
from copygrader.domain.messages import ImageContent, Message
from copygrader.keys.credentials import Credentials
from copygrader.orchestration.transcription import (
    COPY_PIPELINE,
    DOCUMENT_PIPELINE,
    extract_student_name,
    strip_line_markers,
    transcribe_copy,
    transcribe_document,
)

CREDENTIALS = Credentials(keys={"google": "AIza", "mistral": "mistral-key"})
PAGE_1 = ImageContent("image/png", "UDE=")
PAGE_2 = ImageContent("image/png", "UDI=")
STATEMENT = ImageContent("image/png", "RU5P")
DOC_TEXT = "Exercice 1 : calculer la dérivée de f."


class FakeModels:
    """Stand-in for call_model driven by per-model replies."""

    def __init__(self, replies):
        self.replies = replies
        self.calls: list[tuple[str, Message]] = []

    async def __call__(self, model_id, message, credentials, options=None, *, settings=None):
        self.calls.append((model_id, message))
        reply = self.replies[model_id]
        if callable(reply):
            reply = reply(message)
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_strip_line_markers():
    assert strip_line_markers("[L1] Bonjour\n  [L2] suite\nsans marque") == "Bonjour\n  suite\nsans marque"


def test_extract_student_name():
    text, name = extract_student_name("NOM : Dupont Marie\n\n\nExercice 1\nRéponse")
    assert name == "Dupont Marie"
    assert text == "Exercice 1\nRéponse"


def test_extract_student_name_absent():
    raw = "Exercice 1\nNOM : pas en tête"
    assert extract_student_name(raw) == (raw, None)
    assert extract_student_name("nom: martin\nx") == ("x", "martin")


def test_pipelines_order():
    assert [(s.model_id, s.workaround) for s in DOCUMENT_PIPELINE] == [
        ("gemini-3-flash", True),
        ("gemini-3-pro", True),
        ("gemini-3-flash", False),
        ("mistral-ocr", False),
    ]
    assert [s.model_id for s in COPY_PIPELINE] == ["gemini-3-flash", "gemini-3-pro", "mistral-ocr"]


@pytest.mark.asyncio
async def test_document_uses_workaround_prompt_first():
    fake = FakeModels({"gemini-3-flash": "[L1] Exercice 1 : calculer\n[L2] la dérivée de f."})

    with patch("copygrader.orchestration.transcription.call_model", fake), patch(
        "copygrader.orchestration.transcription.report_call"
    ) as mock_report:
        result = await transcribe_document(
            [PAGE_1, PAGE_2], "Transcris.", CREDENTIALS, workaround_prompt="Numérote les lignes."
        )

    assert result.text == "Exercice 1 : calculer\nla dérivée de f."
    assert result.model_id == "gemini-3-flash"
    assert result.failures == ()
    model_id, message = fake.calls[0]
    assert message.user_text == "Numérote les lignes."
    assert message.images == (PAGE_1, PAGE_2)
    assert mock_report.call_args.args[0].task_type == "transcription-doc"


@pytest.mark.asyncio
async def test_document_without_workaround_prompt_skips_workaround_steps():
    fake = FakeModels({"gemini-3-flash": DOC_TEXT})

    with patch("copygrader.orchestration.transcription.call_model", fake):
        result = await transcribe_document([PAGE_1], "Transcris.", CREDENTIALS)

    assert result.text == DOC_TEXT
    assert len(fake.calls) == 1
    assert fake.calls[0][1].user_text == "Transcris."


@pytest.mark.asyncio
async def test_document_falls_back_to_per_page_ocr():
    def gemini_flash(message: Message):
        if message.user_text == "Numérote.":
            return EmptyResponseError("google", "RECITATION")
        return ProviderError("google", 503, "overloaded")

    fake = FakeModels(
        {
            "gemini-3-flash": gemini_flash,
            "gemini-3-pro": "trop court",
            "mistral-ocr": lambda message: f"page {message.images[0].base64}",
        }
    )

    with patch("copygrader.orchestration.transcription.call_model", fake):
        result = await transcribe_document(
            [PAGE_1, PAGE_2], "Transcris.", CREDENTIALS, workaround_prompt="Numérote."
        )

    assert result.model_id == "mistral-ocr"
    assert result.text == f"page UDE={PAGE_SEPARATOR}page UDI="
    assert [f.kind for f in result.failures] == ["content-policy", "error", "error"]
    ocr_calls = [message for model_id, message in fake.calls if model_id == "mistral-ocr"]
    assert [m.images for m in ocr_calls] == [(PAGE_1,), (PAGE_2,)]
    assert all(m.user_text == "" for m in ocr_calls)


@pytest.mark.asyncio
async def test_document_all_steps_fail():
    failure = ProviderError("google", 500, "boom")
    fake = FakeModels({"gemini-3-flash": failure, "gemini-3-pro": failure, "mistral-ocr": failure})

    with patch("copygrader.orchestration.transcription.call_model", fake):
        with pytest.raises(AggregateFallbackError) as excinfo:
            await transcribe_document([PAGE_1], "Transcris.", CREDENTIALS, workaround_prompt="N.")

    assert len(excinfo.value.failures) == 4
    assert excinfo.value.task == "transcription-doc"


@pytest.mark.asyncio
async def test_document_requires_images():
    with pytest.raises(ValueError, match="No document images"):
        await transcribe_document([], "Transcris.", CREDENTIALS)


@pytest.mark.asyncio
async def test_copy_sends_statement_images_first_and_extracts_name():
    fake = FakeModels({"gemini-3-flash": "NOM : Martin Léa\n\nExercice 1 : f'(x) = 2x"})

    with patch("copygrader.orchestration.transcription.call_model", fake), patch(
        "copygrader.orchestration.transcription.report_call"
    ) as mock_report:
        result = await transcribe_copy(
            [PAGE_1, PAGE_2], "Transcris la copie.", CREDENTIALS, statement_images=[STATEMENT]
        )

    assert result.student_name == "Martin Léa"
    assert result.text == "Exercice 1 : f'(x) = 2x"
    assert result.model_id == "gemini-3-flash"
    assert fake.calls[0][1].images == (STATEMENT, PAGE_1, PAGE_2)
    record = mock_report.call_args.args[0]
    assert record.task_type == "transcription-copie"
    assert record.response_parsed == {"transcription": result.text, "nom_eleve": "Martin Léa"}


@pytest.mark.asyncio
async def test_copy_ocr_fallback_reads_copy_pages_only():
    fake = FakeModels(
        {
            "gemini-3-flash": "   ",
            "gemini-3-pro": ProviderError("google", 500, "boom"),
            "mistral-ocr": lambda message: f" {message.images[0].base64} ",
        }
    )

    with patch("copygrader.orchestration.transcription.call_model", fake):
        result = await transcribe_copy(
            [PAGE_1, PAGE_2], "Transcris.", CREDENTIALS, statement_images=[STATEMENT]
        )

    assert result.model_id == "mistral-ocr"
    assert result.text == "UDE= \n\n UDI="
    assert result.student_name is None
    ocr_images = [m.images for model_id, m in fake.calls if model_id == "mistral-ocr"]
    assert ocr_images == [(PAGE_1,), (PAGE_2,)]


@pytest.mark.asyncio
async def test_copy_accepts_short_text():
    fake = FakeModels({"gemini-3-flash": "x = 2"})

    with patch("copygrader.orchestration.transcription.call_model", fake):
        result = await transcribe_copy([PAGE_1], "Transcris.", CREDENTIALS)

    assert result.text == "x = 2"


@pytest.mark.asyncio
async def test_copy_requires_images():
    with pytest.raises(ValueError, match="No copy images"):
        await transcribe_copy([], "Transcris.", CREDENTIALS)
