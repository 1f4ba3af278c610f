"""Tests for the Gemini provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.genai import errors, types

from copygrader.ai.errors import EmptyResponseError, ProviderError
from copygrader.ai.gemini_provider import HARM_CATEGORIES, GeminiProvider
from copygrader.ai.types import DispatchOptions
from copygrader.domain.messages import ImageContent, Message

IMAGE = ImageContent("image/png", "QUJD")


def _provider(response=None, side_effect=None):
    provider = GeminiProvider.__new__(GeminiProvider)
    provider.client = MagicMock()
    provider.client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return provider


def _response(parts, finish_reason="STOP", prompt_feedback=None, usage_metadata=None):
    return SimpleNamespace(
        candidates=[
            SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=finish_reason)
        ],
        prompt_feedback=prompt_feedback,
        usage_metadata=usage_metadata,
    )


def test_format_parts_puts_images_before_text():
    provider = GeminiProvider.__new__(GeminiProvider)

    parts = provider.format_parts(Message(user_text="Transcris.", images=(IMAGE, IMAGE)))

    assert len(parts) == 3
    assert parts[0].inline_data.data == b"ABC"
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[-1].text == "Transcris."


def test_build_config_disables_safety_blocking():
    provider = GeminiProvider.__new__(GeminiProvider)

    config = provider.build_config(Message("sys", "hi"), DispatchOptions(forced_json=True))

    assert config.temperature == 0
    assert config.response_mime_type == "application/json"
    assert config.system_instruction == "sys"
    assert len(config.safety_settings) == len(HARM_CATEGORIES)
    assert all(s.threshold == types.HarmBlockThreshold.BLOCK_NONE for s in config.safety_settings)


def test_build_config_without_json_mode():
    provider = GeminiProvider.__new__(GeminiProvider)
    config = provider.build_config(Message(user_text="hi"), DispatchOptions())
    assert config.response_mime_type is None
    assert config.system_instruction is None


@pytest.mark.asyncio
async def test_call_skips_thought_parts():
    provider = _provider(
        _response(
            [
                SimpleNamespace(text="thinking aloud", thought=True),
                SimpleNamespace(text="Texte transcrit", thought=None),
            ],
            usage_metadata=SimpleNamespace(
                prompt_token_count=3, candidates_token_count=4, total_token_count=7
            ),
        )
    )

    result = await provider.call("gemini-3-flash", Message(user_text="hi", images=(IMAGE,)), DispatchOptions())

    kwargs = provider.client.aio.models.generate_content.await_args.kwargs
    assert kwargs["model"] == "gemini-3-flash-preview"
    assert kwargs["contents"][0].role == "user"
    assert result.text == "Texte transcrit"
    assert result.finish_reason == "STOP"
    assert result.usage == {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7}


@pytest.mark.asyncio
async def test_blocked_prompt_is_a_content_policy_failure():
    provider = _provider(
        _response([], finish_reason=None, prompt_feedback=SimpleNamespace(block_reason="PROHIBITED_CONTENT"))
    )

    with pytest.raises(EmptyResponseError) as excinfo:
        await provider.call("gemini-3-pro", Message(user_text="hi"), DispatchOptions())

    assert excinfo.value.reason == "PROHIBITED_CONTENT"
    assert excinfo.value.is_content_policy


@pytest.mark.asyncio
async def test_recitation_finish_reason_is_reported():
    provider = _provider(_response([], finish_reason=types.FinishReason.RECITATION))

    with pytest.raises(EmptyResponseError) as excinfo:
        await provider.call("gemini-3-flash", Message(user_text="hi"), DispatchOptions())

    assert excinfo.value.reason == "RECITATION"
    assert excinfo.value.is_content_policy


@pytest.mark.asyncio
async def test_no_candidates_raises_empty_response():
    provider = _provider(SimpleNamespace(candidates=None, prompt_feedback=None, usage_metadata=None))

    with pytest.raises(EmptyResponseError):
        await provider.call("gemini-3-flash", Message(user_text="hi"), DispatchOptions())


@pytest.mark.asyncio
async def test_api_error_is_translated():
    error = errors.APIError(
        503, {"error": {"code": 503, "message": "The model is overloaded.", "status": "UNAVAILABLE"}}
    )
    provider = _provider(side_effect=error)

    with pytest.raises(ProviderError) as excinfo:
        await provider.call("gemini-3-flash", Message(user_text="hi"), DispatchOptions())

    assert excinfo.value.status_code == 503
    assert excinfo.value.provider == "google"


@pytest.mark.asyncio
async def test_transport_error_is_translated():
    provider = _provider(side_effect=httpx.ReadTimeout("read timed out"))

    with pytest.raises(ProviderError) as excinfo:
        await provider.call("gemini-3-flash", Message(user_text="hi"), DispatchOptions())

    assert excinfo.value.status_code is None
    assert "ReadTimeout" in excinfo.value.body
