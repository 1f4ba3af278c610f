"""Tests for the HTTP OCR providers (Mistral OCR, Google Vision, Azure DI)."""

import asyncio
import base64
import json
import time

import httpx
import pytest

from copygrader.ai.azure_di_provider import API_VERSION, AzureDIProvider
from copygrader.ai.errors import EmptyResponseError, PollTimeoutError, ProviderError
from copygrader.ai.mistral_ocr_provider import MISTRAL_OCR_URL, MistralOCRProvider
from copygrader.ai.types import DispatchOptions
from copygrader.ai.vision_ocr_provider import VISION_ANNOTATE_URL, GoogleVisionProvider
from copygrader.domain.messages import ImageContent, Message

IMAGE = ImageContent("image/png", base64.b64encode(b"png-bytes").decode("ascii"))
PAGE = Message(images=(IMAGE,))

AZURE_ENDPOINT = "https://grader.cognitiveservices.azure.com/"
OPERATION_URL = (
    "https://grader.cognitiveservices.azure.com/documentintelligence/documentModels/"
    "prebuilt-read/analyzeResults/abc123?api-version=2024-11-30"
)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_mistral_ocr_joins_page_markdown():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"pages": [{"markdown": "page un"}, {"markdown": "suite"}]})

    provider = MistralOCRProvider("mistral-key", client=_client(handler))
    result = await provider.call("mistral-ocr", PAGE, DispatchOptions())
    await provider.aclose()

    assert result.text == "page un\n\nsuite"
    assert seen["url"] == MISTRAL_OCR_URL
    assert seen["auth"] == "Bearer mistral-key"
    assert seen["body"] == {
        "model": "mistral-ocr-latest",
        "document": {"type": "image_url", "image_url": IMAGE.to_data_url()},
    }


@pytest.mark.asyncio
async def test_mistral_ocr_status_error():
    provider = MistralOCRProvider(
        "mistral-key",
        client=_client(lambda request: httpx.Response(500, text="internal failure")),
    )

    with pytest.raises(ProviderError) as excinfo:
        await provider.call("mistral-ocr", PAGE, DispatchOptions())

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "internal failure"


@pytest.mark.asyncio
async def test_mistral_ocr_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = MistralOCRProvider("mistral-key", client=_client(handler))

    with pytest.raises(ProviderError) as excinfo:
        await provider.call("mistral-ocr", PAGE, DispatchOptions())

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_mistral_ocr_empty_pages():
    provider = MistralOCRProvider(
        "mistral-key", client=_client(lambda request: httpx.Response(200, json={"pages": []}))
    )

    with pytest.raises(EmptyResponseError):
        await provider.call("mistral-ocr", PAGE, DispatchOptions())


@pytest.mark.asyncio
async def test_ocr_providers_take_exactly_one_image():
    provider = MistralOCRProvider("k", client=_client(lambda request: httpx.Response(200)))

    with pytest.raises(ValueError, match="exactly one image"):
        await provider.call("mistral-ocr", Message(images=(IMAGE, IMAGE)), DispatchOptions())
    with pytest.raises(ValueError, match="got 0"):
        await provider.call("mistral-ocr", Message(user_text="no image"), DispatchOptions())


@pytest.mark.asyncio
async def test_google_vision_reads_full_text_annotation():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.url.params["key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"responses": [{"fullTextAnnotation": {"text": "Bonjour"}}]})

    provider = GoogleVisionProvider("vision-key", client=_client(handler))
    result = await provider.call("google-vision", PAGE, DispatchOptions())

    assert result.text == "Bonjour"
    assert seen["key"] == "vision-key"
    request = seen["body"]["requests"][0]
    assert request["image"] == {"content": IMAGE.base64}
    assert request["features"] == [{"type": "DOCUMENT_TEXT_DETECTION"}]
    assert VISION_ANNOTATE_URL.endswith("images:annotate")


@pytest.mark.asyncio
async def test_google_vision_per_image_error():
    provider = GoogleVisionProvider(
        "vision-key",
        client=_client(
            lambda request: httpx.Response(
                200, json={"responses": [{"error": {"code": 3, "message": "Bad image data."}}]}
            )
        ),
    )

    with pytest.raises(ProviderError) as excinfo:
        await provider.call("google-vision", PAGE, DispatchOptions())

    assert excinfo.value.body == "Bad image data."


@pytest.mark.asyncio
async def test_google_vision_error_given_as_plain_string():
    provider = GoogleVisionProvider(
        "vision-key",
        client=_client(
            lambda request: httpx.Response(200, json={"responses": [{"error": "quota exhausted"}]})
        ),
    )

    with pytest.raises(ProviderError) as excinfo:
        await provider.call("google-vision", PAGE, DispatchOptions())

    assert excinfo.value.body == "quota exhausted"


@pytest.mark.asyncio
async def test_google_vision_no_text():
    provider = GoogleVisionProvider(
        "vision-key", client=_client(lambda request: httpx.Response(200, json={"responses": [{}]}))
    )

    with pytest.raises(EmptyResponseError):
        await provider.call("google-vision", PAGE, DispatchOptions())


def _azure_handler(statuses, *, submit_headers=None, final=None):
    calls = {"post": [], "get": 0}
    remaining = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            calls["post"].append(request)
            headers = {"Operation-Location": OPERATION_URL} if submit_headers is None else submit_headers
            return httpx.Response(202, headers=headers)
        calls["get"] += 1
        status = remaining.pop(0) if remaining else statuses[-1]
        payload = {"status": status}
        if status != "running" and status != "notStarted" and final:
            payload.update(final)
        return httpx.Response(200, json=payload)

    return handler, calls


def _azure(handler, max_attempts=5):
    return AzureDIProvider(
        "azure-key",
        AZURE_ENDPOINT,
        poll_interval_sec=0,
        poll_max_attempts=max_attempts,
        client=_client(handler),
    )


@pytest.mark.asyncio
async def test_azure_submit_then_poll_until_succeeded():
    handler, calls = _azure_handler(
        ["notStarted", "running", "succeeded"],
        final={"analyzeResult": {"content": "Texte de la page"}},
    )

    result = await _azure(handler).call("azure-di", PAGE, DispatchOptions())

    assert result.text == "Texte de la page"
    assert calls["get"] == 3
    submit = calls["post"][0]
    assert submit.url.path == "/documentintelligence/documentModels/prebuilt-read:analyze"
    assert submit.url.params["api-version"] == API_VERSION
    assert submit.headers["Ocp-Apim-Subscription-Key"] == "azure-key"
    assert submit.headers["Content-Type"] == "image/png"
    assert submit.content == b"png-bytes"


@pytest.mark.asyncio
async def test_azure_failed_job_raises_provider_error():
    handler, _ = _azure_handler(["running", "failed"], final={"error": {"message": "Invalid image"}})

    with pytest.raises(ProviderError) as excinfo:
        await _azure(handler).call("azure-di", PAGE, DispatchOptions())

    assert not isinstance(excinfo.value, PollTimeoutError)
    assert excinfo.value.body == "Invalid image"


@pytest.mark.asyncio
async def test_azure_poll_budget_exhausted():
    handler, calls = _azure_handler(["running"])

    with pytest.raises(PollTimeoutError) as excinfo:
        await _azure(handler, max_attempts=3).call("azure-di", PAGE, DispatchOptions())

    assert excinfo.value.attempts == 3
    assert calls["get"] == 3


@pytest.mark.asyncio
async def test_azure_missing_operation_location():
    handler, calls = _azure_handler(["succeeded"], submit_headers={})

    with pytest.raises(ProviderError, match="Operation-Location"):
        await _azure(handler).call("azure-di", PAGE, DispatchOptions())

    assert calls["get"] == 0


@pytest.mark.asyncio
async def test_azure_succeeded_without_content():
    handler, _ = _azure_handler(["succeeded"], final={"analyzeResult": {"content": ""}})

    with pytest.raises(EmptyResponseError):
        await _azure(handler).call("azure-di", PAGE, DispatchOptions())


@pytest.mark.asyncio
async def test_azure_slow_polls_stop_at_wall_clock_budget():
    polls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
        polls.append(request)
        await asyncio.sleep(0.5)
        return httpx.Response(200, json={"status": "running"})

    provider = AzureDIProvider(
        "azure-key",
        AZURE_ENDPOINT,
        poll_interval_sec=0.05,
        poll_max_attempts=3,
        client=_client(handler),
    )

    started = time.monotonic()
    with pytest.raises(PollTimeoutError) as excinfo:
        await provider.call("azure-di", PAGE, DispatchOptions())
    elapsed = time.monotonic() - started

    assert excinfo.value.budget_sec == pytest.approx(0.15)
    assert elapsed < 0.45
    assert len(polls) == 1
