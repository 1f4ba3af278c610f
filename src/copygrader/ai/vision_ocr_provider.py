"""Google Cloud Vision OCR provider implementation."""

from __future__ import annotations

from ..domain.messages import Message
from .catalog import resolve_model
from .errors import EmptyResponseError, ProviderError
from .http_provider import HttpOcrProvider
from .types import DispatchOptions, DispatchResult

VISION_ANNOTATE_URL = "https://vision.googleapis.com/v1/images:annotate"


class GoogleVisionProvider(HttpOcrProvider):
    """Google Vision document text detection, one image per call."""

    provider_name = "google-vision"

    async def call(
        self,
        model: str,
        message: Message,
        options: DispatchOptions,
        *,
        prefill: bool = False,
    ) -> DispatchResult:
        image = self.single_image(message)
        response = await self.request(
            "POST",
            VISION_ANNOTATE_URL,
            params={"key": self.api_key},
            json={
                "requests": [
                    {
                        "image": {"content": image.base64},
                        "features": [{"type": resolve_model(model).api_model}],
                    }
                ]
            },
        )
        responses = response.json().get("responses") or [{}]
        first = responses[0]
        error = first.get("error")
        if error:
            detail = error.get("message") if isinstance(error, dict) else None
            raise ProviderError(self.provider_name, response.status_code, detail or error)

        text = (first.get("fullTextAnnotation") or {}).get("text") or ""
        if not text.strip():
            raise EmptyResponseError(self.provider_name, None)
        return DispatchResult(text=text)
