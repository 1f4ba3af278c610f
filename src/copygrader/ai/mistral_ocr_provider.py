"""Mistral OCR provider implementation."""

from __future__ import annotations

from ..domain.messages import Message
from .catalog import resolve_model
from .errors import EmptyResponseError
from .http_provider import HttpOcrProvider
from .types import DispatchOptions, DispatchResult

MISTRAL_OCR_URL = "https://api.mistral.ai/v1/ocr"


class MistralOCRProvider(HttpOcrProvider):
    """Mistral OCR: one image in, page markdown out."""

    provider_name = "mistral-ocr"

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
            MISTRAL_OCR_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": resolve_model(model).api_model,
                "document": {"type": "image_url", "image_url": image.to_data_url()},
            },
        )
        pages = response.json().get("pages") or []
        text = "\n\n".join(page.get("markdown") or "" for page in pages)
        if not text.strip():
            raise EmptyResponseError(self.provider_name, None)
        return DispatchResult(text=text)
