"""Shared plumbing for providers spoken to over raw HTTP."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from ..domain.messages import ImageContent, Message
from ..timeouts import DEFAULT_TIMEOUT_SEC, build_ai_httpx_timeout
from .provider_logging import status_error, transport_error


class HttpOcrProvider:
    """Base class for OCR providers that take exactly one image per call."""

    provider_name = "ocr"

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=build_ai_httpx_timeout(timeout))

    def single_image(self, message: Message) -> ImageContent:
        if len(message.images) != 1:
            raise ValueError(
                f"{self.provider_name} takes exactly one image per call, got {len(message.images)}"
            )
        return message.images[0]

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request; non-2xx and transport failures become ProviderError."""
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise status_error(self.provider_name, e, e.response.status_code) from e
        except httpx.TransportError as e:
            raise transport_error(self.provider_name, e) from e
        return response

    async def aclose(self) -> None:
        await self.client.aclose()
