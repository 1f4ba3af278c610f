"""Gemini (Google) provider implementation."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError

from ..domain.messages import Message
from ..logging import log_event
from ..timeouts import DEFAULT_TIMEOUT_SEC
from .catalog import resolve_model
from .errors import EmptyResponseError
from .provider_logging import status_error, transport_error
from .types import DispatchOptions, DispatchResult, TokenUsage

JSON_MIME_TYPE = "application/json"

HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)


def _enum_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


class GeminiProvider:
    """Gemini (Google) provider implementation."""

    provider_name = "google"

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT_SEC):
        """Initialize Gemini provider.

        Args:
            api_key: Google API key
            timeout: Read timeout in seconds (0 = no timeout, default: 300.0)
        """
        # Gemini SDK takes milliseconds; no retry_options means one attempt.
        timeout_ms = int(timeout * 1000) if timeout > 0 else None

        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout_ms) if timeout_ms else None,
        )
        self.api_key = api_key
        self.timeout = timeout

    def format_parts(self, message: Message) -> list[types.Part]:
        """Inline image parts first, the text part last."""
        parts = [
            types.Part.from_bytes(data=base64.b64decode(image.base64), mime_type=image.mime_type)
            for image in message.images
        ]
        parts.append(types.Part(text=message.user_text))
        return parts

    def build_config(self, message: Message, options: DispatchOptions) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=0,
            system_instruction=message.system_text or None,
            response_mime_type=JSON_MIME_TYPE if options.forced_json else None,
            safety_settings=[
                types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
                for category in HARM_CATEGORIES
            ],
        )

    async def _generate_content(self, **kwargs: Any) -> Any:
        try:
            return await self.client.aio.models.generate_content(**kwargs)
        except APIError as e:
            raise status_error(self.provider_name, e, getattr(e, "code", None)) from e
        except httpx.TransportError as e:
            raise transport_error(self.provider_name, e) from e

    async def call(
        self,
        model: str,
        message: Message,
        options: DispatchOptions,
        *,
        prefill: bool = False,
    ) -> DispatchResult:
        """Send one message to Gemini and return the first text part.

        Args:
            model: Logical model id
            message: Prompt to send
            options: Dispatch options (``forced_json`` sets a JSON mime type)
            prefill: Ignored, Gemini has no assistant prefill

        Returns:
            DispatchResult with the response text
        """
        response = await self._generate_content(
            model=resolve_model(model).api_model,
            contents=[types.Content(role="user", parts=self.format_parts(message))],
            config=self.build_config(message, options),
        )

        candidates = getattr(response, "candidates", None) or []
        candidate = candidates[0] if candidates else None
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        finish_reason = _enum_text(getattr(candidate, "finish_reason", None))

        if not parts:
            feedback = getattr(response, "prompt_feedback", None)
            reason = _enum_text(getattr(feedback, "block_reason", None)) or finish_reason
            log_event(
                "provider_log",
                level=logging.WARNING,
                provider=self.provider_name,
                message=f"Empty response (reason: {reason or 'unknown'})",
            )
            raise EmptyResponseError(self.provider_name, reason)

        text = next(
            (part.text for part in parts if getattr(part, "text", None) and not getattr(part, "thought", False)),
            "",
        )
        if not text.strip():
            raise EmptyResponseError(self.provider_name, finish_reason)

        usage: TokenUsage = {}
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = {
                "prompt_tokens": getattr(metadata, "prompt_token_count", 0) or 0,
                "completion_tokens": getattr(metadata, "candidates_token_count", 0) or 0,
                "total_tokens": getattr(metadata, "total_token_count", 0) or 0,
            }
        return DispatchResult(text=text, usage=usage, finish_reason=finish_reason)
