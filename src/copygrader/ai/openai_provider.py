"""OpenAI provider implementations (Chat Completions and Responses API)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from ..domain.messages import Message
from ..logging import log_event
from ..timeouts import DEFAULT_TIMEOUT_SEC, build_ai_httpx_timeout
from .catalog import resolve_model
from .errors import EmptyResponseError
from .provider_logging import status_error, transport_error
from .reasoning import classify_response, resolve_answer
from .types import DispatchOptions, DispatchResult, TokenUsage

JSON_OBJECT_FORMAT = {"type": "json_object"}

# Models that reject any temperature other than the default.
FIXED_TEMPERATURE_MODELS = frozenset({"gpt-5-nano"})
DETERMINISTIC_SEED = 42


def build_chat_messages(message: Message, *, with_images: bool = True) -> list[dict[str, Any]]:
    """Convert a Message to chat-completion messages.

    Images become ``image_url`` data-URL entries placed before the text entry.
    """
    formatted: list[dict[str, Any]] = []
    if message.system_text:
        formatted.append({"role": "system", "content": message.system_text})

    if with_images and message.images:
        content: list[dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": image.to_data_url()}}
            for image in message.images
        ]
        content.append({"type": "text", "text": message.user_text})
        formatted.append({"role": "user", "content": content})
    else:
        formatted.append({"role": "user", "content": message.user_text})
    return formatted


def usage_from_chat(usage: Any) -> TokenUsage:
    if usage is None:
        return {}
    result: TokenUsage = {}
    for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
        value = getattr(usage, key, None)
        if isinstance(value, int):
            result[key] = value  # type: ignore[literal-required]
    return result


class OpenAIProvider:
    """OpenAI Chat Completions provider.

    OpenAI-compatible backends subclass this and override ``provider_name``,
    ``base_url`` and the sampling hook.
    """

    provider_name = "openai"
    base_url: Optional[str] = None
    supports_images = True

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT_SEC):
        """Initialize the provider.

        Args:
            api_key: Provider API key
            timeout: Read timeout in seconds (0 = no timeout, default: 300.0)
        """
        timeout_config = build_ai_httpx_timeout(timeout)

        # Every call is attempted exactly once.
        self.client: Any = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout_config,
            max_retries=0,
        )
        self.api_key = api_key
        self.timeout = timeout

    async def aclose(self) -> None:
        await self.client.close()

    def sampling_kwargs(self, model: str) -> dict[str, Any]:
        """Sampling parameters for a logical model id."""
        if model in FIXED_TEMPERATURE_MODELS:
            return {}
        return {"temperature": 0, "seed": DETERMINISTIC_SEED}

    def format_messages(self, message: Message) -> list[dict[str, Any]]:
        return build_chat_messages(message, with_images=self.supports_images)

    async def _create_chat_completion(self, **kwargs: Any) -> Any:
        try:
            return await self.client.chat.completions.create(**kwargs)
        except APIStatusError as e:
            raise status_error(self.provider_name, e, e.status_code) from e
        except APIConnectionError as e:
            raise transport_error(self.provider_name, e) from e

    async def call(
        self,
        model: str,
        message: Message,
        options: DispatchOptions,
        *,
        prefill: bool = False,
    ) -> DispatchResult:
        """Send one message and return the first usable text.

        Args:
            model: Logical model id
            message: Prompt to send
            options: Dispatch options (only ``forced_json`` is read)
            prefill: Ignored, chat-completion providers have no prefill

        Returns:
            DispatchResult with the response text
        """
        if message.images and not self.supports_images:
            log_event(
                "provider_log",
                level=logging.WARNING,
                provider=self.provider_name,
                message=f"Model {model} is text-only, {len(message.images)} image(s) dropped",
            )

        kwargs: dict[str, Any] = {
            "model": resolve_model(model).api_model,
            "messages": self.format_messages(message),
            **self.sampling_kwargs(model),
        }
        if options.forced_json:
            kwargs["response_format"] = JSON_OBJECT_FORMAT

        response = await self._create_chat_completion(**kwargs)

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise EmptyResponseError(self.provider_name, None)
        choice = choices[0]
        reply = getattr(choice, "message", None)
        content = getattr(reply, "content", None) or ""
        reasoning = getattr(reply, "reasoning_content", None) or ""

        text = resolve_answer(classify_response([content], [reasoning]))
        if not text.strip():
            raise EmptyResponseError(self.provider_name, getattr(choice, "finish_reason", None))

        usage = usage_from_chat(getattr(response, "usage", None))
        if usage:
            log_event(
                "provider_log",
                level=logging.INFO,
                provider=self.provider_name,
                message=(
                    f"Usage: {usage.get('prompt_tokens', 0)} prompt + "
                    f"{usage.get('completion_tokens', 0)} completion tokens"
                ),
            )
        return DispatchResult(
            text=text,
            usage=usage,
            finish_reason=getattr(choice, "finish_reason", None),
        )


class OpenAIResponsesProvider(OpenAIProvider):
    """OpenAI Responses API provider, for models not served by Chat Completions."""

    provider_name = "openai-responses"
    reasoning_effort = "medium"

    def format_input(self, message: Message) -> Any:
        if not message.images:
            return message.user_text
        content: list[dict[str, Any]] = [
            {"type": "input_image", "image_url": image.to_data_url()} for image in message.images
        ]
        content.append({"type": "input_text", "text": message.user_text})
        return [{"role": "user", "content": content}]

    async def _create_response(self, **kwargs: Any) -> Any:
        try:
            return await self.client.responses.create(**kwargs)
        except APIStatusError as e:
            raise status_error(self.provider_name, e, e.status_code) from e
        except APIConnectionError as e:
            raise transport_error(self.provider_name, e) from e

    async def call(
        self,
        model: str,
        message: Message,
        options: DispatchOptions,
        *,
        prefill: bool = False,
    ) -> DispatchResult:
        kwargs: dict[str, Any] = {
            "model": resolve_model(model).api_model,
            "input": self.format_input(message),
            "store": False,
            "reasoning": {"effort": self.reasoning_effort},
        }
        if message.system_text:
            kwargs["instructions"] = message.system_text
        if options.forced_json:
            kwargs["text"] = {"format": JSON_OBJECT_FORMAT}

        response = await self._create_response(**kwargs)

        text = ""
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "message":
                continue
            for part in getattr(item, "content", None) or []:
                if getattr(part, "type", None) == "output_text":
                    text = getattr(part, "text", "") or ""
                    break
            break

        if not text.strip():
            details = getattr(response, "incomplete_details", None)
            raise EmptyResponseError(self.provider_name, getattr(details, "reason", None))

        usage: TokenUsage = {}
        raw_usage = getattr(response, "usage", None)
        if raw_usage is not None:
            usage = {
                "prompt_tokens": getattr(raw_usage, "input_tokens", 0) or 0,
                "completion_tokens": getattr(raw_usage, "output_tokens", 0) or 0,
            }
        return DispatchResult(text=text, usage=usage, finish_reason=getattr(response, "status", None))
