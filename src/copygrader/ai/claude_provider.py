"""Claude (Anthropic) provider implementation."""

from __future__ import annotations

import logging
from typing import Any

from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

from ..domain.messages import Message
from ..logging import log_event
from ..timeouts import DEFAULT_TIMEOUT_SEC, build_ai_httpx_timeout
from .catalog import is_reasoning_model, resolve_model
from .errors import EmptyResponseError
from .provider_logging import status_error, transport_error
from .reasoning import classify_response, resolve_answer
from .types import DispatchOptions, DispatchResult, ReasoningOnly, TokenUsage

DEFAULT_MAX_TOKENS = 8192
# Leaves room for adaptive thinking plus the answer.
REASONING_MAX_TOKENS = 64000
PREFILL_TEXT = "{"


class ClaudeProvider:
    """Claude (Anthropic) provider implementation."""

    provider_name = "anthropic"

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT_SEC):
        """Initialize Claude provider.

        Args:
            api_key: Anthropic API key
            timeout: Read timeout in seconds (0 = no timeout, default: 300.0)
        """
        timeout_config = build_ai_httpx_timeout(timeout)

        # Every call is attempted exactly once.
        self.client: Any = AsyncAnthropic(
            api_key=api_key, timeout=timeout_config, max_retries=0
        )
        self.api_key = api_key
        self.timeout = timeout

    async def aclose(self) -> None:
        await self.client.close()

    def format_messages(self, message: Message, *, prefill: bool = False) -> list[dict[str, Any]]:
        """Convert a Message to Claude format.

        Images become typed ``image`` blocks followed by one trailing text
        block, all in a single user turn.
        """
        if message.images:
            content: Any = [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": image.mime_type,
                        "data": image.base64,
                    },
                }
                for image in message.images
            ]
            content.append({"type": "text", "text": message.user_text})
        else:
            content = message.user_text

        formatted: list[dict[str, Any]] = [{"role": "user", "content": content}]
        if prefill:
            formatted.append({"role": "assistant", "content": PREFILL_TEXT})
        return formatted

    async def _create_message(self, **kwargs: Any) -> Any:
        try:
            return await self.client.messages.create(**kwargs)
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
        """Send one message to Claude and return the answer text.

        Claude has no native JSON mode, so ``options.forced_json`` is ignored;
        the dispatcher asks for a ``{`` prefill instead.

        Args:
            model: Logical model id
            message: Prompt to send
            options: Dispatch options
            prefill: Append an assistant ``{`` turn and restore it on the answer

        Returns:
            DispatchResult with the response text
        """
        reasoning = is_reasoning_model(model)
        kwargs: dict[str, Any] = {
            "model": resolve_model(model).api_model,
            "messages": self.format_messages(message, prefill=prefill),
            "max_tokens": REASONING_MAX_TOKENS if reasoning else DEFAULT_MAX_TOKENS,
        }
        if reasoning:
            # No temperature with adaptive thinking.
            kwargs["thinking"] = {"type": "adaptive"}
        else:
            kwargs["temperature"] = 0
        if message.system_text:
            kwargs["system"] = message.system_text

        response = await self._create_message(**kwargs)

        stop_reason = getattr(response, "stop_reason", None)
        if stop_reason and stop_reason != "end_turn":
            log_event(
                "provider_log",
                level=logging.WARNING,
                provider=self.provider_name,
                message=f"stop_reason={stop_reason} (response may be truncated)",
            )

        blocks = getattr(response, "content", None) or []
        text_blocks = [getattr(b, "text", "") or "" for b in blocks if getattr(b, "type", None) == "text"]
        thinking_blocks = [
            getattr(b, "thinking", "") or "" for b in blocks if getattr(b, "type", None) == "thinking"
        ]

        tagged = classify_response(text_blocks, thinking_blocks)
        text = resolve_answer(tagged)
        if isinstance(tagged, ReasoningOnly) and text != tagged.text:
            log_event(
                "provider_log",
                level=logging.INFO,
                provider=self.provider_name,
                message=f"Answer recovered from thinking block ({len(text)} chars)",
            )

        if prefill and text and not text.lstrip().startswith(PREFILL_TEXT):
            text = PREFILL_TEXT + text

        if not text.strip():
            raise EmptyResponseError(self.provider_name, stop_reason)

        usage: TokenUsage = {}
        raw_usage = getattr(response, "usage", None)
        if raw_usage is not None:
            prompt_tokens = getattr(raw_usage, "input_tokens", 0) or 0
            completion_tokens = getattr(raw_usage, "output_tokens", 0) or 0
            usage = {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            }
            cache_read = getattr(raw_usage, "cache_read_input_tokens", None)
            if isinstance(cache_read, int) and cache_read:
                usage["cached_tokens"] = cache_read

        return DispatchResult(text=text, usage=usage, finish_reason=stop_reason)
