"""Grok (xAI) provider implementation.

Note: xAI uses OpenAI-compatible API.
"""

from __future__ import annotations

from typing import Any

from .openai_provider import OpenAIProvider


class GrokProvider(OpenAIProvider):
    """Grok provider implementation."""

    provider_name = "xai"
    base_url = "https://api.x.ai/v1"

    def sampling_kwargs(self, model: str) -> dict[str, Any]:
        # Grok 4 is a native reasoning model and rejects sampling parameters.
        return {}
