"""Moonshot (Kimi) provider implementation.

Note: Moonshot uses OpenAI-compatible API.
"""

from __future__ import annotations

from typing import Any

from .openai_provider import OpenAIProvider


class MoonshotProvider(OpenAIProvider):
    """Moonshot provider implementation."""

    provider_name = "moonshot"
    base_url = "https://api.moonshot.ai/v1"

    def sampling_kwargs(self, model: str) -> dict[str, Any]:
        # kimi-k2.5 thinks by default and its temperature is fixed.
        if model == "kimi-k2.5":
            return {"extra_body": {"thinking": {"type": "enabled"}}}
        if model == "kimi-k2-thinking":
            return {}
        return {"temperature": 0}
