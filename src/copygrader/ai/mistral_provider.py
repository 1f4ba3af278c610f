"""Mistral chat provider implementation.

Note: Mistral uses OpenAI-compatible API.
"""

from __future__ import annotations

from typing import Any

from .openai_provider import OpenAIProvider


class MistralProvider(OpenAIProvider):
    """Mistral chat provider implementation."""

    provider_name = "mistral"
    base_url = "https://api.mistral.ai/v1"

    def sampling_kwargs(self, model: str) -> dict[str, Any]:
        return {"temperature": 0}
