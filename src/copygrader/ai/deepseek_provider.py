"""DeepSeek provider implementation.

Note: DeepSeek uses OpenAI-compatible API.
"""

from __future__ import annotations

from .openai_provider import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """DeepSeek provider implementation.

    DeepSeek chat models are text-only; images are dropped with a warning.
    """

    provider_name = "deepseek"
    base_url = "https://api.deepseek.com"
    supports_images = False
