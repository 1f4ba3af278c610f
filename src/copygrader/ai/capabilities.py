"""Provider capability flags."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .catalog import DEFAULT_PROVIDER, resolve_model
from .types import ProviderCapabilities

_CHAT_JSON = ProviderCapabilities(supports_forced_json=True)
_OCR = ProviderCapabilities(supports_forced_json=False)

PROVIDER_CAPABILITIES: Mapping[str, ProviderCapabilities] = MappingProxyType(
    {
        "openai": _CHAT_JSON,
        "openai-responses": _CHAT_JSON,
        "deepseek": ProviderCapabilities(supports_forced_json=True, is_multimodal=False),
        "moonshot": _CHAT_JSON,
        "xai": _CHAT_JSON,
        "mistral": _CHAT_JSON,
        # Claude has no native JSON mode; a "{" assistant prefill does the job.
        "anthropic": ProviderCapabilities(
            supports_forced_json=False,
            supports_assistant_prefill=frozenset(
                {"claude-haiku-4-5", "claude-sonnet-4-5", "claude-opus-4-6"}
            ),
        ),
        "google": _CHAT_JSON,
        "mistral-ocr": _OCR,
        "google-vision": _OCR,
        "azure-di": _OCR,
    }
)

OCR_PROVIDERS: frozenset[str] = frozenset({"mistral-ocr", "google-vision", "azure-di"})


def get_capabilities(provider: str) -> ProviderCapabilities:
    return PROVIDER_CAPABILITIES.get(provider, PROVIDER_CAPABILITIES[DEFAULT_PROVIDER])


def supports_forced_json(model_id: str) -> bool:
    """Check whether a model's provider has a native JSON output mode."""
    return get_capabilities(resolve_model(model_id).provider).supports_forced_json


def supports_prefill(model_id: str) -> bool:
    """Check whether a model accepts an assistant-turn prefill."""
    capabilities = get_capabilities(resolve_model(model_id).provider)
    return model_id in capabilities.supports_assistant_prefill


def is_multimodal(model_id: str) -> bool:
    """Check whether a model accepts inline images."""
    spec = resolve_model(model_id)
    return spec.multimodal and get_capabilities(spec.provider).is_multimodal


def is_ocr_provider(provider: str) -> bool:
    return provider in OCR_PROVIDERS
