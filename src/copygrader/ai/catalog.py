"""Model registry and provider/model lookup helpers."""

from __future__ import annotations

from .types import ModelSpec

# Provider family used for model ids missing from the registry.
DEFAULT_PROVIDER = "openai"

# Logical model id -> provider family and concrete API model string.
# Official documentation for model verification:
# - OpenAI: https://platform.openai.com/docs/models
# - Claude: https://platform.claude.com/docs/en/about-claude/models/overview
# - Gemini: https://ai.google.dev/gemini-api/docs/models
# - Grok: https://docs.x.ai/developers/models
# - Mistral: https://docs.mistral.ai/getting-started/models
# - DeepSeek: https://api-docs.deepseek.com/quick_start/pricing
# - Moonshot: https://platform.moonshot.ai/docs
MODEL_REGISTRY: dict[str, ModelSpec] = {
    "gpt-4o-mini": ModelSpec("openai", "gpt-4o-mini-2024-07-18", "GPT-4o mini"),
    "gpt-5-nano": ModelSpec("openai", "gpt-5-nano-2025-08-07", "GPT-5 nano"),
    "gpt-5.2": ModelSpec("openai", "gpt-5.2-2025-12-11", "GPT-5.2"),
    "gpt-5.2-pro": ModelSpec("openai-responses", "gpt-5.2-pro-2025-12-11", "GPT-5.2 Pro"),
    "claude-haiku-4-5": ModelSpec("anthropic", "claude-haiku-4-5-20251001", "Claude Haiku 4.5"),
    "claude-sonnet-4-5": ModelSpec("anthropic", "claude-sonnet-4-5-20250929", "Claude Sonnet 4.5"),
    "claude-opus-4-6": ModelSpec("anthropic", "claude-opus-4-6", "Claude Opus 4.6"),
    "gemini-3-flash": ModelSpec("google", "gemini-3-flash-preview", "Gemini 3 Flash"),
    "gemini-3-pro": ModelSpec("google", "gemini-3-pro-preview", "Gemini 3 Pro"),
    "deepseek-v3.2": ModelSpec("deepseek", "deepseek-chat", "DeepSeek V3.2", multimodal=False),
    "kimi-k2.5": ModelSpec("moonshot", "kimi-k2.5", "Kimi K2.5"),
    "kimi-k2-thinking": ModelSpec("moonshot", "kimi-k2-thinking", "Kimi K2 Thinking"),
    "grok-4": ModelSpec("xai", "grok-4", "Grok 4"),
    "mistral-large": ModelSpec("mistral", "mistral-large-latest", "Mistral Large"),
    "mistral-ocr": ModelSpec("mistral-ocr", "mistral-ocr-latest", "Mistral OCR"),
    "google-vision": ModelSpec("google-vision", "DOCUMENT_TEXT_DETECTION", "Google Vision"),
    "azure-di": ModelSpec("azure-di", "prebuilt-read", "Azure Document Intelligence"),
}

# Models that reason before answering. They never get an assistant prefill.
REASONING_MODELS: frozenset[str] = frozenset(
    {
        "claude-opus-4-6",
        "kimi-k2.5",
        "kimi-k2-thinking",
        "gpt-5.2-pro",
        "grok-4",
    }
)


def resolve_model(model_id: str) -> ModelSpec:
    """Resolve a logical model id, defaulting unknown ids to the default family.

    Unknown ids are passed through unchanged as the API model so new model
    names work without a registry update.
    """
    spec = MODEL_REGISTRY.get(model_id)
    if spec is not None:
        return spec
    return ModelSpec(DEFAULT_PROVIDER, model_id, model_id)


def get_provider_for_model(model_id: str) -> str:
    """Get the provider family for a logical model id."""
    return resolve_model(model_id).provider


def get_models_for_provider(provider: str) -> list[str]:
    """Get list of logical model ids for a given provider family."""
    return [model_id for model_id, spec in MODEL_REGISTRY.items() if spec.provider == provider]


def get_all_providers() -> list[str]:
    """Get list of all provider families, in registry order."""
    providers: list[str] = []
    for spec in MODEL_REGISTRY.values():
        if spec.provider not in providers:
            providers.append(spec.provider)
    return providers


def get_all_models() -> list[str]:
    """Get list of all registered logical model ids."""
    return list(MODEL_REGISTRY.keys())


def is_reasoning_model(model_id: str) -> bool:
    return model_id in REASONING_MODELS


def get_model_label(model_id: str) -> str:
    return resolve_model(model_id).label
