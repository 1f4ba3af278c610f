"""Tests for the model registry and capability lookups."""

from copygrader.ai.capabilities import (
    PROVIDER_CAPABILITIES,
    is_multimodal,
    is_ocr_provider,
    supports_forced_json,
    supports_prefill,
)
from copygrader.ai.catalog import (
    MODEL_REGISTRY,
    REASONING_MODELS,
    get_all_models,
    get_all_providers,
    get_model_label,
    get_models_for_provider,
    get_provider_for_model,
    is_reasoning_model,
    resolve_model,
)
from copygrader.ai.dispatcher import PROVIDER_CLASSES
from copygrader.ai.types import ModelSpec


def test_resolve_known_model():
    spec = resolve_model("claude-sonnet-4-5")
    assert spec.provider == "anthropic"
    assert spec.api_model == "claude-sonnet-4-5-20250929"
    assert spec.label == "Claude Sonnet 4.5"


def test_unknown_model_defaults_to_openai_passthrough():
    assert resolve_model("gpt-9-turbo") == ModelSpec("openai", "gpt-9-turbo", "gpt-9-turbo")
    assert get_provider_for_model("gpt-9-turbo") == "openai"
    assert get_model_label("gpt-9-turbo") == "gpt-9-turbo"


def test_provider_and_model_listings():
    assert get_models_for_provider("moonshot") == ["kimi-k2.5", "kimi-k2-thinking"]
    assert get_models_for_provider("nobody") == []
    assert get_all_providers() == [
        "openai",
        "openai-responses",
        "anthropic",
        "google",
        "deepseek",
        "moonshot",
        "xai",
        "mistral",
        "mistral-ocr",
        "google-vision",
        "azure-di",
    ]
    assert len(get_all_models()) == len(MODEL_REGISTRY) == 17


def test_reasoning_models_are_registered():
    assert REASONING_MODELS <= set(MODEL_REGISTRY)
    assert is_reasoning_model("claude-opus-4-6")
    assert not is_reasoning_model("claude-haiku-4-5")


def test_every_provider_has_capabilities_and_an_adapter():
    for provider in get_all_providers():
        assert provider in PROVIDER_CAPABILITIES
        assert provider in PROVIDER_CLASSES


def test_forced_json_support():
    assert supports_forced_json("gemini-3-flash")
    assert supports_forced_json("gpt-5.2-pro")
    assert supports_forced_json("unregistered-model")
    assert not supports_forced_json("claude-haiku-4-5")
    assert not supports_forced_json("mistral-ocr")
    assert not supports_forced_json("azure-di")


def test_prefill_support_is_per_model():
    assert supports_prefill("claude-haiku-4-5")
    assert supports_prefill("claude-opus-4-6")
    assert not supports_prefill("gpt-5.2")
    assert not supports_prefill("deepseek-v3.2")


def test_multimodal_flags():
    assert is_multimodal("gemini-3-pro")
    assert is_multimodal("claude-opus-4-6")
    assert not is_multimodal("deepseek-v3.2")


def test_ocr_providers():
    assert is_ocr_provider("mistral-ocr")
    assert is_ocr_provider("google-vision")
    assert is_ocr_provider("azure-di")
    assert not is_ocr_provider("google")
