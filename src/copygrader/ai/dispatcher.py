"""Model dispatch: resolve a logical model id and invoke its provider adapter."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from ..domain.messages import Message
from ..keys.credentials import Credentials, MissingCredentialError
from ..logging import extract_http_error_context, log_event
from ..settings import Settings
from .azure_di_provider import AzureDIProvider
from .capabilities import get_capabilities
from .catalog import DEFAULT_PROVIDER, is_reasoning_model, resolve_model
from .claude_provider import ClaudeProvider
from .deepseek_provider import DeepSeekProvider
from .errors import ProviderError
from .gemini_provider import GeminiProvider
from .grok_provider import GrokProvider
from .mistral_ocr_provider import MistralOCRProvider
from .mistral_provider import MistralProvider
from .moonshot_provider import MoonshotProvider
from .openai_provider import OpenAIProvider, OpenAIResponsesProvider
from .types import DispatchOptions, ProviderAdapter
from .vision_ocr_provider import GoogleVisionProvider

PROVIDER_CLASSES: dict[str, Callable[..., ProviderAdapter]] = {
    "openai": OpenAIProvider,
    "openai-responses": OpenAIResponsesProvider,
    "deepseek": DeepSeekProvider,
    "moonshot": MoonshotProvider,
    "xai": GrokProvider,
    "mistral": MistralProvider,
    "anthropic": ClaudeProvider,
    "google": GeminiProvider,
    "mistral-ocr": MistralOCRProvider,
    "google-vision": GoogleVisionProvider,
    "azure-di": AzureDIProvider,
}


def _azure_di_kwargs(credentials: Credentials, settings: Settings) -> dict[str, Any]:
    if not credentials.azure_di_endpoint:
        raise MissingCredentialError("azure-di", "AZURE_DI_ENDPOINT")
    return {
        "endpoint": credentials.azure_di_endpoint,
        "poll_interval_sec": settings.poll_interval_sec,
        "poll_max_attempts": settings.poll_max_attempts,
    }


# Extra constructor arguments for providers that need more than key + timeout.
PROVIDER_EXTRA_KWARGS: dict[str, Callable[[Credentials, Settings], dict[str, Any]]] = {
    "azure-di": _azure_di_kwargs,
}


def effective_options(model_id: str, provider: str, options: DispatchOptions) -> DispatchOptions:
    """Drop options the provider or model cannot honor.

    Forced JSON survives only where the provider has a native JSON mode.
    Prefill survives only for models in the provider's prefill set that do
    not reason before answering.
    """
    capabilities = get_capabilities(provider)
    return DispatchOptions(
        forced_json=options.forced_json and capabilities.supports_forced_json,
        prefill=(
            options.prefill
            and model_id in capabilities.supports_assistant_prefill
            and not is_reasoning_model(model_id)
        ),
    )


def get_provider_instance(
    provider: str,
    credentials: Credentials,
    settings: Optional[Settings] = None,
) -> ProviderAdapter:
    """Build the adapter for a provider family from the static class table."""
    effective_settings = settings or Settings()
    provider_class = PROVIDER_CLASSES.get(provider, PROVIDER_CLASSES[DEFAULT_PROVIDER])
    api_key = credentials.require(provider)
    extra = PROVIDER_EXTRA_KWARGS.get(provider)
    kwargs = extra(credentials, effective_settings) if extra else {}
    return provider_class(api_key, timeout=effective_settings.timeout, **kwargs)


async def _close(adapter: Any) -> None:
    close = getattr(adapter, "aclose", None)
    if close is not None:
        await close()


async def call_model(
    model_id: str,
    message: Message,
    credentials: Credentials,
    options: Optional[DispatchOptions] = None,
    *,
    settings: Optional[Settings] = None,
) -> str:
    """Send one message to a logical model and return its text.

    Unknown model ids go to the default provider family with the id passed
    through unchanged. Adapter errors always propagate.

    Raises:
        MissingCredentialError: No key for the resolved provider
        ProviderError: The provider call failed or returned no usable text
    """
    spec = resolve_model(model_id)
    provider = spec.provider
    resolved = effective_options(model_id, provider, options or DispatchOptions())
    adapter = get_provider_instance(provider, credentials, settings)

    log_event(
        "ai_request",
        level=logging.INFO,
        provider=provider,
        model=model_id,
        api_model=spec.api_model,
        forced_json=resolved.forced_json,
        prefill=resolved.prefill,
        input_chars=message.input_chars,
        image_count=len(message.images),
        image_bytes=message.payload_bytes,
    )

    started = time.perf_counter()
    try:
        result = await adapter.call(model_id, message, resolved, prefill=resolved.prefill)
    except Exception as e:
        http_context = extract_http_error_context(e)
        if isinstance(e, ProviderError) and e.status_code is not None:
            http_context.setdefault("http_status", e.status_code)
        log_event(
            "ai_error",
            level=logging.ERROR,
            provider=provider,
            model=model_id,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
            error_type=type(e).__name__,
            error=str(e),
            **http_context,
        )
        raise
    finally:
        await _close(adapter)

    log_event(
        "ai_response",
        level=logging.INFO,
        provider=provider,
        model=model_id,
        latency_ms=round((time.perf_counter() - started) * 1000, 1),
        output_chars=len(result.text),
        usage=result.usage,
        finish_reason=result.finish_reason,
    )
    return result.text
