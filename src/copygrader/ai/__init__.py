"""Provider adapters, catalog and dispatch."""

from .capabilities import is_multimodal, is_ocr_provider, supports_forced_json, supports_prefill
from .catalog import (
    MODEL_REGISTRY,
    REASONING_MODELS,
    get_all_models,
    get_models_for_provider,
    get_provider_for_model,
    resolve_model,
)
from .dispatcher import PROVIDER_CLASSES, call_model
from .errors import (
    AggregateFallbackError,
    EmptyResponseError,
    PollTimeoutError,
    ProviderError,
)
from .types import (
    DispatchOptions,
    DispatchResult,
    FinalAnswer,
    ModelSpec,
    ProviderCapabilities,
    ReasoningOnly,
)

__all__ = [
    "AggregateFallbackError",
    "DispatchOptions",
    "DispatchResult",
    "EmptyResponseError",
    "FinalAnswer",
    "MODEL_REGISTRY",
    "ModelSpec",
    "PROVIDER_CLASSES",
    "PollTimeoutError",
    "ProviderCapabilities",
    "ProviderError",
    "REASONING_MODELS",
    "ReasoningOnly",
    "call_model",
    "get_all_models",
    "get_models_for_provider",
    "get_provider_for_model",
    "is_multimodal",
    "is_ocr_provider",
    "resolve_model",
    "supports_forced_json",
    "supports_prefill",
]
