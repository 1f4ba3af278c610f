"""Shared typed contracts for catalog, dispatcher and adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, TypedDict, Union

from ..domain.messages import Message


class TokenUsage(TypedDict, total=False):
    """Token usage metadata returned by providers."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cached_tokens: int
    reasoning_tokens: int


@dataclass(slots=True, frozen=True)
class ModelSpec:
    """Catalog entry for one logical model id."""

    provider: str
    api_model: str
    label: str
    multimodal: bool = True


@dataclass(slots=True, frozen=True)
class ProviderCapabilities:
    """What a provider family can do beyond plain text in, text out."""

    supports_forced_json: bool
    supports_assistant_prefill: frozenset[str] = frozenset()
    is_multimodal: bool = True


@dataclass(slots=True, frozen=True)
class DispatchOptions:
    """Per-call options set by the caller.

    ``forced_json`` is forwarded to adapters; ``prefill`` is resolved by the
    dispatcher into an adapter argument.
    """

    forced_json: bool = False
    prefill: bool = False


@dataclass(slots=True, frozen=True)
class DispatchResult:
    """Text returned by one adapter call."""

    text: str
    usage: TokenUsage = field(default_factory=dict)  # type: ignore[assignment]
    finish_reason: str | None = None


@dataclass(slots=True, frozen=True)
class FinalAnswer:
    """A reasoning response whose answer block is usable as-is."""

    text: str


@dataclass(slots=True, frozen=True)
class ReasoningOnly:
    """A reasoning response with no usable answer block."""

    text: str
    reasoning: str


ReasoningResponse = Union[FinalAnswer, ReasoningOnly]


class ProviderAdapter(Protocol):
    async def call(
        self,
        model: str,
        message: Message,
        options: DispatchOptions,
        *,
        prefill: bool = False,
    ) -> DispatchResult: ...
