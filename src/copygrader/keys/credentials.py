"""Explicit per-call credentials."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

# Credential slot -> environment variable holding its key.
ENV_VARS: Mapping[str, str] = MappingProxyType(
    {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "google": "GOOGLE_API_KEY",
        "deepseek": "DEEPSEEK_API_KEY",
        "moonshot": "MOONSHOT_API_KEY",
        "xai": "XAI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "google-vision": "GOOGLE_VISION_API_KEY",
        "azure-di": "AZURE_DI_KEY",
    }
)
AZURE_DI_ENDPOINT_VAR = "AZURE_DI_ENDPOINT"

# Provider families that share another family's key.
PROVIDER_KEY_SLOTS: Mapping[str, str] = MappingProxyType(
    {
        "openai-responses": "openai",
        "mistral-ocr": "mistral",
    }
)


class MissingCredentialError(ValueError):
    """No key is configured for the provider a call needs."""

    def __init__(self, provider: str, slot: str):
        self.provider = provider
        self.slot = slot
        env_var = ENV_VARS.get(slot, slot)
        super().__init__(f"No API key configured for {provider} (set {env_var})")


def key_slot(provider: str) -> str:
    return PROVIDER_KEY_SLOTS.get(provider, provider)


@dataclass(frozen=True)
class Credentials:
    """Provider keys passed explicitly into every call.

    Keys are indexed by credential slot (``openai``, ``anthropic``, ...);
    provider families that share a key resolve through ``key_slot``.
    """

    keys: Mapping[str, str] = field(default_factory=dict)
    azure_di_endpoint: Optional[str] = None

    def __post_init__(self) -> None:
        cleaned = {slot: key.strip() for slot, key in self.keys.items() if key and key.strip()}
        object.__setattr__(self, "keys", MappingProxyType(cleaned))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Credentials:
        source = os.environ if environ is None else environ
        keys = {slot: source.get(var, "") for slot, var in ENV_VARS.items()}
        endpoint = (source.get(AZURE_DI_ENDPOINT_VAR) or "").strip() or None
        return cls(keys=keys, azure_di_endpoint=endpoint)

    def get(self, provider: str) -> Optional[str]:
        return self.keys.get(key_slot(provider))

    def require(self, provider: str) -> str:
        """Return the key for a provider family or raise MissingCredentialError."""
        key = self.get(provider)
        if not key:
            raise MissingCredentialError(provider, key_slot(provider))
        return key

    def has(self, provider: str) -> bool:
        return bool(self.get(provider))
