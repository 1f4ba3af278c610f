"""Unified API key loading interface."""

from typing import Required, TypedDict, cast

from .backends import load_from_env, load_from_json


class KeyConfig(TypedDict, total=False):
    """Typed configuration for API key loading.

    Discriminated by ``type`` field. Additional fields depend on the type:
      env     → key
      json    → path, key
      direct  → value (testing only)
    """

    type: Required[str]
    key: str
    value: str
    path: str


def load_api_key(provider: str, config: KeyConfig) -> str:
    """Load API key based on configuration.

    Args:
        provider: Credential slot name (openai, anthropic, azure-di, ...)
        config: Key configuration from settings

    Returns:
        API key string

    Raises:
        ValueError: If key cannot be loaded

    Example configs:
        {"type": "env", "key": "OPENAI_API_KEY"}
        {"type": "json", "path": "~/.secrets/keys.json", "key": "gemini"}
        {"type": "direct", "value": "sk-..."} (testing only)
    """
    key_type = config.get("type")

    if key_type == "direct":
        return cast(str, config["value"])

    elif key_type == "env":
        return load_from_env(cast(str, config["key"]))

    elif key_type == "json":
        return load_from_json(cast(str, config["path"]), cast(str, config["key"]))

    else:
        raise ValueError(f"Unknown key type '{key_type}' for provider '{provider}'")
