"""Typed settings loaded from a JSON profile."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .keys.credentials import Credentials
from .keys.loader import KeyConfig, load_api_key
from .logging import log_event
from .timeouts import DEFAULT_TIMEOUT_SEC, POLL_INTERVAL_SEC, POLL_MAX_ATTEMPTS, normalize_timeout


@dataclass(slots=True)
class Settings:
    """Runtime settings shared by dispatch, polling and call reporting."""

    timeout: int | float = DEFAULT_TIMEOUT_SEC
    poll_interval_sec: int | float = POLL_INTERVAL_SEC
    poll_max_attempts: int = POLL_MAX_ATTEMPTS
    call_log_dir: Optional[str] = None
    log_file: Optional[str] = None
    azure_di_endpoint: Optional[str] = None
    api_keys: dict[str, KeyConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Settings:
        """Create settings from raw mapped data; invalid values use defaults."""
        if not isinstance(data, Mapping):
            raise ValueError("Settings must be a dictionary-like mapping")

        api_keys: dict[str, KeyConfig] = {}
        api_keys_raw = data.get("api_keys")
        if isinstance(api_keys_raw, Mapping):
            for provider, key_config in api_keys_raw.items():
                if isinstance(key_config, Mapping) and isinstance(key_config.get("type"), str):
                    api_keys[str(provider)] = dict(key_config)  # type: ignore[assignment]

        poll_max_attempts = data.get("poll_max_attempts")
        if isinstance(poll_max_attempts, bool) or not isinstance(poll_max_attempts, int) or poll_max_attempts < 1:
            poll_max_attempts = POLL_MAX_ATTEMPTS

        return cls(
            timeout=normalize_timeout(data.get("timeout"), DEFAULT_TIMEOUT_SEC),
            poll_interval_sec=normalize_timeout(data.get("poll_interval_sec"), POLL_INTERVAL_SEC),
            poll_max_attempts=poll_max_attempts,
            call_log_dir=_optional_str(data.get("call_log_dir")),
            log_file=_optional_str(data.get("log_file")),
            azure_di_endpoint=_optional_str(data.get("azure_di_endpoint")),
            api_keys=api_keys,
        )

    def credentials(self, environ: Optional[Mapping[str, str]] = None) -> Credentials:
        """Resolve configured key configs on top of the environment defaults.

        A key config that fails to load is logged and left to the
        environment value.
        """
        base = Credentials.from_env(environ)
        keys = dict(base.keys)
        for provider, key_config in self.api_keys.items():
            try:
                keys[provider] = load_api_key(provider, key_config)
            except (ValueError, OSError, KeyError) as e:
                log_event(
                    "provider_log",
                    level=logging.WARNING,
                    provider=provider,
                    message=f"API key loading error: {e}",
                )
        return Credentials(
            keys=keys,
            azure_di_endpoint=self.azure_di_endpoint or base.azure_di_endpoint,
        )


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def load_settings(path: str | Path) -> Settings:
    """Load settings from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON object
    """
    settings_path = Path(path).expanduser()
    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {settings_path}: {e}") from e
    return Settings.from_dict(data)
