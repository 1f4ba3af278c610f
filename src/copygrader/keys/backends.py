"""Credential backend loaders for environment variables and JSON files."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional


def load_from_env(var_name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Load API key from environment variable."""
    source = os.environ if environ is None else environ
    value = source.get(var_name)

    if not value:
        raise ValueError(
            f"Environment variable '{var_name}' not set.\n"
            f"Set it with:\n"
            f"  Unix/macOS:  export {var_name}=your-api-key\n"
            f"  Windows CMD: set {var_name}=your-api-key\n"
            f"  PowerShell:  $env:{var_name} = 'your-api-key'"
        )

    return value.strip()


def load_from_json(file_path: str, key_name: str) -> str:
    """Load API key from JSON file."""
    path = Path(file_path).expanduser()

    if not path.exists():
        raise FileNotFoundError(
            f"API key file not found: {file_path}\n"
            f"Create it with appropriate API keys"
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    # Support nested keys with dot notation
    value: Any = data
    for part in key_name.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            available = ", ".join(data.keys()) if isinstance(data, dict) else ""
            raise ValueError(
                f"Key '{key_name}' not found in {file_path}\n"
                f"Available keys: {available}"
            )

    if not isinstance(value, str):
        raise ValueError(f"Key '{key_name}' in {file_path} is not a string")

    return value.strip()
