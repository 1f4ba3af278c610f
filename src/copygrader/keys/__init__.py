"""API key loading and explicit credentials."""

from .credentials import Credentials, MissingCredentialError
from .loader import KeyConfig, load_api_key

__all__ = ["Credentials", "KeyConfig", "MissingCredentialError", "load_api_key"]
