"""Shared provider log-message helpers and SDK error translation."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..logging import extract_http_error_context, log_event, sanitize_error_message
from .errors import ProviderError


def log_provider_error(provider: str, message: str) -> None:
    """Emit a standardized provider error log event."""
    log_event(
        "provider_log",
        level=logging.ERROR,
        provider=provider,
        message=sanitize_error_message(message),
    )


def status_error_message(status_code: Optional[int], error: Exception) -> str:
    """Build the standard message for an HTTP status failure."""
    if status_code == 401:
        return f"Authentication failed: {error}"
    if status_code == 403:
        return f"Permission denied: {error}"
    if status_code == 400:
        return f"Bad request: {error}"
    if status_code == 429:
        return f"Rate limit exceeded: {error}"
    return f"API status error ({status_code}): {error}"


def transport_error_message(error: Exception) -> str:
    """Build the standard message for a failure with no HTTP response."""
    return f"Transport error: {type(error).__name__}: {error}"


def _response_body(error: Exception) -> Any:
    body = getattr(error, "body", None)
    if body:
        return body
    response = getattr(error, "response", None)
    if response is not None:
        try:
            return response.text
        except httpx.ResponseNotRead:
            return None
    return None


def status_error(provider: str, error: Exception, status_code: Optional[int]) -> ProviderError:
    """Log an HTTP status failure and build the matching ProviderError."""
    log_provider_error(provider, status_error_message(status_code, error))
    context = extract_http_error_context(error)
    if context:
        log_event("provider_log", level=logging.DEBUG, provider=provider, **context)
    return ProviderError(provider, status_code, _response_body(error) or str(error))


def transport_error(provider: str, error: Exception) -> ProviderError:
    """Log a connection/timeout failure and build a status-less ProviderError."""
    log_provider_error(provider, transport_error_message(error))
    return ProviderError(provider, None, f"{type(error).__name__}: {error}")
