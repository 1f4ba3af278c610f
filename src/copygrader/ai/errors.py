"""Typed failures raised by provider adapters and orchestration."""

from __future__ import annotations

from typing import Any, Optional

from ..constants import ERROR_BODY_MAX_CHARS
from ..logging import sanitize_error_message

# Block/finish reasons that mean the provider refused the content.
CONTENT_POLICY_REASONS = frozenset(
    {"SAFETY", "RECITATION", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "OTHER"}
)


def truncate_body(body: Any, limit: int = ERROR_BODY_MAX_CHARS) -> str:
    """Sanitize and cut a provider error body for inclusion in an exception."""
    if body is None:
        return ""
    text = sanitize_error_message(str(body))
    if len(text) > limit:
        return text[:limit]
    return text


class ProviderError(Exception):
    """A provider call failed (non-2xx status or transport failure).

    ``status_code`` is ``None`` when no HTTP response was received.
    """

    def __init__(
        self,
        provider: str,
        status_code: Optional[int],
        body: Any = "",
        *,
        message: Optional[str] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        self.body = truncate_body(body)
        status = status_code if status_code is not None else "no response"
        super().__init__(message or f"{provider} API error ({status}): {self.body}")


class EmptyResponseError(ProviderError):
    """The provider answered successfully but returned no usable text."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(provider, 200, f"empty response (reason: {reason or 'unknown'})")

    @property
    def is_content_policy(self) -> bool:
        return (self.reason or "").upper() in CONTENT_POLICY_REASONS


class PollTimeoutError(ProviderError):
    """A submit-then-poll job did not finish within its attempt or time budget."""

    def __init__(self, provider: str, attempts: int, budget_sec: float):
        self.attempts = attempts
        self.budget_sec = budget_sec
        detail = f"job still running after {attempts} polls ({budget_sec:g}s budget)"
        super().__init__(provider, None, detail, message=f"{provider} polling timed out: {detail}")


class AggregateFallbackError(Exception):
    """Every candidate of an ordered fallback failed."""

    def __init__(self, failures: list[Any], task: str = ""):
        self.failures = list(failures)
        self.task = task
        lines = [f"{failure.model_id}: {failure.reason}" for failure in self.failures]
        header = f"All models failed{f' for {task}' if task else ''}"
        super().__init__("\n".join([header, *lines]) if lines else header)


def is_content_policy_error(error: BaseException) -> bool:
    return isinstance(error, EmptyResponseError) and error.is_content_policy
