"""Azure Document Intelligence OCR provider (submit, then poll).

A job moves ``submitted -> polling -> succeeded | failed | timed-out`` and
never goes back. ``failed`` raises :class:`ProviderError`. Running out of
poll attempts, or of the ``interval x attempts`` wall-clock budget, raises
:class:`PollTimeoutError`.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Literal, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from ..domain.messages import Message
from ..logging import before_sleep_log_event, log_event
from ..timeouts import DEFAULT_TIMEOUT_SEC, POLL_INTERVAL_SEC, POLL_MAX_ATTEMPTS, poll_budget_sec
from .catalog import resolve_model
from .errors import EmptyResponseError, PollTimeoutError, ProviderError
from .http_provider import HttpOcrProvider
from .types import DispatchOptions, DispatchResult

API_VERSION = "2024-11-30"
OPERATION_LOCATION_HEADER = "Operation-Location"
SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"

PollState = Literal["submitted", "polling", "succeeded", "failed", "timed-out"]

# Job statuses reported by the service while work is still in progress.
PENDING_STATUSES = frozenset({"notStarted", "running"})


def _still_pending(payload: dict[str, Any]) -> bool:
    return payload.get("status") in PENDING_STATUSES


class AzureDIProvider(HttpOcrProvider):
    """Azure Document Intelligence ``prebuilt-read`` OCR."""

    provider_name = "azure-di"

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        *,
        poll_interval_sec: float = POLL_INTERVAL_SEC,
        poll_max_attempts: int = POLL_MAX_ATTEMPTS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Azure DI provider.

        Args:
            api_key: Azure resource key
            endpoint: Resource endpoint, e.g. ``https://<name>.cognitiveservices.azure.com``
            timeout: Read timeout in seconds for each HTTP request
            poll_interval_sec: Fixed wait between polls
            poll_max_attempts: Poll attempts before giving up
            client: Optional preconfigured httpx client
        """
        super().__init__(api_key, timeout, client=client)
        self.endpoint = endpoint.rstrip("/")
        self.poll_interval_sec = poll_interval_sec
        self.poll_max_attempts = poll_max_attempts

    def _log_state(self, state: PollState, **fields: Any) -> None:
        log_event(
            "provider_log",
            level=logging.INFO,
            provider=self.provider_name,
            message=f"job {state}",
            state=state,
            **fields,
        )

    def analyze_url(self, model: str) -> str:
        api_model = resolve_model(model).api_model
        return f"{self.endpoint}/documentintelligence/documentModels/{api_model}:analyze"

    async def submit(self, model: str, message: Message) -> str:
        """Upload the image and return the job handle URL."""
        image = self.single_image(message)
        response = await self.request(
            "POST",
            self.analyze_url(model),
            params={"api-version": API_VERSION},
            headers={SUBSCRIPTION_KEY_HEADER: self.api_key, "Content-Type": image.mime_type},
            content=base64.b64decode(image.base64),
        )
        operation_url = response.headers.get(OPERATION_LOCATION_HEADER)
        if not operation_url:
            raise ProviderError(
                self.provider_name,
                response.status_code,
                f"missing {OPERATION_LOCATION_HEADER} header",
            )
        self._log_state("submitted")
        return operation_url

    async def poll_once(self, operation_url: str) -> dict[str, Any]:
        response = await self.request(
            "GET",
            operation_url,
            headers={SUBSCRIPTION_KEY_HEADER: self.api_key},
        )
        return response.json()

    async def wait_for_result(self, operation_url: str) -> dict[str, Any]:
        """Poll the job until it leaves the pending statuses.

        The budget is a hard deadline: a poll request still in flight when it
        expires is cancelled. A zero budget (no wait between polls) leaves
        only the attempt limit.
        """
        self._log_state("polling")
        budget = poll_budget_sec(self.poll_interval_sec, self.poll_max_attempts)
        stop = stop_after_attempt(self.poll_max_attempts)
        if budget > 0:
            stop = stop | stop_after_delay(budget)
        retrying = AsyncRetrying(
            retry=retry_if_result(_still_pending),
            wait=wait_fixed(self.poll_interval_sec),
            stop=stop,
            before_sleep=before_sleep_log_event(
                provider=self.provider_name,
                operation="poll",
                level=logging.DEBUG,
            ),
        )
        try:
            async with asyncio.timeout(budget if budget > 0 else None):
                return await retrying(self.poll_once, operation_url)
        except (RetryError, TimeoutError) as e:
            attempts = retrying.statistics.get("attempt_number", self.poll_max_attempts)
            self._log_state("timed-out", attempts=attempts)
            raise PollTimeoutError(self.provider_name, attempts, budget) from e

    async def call(
        self,
        model: str,
        message: Message,
        options: DispatchOptions,
        *,
        prefill: bool = False,
    ) -> DispatchResult:
        operation_url = await self.submit(model, message)
        payload = await self.wait_for_result(operation_url)

        status = payload.get("status")
        if status != "succeeded":
            error = payload.get("error")
            detail = error.get("message") if isinstance(error, dict) else None
            self._log_state("failed", status=status)
            raise ProviderError(self.provider_name, 200, detail or f"job status {status}")

        self._log_state("succeeded")
        text = (payload.get("analyzeResult") or {}).get("content") or ""
        if not text.strip():
            raise EmptyResponseError(self.provider_name, None)
        return DispatchResult(text=text)
