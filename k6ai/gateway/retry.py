"""Retry Controller — bounded retry loop around single transport attempts.

State machine:
  IDLE → ATTEMPTING → SUCCEEDED | FAILED_RETRYABLE | FAILED_FATAL
  FAILED_RETRYABLE → ATTEMPTING   (retries remain; after the backoff delay)
  FAILED_RETRYABLE → EXHAUSTED    (no retries remain)

Backoff (ms), where r is the retry budget left *before* the retry is spent:
  RATE_LIMITED:                          retry_after * 1000 * (3 - r)
  SERVER_ERROR, NETWORK_ERROR, TIMEOUT:  1000 * 2^(2 - r)
With the default budget of 2 both series start at 1x and double.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from k6ai.gateway.errors import ProviderCallError
from k6ai.gateway.transport import DEFAULT_RETRY_AFTER_SECONDS, HttpTransport
from k6ai.gateway.types import AttemptOutcome, AttemptStatus
from k6ai.gateway.vendor_adapters import BaseVendorAdapter

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class RetryState(str, Enum):
    """Retry controller states."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED_RETRYABLE = "failed_retryable"
    FAILED_FATAL = "failed_fatal"
    EXHAUSTED = "exhausted"


def compute_backoff_ms(outcome: AttemptOutcome, retries_remaining: int) -> float:
    """Delay before the next attempt, in milliseconds."""
    if outcome.status == AttemptStatus.RATE_LIMITED:
        retry_after = outcome.retry_after_seconds
        if retry_after is None:
            retry_after = DEFAULT_RETRY_AFTER_SECONDS
        delay = retry_after * 1000 * (3 - retries_remaining)
    else:
        delay = 1000 * 2 ** (2 - retries_remaining)
    # Budgets above 3 drive the rate-limit multiplier negative
    return max(delay, 0)


class RetryController:
    """Runs one prompt through the transport with bounded, sequential retries.

    One controller serves one gateway call; its ``history`` and ``delays_ms``
    record every attempt and every backoff for inspection.
    """

    def __init__(
        self,
        adapter: BaseVendorAdapter,
        transport: HttpTransport,
        *,
        max_retries: int = 2,
        timeout_ms: int = 30_000,
        sleep: SleepFn | None = None,
        log: logging.Logger | None = None,
    ):
        self.adapter = adapter
        self.transport = transport
        self.max_retries = max_retries
        self.timeout_ms = timeout_ms
        self._sleep = sleep or asyncio.sleep
        self._log = log or logger

        self.state = RetryState.IDLE
        self.retries_remaining = max_retries
        self.history: list[AttemptOutcome] = []
        self.delays_ms: list[float] = []

    async def call(self, user_prompt: str, system_prompt: str | None = None) -> str:
        """Send the prompt, retrying per the backoff policy.

        Returns the parsed response text. Raises a ProviderCallError subclass
        on a fatal outcome or once the retry budget is exhausted.
        """
        request = self.adapter.build_request(user_prompt, system_prompt)
        provider = self.adapter.provider

        for attempt_index in range(self.max_retries + 1):
            self.state = RetryState.ATTEMPTING
            outcome = await self.transport.send(request, self.timeout_ms)
            outcome.attempt_index = attempt_index
            outcome.retries_remaining = self.retries_remaining
            self.history.append(outcome)

            if outcome.status == AttemptStatus.SUCCESS:
                self.state = RetryState.SUCCEEDED
                return self.adapter.parse_response(outcome.body)

            if not outcome.is_retryable:
                self.state = RetryState.FAILED_FATAL
                raise ProviderCallError.from_outcome(provider, outcome, attempts=len(self.history))

            self.state = RetryState.FAILED_RETRYABLE
            if self.retries_remaining <= 0:
                break

            delay_ms = compute_backoff_ms(outcome, self.retries_remaining)
            self._log_retry(outcome, delay_ms)
            self.delays_ms.append(delay_ms)
            await self._sleep(delay_ms / 1000)
            self.retries_remaining -= 1

        self.state = RetryState.EXHAUSTED
        raise ProviderCallError.from_outcome(provider, self.history[-1], attempts=len(self.history))

    def _log_retry(self, outcome: AttemptOutcome, delay_ms: float) -> None:
        if outcome.status == AttemptStatus.RATE_LIMITED:
            self._log.warning("Rate limited. Retrying after %dms...", delay_ms)
        elif outcome.status == AttemptStatus.SERVER_ERROR:
            self._log.warning("Server error %d. Retrying after %dms...", outcome.status_code, delay_ms)
        elif outcome.status == AttemptStatus.TIMEOUT:
            self._log.warning("%s. Retrying after %dms...", outcome.error_message, delay_ms)
        else:
            self._log.warning("Request error: %s. Retrying after %dms...", outcome.error_message, delay_ms)
