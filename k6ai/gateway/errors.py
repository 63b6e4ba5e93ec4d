"""Typed errors surfaced by the AI request gateway.

Retryable failures (rate limits, 5xx, network errors, timeouts) are resolved
inside the retry controller and only surface here once the retry budget is
exhausted. Client errors and configuration problems surface immediately.
"""

from __future__ import annotations

from typing import Any

from k6ai.gateway.types import AIProvider, AttemptOutcome, AttemptStatus

_PROVIDER_LABELS = {
    AIProvider.OPENAI: "OpenAI",
    AIProvider.CLAUDE: "Claude",
    AIProvider.LOCAL: "Local AI",
}


def provider_label(provider: AIProvider | str | None) -> str:
    """Human-readable provider name used to qualify error messages."""
    try:
        return _PROVIDER_LABELS[AIProvider(provider)]
    except ValueError:
        return str(provider or "AI")


class GatewayError(Exception):
    """Base class for every error raised by the gateway."""

    def __init__(self, message: str, provider: AIProvider | str | None = None):
        super().__init__(message)
        self.provider = provider


class ConfigurationError(GatewayError):
    """Invalid provider configuration. Raised before any network call."""


class ProviderCallError(GatewayError):
    """A backend call failed terminally (fatal status or retries exhausted)."""

    def __init__(
        self,
        message: str,
        provider: AIProvider | str | None = None,
        *,
        status_code: int = 0,
        body: Any = None,
        attempts: int = 0,
        outcome: AttemptOutcome | None = None,
    ):
        super().__init__(message, provider)
        self.status_code = status_code
        self.body = body
        self.attempts = attempts
        self.outcome = outcome

    @classmethod
    def from_outcome(
        cls,
        provider: AIProvider | str,
        outcome: AttemptOutcome,
        attempts: int,
    ) -> ProviderCallError:
        """Build the error subclass matching a terminal outcome."""
        error_cls = _ERRORS_BY_STATUS.get(outcome.status, ProviderCallError)
        message = f"{provider_label(provider)} API error: {outcome.error_message}"
        return error_cls(
            message,
            provider,
            status_code=outcome.status_code,
            body=outcome.body,
            attempts=attempts,
            outcome=outcome,
        )


class FatalClientError(ProviderCallError):
    """4xx (other than 429) or another non-retryable status."""


class RateLimitedError(ProviderCallError):
    """429 responses persisted after every retry."""


class ServerError(ProviderCallError):
    """5xx responses persisted after every retry."""


class NetworkError(ProviderCallError):
    """Connection-level failures persisted after every retry."""


class RequestTimedOutError(ProviderCallError):
    """Every attempt exceeded the per-attempt timeout."""


_ERRORS_BY_STATUS: dict[AttemptStatus, type[ProviderCallError]] = {
    AttemptStatus.CLIENT_ERROR: FatalClientError,
    AttemptStatus.RATE_LIMITED: RateLimitedError,
    AttemptStatus.SERVER_ERROR: ServerError,
    AttemptStatus.NETWORK_ERROR: NetworkError,
    AttemptStatus.TIMEOUT: RequestTimedOutError,
}
