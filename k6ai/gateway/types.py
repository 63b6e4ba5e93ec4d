"""Core types and DTOs for the AI request gateway."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AIProvider(str, Enum):
    """Supported AI backend families."""

    OPENAI = "openai"
    CLAUDE = "claude"
    LOCAL = "local"  # Ollama, LocalAI and other OpenAI-compatible servers


class AttemptStatus(str, Enum):
    """Classified result of a single HTTP exchange."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"  # 429
    SERVER_ERROR = "server_error"  # 5xx
    NETWORK_ERROR = "network_error"  # connection-level failure
    TIMEOUT = "timeout"  # per-attempt timer fired
    CLIENT_ERROR = "client_error"  # any other non-2xx, never retried


RETRYABLE_STATUSES = frozenset(
    {
        AttemptStatus.RATE_LIMITED,
        AttemptStatus.SERVER_ERROR,
        AttemptStatus.NETWORK_ERROR,
        AttemptStatus.TIMEOUT,
    }
)


# ---------------------------------------------------------------------------
# Provider configuration (gateway input)
# ---------------------------------------------------------------------------


class ProviderConfig(BaseModel):
    """Caller-supplied configuration for one gateway call.

    Accepts the camelCase keys used by the CI scripts' JSON config
    (``apiKey``, ``baseUrl``, ``timeout``, ``maxRetries``) as well as the
    snake_case field names. Unset optional fields are resolved to provider
    defaults by the factory.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    provider: str = "openai"
    api_key: str | None = Field(default=None, alias="apiKey")
    base_url: str | None = Field(default=None, alias="baseUrl")
    model: str | None = None
    timeout_ms: int | None = Field(default=None, alias="timeout", gt=0)
    max_retries: int | None = Field(default=None, alias="maxRetries", ge=0)

    @classmethod
    def from_settings(cls, settings) -> ProviderConfig:
        """Build a config from ``AI_*`` environment settings."""
        return cls(
            provider=settings.ai_provider,
            api_key=settings.ai_api_key or None,
            base_url=settings.ai_base_url or None,
            model=settings.ai_model or None,
            timeout_ms=settings.ai_timeout,
            max_retries=settings.ai_max_retries,
        )


@dataclass(frozen=True)
class ProviderDefaults:
    """Values applied when the caller leaves a config field unset."""

    provider: AIProvider
    base_url: str | None  # None: caller must supply one
    model: str
    timeout_ms: int
    max_retries: int = 2


DEFAULT_PROVIDER_CONFIGS: dict[AIProvider, ProviderDefaults] = {
    AIProvider.OPENAI: ProviderDefaults(
        provider=AIProvider.OPENAI,
        base_url="https://api.openai.com/v1",
        model="gpt-3.5-turbo",
        timeout_ms=30_000,
    ),
    AIProvider.CLAUDE: ProviderDefaults(
        provider=AIProvider.CLAUDE,
        base_url="https://api.anthropic.com",
        model="claude-3-sonnet-20240229",
        timeout_ms=30_000,
    ),
    AIProvider.LOCAL: ProviderDefaults(
        provider=AIProvider.LOCAL,
        base_url=None,  # no safe default for arbitrary self-hosted endpoints
        model="llama2",
        timeout_ms=60_000,  # self-hosted inference is slower
    ),
}


# ---------------------------------------------------------------------------
# HTTP request (adapter output)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HttpRequest:
    """A fully built backend request, ready for the transport."""

    method: str
    url: str
    headers: dict[str, str]
    body: dict[str, Any]


# ---------------------------------------------------------------------------
# Attempt outcome (transport output)
# ---------------------------------------------------------------------------


@dataclass
class AttemptOutcome:
    """Classified result of one attempt; drives the retry controller."""

    status: AttemptStatus
    attempt_index: int = 0
    retries_remaining: int = 0

    status_code: int = 0
    reason: str = ""
    body: Any = None  # parsed JSON when possible, raw text otherwise
    retry_after_seconds: int | None = None
    error_message: str = ""

    latency_ms: int = 0

    @property
    def is_retryable(self) -> bool:
        return self.status in RETRYABLE_STATUSES

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "attempt_index": self.attempt_index,
            "retries_remaining": self.retries_remaining,
            "status_code": self.status_code,
            "retry_after_seconds": self.retry_after_seconds,
            "error_message": self.error_message,
            "latency_ms": self.latency_ms,
        }

