"""Provider Adapters — wire-format handling for each AI backend family.

Each adapter turns the uniform ``(user_prompt, system_prompt)`` pair into the
backend's HTTP request and pulls the generated text back out of its response.
Adapters do no I/O; the transport and retry controller own the exchange.

Backend-specific behaviors:
  - OpenAI: chat completions, system prompt as the first message
  - Claude: Messages API, system prompt as a top-level field
  - Local: OpenAI-compatible servers (Ollama, LocalAI), optional auth,
    falls back to a top-level ``content`` field in the response
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from k6ai.gateway.types import AIProvider, HttpRequest

logger = logging.getLogger(__name__)

# Fixed generation budget; not caller-configurable.
TEMPERATURE = 0.7
MAX_TOKENS = 2000

ANTHROPIC_VERSION = "2023-06-01"


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


def _chat_messages(user_prompt: str, system_prompt: str | None) -> list[dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages


def _chat_completion_text(raw_body: dict) -> str:
    """Text at choices[0].message.content, or "" when absent."""
    choice = _first(raw_body.get("choices"))
    if not isinstance(choice, dict):
        return ""
    message = choice.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


class BaseVendorAdapter(ABC):
    """Base class for all provider adapters."""

    provider: AIProvider
    endpoint_suffix: str

    def __init__(self, api_key: str | None, base_url: str, model: str):
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.model = model

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint_suffix}"

    def build_request(self, user_prompt: str, system_prompt: str | None = None) -> HttpRequest:
        """Build the backend request for one prompt pair."""
        if not user_prompt:
            raise ValueError("user_prompt must be a non-empty string")
        return HttpRequest(
            method="POST",
            url=self.url,
            headers={"Content-Type": "application/json", **self._auth_headers()},
            body=self._build_body(user_prompt, system_prompt),
        )

    @abstractmethod
    def _auth_headers(self) -> dict[str, str]: ...

    @abstractmethod
    def _build_body(self, user_prompt: str, system_prompt: str | None) -> dict[str, Any]: ...

    @abstractmethod
    def parse_response(self, raw_body: Any) -> str:
        """Extract the generated text. Returns "" when no content is present."""
        ...


# ---------------------------------------------------------------------------
# OpenAI Adapter
# ---------------------------------------------------------------------------


class OpenAIAdapter(BaseVendorAdapter):
    """OpenAI Chat Completions adapter."""

    provider = AIProvider.OPENAI
    endpoint_suffix = "/chat/completions"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _build_body(self, user_prompt: str, system_prompt: str | None) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": _chat_messages(user_prompt, system_prompt),
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    def parse_response(self, raw_body: Any) -> str:
        if not isinstance(raw_body, dict):
            logger.warning("%s returned a non-JSON body", self.provider.value)
            return ""
        return _chat_completion_text(raw_body)


# ---------------------------------------------------------------------------
# Claude Adapter (Anthropic Messages API)
# ---------------------------------------------------------------------------


class ClaudeAdapter(BaseVendorAdapter):
    """Anthropic Messages API adapter."""

    provider = AIProvider.CLAUDE
    endpoint_suffix = "/v1/messages"

    def _auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": ANTHROPIC_VERSION}

    def _build_body(self, user_prompt: str, system_prompt: str | None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        # Claude takes the system prompt outside the messages array
        if system_prompt:
            body["system"] = system_prompt
        return body

    def parse_response(self, raw_body: Any) -> str:
        if not isinstance(raw_body, dict):
            logger.warning("%s returned a non-JSON body", self.provider.value)
            return ""
        block = _first(raw_body.get("content"))
        if not isinstance(block, dict):
            return ""
        text = block.get("text")
        return text if isinstance(text, str) else ""


# ---------------------------------------------------------------------------
# Local Adapter (OpenAI-compatible self-hosted servers)
# ---------------------------------------------------------------------------


class LocalAdapter(BaseVendorAdapter):
    """Adapter for Ollama, LocalAI and similar OpenAI-compatible servers."""

    provider = AIProvider.LOCAL
    endpoint_suffix = "/chat/completions"

    def _auth_headers(self) -> dict[str, str]:
        # Most self-hosted servers run without auth
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    def _build_body(self, user_prompt: str, system_prompt: str | None) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": _chat_messages(user_prompt, system_prompt),
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    def parse_response(self, raw_body: Any) -> str:
        if not isinstance(raw_body, dict):
            logger.warning("%s returned a non-JSON body", self.provider.value)
            return ""
        text = _chat_completion_text(raw_body)
        if text:
            return text
        content = raw_body.get("content")
        return content if isinstance(content, str) else ""


# ---------------------------------------------------------------------------
# Adapter registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[AIProvider, type[BaseVendorAdapter]] = {
    AIProvider.OPENAI: OpenAIAdapter,
    AIProvider.CLAUDE: ClaudeAdapter,
    AIProvider.LOCAL: LocalAdapter,
}


def get_adapter(provider: AIProvider, api_key: str | None, base_url: str, model: str) -> BaseVendorAdapter:
    """Factory: get the appropriate adapter for a provider."""
    cls = ADAPTER_REGISTRY.get(provider)
    if cls is None:
        raise ValueError(f"No adapter registered for provider: {provider}")
    return cls(api_key=api_key, base_url=base_url, model=model)
