"""AI Gateway — the single public entry point for AI text completion.

Flow for one call:
  1. Validate the configuration and bind an adapter (factory)
  2. Log the provider/model and the redacted API key
  3. Run the prompt through the retry controller
  4. Log success or failure; return text or re-raise

Usage:
    text = await call_ai(
        {"provider": "openai", "apiKey": "sk-...", "model": "gpt-4"},
        "Suggest load profiles for this API",
        system_prompt="You are a performance testing expert.",
    )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from k6ai.gateway.factory import create_provider
from k6ai.gateway.retry import RetryController, SleepFn
from k6ai.gateway.transport import HttpTransport
from k6ai.gateway.types import ProviderConfig

logger = logging.getLogger(__name__)


def mask_api_key(api_key: str | None) -> str:
    """Redact an API key for logging: first 4 + ``***`` + last 4 characters.

    Keys of 8 characters or fewer (and missing keys) render as ``***``.
    """
    if not api_key or len(api_key) <= 8:
        return "***"
    return f"{api_key[:4]}***{api_key[-4:]}"


class AIGateway:
    """Gateway facade with injectable logger, transport and sleep.

    Holds no per-call state, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        log: logging.Logger | None = None,
        transport: HttpTransport | None = None,
        sleep: SleepFn | None = None,
    ):
        self.log = log or logger
        self.transport = transport or HttpTransport()
        self.sleep = sleep

    async def call(
        self,
        config: ProviderConfig | Mapping[str, Any],
        user_prompt: str,
        system_prompt: str | None = None,
    ) -> str:
        """Send a prompt to the configured backend and return its text."""
        try:
            binding = create_provider(config)
            self.log.info(
                "Initializing AI provider: %s (model: %s)",
                binding.provider.value,
                binding.model,
                extra={"provider": binding.provider.value},
            )
            self.log.info(
                "Calling AI API (provider: %s, masked key: %s)...",
                binding.provider.value,
                mask_api_key(binding.adapter.api_key),
                extra={"provider": binding.provider.value},
            )

            controller = RetryController(
                binding.adapter,
                self.transport,
                max_retries=binding.max_retries,
                timeout_ms=binding.timeout_ms,
                sleep=self.sleep,
                log=self.log,
            )
            text = await controller.call(user_prompt, system_prompt)
        except Exception as e:
            self.log.error("AI API call failed: %s", e)
            raise

        self.log.info("AI API call successful")
        return text


async def call_ai(
    config: ProviderConfig | Mapping[str, Any],
    user_prompt: str,
    system_prompt: str | None = None,
    *,
    log: logging.Logger | None = None,
    transport: HttpTransport | None = None,
    sleep: SleepFn | None = None,
) -> str:
    """Call an AI backend once (with retries) and return the generated text."""
    gateway = AIGateway(log=log, transport=transport, sleep=sleep)
    return await gateway.call(config, user_prompt, system_prompt)


def call_ai_sync(
    config: ProviderConfig | Mapping[str, Any],
    user_prompt: str,
    system_prompt: str | None = None,
    **kwargs: Any,
) -> str:
    """Blocking wrapper around call_ai for scripts without an event loop."""
    return asyncio.run(call_ai(config, user_prompt, system_prompt, **kwargs))
