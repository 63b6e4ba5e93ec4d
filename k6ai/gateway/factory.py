"""Provider Factory — validates configuration and binds an adapter.

Validation fails fast with ConfigurationError; no network call is made for an
invalid configuration.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from k6ai.gateway.errors import ConfigurationError
from k6ai.gateway.types import DEFAULT_PROVIDER_CONFIGS, AIProvider, ProviderConfig
from k6ai.gateway.vendor_adapters import BaseVendorAdapter, get_adapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderBinding:
    """A validated provider: adapter plus resolved call parameters."""

    provider: AIProvider
    adapter: BaseVendorAdapter
    model: str
    base_url: str
    timeout_ms: int
    max_retries: int


def coerce_config(config: ProviderConfig | Mapping[str, Any]) -> ProviderConfig:
    """Accept a ProviderConfig or a plain mapping (e.g. parsed JSON)."""
    if isinstance(config, ProviderConfig):
        return config
    if not isinstance(config, Mapping):
        raise ConfigurationError(f"AI configuration must be a mapping, got {type(config).__name__}")
    try:
        return ProviderConfig.model_validate(dict(config))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid AI configuration: {e}") from e


def resolve_provider(name: str | None) -> AIProvider:
    try:
        return AIProvider(str(name or "").strip().lower())
    except ValueError:
        supported = ", ".join(p.value for p in AIProvider)
        raise ConfigurationError(f"Unsupported AI provider: {name}. Supported: {supported}", name) from None


def create_provider(config: ProviderConfig | Mapping[str, Any]) -> ProviderBinding:
    """Validate ``config`` and return a ready-to-use ProviderBinding."""
    config = coerce_config(config)
    provider = resolve_provider(config.provider)
    defaults = DEFAULT_PROVIDER_CONFIGS[provider]

    if not config.api_key and provider != AIProvider.LOCAL:
        raise ConfigurationError(f"API key is required for provider: {provider.value}", provider)

    base_url = config.base_url or defaults.base_url
    if not base_url:
        raise ConfigurationError(f"baseUrl is required for {provider.value} provider", provider)

    model = config.model or defaults.model
    timeout_ms = config.timeout_ms if config.timeout_ms is not None else defaults.timeout_ms
    max_retries = config.max_retries if config.max_retries is not None else defaults.max_retries

    adapter = get_adapter(provider, api_key=config.api_key, base_url=base_url, model=model)
    logger.debug(
        "Bound %s adapter (url=%s, timeout=%dms, max_retries=%d)",
        provider.value,
        adapter.url,
        timeout_ms,
        max_retries,
    )

    return ProviderBinding(
        provider=provider,
        adapter=adapter,
        model=model,
        base_url=adapter.base_url,
        timeout_ms=timeout_ms,
        max_retries=max_retries,
    )
