"""AI request gateway.

Uniform calling contract over HTTP-based AI backends with:
  - Provider Adapters (OpenAI, Claude, local OpenAI-compatible servers)
  - Transport with per-attempt timeout and outcome classification
  - Retry Controller (rate-limit-aware and exponential backoff)
  - Provider Factory (validation and defaults)
  - Gateway Facade (redacted logging, typed errors)
"""

from k6ai.gateway.errors import (
    ConfigurationError,
    FatalClientError,
    GatewayError,
    NetworkError,
    ProviderCallError,
    RateLimitedError,
    RequestTimedOutError,
    ServerError,
)
from k6ai.gateway.gateway import AIGateway, call_ai, call_ai_sync, mask_api_key
from k6ai.gateway.types import AIProvider, ProviderConfig

__all__ = [
    "AIGateway",
    "AIProvider",
    "ConfigurationError",
    "FatalClientError",
    "GatewayError",
    "NetworkError",
    "ProviderCallError",
    "ProviderConfig",
    "RateLimitedError",
    "RequestTimedOutError",
    "ServerError",
    "call_ai",
    "call_ai_sync",
    "mask_api_key",
]
