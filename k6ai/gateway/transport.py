"""Transport — executes one HTTP exchange and classifies the result.

The transport never raises for HTTP-level failures. Every exchange yields
exactly one AttemptOutcome:

  - 2xx           → SUCCESS (body parsed as JSON, raw text as fallback)
  - 429           → RATE_LIMITED (Retry-After hint, default 5s)
  - 5xx           → SERVER_ERROR
  - other status  → CLIENT_ERROR
  - timer fired   → TIMEOUT (the in-flight request is cancelled)
  - request error → NETWORK_ERROR (connect, decode, redirect loop)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from k6ai.gateway.types import AttemptOutcome, AttemptStatus, HttpRequest

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 5


def parse_retry_after(value: str | None) -> int:
    """Parse a Retry-After header given in seconds.

    Fractional values are truncated and negatives clamp to 0. HTTP-date
    values and garbage fall back to the default.
    """
    if value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return max(int(float(value.strip())), 0)
    except (ValueError, OverflowError):
        return DEFAULT_RETRY_AFTER_SECONDS


def _decode_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class HttpTransport:
    """Sends an HttpRequest with a hard per-attempt timeout."""

    async def send(self, request: HttpRequest, timeout_ms: int) -> AttemptOutcome:
        timeout = timeout_ms / 1000
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                # Timer and response are mutually exclusive: whichever comes first cancels the other.
                resp = await asyncio.wait_for(
                    client.request(
                        request.method,
                        request.url,
                        json=request.body,
                        headers=request.headers,
                    ),
                    timeout=timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return AttemptOutcome(
                status=AttemptStatus.TIMEOUT,
                error_message=f"Request timeout after {timeout_ms}ms",
                latency_ms=int((time.monotonic() - start) * 1000),
            )
        except httpx.RequestError as e:
            logger.debug("Request error for %s: %r", request.url, e)
            return AttemptOutcome(
                status=AttemptStatus.NETWORK_ERROR,
                error_message=str(e) or type(e).__name__,
                latency_ms=int((time.monotonic() - start) * 1000),
            )

        outcome = self.classify(resp)
        outcome.latency_ms = int((time.monotonic() - start) * 1000)
        return outcome

    @staticmethod
    def classify(resp: httpx.Response) -> AttemptOutcome:
        """Map an HTTP response onto an AttemptOutcome."""
        status_code = resp.status_code

        if 200 <= status_code < 300:
            return AttemptOutcome(
                status=AttemptStatus.SUCCESS,
                status_code=status_code,
                reason=resp.reason_phrase,
                body=_decode_body(resp),
            )

        message = f"API request failed: {status_code} {resp.reason_phrase}\n{resp.text}"

        if status_code == 429:
            return AttemptOutcome(
                status=AttemptStatus.RATE_LIMITED,
                status_code=status_code,
                reason=resp.reason_phrase,
                body=resp.text,
                retry_after_seconds=parse_retry_after(resp.headers.get("retry-after")),
                error_message=message,
            )

        if status_code >= 500:
            status = AttemptStatus.SERVER_ERROR
        else:
            status = AttemptStatus.CLIENT_ERROR

        return AttemptOutcome(
            status=status,
            status_code=status_code,
            reason=resp.reason_phrase,
            body=resp.text,
            error_message=message,
        )
