from collections.abc import Iterator
from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture
def mock_client() -> Iterator[AsyncMock]:
    """Patch httpx.AsyncClient in the transport; configure ``.request`` per test."""
    with patch("k6ai.gateway.transport.httpx.AsyncClient") as mock_client_cls:
        client = AsyncMock()
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)
        mock_client_cls.return_value = client
        yield client


@pytest.fixture
def sleep() -> AsyncMock:
    """Stand-in for asyncio.sleep that records backoff delays without waiting."""
    return AsyncMock(return_value=None)
