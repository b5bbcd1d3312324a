"""
Pytest configuration and shared fixtures.

Every test gets a fresh ``ClientMock`` with default configuration (the
environment is not consulted) and httpx clients wired to its transport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import httpx
import pytest

from searchmock.client import ClientMock
from searchmock.config import MockConfig

BASE_URL = "http://localhost:9200"


@pytest.fixture
def mock() -> ClientMock:
    return ClientMock(MockConfig())


@pytest.fixture
async def async_client(mock: ClientMock) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(base_url=BASE_URL, transport=mock.get_connection()()) as client:
        yield client


@pytest.fixture
def sync_client(mock: ClientMock) -> Iterator[httpx.Client]:
    with httpx.Client(base_url=BASE_URL, transport=mock.get_connection()()) as client:
        yield client
