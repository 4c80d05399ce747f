"""Shared fixtures for API tests.

ASGITransport does not run the lifespan, so no services are on `app.state`
unless a test puts them there.
"""

from collections.abc import AsyncIterator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient

from context_rag.api.app import app

SERVICE_ATTRS = ("retriever", "chat_pipeline", "document_indexer")


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """HTTP client bound to the app in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def overrides() -> Iterator[dict[object, object]]:
    """Dependency overrides, cleared after each test."""
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
def app_state() -> Iterator[object]:
    """`app.state`, with any services a test sets removed afterwards."""
    yield app.state
    for name in SERVICE_ATTRS:
        if hasattr(app.state, name):
            delattr(app.state, name)
