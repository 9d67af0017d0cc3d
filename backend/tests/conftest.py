"""Shared test fixtures: stub upstream providers and an ASGI test client."""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app import create_app
from config import Settings
from tests.fakes import FakeTimer, StubUpstream, make_settings


@pytest.fixture
def upstream():
    return StubUpstream()


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def settings():
    return make_settings()


@pytest_asyncio.fixture
async def make_client(upstream, timer):
    """Factory so tests can build an app with their own settings."""
    opened = []

    async def _make(settings: Settings | None = None) -> AsyncClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        app = create_app(settings or make_settings(), http_client=http_client, cache_timer=timer)
        client = AsyncClient(transport=ASGITransport(app=app, raise_app_exceptions=False), base_url="http://test")
        opened.append((client, http_client))
        return client

    yield _make

    for client, http_client in opened:
        await client.aclose()
        await http_client.aclose()


@pytest_asyncio.fixture
async def client(make_client, settings):
    return await make_client(settings)
