"""Test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import AsyncClient

from logout_service.config import Settings

from .support.app import app_client, make_settings
from .support.browser import FakeSessionFactory


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of the tests."""
    for name in ("AUTH_TOKEN", "FAST_PATH_ENDPOINT", "LOG_LEVEL", "IDEMPOTENCY_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest_asyncio.fixture
async def client(settings: Settings, session_factory: FakeSessionFactory) -> AsyncIterator[AsyncClient]:
    """Return an ``httpx.AsyncClient`` talking to the app with a fake browser."""
    async with app_client(settings, session_factory) as client:
        yield client
