"""Tests for the post-click stabilizer."""

from __future__ import annotations

import asyncio
import re
import time
from typing import Optional

import pytest

from logout_service.services.browser_session import CapturedResponse
from logout_service.services.stabilizer import PostClickStabilizer

from .support.browser import FakePage


class HangingPage(FakePage):
    """Page whose URL and load waits never finish on their own."""

    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.cancelled: list[str] = []

    async def _hang(self, name: str) -> None:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled.append(name)
            raise

    async def wait_for_url(self, pattern: re.Pattern, timeout: Optional[int] = None) -> None:
        await self._hang("url")

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        await self._hang("load")


def make_stabilizer(**kwargs: object) -> PostClickStabilizer:
    options: dict[str, object] = {
        "url_timeout_ms": 200,
        "load_timeout_ms": 100,
        "poll_interval": 0.01,
    }
    options.update(kwargs)
    return PostClickStabilizer(**options)


@pytest.mark.asyncio
async def test_settles_on_url() -> None:
    page = FakePage(url="https://example.com/signed-out", load_ready=False)
    result = await make_stabilizer().stabilize(page)
    assert result.waited
    assert result.settled_by == "url"


@pytest.mark.asyncio
async def test_settles_on_load() -> None:
    page = FakePage(url="https://example.com/account")
    result = await make_stabilizer().stabilize(page)
    assert result.settled_by == "load"
    assert result.forced_url is None


@pytest.mark.asyncio
async def test_settles_on_network() -> None:
    page = FakePage(url="https://example.com/account", load_ready=False)
    responses: list[CapturedResponse] = []

    async def respond_later() -> None:
        await asyncio.sleep(0.03)
        responses.append(CapturedResponse("https://example.com/api/logout", 500, "POST"))
        responses.append(CapturedResponse("https://example.com/api/session", 204, "DELETE"))

    task = asyncio.ensure_future(respond_later())
    started = time.monotonic()
    result = await make_stabilizer(url_timeout_ms=2000, load_timeout_ms=2000).stabilize(page, responses)
    await task

    assert result.settled_by == "network"
    assert time.monotonic() - started < 1.5


@pytest.mark.asyncio
async def test_nothing_settles() -> None:
    page = FakePage(url="https://example.com/account", load_ready=False)
    result = await make_stabilizer().stabilize(page, [CapturedResponse("https://example.com/logout", 302, "GET")])

    assert result.waited
    assert result.settled_by is None
    assert any(error.startswith("load:") for error in result.errors)


@pytest.mark.asyncio
async def test_gives_up_after_longest_timeout() -> None:
    page = HangingPage(url="https://example.com/account")
    stabilizer = make_stabilizer(url_timeout_ms=150, load_timeout_ms=100, network_timeout_ms=150)

    started = time.monotonic()
    result = await stabilizer.stabilize(page)
    elapsed = time.monotonic() - started

    assert 0.14 <= elapsed < 1.0
    assert result.waited
    assert result.settled_by is None
    assert "timeout: no wait settled in time" in result.errors
    assert sorted(page.cancelled) == ["load", "url"]


@pytest.mark.asyncio
async def test_forced_login_redirect() -> None:
    page = FakePage(url="https://example.com/logout/in-progress?step=2")
    stabilizer = make_stabilizer(force_login_redirect=True)
    result = await stabilizer.stabilize(page)

    assert result.forced_url == "https://example.com/login"
    assert page.gotos == ["https://example.com/login"]
    assert page.url == "https://example.com/login"


@pytest.mark.asyncio
async def test_forced_redirect_only_for_logout_paths() -> None:
    page = FakePage(url="https://example.com/home")
    result = await make_stabilizer(force_login_redirect=True).stabilize(page)
    assert result.forced_url is None
    assert page.gotos == []

    page = FakePage(url="https://example.com/logout")
    result = await make_stabilizer(force_login_redirect=False).stabilize(page)
    assert page.gotos == []


@pytest.mark.asyncio
async def test_forced_redirect_failure_is_swallowed() -> None:
    page = FakePage(url="https://example.com/logout", goto_error=RuntimeError("net::ERR_ABORTED"))
    result = await make_stabilizer(force_login_redirect=True).stabilize(page)

    assert result.forced_url is None
    assert "redirect: net::ERR_ABORTED" in result.errors


def test_login_url_for() -> None:
    stabilizer = PostClickStabilizer(login_path="/entrar")
    assert stabilizer.login_url_for("https://example.com:8443/Logout/x#y") == "https://example.com:8443/entrar"
    assert stabilizer.login_url_for("https://example.com/?next=/logout") is None
