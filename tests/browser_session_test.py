"""Tests for the per-request browser session."""

from __future__ import annotations

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from logout_service.services.browser_session import (
    USER_AGENT,
    VIEWPORT,
    BrowserSession,
)

from .support.app import make_settings
from .support.browser import FakePage, FakePlaywright, FakeResponse, FakeRoute

RELEASES = ["page.close", "context.close", "browser.close", "playwright.stop"]


@pytest.mark.asyncio
async def test_open_and_close() -> None:
    driver = FakePlaywright()
    settings = make_settings()

    async with BrowserSession(settings, playwright_factory=driver) as session:
        await session.goto("https://example.com/account")
        assert session.url == "https://example.com/account"
        assert await session.title() == "Account"

    assert driver.events == [
        "playwright.start",
        "browser.launch",
        "context.new",
        "page.new",
        "page.goto",
        *RELEASES,
    ]
    assert driver.chromium.launch_options["headless"] is True
    assert "--no-sandbox" in driver.chromium.launch_options["args"]
    assert driver.context.options == {"user_agent": USER_AGENT, "viewport": VIEWPORT}
    assert driver.page.default_timeout == settings.default_timeout_ms
    assert driver.page.default_navigation_timeout == settings.navigation_timeout_ms


@pytest.mark.asyncio
async def test_release_after_navigation_failure() -> None:
    page = FakePage(goto_error=PlaywrightTimeout("Timeout 15000ms exceeded."))
    driver = FakePlaywright(page)

    with pytest.raises(PlaywrightTimeout):
        async with BrowserSession(make_settings(), playwright_factory=driver) as session:
            await session.goto("https://unreachable.example.com/")

    assert driver.events[-4:] == RELEASES


@pytest.mark.asyncio
async def test_release_after_launch_failure() -> None:
    driver = FakePlaywright(launch_error=RuntimeError("Executable doesn't exist"))

    with pytest.raises(RuntimeError):
        async with BrowserSession(make_settings(), playwright_factory=driver):
            pass

    # Only the driver was acquired, so only the driver is released.
    assert driver.events == ["playwright.start", "browser.launch", "playwright.stop"]


@pytest.mark.asyncio
async def test_release_errors_are_suppressed() -> None:
    page = FakePage(close_error=RuntimeError("Target closed"))
    driver = FakePlaywright(
        page,
        context_close_error=RuntimeError("context gone"),
        browser_close_error=RuntimeError("browser gone"),
    )

    async with BrowserSession(make_settings(), playwright_factory=driver):
        pass

    assert driver.events[-4:] == RELEASES


@pytest.mark.asyncio
async def test_heavy_resources_blocked() -> None:
    driver = FakePlaywright()
    async with BrowserSession(make_settings(), playwright_factory=driver):
        pattern, handler = driver.context.routes[0]
        assert pattern == "**/*"
        for resource_type, action in [
            ("image", "abort"),
            ("font", "abort"),
            ("media", "abort"),
            ("document", "continue"),
            ("script", "continue"),
            ("xhr", "continue"),
        ]:
            route = FakeRoute(resource_type)
            await handler(route)
            assert route.action == action, resource_type


@pytest.mark.asyncio
async def test_logout_responses_captured() -> None:
    driver = FakePlaywright()
    async with BrowserSession(make_settings(), playwright_factory=driver) as session:
        on_response = driver.context.handlers["response"]
        on_response(FakeResponse("https://example.com/static/app.js", 200, "GET"))
        on_response(FakeResponse("https://example.com/api/Logout", 204, "POST"))
        on_response(FakeResponse("https://example.com/auth/sign-out", 500, "POST"))

        assert [(r.url, r.status, r.ok) for r in session.logout_responses] == [
            ("https://example.com/api/Logout", 204, True),
            ("https://example.com/auth/sign-out", 500, False),
        ]


@pytest.mark.asyncio
async def test_title_failure_is_none() -> None:
    page = FakePage(title_error=RuntimeError("Execution context was destroyed"))
    async with BrowserSession(make_settings(), playwright_factory=FakePlaywright(page)) as session:
        assert await session.title() is None


def test_page_before_open() -> None:
    session = BrowserSession(make_settings())
    with pytest.raises(RuntimeError):
        session.page
    assert session.url is None
