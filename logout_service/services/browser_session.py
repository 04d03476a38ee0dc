"""
Browser Session - one Playwright browser per logout request.

Handles browser launch, context and page creation, and cleanup.

Features:
- Launch args tuned for containers (no sandbox, no /dev/shm, no GPU)
- Heavy resources (images, fonts, media) aborted at the context level
- Logout-related network responses captured for the post-click stabilizer
- Every request and response logged at trace level
- Page, context, browser and driver closed on every exit path; close errors
  are logged and never raised

Usage:
    async with BrowserSession(settings) as session:
        await session.goto(url)
        ...
"""

from dataclasses import dataclass
from typing import Callable, Optional
import re
import time

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright, Request, Response, Route
import structlog

from logout_service.config import Settings
from logout_service.logging import trace_enabled

logger = structlog.get_logger()

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1366, "height": 768}

BLOCKED_RESOURCE_TYPES = frozenset({"image", "font", "media"})

LOGOUT_RESPONSE_PATTERN = re.compile(r"logout|signout|sign-out|sign_out|session", re.IGNORECASE)


@dataclass(frozen=True)
class CapturedResponse:
    """A logout-related network response observed in the context."""
    url: str
    status: int
    method: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class BrowserSession:
    """
    Owns one driver, one browser, one context and one page for a single request.

    Never shared or reused. Exiting the ``async with`` block releases every
    resource that was acquired, even if acquisition failed half way.
    """

    def __init__(
        self,
        settings: Settings,
        playwright_factory: Callable = async_playwright,
    ):
        self.settings = settings
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.logout_responses: list[CapturedResponse] = []

    @property
    def page(self) -> Page:
        """Get the session page."""
        if not self._page:
            raise RuntimeError("Browser session not opened")
        return self._page

    async def __aenter__(self) -> "BrowserSession":
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_launch_args(self) -> list[str]:
        """Chromium flags for headless runs inside containers."""
        return [
            "--no-sandbox",                # Required in Docker containers
            "--disable-setuid-sandbox",    # Required in Docker containers
            "--disable-dev-shm-usage",     # Use /tmp instead of /dev/shm
            "--disable-gpu",               # No GPU available in server environments
        ]

    async def open(self) -> None:
        """Launch the browser and create the isolated context and page."""
        started = time.monotonic()
        self._playwright = await self._playwright_factory().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.settings.headless,
            args=self._get_launch_args(),
        )
        logger.debug("browser_launched", ms=_elapsed_ms(started))

        started = time.monotonic()
        self._context = await self._browser.new_context(
            user_agent=USER_AGENT,
            viewport=VIEWPORT,
        )
        await self._context.route("**/*", self._block_heavy_resources)
        self._context.on("request", self._on_request)
        self._context.on("response", self._on_response)
        logger.debug("context_created", ms=_elapsed_ms(started))

        self._page = await self._context.new_page()
        self._page.set_default_timeout(self.settings.default_timeout_ms)
        self._page.set_default_navigation_timeout(self.settings.navigation_timeout_ms)

    async def _block_heavy_resources(self, route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    def _on_request(self, request: Request) -> None:
        if trace_enabled():
            logger.debug("net_request", method=request.method, url=request.url)

    def _on_response(self, response: Response) -> None:
        if trace_enabled():
            logger.debug("net_response", status=response.status, url=response.url)
        if LOGOUT_RESPONSE_PATTERN.search(response.url):
            self.logout_responses.append(
                CapturedResponse(url=response.url, status=response.status, method=response.request.method)
            )

    async def goto(self, url: str) -> None:
        """
        Navigate to the target and wait for the load event.

        Raises on timeout or network error; the request cannot continue without
        the page.
        """
        started = time.monotonic()
        await self.page.goto(url, wait_until="load", timeout=self.settings.goto_timeout_ms)
        logger.info(
            "page_loaded",
            ms=_elapsed_ms(started),
            url=self.page.url,
            title=await self.title(),
        )

    async def title(self) -> Optional[str]:
        """Current page title, or None if it cannot be read."""
        if not self._page:
            return None
        try:
            return await self._page.title()
        except Exception:
            return None

    @property
    def url(self) -> Optional[str]:
        return self._page.url if self._page else None

    async def close(self) -> None:
        """Close page, context, browser and driver. Never raises."""
        started = time.monotonic()

        if self._page is not None:
            try:
                await self._page.close()
            except Exception as e:
                logger.warning("page_close_failed", error=str(e))
            self._page = None

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.warning("context_close_failed", error=str(e))
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning("browser_close_failed", error=str(e))
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning("playwright_stop_failed", error=str(e))
            self._playwright = None

        logger.debug("browser_closed", ms=_elapsed_ms(started))
