"""
Post-Click Stabilizer - bounded wait for a logout click to take effect.

Races three waits and moves on as soon as one succeeds:
- the page URL matching a post-logout pattern
- the load event
- a captured logout-related network response with a 2xx status

Failures never reach the caller; they are collected on the result.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import urlsplit, urlunsplit
import asyncio
import re
import time

from playwright.async_api import Page
import structlog

from logout_service.config import Settings
from logout_service.services.browser_session import CapturedResponse

logger = structlog.get_logger()

POST_LOGOUT_URL_PATTERN = re.compile(r"login|signed-out|logout|sucesso", re.IGNORECASE)


@dataclass(frozen=True)
class StabilizeResult:
    waited: bool
    settled_by: Optional[str] = None
    forced_url: Optional[str] = None
    errors: tuple[str, ...] = ()


NOT_WAITED = StabilizeResult(waited=False)


class PostClickStabilizer:
    """Waits for the post-click page state, optionally forcing a login redirect."""

    def __init__(
        self,
        url_timeout_ms: int = 7000,
        load_timeout_ms: int = 5000,
        network_timeout_ms: Optional[int] = None,
        poll_interval: float = 0.25,
        force_login_redirect: bool = False,
        in_progress_pattern: str = r"/logout",
        login_path: str = "/login",
        goto_timeout_ms: int = 15000,
    ):
        self.url_timeout_ms = url_timeout_ms
        self.load_timeout_ms = load_timeout_ms
        self.network_timeout_ms = network_timeout_ms if network_timeout_ms is not None else url_timeout_ms
        self.poll_interval = poll_interval
        self.force_login_redirect = force_login_redirect
        self.in_progress_pattern = re.compile(in_progress_pattern, re.IGNORECASE)
        self.login_path = login_path
        self.goto_timeout_ms = goto_timeout_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostClickStabilizer":
        return cls(
            url_timeout_ms=settings.post_click_url_timeout_ms,
            load_timeout_ms=settings.post_click_load_timeout_ms,
            force_login_redirect=settings.force_login_redirect,
            in_progress_pattern=settings.logout_in_progress_pattern,
            login_path=settings.login_redirect_path,
            goto_timeout_ms=settings.goto_timeout_ms,
        )

    async def _wait_for_logout_response(self, responses: Sequence[CapturedResponse]) -> None:
        deadline = time.monotonic() + self.network_timeout_ms / 1000
        while time.monotonic() < deadline:
            if any(r.ok for r in responses):
                return
            await asyncio.sleep(self.poll_interval)
        raise TimeoutError(f"No successful logout response within {self.network_timeout_ms}ms")

    async def _race(self, page: Page, responses: Sequence[CapturedResponse]) -> tuple[Optional[str], list[str]]:
        waits = {
            "url": page.wait_for_url(POST_LOGOUT_URL_PATTERN, timeout=self.url_timeout_ms),
            "load": page.wait_for_load_state("load", timeout=self.load_timeout_ms),
            "network": self._wait_for_logout_response(responses),
        }
        tasks = {asyncio.ensure_future(coro): name for name, coro in waits.items()}
        pending = set(tasks)
        deadline = time.monotonic() + max(self.url_timeout_ms, self.load_timeout_ms, self.network_timeout_ms) / 1000

        settled_by = None
        errors: list[str] = []
        try:
            while pending and settled_by is None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    errors.append("timeout: no wait settled in time")
                    break
                done, pending = await asyncio.wait(pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    exc = task.exception()
                    if exc is None:
                        settled_by = settled_by or tasks[task]
                    else:
                        errors.append(f"{tasks[task]}: {exc}")
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return settled_by, errors

    def login_url_for(self, url: str) -> Optional[str]:
        """Canonical login URL if ``url`` still looks like an in-progress logout."""
        parts = urlsplit(url)
        if not self.in_progress_pattern.search(parts.path):
            return None
        return urlunsplit((parts.scheme, parts.netloc, self.login_path, "", ""))

    async def stabilize(
        self,
        page: Page,
        responses: Sequence[CapturedResponse] = (),
    ) -> StabilizeResult:
        """
        Wait for the click to settle. Never raises.

        Args:
            page: Page that was clicked
            responses: Live list of captured logout responses
        """
        started = time.monotonic()
        settled_by, errors = await self._race(page, responses)
        logger.debug(
            "post_click_wait_done",
            ms=int((time.monotonic() - started) * 1000),
            settled_by=settled_by,
            errors=errors or None,
        )

        forced_url = None
        if self.force_login_redirect:
            target = self.login_url_for(page.url)
            if target:
                try:
                    await page.goto(target, wait_until="load", timeout=self.goto_timeout_ms)
                    forced_url = target
                    logger.info("login_redirect_forced", url=target)
                except Exception as e:
                    logger.warning("login_redirect_failed", url=target, error=str(e))
                    errors.append(f"redirect: {e}")

        return StabilizeResult(waited=True, settled_by=settled_by, forced_url=forced_url, errors=tuple(errors))
