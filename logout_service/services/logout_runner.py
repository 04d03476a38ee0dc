"""
Logout Runner - one logout request from idempotency check to teardown.

Order of work:
1. Idempotency cache (a repeat inside the window returns a canned success)
2. Fast path (a 2xx from the backend returns without a browser)
3. Browser session: navigate, click, stabilize, read page state
"""

from dataclasses import dataclass
from typing import Callable, Optional
import time

import structlog

from logout_service.config import Settings
from logout_service.models import LogoutRequest
from logout_service.services.browser_session import BrowserSession, CapturedResponse
from logout_service.services.button_clicker import (
    ButtonClicker,
    ClickOutcome,
    build_candidates,
    default_strategies,
)
from logout_service.services.fast_path import FastPathResolver
from logout_service.services.idempotency import IdempotencyCache
from logout_service.services.stabilizer import NOT_WAITED, PostClickStabilizer, StabilizeResult

logger = structlog.get_logger()

NOT_CLICKED = ClickOutcome(clicked=False)


@dataclass(frozen=True)
class LogoutResult:
    """Terminal artifact of a logout run."""

    success: bool
    outcome: ClickOutcome
    final_url: str
    page_title: Optional[str] = None
    via: str = "browser"
    api_status: Optional[int] = None
    logout_requests: tuple[CapturedResponse, ...] = ()
    stabilize: StabilizeResult = NOT_WAITED

    @property
    def via_fast_path(self) -> bool:
        return self.via == "api"


class LogoutRunner:
    """Composes the cache, fast path, browser session, clicker and stabilizer."""

    def __init__(
        self,
        settings: Settings,
        cache: IdempotencyCache,
        fast_path: FastPathResolver,
        clicker: Optional[ButtonClicker] = None,
        stabilizer: Optional[PostClickStabilizer] = None,
        session_factory: Callable[..., BrowserSession] = BrowserSession,
    ):
        self.settings = settings
        self.cache = cache
        self.fast_path = fast_path
        self.clicker = clicker or ButtonClicker(
            default_strategies(settings.click_fallback_first_visible),
            click_timeout_ms=settings.click_timeout_ms,
        )
        self.stabilizer = stabilizer or PostClickStabilizer.from_settings(settings)
        self.session_factory = session_factory

    async def run(self, request: LogoutRequest) -> LogoutResult:
        """
        Run one logout.

        Raises:
            Exception: Browser launch or navigation failed. Everything after
                navigation is best effort and does not raise.
        """
        url = request.target_url

        if self.cache.seen_recently(url):
            logger.info("idempotent_hit", url=url, ttl_seconds=self.cache.ttl_seconds)
            return LogoutResult(success=True, outcome=NOT_CLICKED, final_url=url, via="cache")

        fast = await self.fast_path.attempt(url)
        if fast.succeeded:
            return LogoutResult(
                success=True,
                outcome=NOT_CLICKED,
                final_url=url,
                via="api",
                api_status=fast.status,
            )

        async with self.session_factory(self.settings) as session:
            await session.goto(url)

            started = time.monotonic()
            outcome = await self.clicker.click_first_match(
                session.page,
                build_candidates(request.button_text_hint),
                request.explicit_selector,
            )
            logger.info(
                "click_attempted",
                ms=int((time.monotonic() - started) * 1000),
                clicked=outcome.clicked,
                how=outcome.how,
                value=outcome.matched_value,
                attempts=len(outcome.attempts),
            )

            stabilize = NOT_WAITED
            if outcome.clicked:
                stabilize = await self.stabilizer.stabilize(session.page, session.logout_responses)

            return LogoutResult(
                success=True,
                outcome=outcome,
                final_url=session.url or url,
                page_title=await session.title(),
                via="browser",
                api_status=fast.status,
                logout_requests=tuple(session.logout_responses),
                stabilize=stabilize,
            )
