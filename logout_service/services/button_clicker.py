"""
Button Clicker - finds and clicks a logout control with layered strategies.

Strategies run in strict order and stop at the first one that matches at
least one element and completes a click:

1. selector                - caller supplied selector
2. role+text               - get_by_role("button", name=pattern)
3. text                    - get_by_text(pattern, exact=False)
4. xpath                   - case-folded contains() on button, then link, text
5. fallback-first-visible  - first visible button-shaped element

Markup differs a lot between sites, so coverage beats precision here: a click
that fails or times out moves on to the next probe, and finding nothing is a
normal outcome, not an error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Sequence
import re

from playwright.async_api import Locator, Page
import structlog

logger = structlog.get_logger()

# Built-in logout phrases, tried after any caller hint
DEFAULT_BUTTON_TEXTS = (
    "deslogar",
    "logout all sessions",
    "logout",
    "log out",
    "sign out",
)

FIRST_VISIBLE_SELECTOR = (
    "button:visible, [role=button]:visible, "
    "input[type=submit]:visible, input[type=button]:visible"
)

_UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZÁÉÍÓÚÂÊÔÃÕÇ"
_LOWER = "abcdefghijklmnopqrstuvwxyzáéíóúâêôãõç"


class ClickStrategy(str, Enum):
    SELECTOR = "selector"
    ROLE_TEXT = "role+text"
    TEXT = "text"
    XPATH = "xpath"
    FIRST_VISIBLE = "fallback-first-visible"
    NONE = "none"


@dataclass(frozen=True)
class Candidate:
    """A case-insensitive text pattern plus the plain text used for XPath."""
    pattern: re.Pattern
    text: str


@dataclass(frozen=True)
class ClickAttempt:
    """One probe that found elements and tried to click."""
    strategy: ClickStrategy
    value: str
    clicked: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ClickOutcome:
    clicked: bool
    strategy: ClickStrategy = ClickStrategy.NONE
    matched_value: Optional[str] = None
    attempts: tuple[ClickAttempt, ...] = field(default_factory=tuple)

    @property
    def how(self) -> Optional[str]:
        return None if self.strategy is ClickStrategy.NONE else self.strategy.value


def build_candidates(button_text_hint: Optional[str] = None) -> list[Candidate]:
    """
    Candidate patterns with the caller's hint first.

    The hint is compiled as a regular expression; if it is not a valid one it
    is matched literally instead.
    """
    candidates = []
    if button_text_hint:
        try:
            pattern = re.compile(button_text_hint, re.IGNORECASE)
        except re.error:
            pattern = re.compile(re.escape(button_text_hint), re.IGNORECASE)
        candidates.append(Candidate(pattern, button_text_hint))

    for text in DEFAULT_BUTTON_TEXTS:
        candidates.append(Candidate(re.compile(re.escape(text), re.IGNORECASE), text))
    return candidates


def xpath_literal(text: str) -> str:
    """Quote text for use inside an XPath expression."""
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


def build_xpaths(text: str) -> list[str]:
    """Button query first, then link query, both matching folded text."""
    needle = xpath_literal(text.lower())
    folded = f"translate(normalize-space(.), '{_UPPER}', '{_LOWER}')"
    return [
        f"//button[contains({folded}, {needle})]",
        f"//a[contains({folded}, {needle})]",
    ]


async def _count(locator: Locator) -> int:
    try:
        return await locator.count()
    except Exception:
        return 0


class LocatorStrategy:
    """
    Base strategy: yields (locator, value) probes and clicks the first match.

    Subclasses only decide which locators to probe.
    """

    name: ClickStrategy = ClickStrategy.NONE
    event: str = ""

    def probes(
        self, page: Page, candidates: Sequence[Candidate], selector: Optional[str]
    ) -> Iterator[tuple[Locator, str]]:
        raise NotImplementedError

    async def __call__(
        self,
        page: Page,
        candidates: Sequence[Candidate],
        selector: Optional[str],
        *,
        timeout_ms: int,
        attempts: list[ClickAttempt],
    ) -> Optional[ClickOutcome]:
        for locator, value in self.probes(page, candidates, selector):
            count = await _count(locator)
            logger.debug(f"probe_{self.event}", value=value, count=count)
            if count == 0:
                continue

            try:
                await locator.first.click(timeout=timeout_ms)
            except Exception as e:
                logger.warning(f"{self.event}_click_failed", value=value, error=str(e))
                attempts.append(ClickAttempt(self.name, value, clicked=False, error=str(e)))
                continue

            attempts.append(ClickAttempt(self.name, value, clicked=True))
            return ClickOutcome(True, self.name, value, tuple(attempts))
        return None


class SelectorStrategy(LocatorStrategy):
    name = ClickStrategy.SELECTOR
    event = "selector"

    def probes(self, page, candidates, selector):
        if selector:
            yield page.locator(selector), selector


class RoleTextStrategy(LocatorStrategy):
    name = ClickStrategy.ROLE_TEXT
    event = "role_text"

    def probes(self, page, candidates, selector):
        for candidate in candidates:
            yield page.get_by_role("button", name=candidate.pattern), candidate.text


class TextStrategy(LocatorStrategy):
    name = ClickStrategy.TEXT
    event = "text"

    def probes(self, page, candidates, selector):
        for candidate in candidates:
            yield page.get_by_text(candidate.pattern, exact=False), candidate.text


class XPathStrategy(LocatorStrategy):
    name = ClickStrategy.XPATH
    event = "xpath"

    def probes(self, page, candidates, selector):
        for candidate in candidates:
            for xpath in build_xpaths(candidate.text):
                yield page.locator(f"xpath={xpath}"), candidate.text


class FirstVisibleStrategy(LocatorStrategy):
    name = ClickStrategy.FIRST_VISIBLE
    event = "first_visible"

    def probes(self, page, candidates, selector):
        yield page.locator(FIRST_VISIBLE_SELECTOR), FIRST_VISIBLE_SELECTOR


def default_strategies(fallback_first_visible: bool = True) -> list[LocatorStrategy]:
    strategies = [SelectorStrategy(), RoleTextStrategy(), TextStrategy(), XPathStrategy()]
    if fallback_first_visible:
        strategies.append(FirstVisibleStrategy())
    return strategies


class ButtonClicker:
    """Runs the strategies in order until one clicks."""

    def __init__(self, strategies: Optional[Sequence[LocatorStrategy]] = None, click_timeout_ms: int = 5000):
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.click_timeout_ms = click_timeout_ms

    async def click_first_match(
        self,
        page: Page,
        candidates: Sequence[Candidate],
        selector: Optional[str] = None,
    ) -> ClickOutcome:
        """
        Try every strategy in priority order.

        Returns:
            ClickOutcome with ``clicked=False`` and strategy ``none`` if
            nothing could be clicked
        """
        attempts: list[ClickAttempt] = []
        for strategy in self.strategies:
            outcome = await strategy(
                page,
                candidates,
                selector,
                timeout_ms=self.click_timeout_ms,
                attempts=attempts,
            )
            if outcome is not None:
                return outcome
        return ClickOutcome(False, ClickStrategy.NONE, None, tuple(attempts))
