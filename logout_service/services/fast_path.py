"""
Fast-Path Resolver - direct backend logout before browser automation.

Pulls an identifier out of the target URL's path and calls the configured
backend endpoint once. Only a 2xx answer counts; anything else falls through
to the browser.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote, urlsplit
import re

import httpx
import structlog

from logout_service.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class FastPathResult:
    """Outcome of one fast-path attempt."""

    attempted: bool
    identifier: Optional[str] = None
    status: Optional[int] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is not None and 200 <= self.status < 300


NOT_ATTEMPTED = FastPathResult(attempted=False)


class FastPathResolver:
    """Calls ``endpoint_template`` with the identifier found in the target URL."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint_template: Optional[str],
        id_pattern: str = r"/logout/([^/?#]+)",
        method: str = "POST",
        timeout: float = 5.0,
    ):
        self.http_client = http_client
        self.endpoint_template = endpoint_template
        self.id_pattern = re.compile(id_pattern)
        self.method = method.upper()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> "FastPathResolver":
        return cls(
            http_client,
            settings.fast_path_endpoint,
            id_pattern=settings.fast_path_id_pattern,
            method=settings.fast_path_method,
            timeout=settings.fast_path_timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        return self.endpoint_template is not None

    def extract_identifier(self, url: str) -> Optional[str]:
        """Return the first capture group of the id pattern in the decoded URL path."""
        match = self.id_pattern.search(urlsplit(url).path)
        if not match:
            return None
        return unquote(match.group(1) if match.groups() else match.group(0))

    def endpoint_for(self, identifier: str) -> str:
        """Substitute the quoted identifier; other braces in the template are literal."""
        return self.endpoint_template.replace("{identifier}", quote(identifier, safe=""))

    async def attempt(self, url: str) -> FastPathResult:
        """
        Try the direct backend call. Never raises.

        Args:
            url: Validated target URL

        Returns:
            FastPathResult; ``succeeded`` is True only for a 2xx answer
        """
        if not self.enabled:
            return NOT_ATTEMPTED

        identifier = self.extract_identifier(url)
        if identifier is None:
            logger.debug("fast_path_no_identifier", url=url)
            return FastPathResult(attempted=False)

        endpoint = self.endpoint_for(identifier)
        try:
            response = await self.http_client.request(self.method, endpoint, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("fast_path_failed", endpoint=endpoint, error=str(e) or type(e).__name__)
            return FastPathResult(attempted=True, identifier=identifier, error=str(e) or type(e).__name__)

        result = FastPathResult(attempted=True, identifier=identifier, status=response.status_code)
        if result.succeeded:
            logger.info("fast_path_succeeded", endpoint=endpoint, status=response.status_code)
        else:
            logger.info("fast_path_rejected", endpoint=endpoint, status=response.status_code)
        return result
