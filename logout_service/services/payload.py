"""
Payload Validator - extracts the logout target from an inbound request.

Accepted URL fields, checked in this order (first present wins):
- body ``url``, ``URL``, ``Url``
- query ``url``, ``URL``

List values are reduced to their first element. The URL must be an absolute
http/https URL; ``selector`` and ``buttonText`` are optional and passed through
verbatim when they are non-empty strings.
"""

from typing import Any, Mapping, Optional
from urllib.parse import urlsplit
import re

from logout_service.exceptions import InvalidPayloadError
from logout_service.models import LogoutRequest

BODY_URL_FIELDS = ("url", "URL", "Url")
QUERY_URL_FIELDS = ("url", "URL")

INVALID_URL_MESSAGE = "Body must contain { url: string http/https }"

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _lookup(source: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    for field in fields:
        if field in source:
            return _first(source[field])
    return None


def _optional_text(source: Mapping[str, Any], field: str) -> Optional[str]:
    value = _first(source.get(field))
    if isinstance(value, str) and value:
        return value
    return None


def pick_url(body: Mapping[str, Any], query: Mapping[str, Any]) -> Optional[str]:
    """Return the validated target URL, or None if there is none."""
    raw = _lookup(body, BODY_URL_FIELDS)
    if raw is None:
        raw = _lookup(query, QUERY_URL_FIELDS)
    if not isinstance(raw, str):
        return None

    url = raw.strip()
    if not _HTTP_URL.match(url):
        return None
    if not urlsplit(url).netloc:
        return None
    return url


def parse_logout_request(
    body: Optional[Mapping[str, Any]],
    query: Optional[Mapping[str, Any]] = None,
) -> LogoutRequest:
    """
    Build a LogoutRequest from a parsed body and query parameters.

    Args:
        body: Parsed JSON object or form fields (anything else counts as empty)
        query: Query parameters

    Raises:
        InvalidPayloadError: No valid http/https URL was found
    """
    if not isinstance(body, Mapping):
        body = {}
    url = pick_url(body, query or {})
    if url is None:
        raise InvalidPayloadError(INVALID_URL_MESSAGE)

    return LogoutRequest(
        target_url=url,
        explicit_selector=_optional_text(body, "selector"),
        button_text_hint=_optional_text(body, "buttonText"),
    )
