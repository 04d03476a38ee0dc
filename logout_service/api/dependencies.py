"""Request-scoped dependencies: request id, settings, bearer auth, runner."""

import secrets

from fastapi import Depends, Request
import structlog

from logout_service.config import Settings
from logout_service.exceptions import UnauthorizedError
from logout_service.services.logout_runner import LogoutRunner

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


def generate_request_id() -> str:
    return f"{secrets.token_hex(3)}-{secrets.token_hex(3)}"


async def bind_request_id(request: Request) -> str:
    """
    Bind the request id (``X-Request-Id`` or a generated one) to the log context.

    Async so the binding happens in the request's own task and is seen by the
    handler and everything it calls.
    """
    rid = request.headers.get("X-Request-Id") or generate_request_id()
    request.state.rid = rid
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(rid=rid)
    logger.info("request_received", method=request.method, path=request.url.path)
    return rid


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_logout_runner(request: Request) -> LogoutRunner:
    return request.app.state.logout_runner


async def verify_bearer_token(
    request: Request,
    rid: str = Depends(bind_request_id),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """
    Check the Authorization header against the configured token.

    Passes every request when no token is configured. The ``Bearer `` prefix
    is optional.

    Raises:
        UnauthorizedError: Header missing or token mismatch
    """
    expected = settings.auth_token
    if not expected:
        return

    header = request.headers.get("Authorization", "")
    token = header[len(BEARER_PREFIX):] if header.startswith(BEARER_PREFIX) else header
    if secrets.compare_digest(token.encode(), expected.encode()):
        return

    logger.warning("unauthorized", got="[present]" if header else "[missing]")
    raise UnauthorizedError()
