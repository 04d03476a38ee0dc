from contextlib import asynccontextmanager
from typing import Callable, Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import httpx
import structlog

from logout_service import __version__
from logout_service.config import Settings, get_settings
from logout_service.exceptions import LogoutServiceError
from logout_service.logging import configure_logging
from logout_service.api.routes import health, logout
from logout_service.services.browser_session import BrowserSession
from logout_service.services.fast_path import FastPathResolver
from logout_service.services.idempotency import IdempotencyCache
from logout_service.services.logout_runner import LogoutRunner

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info("Starting Logout Service", port=settings.port, log_level=settings.log_level)

    cache = app.state.idempotency_cache
    if cache is None:
        cache = IdempotencyCache(settings.idempotency_ttl_seconds)
    async with httpx.AsyncClient() as http_client:
        app.state.logout_runner = LogoutRunner(
            settings,
            cache,
            FastPathResolver.from_settings(settings, http_client),
            session_factory=app.state.session_factory,
        )
        yield

    logger.info("Shutting down Logout Service")


async def logout_service_error_handler(request: Request, exc: LogoutServiceError) -> JSONResponse:
    headers = {}
    rid = getattr(request.state, "rid", None)
    if rid:
        headers["X-Request-Id"] = rid
    if exc.status_code == 400:
        logger.warning("invalid_payload_no_url", rid=rid)
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.error}, headers=headers)


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Callable[..., BrowserSession] = BrowserSession,
    idempotency_cache: Optional[IdempotencyCache] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        session_factory: Builds the per-request browser session
        idempotency_cache: Cache shared across requests (built from settings if None)
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Logout Service",
        description="Clicks a page's logout control with a headless Playwright browser",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.idempotency_cache = idempotency_cache

    # CORS middleware, configurable via ALLOWED_ORIGINS (comma-separated)
    _origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if _origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.add_exception_handler(LogoutServiceError, logout_service_error_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(logout.router, tags=["Logout"])
    return app


app = create_app()
