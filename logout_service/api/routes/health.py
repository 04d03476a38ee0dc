from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from logout_service import __version__
from logout_service.models import HealthResponse

router = APIRouter()

USAGE_HINT = "OK: POST /logout { url, selector?, buttonText? }"


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Usage hint."""
    return USAGE_HINT


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Browsers are started per request, so there is no browser state to report.
    """
    return HealthResponse(status="healthy", service="logout-service", version=__version__)
