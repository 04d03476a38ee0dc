from logout_service.models.requests import LogoutRequest
from logout_service.models.responses import (
    CapturedResponseModel,
    ErrorResponse,
    HealthResponse,
    LogoutResponse,
)

__all__ = [
    "CapturedResponseModel",
    "ErrorResponse",
    "HealthResponse",
    "LogoutRequest",
    "LogoutResponse",
]
