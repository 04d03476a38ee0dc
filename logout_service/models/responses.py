"""Pydantic response models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CapturedResponseModel(BaseModel):
    """A logout-related network response seen by the browser."""
    url: str
    status: int
    method: str


class LogoutResponse(BaseModel):
    """Logout run response."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    clicked: bool
    click_how: Optional[str] = Field(None, alias="clickHow")
    click_value: Optional[str] = Field(None, alias="clickValue")
    page_title: Optional[str] = Field(None, alias="pageTitle")
    final_url: str = Field(..., alias="finalUrl")
    via: str = "browser"
    api_status: Optional[int] = Field(None, alias="apiStatus")
    logout_requests: list[CapturedResponseModel] = Field(default_factory=list, alias="logoutRequests")


class ErrorResponse(BaseModel):
    """Error response for 400/401/500."""
    ok: bool = False
    error: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
