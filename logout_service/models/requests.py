"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class LogoutRequest(BaseModel):
    """Validated input for a logout run."""

    model_config = ConfigDict(frozen=True)

    target_url: str = Field(..., description="Absolute http/https URL of the page holding the logout control")
    explicit_selector: Optional[str] = Field(None, description="Selector tried before any text-based strategy")
    button_text_hint: Optional[str] = Field(None, description="Button text (regular expression) tried before the built-in phrases")
