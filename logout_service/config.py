from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
from typing import Optional


LOG_LEVELS = ("error", "warn", "warning", "info", "debug", "trace")


class Settings(BaseSettings):
    """Application configuration settings."""

    # Server
    port: int = 3000

    # API Security (unset = every request passes)
    auth_token: Optional[str] = None

    # Playwright
    headless: bool = True
    default_timeout_ms: int = 6000
    navigation_timeout_ms: int = 10000
    goto_timeout_ms: int = 15000
    click_timeout_ms: int = 5000
    post_click_url_timeout_ms: int = 7000
    post_click_load_timeout_ms: int = 5000

    # Click strategies
    click_fallback_first_visible: bool = True

    # Post-click canonical navigation
    force_login_redirect: bool = False
    logout_in_progress_pattern: str = r"/logout"
    login_redirect_path: str = "/login"

    # Idempotency window (0 disables the cache)
    idempotency_ttl_seconds: int = 600

    # Direct API fast path, e.g. "https://api.example.com/sessions/{identifier}/logout"
    fast_path_endpoint: Optional[str] = None
    fast_path_id_pattern: str = r"/logout/([^/?#]+)"
    fast_path_method: str = "POST"
    fast_path_timeout_seconds: float = 5.0

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = ""

    # Logging: error < warn < info < debug < trace
    log_level: str = "info"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("fast_path_endpoint")
    @classmethod
    def validate_fast_path_endpoint(cls, v):
        if not v:
            return None
        if "{identifier}" not in v:
            raise ValueError("fast_path_endpoint must contain an {identifier} placeholder")
        return v

    @field_validator("auth_token")
    @classmethod
    def validate_auth_token(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
