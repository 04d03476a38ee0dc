"""Exceptions for the logout service."""

from typing import ClassVar

__all__ = [
    "InvalidPayloadError",
    "LogoutServiceError",
    "UnauthorizedError",
]


class LogoutServiceError(Exception):
    """Base class for errors rendered as ``{"ok": false, "error": ...}``."""

    status_code: ClassVar[int] = 500

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error


class InvalidPayloadError(LogoutServiceError):
    """The request did not contain a usable http/https target URL."""

    status_code = 400


class UnauthorizedError(LogoutServiceError):
    """The bearer token was missing or did not match the configured token."""

    status_code = 401

    def __init__(self, error: str = "Unauthorized") -> None:
        super().__init__(error)
