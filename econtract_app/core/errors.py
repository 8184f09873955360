"""Error vocabulary shared by services and the HTTP layer.

Every error carries the HTTP status it maps to and a localized, user-safe
``message``.  ``details`` is diagnostic text; the error handlers decide
whether it reaches the client.
"""

from __future__ import annotations

from typing import Optional

from .messages import ERROR_MESSAGES


class AppError(Exception):
    status_code = 500
    message_key = "generic"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None) -> None:
        self.message = message or ERROR_MESSAGES[self.message_key]
        self.details = details
        super().__init__(self.message)

    def to_body(self, include_details: bool = True) -> dict:
        body = {"error": self.message}
        if include_details and self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400
    message_key = "validation"


class NotFoundError(AppError):
    status_code = 404
    message_key = "not_found"


class RateLimitedError(AppError):
    status_code = 429
    message_key = "rate_limit"


class UpstreamServiceError(AppError):
    """An external dependency (AI, OCR, email, PDF) failed."""

    status_code = 500
    message_key = "generic"

    def __init__(
        self,
        service: str,
        details: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.service = service
        default = ERROR_MESSAGES.get(f"{service}_service_error", ERROR_MESSAGES["generic"])
        super().__init__(message or default, details)


class UpstreamTimeoutError(UpstreamServiceError):
    """Raised when an external provider does not respond in time."""

    def __init__(self, service: str, details: Optional[str] = None) -> None:
        super().__init__(service, details or f"{service} timeout")


class StoreUnavailableError(AppError):
    status_code = 500
    message_key = "store_unavailable"


class GenericError(AppError):
    status_code = 500
    message_key = "generic"


__all__ = [
    "AppError",
    "ValidationError",
    "NotFoundError",
    "RateLimitedError",
    "UpstreamServiceError",
    "UpstreamTimeoutError",
    "StoreUnavailableError",
    "GenericError",
]
