"""Application-level exception types.

Each error carries a stable, machine-readable ``code`` that is returned to the
storefront as the ``error`` field of the response envelope. The HTTP status is
chosen by the exception handler from the error's class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    missing_fields: list[str]
    field: str
    method: str
    allowed_methods: list[str]
    expected_suffix: str
    retry_after: int
    window_seconds: int
    hint: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for request rejections.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details returned to the client.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when the request body or its fields are unusable."""


class ProxyAuthAppError(AppError):
    """Raised when the app-proxy query parameters are missing or foreign."""


class MethodNotAllowedAppError(AppError):
    """Raised for any method other than POST."""


class RateLimitAppError(AppError):
    """Raised when a client submits again inside the rate-limit window."""


class ConfigurationAppError(AppError):
    """Raised when the deployment lacks usable Shopify configuration."""
