"""Global exception handlers for consistent error responses.

Every rejection leaves the service in the same envelope the storefront script
parses: ``{"success": false, "error": <code>, "message": ..., "details"?: ...}``.

Design:
- AppError subclasses → status chosen by error class (400, 403, 405, 429, 500)
- Starlette HTTPException (unrouted method or path) → same envelope, 405 as MethodNotAllowed
- Unexpected Exception → generic 500 INTERNAL_SERVER_ERROR (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cod_proxy.core.config import settings
from cod_proxy.core.errors import (
    AppError,
    ConfigurationAppError,
    MethodNotAllowedAppError,
    ProxyAuthAppError,
    RateLimitAppError,
)
from cod_proxy.core.logging import get_request_id
from cod_proxy.schemas.order import OrderResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "INTERNAL_SERVER_ERROR"
INTERNAL_ERROR_MESSAGE = "Internal server error"

HTTP_ERROR_CODES = {404: "NOT_FOUND"}


def status_for_error(exc: AppError) -> int:
    """Map an AppError subclass to its HTTP status code."""
    if isinstance(exc, ProxyAuthAppError):
        return 403
    if isinstance(exc, MethodNotAllowedAppError):
        return 405
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, ConfigurationAppError):
        return 500
    return 400


def error_content(code: str, message: str, details=None) -> dict:
    content = OrderResponse(success=False, error=code, message=message, details=details).to_content()
    request_id = get_request_id()
    if request_id:
        content["request_id"] = request_id
    return content


def internal_error_response() -> JSONResponse:
    """Build the generic 500 response; never includes exception text."""
    return JSONResponse(
        status_code=500,
        content=error_content(INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE),
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle request rejections with the order envelope.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the status mapped from the error class.
    """
    status_code = status_for_error(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    headers: dict[str, str] = {}
    if status_code == 405:
        headers["Allow"] = "POST"
    if (
        isinstance(exc, RateLimitAppError)
        and exc.details
        and "retry_after" in exc.details
        and settings.app.rate_limit_include_headers
    ):
        headers["Retry-After"] = str(exc.details["retry_after"])

    return JSONResponse(
        status_code=status_code,
        content=error_content(exc.code, exc.message, exc.details),
        headers=headers or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework-raised HTTP errors (unrouted method or path) in the order envelope."""
    headers = dict(exc.headers or {})
    if exc.status_code == 405:
        headers["Allow"] = "POST"
        code, message, details = "MethodNotAllowed", "Method not allowed", {
            "method": request.method.upper(),
            "allowed_methods": ["POST"],
        }
    else:
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        details = None

    logger.warning(
        "http_error_handled",
        extra={
            "error_code": code,
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(code, message, details),
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    The exception is logged with its traceback for operators; the client only
    receives the generic internal error envelope.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return internal_error_response()


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
