"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses map to an HTTP status by type (see ``status_for_error``)
- RateLimitExhaustedError additionally carries a Retry-After header
- Unexpected Exception maps to a generic 500 (safety net)
- All responses include request_id for tracing
"""

import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront_admin.core.errors import (
    AppError,
    ConfigurationError,
    RateLimitExhaustedError,
    ShopifyAppError,
    ValidationAppError,
)
from storefront_admin.core.logging import get_request_id
from storefront_admin.utils.error_sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)


def status_for_error(exc: AppError) -> int:
    """Map a domain error to the HTTP status returned to clients.

    - ValidationAppError -> 400 (client fault)
    - ConfigurationError -> 500 (our deployment is missing credentials)
    - RateLimitExhaustedError -> 503 (upstream is throttling us)
    - other ShopifyAppError -> 502 (upstream failure)
    """
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, ConfigurationError):
        return 500
    if isinstance(exc, RateLimitExhaustedError):
        return 503
    if isinstance(exc, ShopifyAppError):
        return 502
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with a consistent JSON body.

    Body shape: ``{"error": {code, message, request_id, details?}}``. Messages
    pass through ``sanitize_error_message`` so configuration problems never
    reveal variable names to clients.
    """
    status_code = status_for_error(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": sanitize_error_message(exc.message),
        "request_id": get_request_id(),
    }
    if exc.details and status_code < 500:
        error_content["details"] = exc.details

    headers = None
    if isinstance(exc, RateLimitExhaustedError):
        retry_after = (exc.details or {}).get("retry_after", 0)
        headers = {"Retry-After": str(max(1, math.ceil(retry_after)))}

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors; never leaks internals."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
