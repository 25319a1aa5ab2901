"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

The Shopify client taxonomy (ConfigurationError, TransportError,
RateLimitExhaustedError, HttpError, GraphQLError, NoDataError) shares the
``ShopifyAppError`` base so route handlers can catch every upstream failure in
one clause. Only HTTP 429 responses are ever retried; every error here is
terminal for the call that raised it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    http_status: int
    status_text: str
    retry_after: float
    attempts: int
    missing: list[str]
    messages: list[str]
    endpoint: str
    error_type: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class ShopifyAppError(AppError):
    """Base class for Shopify Admin API client failures."""


class ConfigurationError(ShopifyAppError):
    """Access token or store domain missing; no request was attempted."""


class TransportError(ShopifyAppError):
    """Network-level failure (DNS, refused connection, timeout)."""


@dataclass
class RateLimitExhaustedError(ShopifyAppError):
    """Upstream kept answering 429 after every allowed retry.

    Attributes:
        status_code: Status of the last response (always 429).
        attempts: Total attempts made, including the first one.
    """

    status_code: int = 429
    attempts: int = 0


@dataclass
class HttpError(ShopifyAppError):
    """Non-2xx, non-429 response from the Admin API."""

    status_code: int = 0
    status_text: str = ""


@dataclass
class GraphQLError(ShopifyAppError):
    """2xx response whose envelope carried application errors."""

    messages: list[str] = field(default_factory=list)


class NoDataError(ShopifyAppError):
    """2xx response without errors but also without usable data."""
