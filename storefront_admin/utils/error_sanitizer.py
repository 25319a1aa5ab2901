"""Scrub error messages before they are returned to API clients."""

from __future__ import annotations

import re

GENERIC_ERROR_MESSAGE = "An internal error occurred. Please try again."

SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"api[_-]?key",
        r"token",
        r"password",
        r"secret",
        r"database",
        r"sql",
        r"connection",
        r"internal",
        r"ECONNREFUSED",
        r"ETIMEDOUT",
    )
)


def get_error_message(error: object) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, str):
        return error
    return "An unexpected error occurred"


def sanitize_error_message(error: object) -> str:
    """Return the error message, or a generic one if it may leak internals.

    Examples:
        >>> sanitize_error_message("Shopify API error: 404 Not Found")
        'Shopify API error: 404 Not Found'
        >>> sanitize_error_message("SHOPIFY_ACCESS_TOKEN is not configured")
        'An internal error occurred. Please try again.'
    """
    message = get_error_message(error)
    if any(pattern.search(message) for pattern in SENSITIVE_PATTERNS):
        return GENERIC_ERROR_MESSAGE
    return message
