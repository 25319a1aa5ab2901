"""OpenAPI customization utilities.

Enriches the generated schema with:
- Tags metadata
- A documented 429 response (with rate limit headers) on every operation
  except health checks

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from storefront_admin.core.rate_limit import RATE_LIMIT_DETAIL

TAGS_METADATA = [
    {
        "name": "Shopify",
        "description": "Product catalogue sync and connection status.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

_RATE_LIMITED_RESPONSE: Dict[str, Any] = {
    "description": RATE_LIMIT_DETAIL,
    "headers": {
        "Retry-After": {
            "description": "Seconds until the rate limit window resets.",
            "schema": {"type": "integer"},
        },
        "X-RateLimit-Remaining": {
            "description": "Always 0 on a rejected request.",
            "schema": {"type": "integer"},
        },
        "X-RateLimit-Reset": {
            "description": "Seconds until the rate limit window resets.",
            "schema": {"type": "integer"},
        },
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and 429 documentation."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("responses", {}).setdefault(
                        "429", _RATE_LIMITED_RESPONSE
                    )

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
