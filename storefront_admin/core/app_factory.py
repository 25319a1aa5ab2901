"""Application factory for the FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so tests
can build isolated instances. The rate limiter and the Shopify client are
created once per app and shared by reference through ``app.state``; the
lifespan starts the limiter's sweep thread and releases both on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from storefront_admin.adapters.rate_limit.base import AbstractRateLimiter
from storefront_admin.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from storefront_admin.adapters.shopify.base import AbstractGraphQLClient
from storefront_admin.adapters.shopify.factory import create_shopify_client
from storefront_admin.api.routes import health_router, shopify_router
from storefront_admin.core.config import settings
from storefront_admin.core.exception_handlers import setup_exception_handlers
from storefront_admin.core.logging import configure_logging
from storefront_admin.core.middleware import request_id_middleware
from storefront_admin.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    limiter = app.state.rate_limiter
    if isinstance(limiter, InMemoryFixedWindowRateLimiter):
        limiter.start()
    logger.info("app.startup", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        if isinstance(limiter, InMemoryFixedWindowRateLimiter):
            limiter.stop()
        await app.state.shopify_client.aclose()
        logger.info("app.shutdown")


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    shopify_client: AbstractGraphQLClient | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; a fresh in-memory limiter by default.
        shopify_client: GraphQL client; built from settings by default.
        configure_logs: Whether to (re)configure root logging.

    Returns:
        Configured FastAPI app with state, middleware, handlers and routers.
    """
    if configure_logs:
        configure_logging(settings.log)

    app = FastAPI(
        title="Storefront Admin API",
        description=(
            "Admin backend that syncs the Shopify product catalogue. Outbound "
            "Admin API calls back off on 429 responses; inbound endpoints are "
            "rate limited per route class and client address."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.rate_limiter = rate_limiter or InMemoryFixedWindowRateLimiter(
        sweep_interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
    )
    app.state.shopify_client = shopify_client or create_shopify_client()

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(shopify_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
