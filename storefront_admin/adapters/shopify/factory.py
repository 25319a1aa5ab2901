"""Factory for creating the Shopify GraphQL client from settings."""

from __future__ import annotations

from typing import Any

from storefront_admin.adapters.shopify.base import AbstractGraphQLClient
from storefront_admin.adapters.shopify.client import ShopifyGraphQLClient
from storefront_admin.core.config import ShopifySettings, settings


def create_shopify_client(
    shopify_settings: ShopifySettings | None = None,
    **overrides: Any,
) -> AbstractGraphQLClient:
    """Instantiate the GraphQL client from configuration.

    Missing credentials are not rejected here; the client raises
    ConfigurationError on the first ``execute`` call instead.

    Args:
        shopify_settings: Settings to use; defaults to the global settings.
        **overrides: Extra client keyword arguments (e.g. ``transport``).

    Returns:
        AbstractGraphQLClient: Configured client instance.
    """
    cfg = shopify_settings or settings.shopify

    return ShopifyGraphQLClient(
        access_token=cfg.access_token,
        store_domain=cfg.store_domain,
        api_version=cfg.api_version,
        timeout_seconds=cfg.timeout_seconds,
        max_retries=cfg.max_retries,
        default_retry_delay_ms=cfg.default_retry_delay_ms,
        max_jitter_ms=cfg.max_jitter_ms,
        **overrides,
    )
