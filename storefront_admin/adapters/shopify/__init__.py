"""Shopify adapter layer - GraphQL access to the Admin API."""

from storefront_admin.adapters.shopify.backoff import MAX_RETRIES, RetryAttempt
from storefront_admin.adapters.shopify.base import AbstractGraphQLClient
from storefront_admin.adapters.shopify.client import ShopifyGraphQLClient
from storefront_admin.adapters.shopify.factory import create_shopify_client

__all__ = [
    "AbstractGraphQLClient",
    "MAX_RETRIES",
    "RetryAttempt",
    "ShopifyGraphQLClient",
    "create_shopify_client",
]
