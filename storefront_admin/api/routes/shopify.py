from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from storefront_admin.adapters.shopify.base import AbstractGraphQLClient
from storefront_admin.core.config import settings
from storefront_admin.core.rate_limit import rate_limit
from storefront_admin.schemas.shopify import ShopifyStatusResponse, SyncResponse
from storefront_admin.services.product_sync_service import ProductSyncService
from storefront_admin.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/shopify", tags=["Shopify"])


def get_shopify_client(request: Request) -> AbstractGraphQLClient:
    """Return the GraphQL client created by the app factory."""
    return request.app.state.shopify_client


def get_product_sync_service(
    client: AbstractGraphQLClient = Depends(get_shopify_client),
) -> ProductSyncService:
    return ProductSyncService(client)


@router.post(
    "/sync",
    response_model=SyncResponse,
    dependencies=[Depends(rate_limit("shopify:sync", "sync"))],
)
async def sync_products(
    service: ProductSyncService = Depends(get_product_sync_service),
) -> SyncResponse:
    """Pull every product from Shopify and report how many were synced.

    Upstream failures do not raise: they are reported in ``errors`` with
    ``success=false`` so the dashboard can show partial results.
    """
    result = await service.sync()

    if result.success:
        message = f"Successfully synced {result.synced} products"
    else:
        message = f"Synced {result.synced} products with errors"

    return SyncResponse(
        success=result.success,
        message=message,
        synced=result.synced,
        errors=[sanitize_error_message(error) for error in result.errors],
    )


@router.get(
    "/status",
    response_model=ShopifyStatusResponse,
    dependencies=[Depends(rate_limit("shopify:status", "read"))],
)
async def shopify_status(
    client: AbstractGraphQLClient = Depends(get_shopify_client),
) -> ShopifyStatusResponse:
    """Report whether the Shopify client has the credentials it needs."""
    return ShopifyStatusResponse(
        connected=client.is_configured,
        store_domain=settings.shopify.store_domain,
        api_version=settings.shopify.api_version,
    )
