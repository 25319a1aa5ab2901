"""Pydantic schemas for Shopify product data and sync endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _ShopifyModel(BaseModel):
    """Base for models parsed from camelCase GraphQL payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ShopifyVariantNode(_ShopifyModel):
    id: str
    title: str
    price: str
    inventory_quantity: int | None = Field(default=None, alias="inventoryQuantity")


class ShopifyVariantEdge(_ShopifyModel):
    node: ShopifyVariantNode


class ShopifyVariantConnection(_ShopifyModel):
    edges: list[ShopifyVariantEdge] = Field(default_factory=list)


class ShopifyImageNode(_ShopifyModel):
    url: str
    alt_text: str | None = Field(default=None, alias="altText")


class ShopifyImageEdge(_ShopifyModel):
    node: ShopifyImageNode


class ShopifyImageConnection(_ShopifyModel):
    edges: list[ShopifyImageEdge] = Field(default_factory=list)


class ShopifyProductNode(_ShopifyModel):
    """Product as returned by the ``products`` query."""

    id: str = Field(..., description="Global ID, e.g. gid://shopify/Product/123.")
    handle: str
    title: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    variants: ShopifyVariantConnection = Field(default_factory=ShopifyVariantConnection)
    images: ShopifyImageConnection = Field(default_factory=ShopifyImageConnection)


class ShopifyProductEdge(_ShopifyModel):
    node: ShopifyProductNode
    cursor: str


class ShopifyPageInfo(_ShopifyModel):
    has_next_page: bool = Field(..., alias="hasNextPage")


class ShopifyProductConnection(_ShopifyModel):
    edges: list[ShopifyProductEdge] = Field(default_factory=list)
    page_info: ShopifyPageInfo = Field(..., alias="pageInfo")


class ShopifyProductsData(_ShopifyModel):
    """``data`` payload of the paginated products query."""

    products: ShopifyProductConnection


class ProductRecord(BaseModel):
    """Flattened product ready to be handed to a storage layer."""

    id: str = Field(..., description="Numeric Shopify product id.")
    shopify_product_id: str
    handle: str = Field(..., description="URL-friendly product slug.")
    name: str
    description: str | None = None
    color: str | None = Field(
        default=None,
        description="Dye color extracted from a color: tag or the title.",
    )
    tags: list[str] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)
    inventory: int = Field(0, description="Inventory summed across variants.")
    price: float | None = Field(default=None, description="Price of the first variant.")
    currency: str
    product_url: str | None = None
    updated_at: datetime


class SyncResult(BaseModel):
    """Outcome of a full product sync."""

    success: bool
    synced: int
    errors: list[str] = Field(default_factory=list)
    products: list[ProductRecord] = Field(default_factory=list)


class SyncResponse(BaseModel):
    """Response body of ``POST /v1/shopify/sync``."""

    success: bool
    message: str
    synced: int
    errors: list[str] = Field(default_factory=list)


class ShopifyStatusResponse(BaseModel):
    """Response body of ``GET /v1/shopify/status``."""

    connected: bool = Field(..., description="Whether an access token is configured.")
    store_domain: str | None = None
    api_version: str
