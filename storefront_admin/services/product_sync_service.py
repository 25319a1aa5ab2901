"""Product sync service pulling the Shopify catalogue through the GraphQL client.

This service owns the catalogue-specific logic of a sync:
- Cursor pagination over the ``products`` connection
- Flattening product nodes into ``ProductRecord`` values
- Dye color extraction from tags and titles
- Per-product error collection so one bad product never aborts the sync

Storage is delegated to an optional sink callable; rate limiting and retry
behaviour live in the client.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from storefront_admin.adapters.shopify.base import AbstractGraphQLClient
from storefront_admin.core.config import settings
from storefront_admin.core.errors import AppError
from storefront_admin.schemas.shopify import (
    ProductRecord,
    ShopifyProductNode,
    ShopifyProductsData,
    SyncResult,
)
from storefront_admin.utils.error_sanitizer import get_error_message
from storefront_admin.utils.shopify_urls import get_product_url

logger = logging.getLogger(__name__)

PRODUCT_GID_PREFIX = "gid://shopify/Product/"

KNOWN_COLORS: tuple[str, ...] = (
    "Madder Red",
    "Madder",
    "Indigo",
    "Indigo Deep",
    "Weld Yellow",
    "Weld",
    "Walnut",
    "Logwood",
    "Cochineal",
    "Osage",
    "Cutch",
    "Iron",
    "Marigold",
    "Quebracho",
    "Lac",
    "Natural",
    "Undyed",
)

# Longest first so "Madder Red" wins over "Madder"
_COLORS_BY_LENGTH = sorted(KNOWN_COLORS, key=len, reverse=True)

PRODUCTS_QUERY = """
  query GetProducts($cursor: String, $pageSize: Int!) {
    products(first: $pageSize, after: $cursor) {
      edges {
        node {
          id
          handle
          title
          description
          tags
          variants(first: 10) {
            edges {
              node {
                id
                title
                price
                inventoryQuantity
              }
            }
          }
          images(first: 5) {
            edges {
              node {
                url
                altText
              }
            }
          }
        }
        cursor
      }
      pageInfo {
        hasNextPage
      }
    }
  }
"""

ProductSink = Callable[[ProductRecord], Awaitable[None]]


def extract_color(title: str, tags: list[str]) -> str | None:
    """Extract the dye color from product tags or title.

    A ``color:<slug>`` tag takes precedence (``color:weld-yellow`` becomes
    ``Weld Yellow``); otherwise the longest known color contained in the title
    is returned.

    Args:
        title: Product title, e.g. "Madder Red BFL".
        tags: Product tags.

    Returns:
        Color name or None when nothing matches.
    """
    for tag in tags:
        if tag.lower().startswith("color:"):
            color_part = tag[len("color:"):].replace("-", " ")
            return " ".join(word[:1].upper() + word[1:] for word in color_part.split(" "))

    title_lower = title.lower()
    for color in _COLORS_BY_LENGTH:
        if color.lower() in title_lower:
            return color

    return None


def transform_product(
    node: ShopifyProductNode,
    *,
    currency: str,
    store_url: str | None = None,
    now: datetime | None = None,
) -> ProductRecord:
    """Flatten a Shopify product node into a ProductRecord."""
    variants = [edge.node for edge in node.variants.edges]
    first_variant = variants[0] if variants else None
    product_id = node.id.replace(PRODUCT_GID_PREFIX, "")

    return ProductRecord(
        id=product_id,
        shopify_product_id=product_id,
        handle=node.handle,
        name=node.title,
        description=node.description or None,
        color=extract_color(node.title, node.tags),
        tags=list(node.tags),
        image_urls=[edge.node.url for edge in node.images.edges],
        inventory=sum(variant.inventory_quantity or 0 for variant in variants),
        price=float(first_variant.price) if first_variant else None,
        currency=currency,
        product_url=get_product_url(store_url, node.handle) if store_url else None,
        updated_at=now or datetime.now(timezone.utc),
    )


class ProductSyncService:
    """Synchronise the Shopify product catalogue."""

    def __init__(
        self,
        client: AbstractGraphQLClient,
        *,
        page_size: int | None = None,
        currency: str | None = None,
        store_url: str | None = None,
        sink: ProductSink | None = None,
    ) -> None:
        self.client = client
        self.page_size = page_size or settings.shopify.page_size
        self.currency = currency or settings.shopify.currency
        self.store_url = store_url or settings.shopify.public_store_url
        self.sink = sink

    async def fetch_all_products(self) -> list[ShopifyProductNode]:
        """Fetch every product, following the connection cursor page by page."""
        products: list[ShopifyProductNode] = []
        cursor: str | None = None
        has_next_page = True
        pages = 0

        while has_next_page:
            data = await self.client.execute(
                PRODUCTS_QUERY,
                {"cursor": cursor, "pageSize": self.page_size},
                data_model=ShopifyProductsData,
            )
            connection = data.products
            for edge in connection.edges:
                products.append(edge.node)
                cursor = edge.cursor

            pages += 1
            # An empty page cannot advance the cursor
            has_next_page = connection.page_info.has_next_page and bool(connection.edges)

        logger.info(
            "product_sync.fetched",
            extra={"product_count": len(products), "pages": pages},
        )
        return products

    async def sync(self) -> SyncResult:
        """Fetch, transform and hand every product to the sink.

        Returns:
            SyncResult; ``success`` is False when the fetch failed or any
            product could not be synced.
        """
        errors: list[str] = []
        records: list[ProductRecord] = []

        try:
            nodes = await self.fetch_all_products()
        except AppError as exc:
            logger.error(
                "product_sync.fetch_failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return SyncResult(success=False, synced=0, errors=[exc.message])

        now = datetime.now(timezone.utc)
        for node in nodes:
            try:
                record = transform_product(
                    node,
                    currency=self.currency,
                    store_url=self.store_url,
                    now=now,
                )
                if self.sink is not None:
                    await self.sink(record)
            except Exception as exc:
                logger.warning(
                    "product_sync.product_failed",
                    extra={"product_id": node.id, "error_type": type(exc).__name__},
                )
                errors.append(f"Failed to sync product {node.title}: {get_error_message(exc)}")
                continue
            records.append(record)

        logger.info(
            "product_sync.completed",
            extra={"synced": len(records), "failed": len(errors)},
        )
        return SyncResult(
            success=not errors,
            synced=len(records),
            errors=errors,
            products=records,
        )
