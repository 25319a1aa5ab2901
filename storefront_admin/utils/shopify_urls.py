"""Storefront URL builders for product links."""

from __future__ import annotations

from urllib.parse import quote, urlencode


def _base(store_url: str) -> str:
    domain = store_url.strip().rstrip("/")
    if domain.startswith(("http://", "https://")):
        return domain
    return f"https://{domain}"


def get_product_url(store_url: str, handle: str) -> str:
    """Build a product page URL from its SEO-friendly handle."""
    return f"{_base(store_url)}/products/{quote(handle)}"


def get_collection_url(store_url: str, handle: str) -> str:
    return f"{_base(store_url)}/collections/{quote(handle)}"


def get_add_to_cart_url(store_url: str, variant_id: str, quantity: int = 1) -> str:
    """Build a cart URL that adds ``quantity`` of a variant."""
    if quantity < 1:
        raise ValueError("quantity must be >= 1")
    query = urlencode({"id": variant_id, "quantity": quantity})
    return f"{_base(store_url)}/cart/add?{query}"
