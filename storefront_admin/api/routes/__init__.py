from __future__ import annotations

from storefront_admin.api.routes.health import router as health_router
from storefront_admin.api.routes.shopify import router as shopify_router

__all__ = ["health_router", "shopify_router"]
