from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict[str, str]:
    """Liveness probe; never rate limited and never calls Shopify."""

    return {"status": "ok"}
