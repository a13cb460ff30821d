from __future__ import annotations

from fastapi import APIRouter

from cod_proxy.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check reporting which Shopify order API is configured."""

    return {"status": "ok", "order_api": settings.app.order_api}
