from __future__ import annotations

from cod_proxy.api.routes.health import router as health_router
from cod_proxy.api.routes.orders import router as orders_router

__all__ = ["health_router", "orders_router"]
