"""Application factory for the COD order proxy."""

from __future__ import annotations

from fastapi import FastAPI

from cod_proxy.api.routes import health_router, orders_router
from cod_proxy.core.config import settings
from cod_proxy.core.exception_handlers import setup_exception_handlers
from cod_proxy.core.logging import configure_logging
from cod_proxy.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    configure_logging(settings.log)

    app = FastAPI(
        title="COD Order Proxy",
        description=(
            "Shopify app-proxy endpoint that places cash-on-delivery orders. "
            "Requests are rate-limited per client and forwarded to the Shopify "
            "Admin API; every outcome is returned as "
            "{success, error|orderId, message, details?}."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(orders_router, prefix="/api")
    app.include_router(health_router)

    return app
