import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from cod_proxy.adapters.shopify.base import AbstractOrderSubmitter
from cod_proxy.adapters.shopify.factory import create_order_submitter
from cod_proxy.core.config import settings
from cod_proxy.core.errors import AppError
from cod_proxy.core.exception_handlers import internal_error_response
from cod_proxy.core.rate_limit import enforce_rate_limit
from cod_proxy.services.order_service import OrderService
from cod_proxy.services.request_validator import validate_method, validate_submission

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])

# Methods outside this list reach the HTTPException handler, which answers with the same 405 envelope
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_submitter: AbstractOrderSubmitter | None = None
_submitter_config: tuple[str, float] | None = None


def get_order_service() -> OrderService:
    """Return an OrderService bound to the configured submitter.

    The submitter is cached per process and rebuilt when ``APP_ORDER_API`` or
    the Shopify timeout change.
    """
    global _submitter, _submitter_config

    config = (settings.app.order_api, settings.shopify.timeout_seconds)
    if _submitter is None or _submitter_config != config:
        _submitter = create_order_submitter(settings.app.order_api)
        _submitter_config = config
    return OrderService(_submitter)


async def require_post(request: Request) -> None:
    validate_method(request.method)


@router.api_route(
    "/create-order",
    methods=ROUTED_METHODS,
    dependencies=[Depends(require_post), Depends(enforce_rate_limit)],
)
async def create_order(
    request: Request,
    service: OrderService = Depends(get_order_service),
) -> JSONResponse:
    """Place a cash-on-delivery order forwarded by the Shopify app proxy.

    The method check and the per-client rate limit run first (as route
    dependencies); then the proxy query, body, and shop configuration are
    validated and the order is sent to Shopify exactly once.

    Returns:
        JSONResponse: ``{success, orderId, message, ...}`` on success or
            ``{success: false, error, message, details?}`` on failure.
    """
    try:
        raw_body = await request.body()
        submission = validate_submission(
            request.query_params,
            raw_body,
            require_city=service.requires_city,
        )
        outcome = await service.place_order(submission.order, submission.shop)
    except AppError:
        raise
    except Exception:
        logger.exception(
            "order.unexpected_error",
            extra={"request_path": request.url.path},
        )
        return internal_error_response()

    return JSONResponse(status_code=outcome.status_code, content=outcome.content)
