"""COD order placement: submit to Shopify once, classify the answer."""

from __future__ import annotations

import logging
from typing import Any

from cod_proxy.adapters.shopify.base import AbstractOrderSubmitter, OrderApi
from cod_proxy.schemas.order import OrderRequest, ShopContext
from cod_proxy.services.order_classifier import ClassifiedOutcome, OutcomeKind, classify

logger = logging.getLogger(__name__)


def summarize_remote_errors(details: Any) -> Any:
    """Reduce Shopify error details to field names and codes for logging.

    Shopify messages can echo customer input (phone, address), so only the
    field path and error code of each entry are kept.
    """
    if isinstance(details, dict):
        return sorted(str(key) for key in details)
    if isinstance(details, list):
        summary = []
        for item in details:
            if not isinstance(item, dict):
                continue
            field = item.get("field")
            if isinstance(field, list):
                field = ".".join(str(part) for part in field)
            extensions = item.get("extensions")
            code = item.get("code")
            if code is None and isinstance(extensions, dict):
                code = extensions.get("code")
            summary.append({"field": field, "code": code})
        return summary
    return None


class OrderService:
    """Places one order per call through the configured submitter.

    No deduplication key is sent: submitting the same order twice creates two
    Shopify orders.
    """

    def __init__(self, submitter: AbstractOrderSubmitter) -> None:
        self.submitter = submitter

    @property
    def order_api(self) -> OrderApi:
        return self.submitter.api

    @property
    def requires_city(self) -> bool:
        return self.submitter.requires_city

    async def place_order(self, order: OrderRequest, shop: ShopContext) -> ClassifiedOutcome:
        """Create the order and map Shopify's answer to a client response.

        Args:
            order: Validated order submission.
            shop: Shop the order is created in.

        Returns:
            ClassifiedOutcome with the HTTP status and envelope to return.
        """
        logger.info(
            "order.submitting",
            extra={
                "order_api": self.order_api.value,
                "shop": shop.domain,
                "variant_id": order.variant_id,
                "quantity": order.quantity,
            },
        )

        result = await self.submitter.submit(order, shop)
        outcome = classify(result, self.order_api)

        if outcome.kind is OutcomeKind.SUCCESS:
            logger.info(
                "order.created",
                extra={
                    "order_api": self.order_api.value,
                    "order_id": outcome.response.order_id,
                    "financial_status": outcome.response.financial_status,
                },
            )
        elif outcome.kind is OutcomeKind.INVALID_RESPONSE:
            logger.error(
                "order.invalid_response",
                extra={
                    "status_code": result.status_code,
                    "content_type": result.content_type,
                    "body_preview": (result.text or "")[:500],
                },
            )
        else:
            log = logger.error if outcome.status_code >= 500 else logger.warning
            log(
                "order.rejected",
                extra={
                    "order_api": self.order_api.value,
                    "outcome": outcome.kind.value,
                    "error_code": outcome.response.error,
                    "status_code": outcome.status_code,
                    "remote_status": result.status_code,
                    "transport_error": result.transport_error,
                    "remote_errors": summarize_remote_errors(outcome.response.details),
                },
            )

        return outcome
