"""Order submitter interface and the shared HTTP call.

Both order APIs issue exactly one POST and hand back a ``RemoteOrderResult``
without interpreting Shopify's answer; classification happens in
``cod_proxy.services.order_classifier``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from cod_proxy.schemas.order import OrderRequest, ShopContext

logger = logging.getLogger(__name__)

COD_GATEWAY = "Cash on Delivery"


class OrderApi(str, Enum):
    REST = "rest"
    GRAPHQL = "graphql"


@dataclass(frozen=True)
class RemoteOrderResult:
    """Raw outcome of the order-creation call.

    Attributes:
        status_code: HTTP status, None when the call never completed.
        payload: Decoded JSON body when the response was JSON.
        text: Raw body when the response was not JSON.
        content_type: Declared response content type.
        transport_error: Exception summary when no response was received.
    """

    status_code: int | None = None
    payload: Any = None
    text: str | None = None
    content_type: str | None = None
    transport_error: str | None = None

    @property
    def is_json(self) -> bool:
        return self.transport_error is None and self.text is None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300


def is_json_content_type(content_type: str | None) -> bool:
    return bool(content_type) and "application/json" in content_type.lower()


def result_from_response(response: httpx.Response) -> RemoteOrderResult:
    """Decode a Shopify response, treating anything but JSON as opaque text."""
    content_type = response.headers.get("content-type")
    if is_json_content_type(content_type):
        try:
            return RemoteOrderResult(
                status_code=response.status_code,
                payload=response.json(),
                content_type=content_type,
            )
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(
                "shopify.undecodable_json",
                extra={"status_code": response.status_code},
            )

    return RemoteOrderResult(
        status_code=response.status_code,
        text=response.text,
        content_type=content_type,
    )


class AbstractOrderSubmitter(ABC):
    """Creates one Shopify order per call."""

    api: OrderApi
    resource: str

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the submitter.

        Args:
            timeout_seconds: Timeout for the outbound request.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def requires_city(self) -> bool:
        return False

    @abstractmethod
    def build_payload(self, order: OrderRequest) -> dict[str, Any]:
        """Build the JSON request body for ``order``."""
        ...

    def build_headers(self, shop: ShopContext) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": shop.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def submit(self, order: OrderRequest, shop: ShopContext) -> RemoteOrderResult:
        """Send the order to Shopify once and return the raw result.

        Transport failures are returned as results rather than raised; nothing
        is retried.
        """
        url = shop.admin_url(self.resource)
        payload = self.build_payload(order)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload, headers=self.build_headers(shop))
        except httpx.HTTPError as exc:
            logger.error(
                "shopify.transport_error",
                extra={"order_api": self.api.value, "error_type": type(exc).__name__},
            )
            return RemoteOrderResult(transport_error=f"{type(exc).__name__}: {exc}")

        result = result_from_response(response)
        logger.info(
            "shopify.response_received",
            extra={
                "order_api": self.api.value,
                "status_code": result.status_code,
                "is_json": result.is_json,
            },
        )
        return result
