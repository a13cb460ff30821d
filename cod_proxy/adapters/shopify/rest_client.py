"""Order submission through the Admin REST ``orders.json`` endpoint."""

from __future__ import annotations

from typing import Any

from cod_proxy.adapters.shopify.base import COD_GATEWAY, AbstractOrderSubmitter, OrderApi
from cod_proxy.schemas.order import OrderRequest


class RestOrderSubmitter(AbstractOrderSubmitter):
    """Creates a pending COD order with a flat REST payload."""

    api = OrderApi.REST
    resource = "orders.json"

    def build_payload(self, order: OrderRequest) -> dict[str, Any]:
        address = {"address1": order.address, "phone": order.phone}
        if order.city:
            address["city"] = order.city

        return {
            "order": {
                "line_items": [
                    {"variant_id": order.variant_id, "quantity": order.quantity},
                ],
                "customer": {"first_name": order.name, "phone": order.phone},
                "billing_address": dict(address),
                "shipping_address": dict(address),
                "financial_status": "pending",
                "gateway": COD_GATEWAY,
            }
        }
