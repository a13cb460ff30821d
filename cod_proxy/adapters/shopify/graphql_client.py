"""Order submission through the Admin GraphQL ``orderCreate`` mutation.

The selection set returns everything the storefront needs (id, financial
status, addresses, customer) so no follow-up read is made.
"""

from __future__ import annotations

from typing import Any

from cod_proxy.adapters.shopify.base import AbstractOrderSubmitter, OrderApi
from cod_proxy.schemas.order import OrderRequest

COD_ORDER_NOTE = "Cash on Delivery order"
VARIANT_GID_TEMPLATE = "gid://shopify/ProductVariant/{}"

ORDER_CREATE_MUTATION = """
mutation CreateCodOrder($order: OrderCreateOrderInput!, $options: OrderCreateOptionsInput) {
  orderCreate(order: $order, options: $options) {
    order {
      id
      name
      displayFinancialStatus
      note
      shippingAddress {
        firstName
        address1
        city
        phone
      }
      billingAddress {
        firstName
        address1
        city
        phone
      }
      customer {
        id
        firstName
        phone
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""


class GraphQLOrderSubmitter(AbstractOrderSubmitter):
    """Creates a pending COD order with one ``orderCreate`` mutation."""

    api = OrderApi.GRAPHQL
    resource = "graphql.json"

    @property
    def requires_city(self) -> bool:
        return True

    def build_payload(self, order: OrderRequest) -> dict[str, Any]:
        address = {
            "firstName": order.name,
            "address1": order.address,
            "city": order.city,
            "phone": order.phone,
        }

        return {
            "query": ORDER_CREATE_MUTATION,
            "variables": {
                "order": {
                    "lineItems": [
                        {
                            "variantId": VARIANT_GID_TEMPLATE.format(order.variant_id),
                            "quantity": order.quantity,
                        }
                    ],
                    "customer": {
                        "toUpsert": {"firstName": order.name, "phone": order.phone},
                    },
                    "shippingAddress": dict(address),
                    "billingAddress": dict(address),
                    "note": COD_ORDER_NOTE,
                    "financialStatus": "PENDING",
                },
                "options": {"sendReceipt": False},
            },
        }
