"""Classification of Shopify order-creation results.

Turns a ``RemoteOrderResult`` into exactly one HTTP status and response
envelope. Layers are checked in order and never conflated:

0. no response at all             → 500 INTERNAL_SERVER_ERROR
1. non-JSON body                  → 502 SHOPIFY_INVALID_RESPONSE
2. HTTP status outside 2xx        → 409 CUSTOMER_PHONE_TAKEN or remote status SHOPIFY_HTTP_ERROR
3. GraphQL top-level ``errors``   → status from ``extensions.code``
4. no ``data.orderCreate``        → 502 MISSING_ORDER_CREATE
5. non-empty ``userErrors``       → 400 ORDER_CREATE_VALIDATION_ERROR
6. no order object                → 502 NO_ORDER_RETURNED
7. success                        → 200 with the order id
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from cod_proxy.adapters.shopify.base import OrderApi, RemoteOrderResult
from cod_proxy.core.exception_handlers import INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE
from cod_proxy.schemas.order import OrderResponse

PHONE_TAKEN_MESSAGE = "has already been taken"
DEFAULT_GRAPHQL_ERROR_CODE = "GRAPHQL_ERROR"

GRAPHQL_ERROR_STATUS: dict[str, int] = {
    "THROTTLED": 429,
    "MAX_COST_EXCEEDED": 429,
    "ACCESS_DENIED": 403,
    "INTERNAL_SERVER_ERROR": 502,
}


class OutcomeKind(str, Enum):
    TRANSPORT_FAILURE = "transport_failure"
    INVALID_RESPONSE = "invalid_response"
    HTTP_ERROR = "http_error"
    PHONE_TAKEN = "phone_taken"
    GRAPHQL_ERRORS = "graphql_errors"
    MISSING_ORDER_CREATE = "missing_order_create"
    USER_ERRORS = "user_errors"
    NO_ORDER = "no_order"
    SUCCESS = "success"


@dataclass(frozen=True)
class ClassifiedOutcome:
    kind: OutcomeKind
    status_code: int
    response: OrderResponse

    @property
    def content(self) -> dict[str, Any]:
        return self.response.to_content()


def _failure(kind: OutcomeKind, status_code: int, code: str, message: str, details: Any = None) -> ClassifiedOutcome:
    return ClassifiedOutcome(
        kind=kind,
        status_code=status_code,
        response=OrderResponse(success=False, error=code, message=message, details=details),
    )


def _mentions_phone(field: Any) -> bool:
    if isinstance(field, str):
        return "phone" in field.lower()
    if isinstance(field, (list, tuple)):
        return any(_mentions_phone(part) for part in field)
    return False


def is_phone_taken(payload: Any) -> bool:
    """Detect Shopify's duplicate customer phone rejection.

    REST answers ``{"errors": {"customer.phone_number": ["has already been taken"]}}``;
    GraphQL reports errors as a list of ``{field, message}`` entries.
    """
    if not isinstance(payload, Mapping):
        return False
    errors = payload.get("errors")

    if isinstance(errors, Mapping):
        messages = errors.get("customer.phone_number")
        return isinstance(messages, list) and PHONE_TAKEN_MESSAGE in messages

    if isinstance(errors, list):
        return any(
            isinstance(err, Mapping)
            and _mentions_phone(err.get("field"))
            and PHONE_TAKEN_MESSAGE in str(err.get("message", ""))
            for err in errors
        )
    return False


def _graphql_error_code(error: Any) -> str:
    if isinstance(error, Mapping):
        extensions = error.get("extensions")
        if isinstance(extensions, Mapping) and extensions.get("code"):
            return str(extensions["code"])
    return DEFAULT_GRAPHQL_ERROR_CODE


def _graphql_error_message(error: Any) -> str:
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    return "Shopify GraphQL error"


def _classify_transport_and_http(result: RemoteOrderResult) -> ClassifiedOutcome | None:
    if result.transport_error is not None:
        return _failure(OutcomeKind.TRANSPORT_FAILURE, 500, INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE)

    if not result.is_json:
        return _failure(
            OutcomeKind.INVALID_RESPONSE,
            502,
            "SHOPIFY_INVALID_RESPONSE",
            "Invalid response from Shopify",
            "Received non-JSON response",
        )

    if not result.ok:
        payload = result.payload
        if is_phone_taken(payload):
            return _failure(
                OutcomeKind.PHONE_TAKEN,
                409,
                "CUSTOMER_PHONE_TAKEN",
                "Customer phone already exists",
                payload.get("errors"),
            )
        details = payload.get("errors", payload) if isinstance(payload, Mapping) else payload
        return _failure(
            OutcomeKind.HTTP_ERROR,
            result.status_code or 400,
            "SHOPIFY_HTTP_ERROR",
            "Shopify API error",
            details,
        )

    return None


def _success(order: Mapping[str, Any], *, include_order: bool) -> ClassifiedOutcome:
    order_id = order.get("id")
    response = OrderResponse(
        success=True,
        message="Order placed successfully",
        order_id=str(order_id) if order_id is not None else None,
        financial_status=order.get("displayFinancialStatus") if include_order else None,
        order=dict(order) if include_order else None,
    )
    return ClassifiedOutcome(kind=OutcomeKind.SUCCESS, status_code=200, response=response)


def classify_rest_result(result: RemoteOrderResult) -> ClassifiedOutcome:
    """Classify an ``orders.json`` response."""
    outcome = _classify_transport_and_http(result)
    if outcome is not None:
        return outcome

    payload = result.payload if isinstance(result.payload, Mapping) else {}
    order = payload.get("order")
    if not isinstance(order, Mapping):
        return _failure(OutcomeKind.NO_ORDER, 502, "NO_ORDER_RETURNED", "Shopify did not return an order")
    return _success(order, include_order=False)


def classify_graphql_result(result: RemoteOrderResult) -> ClassifiedOutcome:
    """Classify an ``orderCreate`` mutation response."""
    outcome = _classify_transport_and_http(result)
    if outcome is not None:
        return outcome

    payload = result.payload if isinstance(result.payload, Mapping) else {}

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        code = _graphql_error_code(errors[0])
        return _failure(
            OutcomeKind.GRAPHQL_ERRORS,
            GRAPHQL_ERROR_STATUS.get(code, 400),
            code,
            _graphql_error_message(errors[0]),
            errors,
        )

    data = payload.get("data")
    order_create = data.get("orderCreate") if isinstance(data, Mapping) else None
    if not isinstance(order_create, Mapping):
        return _failure(
            OutcomeKind.MISSING_ORDER_CREATE,
            502,
            "MISSING_ORDER_CREATE",
            "Shopify response did not include orderCreate",
        )

    user_errors = order_create.get("userErrors") or []
    if user_errors:
        return _failure(
            OutcomeKind.USER_ERRORS,
            400,
            "ORDER_CREATE_VALIDATION_ERROR",
            "Shopify rejected the order",
            user_errors,
        )

    order = order_create.get("order")
    if not isinstance(order, Mapping):
        return _failure(OutcomeKind.NO_ORDER, 502, "NO_ORDER_RETURNED", "Shopify did not return an order")
    return _success(order, include_order=True)


def classify(result: RemoteOrderResult, api: OrderApi) -> ClassifiedOutcome:
    if api is OrderApi.GRAPHQL:
        return classify_graphql_result(result)
    return classify_rest_result(result)
