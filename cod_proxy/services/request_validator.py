"""Validation of app-proxy order submissions.

Every check either returns a usable value or raises an ``AppError`` subclass
carrying the outward error code. The route calls ``validate_method`` before
the rate limiter and ``validate_submission`` after it; ``validate`` runs the
whole ladder in one call.

Order of checks (first failure wins):
1. method is POST                         → MethodNotAllowed (405)
2. ``shop`` and ``signature`` present      → InvalidProxyRequest (403)
3. ``shop`` ends with the storefront suffix → InvalidShopDomain (403)
4. body parses to a JSON object            → BadRequestBody (400)
5. required fields present and usable      → MissingFields / BadRequestBody (400)
6. shop configuration present              → ServerMisconfigured (500)

Only presence of ``signature`` is checked. The HMAC is not verified.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from cod_proxy.core.config import ShopifySettings, settings
from cod_proxy.core.errors import (
    ConfigurationAppError,
    MethodNotAllowedAppError,
    ProxyAuthAppError,
    ValidationAppError,
)
from cod_proxy.schemas.order import OrderRequest, ShopContext, ValidatedSubmission

logger = logging.getLogger(__name__)

ALLOWED_METHOD = "POST"
VARIANT_GID_PREFIX = "gid://shopify/ProductVariant/"

BASE_REQUIRED_FIELDS = ("name", "phone", "address", "variantId", "quantity")


def required_fields(*, require_city: bool) -> tuple[str, ...]:
    if require_city:
        return ("name", "phone", "address", "city", "variantId", "quantity")
    return BASE_REQUIRED_FIELDS


def validate_method(method: str) -> None:
    if method.upper() != ALLOWED_METHOD:
        raise MethodNotAllowedAppError(
            code="MethodNotAllowed",
            message="Method not allowed",
            details={"method": method.upper(), "allowed_methods": [ALLOWED_METHOD]},
        )


def validate_proxy_query(query: Mapping[str, str], *, domain_suffix: str | None = None) -> str:
    """Check the app-proxy query parameters and return the shop domain.

    Args:
        query: Request query parameters.
        domain_suffix: Required shop domain suffix; configured suffix when omitted.

    Returns:
        The ``shop`` query value.

    Raises:
        ProxyAuthAppError: If ``shop``/``signature`` are absent or the shop is foreign.
    """
    suffix = domain_suffix or settings.app.shop_domain_suffix
    shop = query.get("shop")
    signature = query.get("signature")

    if not shop or not signature:
        raise ProxyAuthAppError(
            code="InvalidProxyRequest",
            message="Forbidden - Invalid app proxy request",
        )

    if not shop.endswith(suffix):
        raise ProxyAuthAppError(
            code="InvalidShopDomain",
            message="Forbidden - Invalid shop domain",
            details={"expected_suffix": suffix},
        )

    return shop


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_body(raw: bytes | str | Mapping[str, Any] | None) -> dict[str, Any]:
    """Parse the request body into a mapping.

    The storefront script may post a JSON object or a JSON-encoded string that
    itself holds the object. An empty body parses to an empty mapping so the
    field check reports what is missing.

    Raises:
        ValidationAppError: If the body is not JSON or not an object.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)

    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        if not text.strip():
            return {}
        data: Any = json.loads(text, parse_constant=_reject_constant)
        if isinstance(data, str):
            data = json.loads(data, parse_constant=_reject_constant) if data.strip() else {}
    except ValueError as exc:
        # JSONDecodeError, UnicodeDecodeError and NaN/Infinity literals
        raise ValidationAppError(
            code="BadRequestBody",
            message="Invalid JSON in request body",
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationAppError(
            code="BadRequestBody",
            message="Request body must be a JSON object",
        )
    return data


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)):
        return value == 0
    return not value


def _coerce_positive_int(value: Any, field: str) -> int:
    if isinstance(value, str):
        value = value.strip()
        if value.startswith(VARIANT_GID_PREFIX):
            value = value[len(VARIANT_GID_PREFIX):]
    try:
        number = int(value)
        if isinstance(value, float) and number != value:
            raise ValueError(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationAppError(
            code="BadRequestBody",
            message=f"Field '{field}' must be a positive integer",
            details={"field": field},
        ) from exc
    if number <= 0:
        raise ValidationAppError(
            code="BadRequestBody",
            message=f"Field '{field}' must be a positive integer",
            details={"field": field},
        )
    return number


def validate_order_fields(body: Mapping[str, Any], *, require_city: bool) -> OrderRequest:
    """Build an OrderRequest from the parsed body.

    Raises:
        ValidationAppError: MissingFields when a required field is absent or
            empty, BadRequestBody when variantId/quantity are not integers.
    """
    fields = required_fields(require_city=require_city)
    missing = [f for f in fields if _is_blank(body.get(f))]
    if missing:
        raise ValidationAppError(
            code="MissingFields",
            message="Missing required fields",
            details={"missing_fields": missing},
        )

    city = body.get("city")
    try:
        return OrderRequest(
            name=str(body["name"]).strip(),
            phone=str(body["phone"]).strip(),
            address=str(body["address"]).strip(),
            city=str(city).strip() if not _is_blank(city) else None,
            variant_id=_coerce_positive_int(body["variantId"], "variantId"),
            quantity=_coerce_positive_int(body["quantity"], "quantity"),
        )
    except ValidationError as exc:
        raise ValidationAppError(
            code="BadRequestBody",
            message="Order fields are invalid",
            details={"context": {"errors": exc.errors(include_url=False, include_input=False)}},
        ) from exc


def resolve_shop_context(
    shopify: ShopifySettings | None = None,
    *,
    domain_suffix: str | None = None,
) -> ShopContext:
    """Build the ShopContext from configuration.

    Raises:
        ConfigurationAppError: If the shop domain or token is missing or malformed.
    """
    cfg = shopify or settings.shopify
    suffix = domain_suffix or settings.app.shop_domain_suffix
    domain = (cfg.shop_name or "").strip()
    token = (cfg.access_token or "").strip()

    if not domain or not token or not domain.endswith(suffix):
        logger.error(
            "shop_config.invalid",
            extra={
                "shop_name_present": bool(domain),
                "access_token_present": bool(token),
                "suffix_ok": domain.endswith(suffix) if domain else False,
            },
        )
        raise ConfigurationAppError(
            code="ServerMisconfigured",
            message="Server misconfigured - missing Shopify credentials",
            details={"hint": "Set SHOPIFY_SHOP_NAME and SHOPIFY_ACCESS_TOKEN"},
        )

    return ShopContext(domain=domain, access_token=token, api_version=cfg.api_version)


def validate_submission(
    query: Mapping[str, str],
    raw_body: bytes | str | Mapping[str, Any] | None,
    *,
    require_city: bool,
    shopify: ShopifySettings | None = None,
) -> ValidatedSubmission:
    """Run checks 2-6 and return the order with its shop context."""
    validate_proxy_query(query)
    body = parse_body(raw_body)
    order = validate_order_fields(body, require_city=require_city)
    shop = resolve_shop_context(shopify)
    return ValidatedSubmission(order=order, shop=shop)


def validate(
    method: str,
    query: Mapping[str, str],
    raw_body: bytes | str | Mapping[str, Any] | None,
    *,
    require_city: bool,
    shopify: ShopifySettings | None = None,
) -> ValidatedSubmission:
    """Run the full validation ladder for one request."""
    validate_method(method)
    return validate_submission(query, raw_body, require_city=require_city, shopify=shopify)
