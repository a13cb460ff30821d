"""Factory for the configured order submitter."""

import httpx

from cod_proxy.adapters.shopify.base import AbstractOrderSubmitter, OrderApi
from cod_proxy.adapters.shopify.graphql_client import GraphQLOrderSubmitter
from cod_proxy.adapters.shopify.rest_client import RestOrderSubmitter
from cod_proxy.core.config import settings
from cod_proxy.core.errors import ConfigurationAppError


def create_order_submitter(
    order_api: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AbstractOrderSubmitter:
    """Instantiate the submitter for ``order_api`` (``APP_ORDER_API`` by default).

    Args:
        order_api: ``"graphql"`` or ``"rest"``.
        transport: Optional httpx transport passed to the submitter.

    Returns:
        AbstractOrderSubmitter: Configured submitter.

    Raises:
        ConfigurationAppError: If the order API name is unknown.
    """
    name = (order_api or settings.app.order_api).lower()
    timeout = settings.shopify.timeout_seconds

    if name == OrderApi.GRAPHQL.value:
        return GraphQLOrderSubmitter(timeout_seconds=timeout, transport=transport)
    if name == OrderApi.REST.value:
        return RestOrderSubmitter(timeout_seconds=timeout, transport=transport)

    raise ConfigurationAppError(
        code="ServerMisconfigured",
        message=f"Unknown order API: '{name}'. Supported: graphql, rest",
    )
