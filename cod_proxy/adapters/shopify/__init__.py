"""Shopify Admin API adapters for order creation."""

from cod_proxy.adapters.shopify.base import AbstractOrderSubmitter, OrderApi, RemoteOrderResult
from cod_proxy.adapters.shopify.factory import create_order_submitter
from cod_proxy.adapters.shopify.graphql_client import GraphQLOrderSubmitter
from cod_proxy.adapters.shopify.rest_client import RestOrderSubmitter

__all__ = [
    "AbstractOrderSubmitter",
    "GraphQLOrderSubmitter",
    "OrderApi",
    "RemoteOrderResult",
    "RestOrderSubmitter",
    "create_order_submitter",
]
