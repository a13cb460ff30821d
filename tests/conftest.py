"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``cod_proxy`` import so the global
settings object is built from test values.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("SHOPIFY_SHOP_NAME", "test-store.myshopify.com")
os.environ.setdefault("SHOPIFY_ACCESS_TOKEN", "shpat_test_token")
os.environ.setdefault("APP_ORDER_API", "graphql")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")

from typing import Any, Callable
from unittest.mock import Mock

import httpx
import pytest
from fastapi.testclient import TestClient

from cod_proxy.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter
from cod_proxy.adapters.shopify.graphql_client import GraphQLOrderSubmitter
from cod_proxy.adapters.shopify.rest_client import RestOrderSubmitter
from cod_proxy.api.routes.orders import get_order_service
from cod_proxy.core import rate_limit
from cod_proxy.core.config import settings
from cod_proxy.main import app
from cod_proxy.services.order_service import OrderService

PROXY_QUERY = {"shop": "test-store.myshopify.com", "signature": "abc123", "timestamp": "1700000000"}


@pytest.fixture(autouse=True)
def _fresh_rate_limiter():
    rate_limit.reset_rate_limiter()
    yield
    rate_limit.reset_rate_limiter()


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def valid_order() -> dict[str, Any]:
    return {
        "name": "Amina",
        "phone": "+212600000001",
        "address": "12 Rue des Fleurs",
        "city": "Rabat",
        "variantId": "44012345678",
        "quantity": 2,
    }


@pytest.fixture
def proxy_query() -> dict[str, str]:
    return dict(PROXY_QUERY)


@pytest.fixture
def frozen_limiter(monkeypatch: pytest.MonkeyPatch) -> Mock:
    """Install a process limiter driven by a mock clock; returns the clock."""
    clock = Mock(return_value=1_700_000_000_000)
    limiter = InMemoryWindowRateLimiter(
        window_ms=settings.app.rate_limit_window_seconds * 1000,
        max_entries=settings.app.rate_limit_max_entries,
        clock=clock,
    )
    monkeypatch.setattr(rate_limit, "_limiter", limiter)
    monkeypatch.setattr(
        rate_limit,
        "_limiter_config",
        (settings.app.rate_limit_window_seconds, settings.app.rate_limit_max_entries),
    )
    return clock


class ShopifyStub:
    """Records outbound requests and answers with a canned response."""

    def __init__(self, response: httpx.Response | Callable[[httpx.Request], httpx.Response]):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if callable(self.response):
            return self.response(request)
        return self.response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def use_shopify():
    """Route the order service through a stubbed Shopify.

    Usage: ``stub = use_shopify(httpx.Response(200, json=...), api="rest")``.
    """

    def _install(response, *, api: str = "graphql") -> ShopifyStub:
        stub = ShopifyStub(response)
        submitter_cls = GraphQLOrderSubmitter if api == "graphql" else RestOrderSubmitter
        submitter = submitter_cls(timeout_seconds=5.0, transport=stub.transport)
        app.dependency_overrides[get_order_service] = lambda: OrderService(submitter)
        return stub

    return _install


def _graphql_success(order_id: str = "gid://shopify/Order/12345") -> dict[str, Any]:
    return {
        "data": {
            "orderCreate": {
                "order": {
                    "id": order_id,
                    "name": "#1001",
                    "displayFinancialStatus": "PENDING",
                    "note": "Cash on Delivery order",
                    "shippingAddress": {"firstName": "Amina", "address1": "12 Rue des Fleurs", "city": "Rabat", "phone": "+212600000001"},
                    "billingAddress": {"firstName": "Amina", "address1": "12 Rue des Fleurs", "city": "Rabat", "phone": "+212600000001"},
                    "customer": {"id": "gid://shopify/Customer/9", "firstName": "Amina", "phone": "+212600000001"},
                },
                "userErrors": [],
            }
        }
    }


@pytest.fixture
def graphql_success() -> Callable[..., dict[str, Any]]:
    """Factory for a successful orderCreate payload."""
    return _graphql_success
