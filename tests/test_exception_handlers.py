"""Tests for global exception handlers.

Every rejection must use the order envelope, carry the right status, and never
leak exception text.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from cod_proxy.core.errors import (
    AppError,
    ConfigurationAppError,
    MethodNotAllowedAppError,
    ProxyAuthAppError,
    RateLimitAppError,
    ValidationAppError,
)
from cod_proxy.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def handler_client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    @pytest.mark.parametrize(
        "error,status",
        [
            (ValidationAppError(code="MissingFields", message="Missing required fields"), 400),
            (ProxyAuthAppError(code="InvalidProxyRequest", message="Forbidden"), 403),
            (MethodNotAllowedAppError(code="MethodNotAllowed", message="Method not allowed"), 405),
            (RateLimitAppError(code="RateLimitExceeded", message="Slow down"), 429),
            (ConfigurationAppError(code="ServerMisconfigured", message="Misconfigured"), 500),
        ],
    )
    def test_status_by_error_class(
        self, handler_client: TestClient, app_with_handlers: FastAPI, error: AppError, status: int
    ) -> None:
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = handler_client.get("/boom")

        assert response.status_code == status
        body = response.json()
        assert body["success"] is False
        assert body["error"] == error.code
        assert body["message"] == error.message
        assert "details" not in body

    def test_details_included(self, handler_client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/missing")
        async def missing():
            raise ValidationAppError(
                code="MissingFields",
                message="Missing required fields",
                details={"missing_fields": ["phone"]},
            )

        response = handler_client.get("/missing")

        assert response.json()["details"] == {"missing_fields": ["phone"]}

    def test_rate_limit_sets_retry_after(self, handler_client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/limited")
        async def limited():
            raise RateLimitAppError(code="RateLimitExceeded", message="Slow down", details={"retry_after": 120})

        response = handler_client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "120"

    def test_method_not_allowed_sets_allow(self, handler_client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/method")
        async def method():
            raise MethodNotAllowedAppError(code="MethodNotAllowed", message="Method not allowed")

        assert handler_client.get("/method").headers["Allow"] == "POST"


class TestHttpExceptionHandler:
    def test_unrouted_method_uses_envelope(self, handler_client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.post("/orders")
        async def orders():
            return {"ok": True}

        response = handler_client.request("TRACE", "/orders")

        assert response.status_code == 405
        assert response.headers["Allow"] == "POST"
        assert response.json()["success"] is False
        assert response.json()["error"] == "MethodNotAllowed"
        assert response.json()["details"] == {"method": "TRACE", "allowed_methods": ["POST"]}

    def test_unknown_path_uses_envelope(self, handler_client: TestClient) -> None:
        response = handler_client.get("/nowhere")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "NOT_FOUND"
        assert body["message"] == "Not Found"

    def test_registered(self, app_with_handlers: FastAPI) -> None:
        assert StarletteHTTPException in app_with_handlers.exception_handlers


class TestGeneralExceptionHandler:
    def test_generic_body_without_leaks(self) -> None:
        request = AsyncMock()
        request.url.path = "/api/create-order"
        request.method = "POST"

        response = asyncio.run(general_exception_handler(request, ValueError("token=shpat_secret")))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["success"] is False
        assert data["error"] == "INTERNAL_SERVER_ERROR"
        assert "shpat_secret" not in json.dumps(data)
        assert "Traceback" not in json.dumps(data)

    def test_registered(self, app_with_handlers: FastAPI) -> None:
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers
