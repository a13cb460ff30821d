"""Tests for client identification and the rate-limit dependency."""

import pytest
from starlette.requests import Request

from cod_proxy.core import rate_limit
from cod_proxy.core.config import settings
from cod_proxy.core.errors import RateLimitAppError


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.0.0.9", 5555)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/create-order",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "query_string": b"",
        "client": client,
    }
    return Request(scope)


class TestClientIdentifier:
    def test_uses_first_forwarded_address(self) -> None:
        request = _request({"X-Forwarded-For": " 1.2.3.4 , 10.0.0.1, 10.0.0.2"})
        assert rate_limit.get_client_identifier(request) == "1.2.3.4"

    def test_falls_back_to_peer_address(self) -> None:
        assert rate_limit.get_client_identifier(_request()) == "10.0.0.9"

    def test_unknown_when_no_address_available(self) -> None:
        assert rate_limit.get_client_identifier(_request(client=None)) == "unknown"

    def test_empty_forwarded_header_falls_back(self) -> None:
        request = _request({"X-Forwarded-For": " , 10.0.0.1"})
        assert rate_limit.get_client_identifier(request) == "10.0.0.9"


class TestEnforceRateLimit:
    def test_second_request_in_window_raises(self, frozen_limiter) -> None:
        request = _request({"X-Forwarded-For": "1.2.3.4"})

        rate_limit.enforce_rate_limit(request)
        frozen_limiter.return_value += 10_000

        with pytest.raises(RateLimitAppError) as exc_info:
            rate_limit.enforce_rate_limit(request)

        assert exc_info.value.code == "RateLimitExceeded"
        assert exc_info.value.details["retry_after"] == 290
        assert "5 minutes" in exc_info.value.message

    def test_disabled_limiter_never_blocks(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_enabled", False)
        request = _request({"X-Forwarded-For": "1.2.3.4"})

        for _ in range(3):
            rate_limit.enforce_rate_limit(request)

    def test_limiter_rebuilt_when_window_changes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = rate_limit.get_rate_limiter()
        assert rate_limit.get_rate_limiter() is first

        monkeypatch.setattr(settings.app, "rate_limit_window_seconds", 60)
        rebuilt = rate_limit.get_rate_limiter()

        assert rebuilt is not first
        assert rebuilt.window_ms == 60_000


def test_window_label_renders_minutes_and_seconds() -> None:
    assert rate_limit._window_label(300) == "5 minutes"
    assert rate_limit._window_label(60) == "minute"
    assert rate_limit._window_label(45) == "45 seconds"
