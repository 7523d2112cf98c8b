"""
Tests for ApiTransport: headers, envelope normalization, failure handling.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from src.infrastructure.api.endpoints import ApiService
from src.infrastructure.api.transport import ApiTransport
from src.infrastructure.storage.token_store import MemoryTokenStore

BASE = "http://ledger.test/api/v1"


def _response(status: int, body=None, reason: str = "OK") -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.reason = reason
    if isinstance(body, Exception):
        r.json.side_effect = body
    else:
        r.json.return_value = body
    return r


@pytest.fixture
def http() -> MagicMock:
    return MagicMock()


def _transport(http: MagicMock, token: str | None = None, **kwargs) -> ApiTransport:
    return ApiTransport(MemoryTokenStore(token), base_url=BASE, http=http, **kwargs)


def test_success_returns_body_verbatim(http: MagicMock) -> None:
    body = {"success": True, "data": [{"id": 1}], "message": "ok"}
    http.request.return_value = _response(200, body)
    out = _transport(http).make_request("/income")
    assert out == body


def test_attaches_bearer_token_and_json_headers(http: MagicMock) -> None:
    http.request.return_value = _response(200, {"success": True})
    _transport(http, token="tok123").make_request("/profile")
    args, kwargs = http.request.call_args
    assert args == ("GET", f"{BASE}/profile")
    assert kwargs["headers"]["Authorization"] == "Bearer tok123"
    assert kwargs["headers"]["Content-Type"] == "application/json"


def test_no_authorization_header_without_token(http: MagicMock) -> None:
    http.request.return_value = _response(200, {"success": True})
    _transport(http).make_request("/auth/login", method="POST", body={"email": "a@b.com"})
    _, kwargs = http.request.call_args
    assert "Authorization" not in kwargs["headers"]
    assert json.loads(kwargs["data"]) == {"email": "a@b.com"}


def test_query_params_are_forwarded(http: MagicMock) -> None:
    http.request.return_value = _response(200, {"success": True, "data": []})
    api = ApiService(_transport(http))
    api.get_incomes_in_range("2024-01-01", "2024-01-31")
    args, kwargs = http.request.call_args
    assert args[1] == f"{BASE}/income/range"
    assert kwargs["params"] == {"start_date": "2024-01-01", "end_date": "2024-01-31"}


def test_http_401_uses_backend_error_and_does_not_raise(http: MagicMock) -> None:
    http.request.return_value = _response(401, {"error": "invalid token"}, reason="Unauthorized")
    out = _transport(http, token="stale").make_request("/profile")
    assert out == {"success": False, "error": "invalid token"}


def test_http_error_without_body_message(http: MagicMock) -> None:
    http.request.return_value = _response(500, ValueError("no json"), reason="Internal Server Error")
    out = _transport(http).make_request("/income")
    assert out == {"success": False, "error": "HTTP 500: Internal Server Error"}


def test_network_exception_is_normalized(http: MagicMock) -> None:
    http.request.side_effect = requests.ConnectionError("connection refused")
    out = _transport(http).make_request("/income")
    assert out == {"success": False, "error": "connection refused"}


def test_network_exception_without_message(http: MagicMock) -> None:
    http.request.side_effect = requests.Timeout()
    out = _transport(http).make_request("/income")
    assert out == {"success": False, "error": "Network error"}


def test_invalid_json_on_success_is_a_failure(http: MagicMock) -> None:
    http.request.return_value = _response(200, ValueError("Expecting value"))
    out = _transport(http).make_request("/income")
    assert out["success"] is False
    assert "Expecting value" in out["error"]


def test_non_object_body_is_a_failure(http: MagicMock) -> None:
    http.request.return_value = _response(200, [1, 2, 3])
    out = _transport(http).make_request("/income")
    assert out["success"] is False


def test_unauthorized_callback_only_when_token_sent(http: MagicMock) -> None:
    http.request.return_value = _response(401, {"error": "invalid token"})
    hook = MagicMock()
    _transport(http, on_unauthorized=hook).make_request("/auth/login", method="POST", body={})
    hook.assert_not_called()
    _transport(http, token="stale", on_unauthorized=hook).make_request("/profile")
    hook.assert_called_once()


def test_endpoint_paths_and_methods(http: MagicMock) -> None:
    http.request.return_value = _response(200, {"success": True})
    api = ApiService(_transport(http))

    api.update_inventory_quantity(7, 12.5)
    args, kwargs = http.request.call_args
    assert args == ("PATCH", f"{BASE}/inventory/7/quantity")
    assert json.loads(kwargs["data"]) == {"quantity": 12.5}

    api.delete_expense(3)
    args, kwargs = http.request.call_args
    assert args == ("DELETE", f"{BASE}/expense/3")
    assert kwargs["data"] is None

    api.get_monthly_data(2024)
    args, kwargs = http.request.call_args
    assert args == ("GET", f"{BASE}/analytics/monthly")
    assert kwargs["params"] == {"year": 2024}
