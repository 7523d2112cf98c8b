"""
Tests for SessionManager: bootstrap, login/signup, reset calls, logout, token rejection.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from src.infrastructure.storage.token_store import MemoryTokenStore
from src.services.data_service import DataService, DataServiceError
from src.services.session_manager import AuthResult, SessionManager, SessionState, build_session

USER = {"id": 1, "email": "a@b.com", "name": "Ana", "role": "standard"}


@pytest.fixture
def api() -> MagicMock:
    return MagicMock()


def test_initialize_without_token(api: MagicMock) -> None:
    session = SessionManager(api, MemoryTokenStore())
    assert session.initialize() is SessionState.UNAUTHENTICATED
    api.get_profile.assert_not_called()


def test_initialize_with_valid_token(api: MagicMock) -> None:
    api.get_profile.return_value = {"success": True, "data": USER}
    store = MemoryTokenStore("tok123")
    session = SessionManager(api, store)
    assert session.initialize() is SessionState.AUTHENTICATED
    assert session.user.email == "a@b.com"
    assert store.get_token() == "tok123"


def test_initialize_with_rejected_token(api: MagicMock) -> None:
    api.get_profile.return_value = {"success": False, "error": "invalid token"}
    store = MemoryTokenStore("stale")
    session = SessionManager(api, store)
    assert session.initialize() is SessionState.UNAUTHENTICATED
    assert session.user is None
    assert store.get_token() is None


def test_initialize_with_malformed_profile(api: MagicMock) -> None:
    api.get_profile.return_value = {"success": True, "data": {"email": "a@b.com"}}
    store = MemoryTokenStore("tok")
    session = SessionManager(api, store)
    assert session.initialize() is SessionState.UNAUTHENTICATED
    assert store.get_token() is None


def test_login_success(api: MagicMock) -> None:
    api.login.return_value = {"success": True, "data": {"token": "tok123", "user": USER}}
    store = MemoryTokenStore()
    session = SessionManager(api, store)
    result = session.login("a@b.com", "secret1")
    assert result
    assert store.get_token() == "tok123"
    assert session.state is SessionState.AUTHENTICATED
    assert session.user.id == "1"


def test_login_failure_keeps_backend_error(api: MagicMock) -> None:
    api.login.return_value = {"success": False, "error": "invalid credentials"}
    session = SessionManager(api, MemoryTokenStore())
    result = session.login("a@b.com", "wrong")
    assert not result
    assert result.error == "invalid credentials"
    assert session.state is SessionState.UNAUTHENTICATED


def test_login_without_token_in_payload_fails(api: MagicMock) -> None:
    api.login.return_value = {"success": True, "data": {"user": USER}}
    store = MemoryTokenStore()
    session = SessionManager(api, store)
    assert not session.login("a@b.com", "secret1")
    assert store.get_token() is None


def test_signup_passes_admin_code_and_persists(api: MagicMock) -> None:
    admin = dict(USER, role="admin")
    api.signup.return_value = {"success": True, "data": {"token": "t2", "user": admin}}
    store = MemoryTokenStore()
    session = SessionManager(api, store)
    result = session.signup("a@b.com", "secret1", "Ana", admin_code="MINE-ADMIN")
    assert result == AuthResult(True)
    payload = api.signup.call_args.args[0]
    assert payload["admin_code"] == "MINE-ADMIN"
    assert "phone" not in payload
    assert session.user.is_admin
    assert store.get_token() == "t2"


def test_signup_error_is_verbatim(api: MagicMock) -> None:
    api.signup.return_value = {"success": False, "error": "email already registered"}
    result = SessionManager(api, MemoryTokenStore()).signup("a@b.com", "secret1", "Ana")
    assert result == AuthResult(False, "email already registered")


def test_signup_default_error(api: MagicMock) -> None:
    api.signup.return_value = {"success": False}
    result = SessionManager(api, MemoryTokenStore()).signup("a@b.com", "secret1", "Ana")
    assert result.error == "Signup failed"


def test_password_reset_calls_do_not_touch_session(api: MagicMock) -> None:
    api.forgot_password.return_value = {"success": True, "message": "sent"}
    api.reset_password.return_value = {"success": True}
    store = MemoryTokenStore()
    session = SessionManager(api, store)
    assert session.send_password_reset_otp("a@b.com")
    assert session.verify_otp_and_reset_password("a@b.com", "123456", "newpass")
    api.reset_password.assert_called_once_with({"email": "a@b.com", "otp": "123456", "new_password": "newpass"})
    assert session.state is SessionState.UNAUTHENTICATED
    assert store.get_token() is None


def test_reset_failure_returns_error(api: MagicMock) -> None:
    api.reset_password.return_value = {"success": False, "error": "OTP expired"}
    result = SessionManager(api, MemoryTokenStore()).verify_otp_and_reset_password("a@b.com", "1", "newpass")
    assert result.error == "OTP expired"


def test_logout_clears_everything(api: MagicMock) -> None:
    api.login.return_value = {"success": True, "data": {"token": "tok", "user": USER}}
    store = MemoryTokenStore()
    session = SessionManager(api, store)
    session.login("a@b.com", "secret1")
    session.logout()
    assert session.user is None
    assert session.state is SessionState.UNAUTHENTICATED
    assert store.get_token() is None


def test_update_profile_refreshes_user(api: MagicMock) -> None:
    api.get_profile.return_value = {"success": True, "data": USER}
    api.update_profile.return_value = {"success": True, "data": dict(USER, name="Ana B", phone="0977")}
    session = SessionManager(api, MemoryTokenStore("tok"))
    session.initialize()
    assert session.update_profile("Ana B", "0977")
    api.update_profile.assert_called_once_with({"name": "Ana B", "phone": "0977"})
    assert session.user.name == "Ana B"
    assert session.user.phone == "0977"


def test_update_profile_requires_session(api: MagicMock) -> None:
    result = SessionManager(api, MemoryTokenStore()).update_profile("X")
    assert result.error == "Not signed in"
    api.update_profile.assert_not_called()


def _http_response(status: int, body: dict) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.reason = "OK" if status < 400 else "Unauthorized"
    r.json.return_value = body
    return r


def test_login_scenario_over_transport() -> None:
    http = MagicMock()
    http.request.return_value = _http_response(
        200, {"success": True, "data": {"token": "tok123", "user": {"id": 1, "email": "a@b.com", "name": "Ana"}}}
    )
    store = MemoryTokenStore()
    session, _ = build_session(token_store=store, base_url="http://ledger.test/api/v1", http=http)
    assert session.login("a@b.com", "secret1")
    assert store.get_token() == "tok123"
    assert session.state is SessionState.AUTHENTICATED
    args, _ = http.request.call_args
    assert args == ("POST", "http://ledger.test/api/v1/auth/login")


def test_401_on_authenticated_request_signs_out() -> None:
    http = MagicMock()
    http.request.return_value = _http_response(200, {"success": True, "data": USER})
    store = MemoryTokenStore("tok")
    session, api = build_session(token_store=store, base_url="http://ledger.test/api/v1", http=http)
    assert session.initialize() is SessionState.AUTHENTICATED

    http.request.return_value = _http_response(401, {"error": "invalid token"})
    out = api.get_incomes()
    assert out == {"success": False, "error": "invalid token"}
    assert session.state is SessionState.UNAUTHENTICATED
    assert store.get_token() is None


def test_separate_sessions_do_not_share_login() -> None:
    http_a = MagicMock()
    http_a.request.return_value = _http_response(
        200, {"success": True, "data": {"token": "tokA", "user": USER}}
    )
    session_a, _ = build_session(base_url="http://ledger.test/api/v1", http=http_a)
    assert session_a.login("a@b.com", "secret1")

    http_b = MagicMock()
    session_b, _ = build_session(base_url="http://ledger.test/api/v1", http=http_b)
    assert session_b.initialize() is SessionState.UNAUTHENTICATED
    http_b.request.assert_not_called()

    session_b.logout()
    assert session_a.state is SessionState.AUTHENTICATED
    assert session_a.token_store.get_token() == "tokA"


def test_concurrent_token_rejection_clears_once(api: MagicMock) -> None:
    api.get_profile.return_value = {"success": True, "data": USER}
    store = MagicMock(wraps=MemoryTokenStore("tok"))
    session = SessionManager(api, store)
    session.initialize()

    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(16):
            pool.submit(session.handle_token_rejected)

    assert session.state is SessionState.UNAUTHENTICATED
    assert store.clear_token.call_count == 1


def test_dashboard_load_with_rejected_token_signs_out_once() -> None:
    http = MagicMock()
    http.request.return_value = _http_response(200, {"success": True, "data": USER})
    store = MagicMock(wraps=MemoryTokenStore("stale"))
    session, api = build_session(token_store=store, base_url="http://ledger.test/api/v1", http=http)
    session.initialize()

    http.request.return_value = _http_response(401, {"error": "invalid token"})
    with pytest.raises(DataServiceError, match="invalid token"):
        DataService(api).load_dashboard()
    assert session.state is SessionState.UNAUTHENTICATED
    assert store.clear_token.call_count == 1
