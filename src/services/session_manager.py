"""
Authentication session: token persistence, profile rehydration, login, signup,
logout and the password-reset calls.

A SessionManager is constructed explicitly with its API service and token store
and owned by whoever renders the views (one per browser session in the
Streamlit app). It is not a global.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.domains.ledger import transformer
from src.domains.ledger.models import User
from src.domains.ledger.transformer import DecodeError
from src.infrastructure.api.endpoints import ApiService
from src.infrastructure.api.transport import ApiResponse, ApiTransport
from src.infrastructure.storage.token_store import MemoryTokenStore, TokenStore
from src.utils.logger import get_logger

logger = get_logger()


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an auth call. Truthy exactly when the call succeeded."""

    success: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.success


def _error(response: ApiResponse, default: str) -> str:
    return str(response.get("error") or response.get("message") or default)


class SessionManager:
    def __init__(self, api: ApiService, token_store: TokenStore) -> None:
        self.api = api
        self.token_store = token_store
        self._user: User | None = None
        self._state = SessionState.UNAUTHENTICATED
        # Dashboard loads run requests on worker threads; a 401 can arrive on several at once.
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self._state is SessionState.VERIFYING

    def _clear(self) -> None:
        self._user = None
        self._state = SessionState.UNAUTHENTICATED
        self.token_store.clear_token()

    def _establish(self, data: Any) -> AuthResult:
        """Persist the token and user from a login/signup payload."""
        if not isinstance(data, dict) or not data.get("token"):
            logger.error("Auth response did not include a token")
            return AuthResult(False, "Invalid response from server")
        try:
            user = transformer.decode_user(data.get("user"))
        except DecodeError as e:
            logger.error("Auth response user could not be decoded: %s", e)
            return AuthResult(False, "Invalid response from server")
        self.token_store.set_token(str(data["token"]))
        self._user = user
        self._state = SessionState.AUTHENTICATED
        logger.info("Signed in as %s (%s)", user.email, user.role)
        return AuthResult(True)

    def initialize(self) -> SessionState:
        """
        Restore the session from a persisted token.

        No token settles into UNAUTHENTICATED at once. With a token the profile
        is fetched; a failed or malformed response discards the token.
        """
        if not self.token_store.get_token():
            self._user = None
            self._state = SessionState.UNAUTHENTICATED
            return self._state

        self._state = SessionState.VERIFYING
        response = self.api.get_profile()
        if response.get("success") and response.get("data"):
            try:
                self._user = transformer.decode_user(response["data"])
                self._state = SessionState.AUTHENTICATED
                logger.info("Session restored for %s", self._user.email)
                return self._state
            except DecodeError as e:
                logger.warning("Stored session profile is malformed: %s", e)
        else:
            logger.info("Stored token rejected: %s", _error(response, "profile unavailable"))
        self._clear()
        return self._state

    def login(self, email: str, password: str) -> AuthResult:
        response = self.api.login(email, password)
        if response.get("success") and response.get("data"):
            return self._establish(response["data"])
        error = _error(response, "Login failed")
        logger.warning("Login failed for %s: %s", email, error)
        return AuthResult(False, error)

    def signup(
        self,
        email: str,
        password: str,
        name: str,
        phone: str | None = None,
        admin_code: str | None = None,
    ) -> AuthResult:
        # The admin code is checked by the backend only.
        payload = transformer.encode_signup(email, password, name, phone=phone, admin_code=admin_code)
        response = self.api.signup(payload)
        if response.get("success") and response.get("data"):
            return self._establish(response["data"])
        error = _error(response, "Signup failed")
        logger.warning("Signup failed for %s: %s", email, error)
        return AuthResult(False, error)

    def send_password_reset_otp(self, email: str) -> AuthResult:
        response = self.api.forgot_password(email)
        if response.get("success"):
            logger.info("Password reset code requested for %s", email)
            return AuthResult(True)
        return AuthResult(False, _error(response, "Failed to send OTP"))

    def verify_otp_and_reset_password(self, email: str, otp: str, new_password: str) -> AuthResult:
        """Reset the password with the emailed code. Does not sign the user in."""
        response = self.api.reset_password(transformer.encode_password_reset(email, otp, new_password))
        if response.get("success"):
            logger.info("Password reset for %s", email)
            return AuthResult(True)
        return AuthResult(False, _error(response, "Failed to reset password"))

    def update_profile(self, name: str, phone: str | None = None) -> AuthResult:
        if not self.is_authenticated:
            return AuthResult(False, "Not signed in")
        response = self.api.update_profile(transformer.encode_profile_update(name, phone))
        if not response.get("success"):
            return AuthResult(False, _error(response, "Failed to update profile"))
        data = response.get("data")
        if data:
            try:
                self._user = transformer.decode_user(data)
            except DecodeError as e:
                logger.warning("Updated profile could not be decoded: %s", e)
                return AuthResult(False, "Invalid response from server")
        elif self._user is not None:
            self._user = self._user.model_copy(update={"name": name, "phone": phone or None})
        return AuthResult(True)

    def handle_token_rejected(self) -> None:
        """Drop the session after the backend rejected the stored token. Safe to call from any thread."""
        with self._lock:
            if self._state is SessionState.UNAUTHENTICATED:
                return
            logger.info("Token rejected by backend; signing out")
            self._clear()

    def logout(self) -> None:
        """Forget the user and the stored token. The backend is not contacted."""
        with self._lock:
            self._clear()
        logger.info("Signed out")


def build_session(token_store: TokenStore | None = None, **transport_kwargs: Any) -> tuple[SessionManager, ApiService]:
    """
    Wire transport, endpoints and session together.

    Without a token store the session keeps its token in memory, so each call
    yields an independent login. A 401 on any authenticated request signs the
    session out.
    """
    store = token_store if token_store is not None else MemoryTokenStore()
    transport = ApiTransport(store, **transport_kwargs)
    api = ApiService(transport)
    session = SessionManager(api, store)
    transport.on_unauthorized = session.handle_token_rejected
    return session, api
