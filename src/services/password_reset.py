"""Forgot-password flow: request a one-time code by email, then submit it with a new password."""

from __future__ import annotations

from enum import Enum

from src.domains.ledger.forms import FormError, validate_new_password
from src.services.session_manager import AuthResult, SessionManager


class ResetStep(str, Enum):
    EMAIL = "email"
    OTP = "otp"
    SUCCESS = "success"


class PasswordResetFlow:
    """
    email -> otp -> success. A failed call leaves the step unchanged and
    records the error; back() returns to the email step.
    """

    def __init__(self, session: SessionManager) -> None:
        self._session = session
        self.step = ResetStep.EMAIL
        self.email = ""
        self.error: str | None = None

    def request_code(self, email: str) -> AuthResult:
        email = (email or "").strip()
        if not email:
            return self._fail("Email is required")
        result = self._session.send_password_reset_otp(email)
        if not result:
            return self._fail(result.error or "Failed to send OTP")
        self.email = email
        self.error = None
        self.step = ResetStep.OTP
        return result

    def submit(self, otp: str, new_password: str, confirm_password: str) -> AuthResult:
        if self.step is not ResetStep.OTP:
            return self._fail("Request a verification code first")
        otp = (otp or "").strip()
        if not otp:
            return self._fail("Enter the code sent to your email")
        try:
            validate_new_password(new_password, confirm_password)
        except FormError as e:
            return self._fail(next(iter(e.errors.values())))
        result = self._session.verify_otp_and_reset_password(self.email, otp, new_password)
        if not result:
            return self._fail(result.error or "Failed to reset password")
        self.error = None
        self.step = ResetStep.SUCCESS
        return result

    def back(self) -> None:
        self.step = ResetStep.EMAIL
        self.error = None

    def _fail(self, message: str) -> AuthResult:
        self.error = message
        return AuthResult(False, message)
