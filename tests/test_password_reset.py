"""
Tests for the forgot-password flow.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from src.services.password_reset import PasswordResetFlow, ResetStep
from src.services.session_manager import AuthResult


def _flow() -> tuple[PasswordResetFlow, MagicMock]:
    session = MagicMock()
    session.send_password_reset_otp.return_value = AuthResult(True)
    session.verify_otp_and_reset_password.return_value = AuthResult(True)
    return PasswordResetFlow(session), session


def test_happy_path() -> None:
    flow, session = _flow()
    assert flow.request_code(" a@b.com ")
    assert flow.step is ResetStep.OTP
    assert flow.submit("123456", "newpass", "newpass")
    assert flow.step is ResetStep.SUCCESS
    session.verify_otp_and_reset_password.assert_called_once_with("a@b.com", "123456", "newpass")


def test_send_failure_stays_on_email_step() -> None:
    flow, session = _flow()
    session.send_password_reset_otp.return_value = AuthResult(False, "unknown email")
    assert not flow.request_code("x@y.com")
    assert flow.step is ResetStep.EMAIL
    assert flow.error == "unknown email"


def test_password_rules_checked_before_submit() -> None:
    flow, session = _flow()
    flow.request_code("a@b.com")
    result = flow.submit("123456", "abc", "abc")
    assert not result
    assert "at least 6" in flow.error
    session.verify_otp_and_reset_password.assert_not_called()
    assert flow.step is ResetStep.OTP


def test_submit_requires_code_step() -> None:
    flow, session = _flow()
    assert not flow.submit("1", "newpass", "newpass")
    session.verify_otp_and_reset_password.assert_not_called()


def test_back_returns_to_email() -> None:
    flow, _ = _flow()
    flow.request_code("a@b.com")
    flow.back()
    assert flow.step is ResetStep.EMAIL
    assert flow.error is None
