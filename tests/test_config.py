"""
Tests for configuration accessors.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.utils import config


def test_api_base_url_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "")
    assert config.api_base_url() == config.DEFAULT_API_BASE_URL


def test_api_base_url_strips_trailing_slash(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "https://ledger.example.com/api/v1/")
    assert config.api_base_url() == "https://ledger.example.com/api/v1"


@pytest.mark.parametrize("raw,expected", [("", None), ("abc", None), ("0", None), ("12.5", 12.5)])
def test_api_timeout(monkeypatch: pytest.MonkeyPatch, raw: str, expected) -> None:
    monkeypatch.setenv("API_TIMEOUT_SECONDS", raw)
    assert config.api_timeout_seconds() == expected


def test_token_store_path_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    target = tmp_path / "token.json"
    monkeypatch.setenv("AUTH_TOKEN_FILE", str(target))
    assert config.token_store_path() == target


def test_token_store_path_unset_means_no_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_TOKEN_FILE", "")
    assert config.token_store_path() is None


def test_get_required_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEDGER_TEST_REQUIRED", "  ")
    with pytest.raises(ValueError, match="LEDGER_TEST_REQUIRED"):
        config.get_required("LEDGER_TEST_REQUIRED")
