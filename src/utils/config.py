"""Load and validate environment variables. Uses python-dotenv.

This module is intentionally thin and side-effect free except for loading `.env`.
Callers should use the accessor functions below rather than reading `os.environ`
directly, to keep environment handling consistent.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
import os

DEFAULT_API_BASE_URL = "http://localhost:9006/api/v1"
AUTH_TOKEN_KEY = "auth_token"


def _project_root() -> Path:
    """Resolve project root (the directory holding app.py)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Uses override=False so values exported in the shell win over .env.
    """
    root = _project_root()
    env_path = root / ".env"
    load_dotenv(env_path, override=False)


def get_required(key: str) -> str:
    """
    Get required env var. Raises if missing or empty.

    Raises:
        ValueError: If key is missing or empty after trimming.
    """
    load_config()
    val = os.getenv(key, "").strip()
    if not val:
        raise ValueError(
            f"Missing required environment variable: {key}. "
            "Set it in .env or export it."
        )
    return val


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_float(key: str, default: Optional[float] = None) -> Optional[float]:
    """Get optional env var as float; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# --- Public config accessors ---

def api_base_url() -> str:
    """Backend base URL including the /api/v1 prefix, without trailing slash."""
    return get_optional("API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")


def api_timeout_seconds() -> float | None:
    """
    Optional: per-request timeout in seconds. None (the default) means requests
    wait for the backend indefinitely.
    """
    val = get_optional_float("API_TIMEOUT_SECONDS")
    if val is None or val <= 0:
        return None
    return val


def token_store_path() -> Path | None:
    """
    Optional: file holding the persisted auth token. Unset (the default) keeps
    the token in memory for each browser session. A file is shared by every
    visitor of the server, so only set this for single-user local runs.
    """
    val = get_optional("AUTH_TOKEN_FILE", "")
    return Path(val).expanduser() if val else None


def log_level() -> str:
    """Optional: logging level name. Default INFO."""
    return get_optional("LOG_LEVEL", "INFO").upper()


def log_file() -> Path | None:
    """Optional: path of a log file in addition to stderr."""
    val = get_optional("LOG_FILE", "")
    return Path(val).expanduser() if val else None


def currency() -> str:
    """Optional: ISO currency code used for display. Default UGX."""
    return get_optional("CURRENCY", "UGX").upper()


def project_root() -> Path:
    """Project root directory."""
    return _project_root()
