"""
Storage for the auth token.

The client persists exactly one value, the bearer token. The Streamlit app
keeps a `MemoryTokenStore` per browser session so visitors never see each
other's login. `FileTokenStore` keeps the token under a well-known key in a
small JSON key-value file for single-user local runs.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Protocol

from src.utils.config import AUTH_TOKEN_KEY
from src.utils.logger import get_logger

logger = get_logger()


class TokenStore(Protocol):
    def get_token(self) -> str | None: ...

    def set_token(self, token: str) -> None: ...

    def clear_token(self) -> None: ...


class MemoryTokenStore:
    """Token store that lives only as long as its owner (one browser session)."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None


class FileTokenStore:
    """
    Token store backed by a JSON file.

    Other keys found in the file are preserved on write. An unreadable file is
    treated as holding no token. Every process-local writer shares one lock, so
    concurrent read-modify-write cycles do not drop each other's keys.
    """

    _file_lock = threading.RLock()

    def __init__(self, path: Path, key: str = AUTH_TOKEN_KEY) -> None:
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        with self._file_lock:
            if not self._path.is_file():
                return {}
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                return data if isinstance(data, dict) else {}
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Token store read failed for %s: %s", self._path, e)
                return {}

    def _write(self, data: dict[str, Any]) -> None:
        with self._file_lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)

    def get_token(self) -> str | None:
        token = self._read().get(self._key)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        with self._file_lock:
            data = self._read()
            data[self._key] = token
            self._write(data)

    def clear_token(self) -> None:
        with self._file_lock:
            data = self._read()
            if self._key not in data:
                return
            del data[self._key]
            self._write(data)
