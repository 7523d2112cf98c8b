"""
HTTP transport for the ledger backend.

Every call returns the backend envelope `{success, data?, message?, error?}`.
Network failures and non-2xx responses are folded into the same shape so
callers never need a try/except around a request.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import requests

from src.infrastructure.storage.token_store import TokenStore
from src.utils.config import api_base_url, api_timeout_seconds
from src.utils.logger import get_logger

logger = get_logger()

ApiResponse = dict[str, Any]


def _failure(error: str) -> ApiResponse:
    return {"success": False, "error": error}


def _error_from_body(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        err = body.get("error")
        if err:
            return str(err)
    return None


class ApiTransport:
    """
    Single point of contact with the backend.

    The token is read from the store on every call so a login or logout takes
    effect on the next request. One attempt per call; no retry.
    """

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self._token_store = token_store
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else api_timeout_seconds()
        # A shared session keeps backend cookies between calls.
        self._http = http or requests.Session()
        self.on_unauthorized = on_unauthorized

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def make_request(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """
        Issue one request and normalize the outcome.

        Args:
            endpoint: Path below the base URL, e.g. "/income/5".
            method: HTTP method.
            body: JSON-serializable request body, if any.
            params: Query string parameters, if any.

        Returns:
            The parsed backend envelope on 2xx, otherwise
            {"success": False, "error": <message>}.
        """
        token = self._token_store.get_token()
        url = f"{self.base_url}{endpoint}"
        method = method.upper()
        try:
            response = self._http.request(
                method,
                url,
                headers=self._headers(token),
                data=json.dumps(body) if body is not None else None,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            return _failure(str(e) or "Network error")

        status = response.status_code
        if not 200 <= status < 300:
            error = _error_from_body(response) or f"HTTP {status}: {response.reason}"
            logger.warning("%s %s returned %s: %s", method, endpoint, status, error)
            if status == 401 and token and self.on_unauthorized is not None:
                self.on_unauthorized()
            return _failure(error)

        try:
            data = response.json()
        except ValueError as e:
            logger.warning("%s %s returned invalid JSON: %s", method, endpoint, e)
            return _failure(str(e) or "Invalid JSON response")

        if not isinstance(data, dict):
            logger.warning("%s %s returned a non-object body", method, endpoint)
            return _failure("Unexpected response from server")

        logger.debug("%s %s -> %s success=%s", method, endpoint, status, data.get("success"))
        return data
