"""
HTTP transport for the Fireblocks API.

This module signs and executes single requests and maps every failure onto
the exception hierarchy in ``exceptions``. It never retries.
"""
import json
import logging
import urllib.parse
from typing import Any, Dict, Optional

import requests

from .exceptions import (
    FireblocksError, FireblocksTransportError, FireblocksTimeoutError,
    FireblocksServerError, ResponseParseError
)
from .jwt_signer import Credential, sign

# Configure logger
logger = logging.getLogger(__name__)

FIREBLOCKS_API = "https://api.fireblocks.io"
FIREBLOCKS_SANDBOX_API = "https://sandbox-api.fireblocks.io"
DEFAULT_USER_AGENT = "fireblocks-signer-transport"
DEFAULT_TIMEOUT = 15.0


def classify_exception(exc: BaseException) -> FireblocksError:
    """
    Map a requests exception onto the error taxonomy.

    Timeouts are checked first because ``requests.ConnectTimeout`` is also a
    ``ConnectionError``.
    """
    if isinstance(exc, FireblocksError):
        return exc
    if isinstance(exc, requests.Timeout):
        return FireblocksTimeoutError(f"Request timed out: {exc}", FireblocksTimeoutError.REQUEST, exc)
    if isinstance(exc, requests.RequestException):
        return FireblocksTransportError(f"Transport failure: {exc}", exc)
    return FireblocksTransportError(f"Unexpected transport failure: {exc}", exc)


def classify_response(response: requests.Response) -> Optional[FireblocksError]:
    """
    Classify an HTTP response.

    Returns:
        None for a 2xx response, otherwise the error to raise
    """
    if response.status_code < 400:
        return None

    message = None
    error_code = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        message = body["message"]
        code = body.get("code")
        error_code = code if isinstance(code, int) else None

    if message is None:
        reason = response.reason or "HTTP error"
        message = f"{response.status_code} {reason}"

    return FireblocksServerError(message, response.status_code, error_code)


def encode_body(body: Optional[Dict[str, Any]]) -> Optional[bytes]:
    """Serialize a JSON body exactly once so the signed hash matches the wire bytes."""
    if body is None:
        return None
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def build_path(path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Append an encoded query string; the token ``uri`` claim covers it."""
    if not params:
        return path
    query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
    return f"{path}?{query}" if query else path


class HttpTransport:
    """
    Signed request executor.

    Holds the credential and a ``requests.Session``; both are read-only after
    construction and may be shared across threads issuing independent calls.
    """

    def __init__(
        self,
        credential: Credential,
        base_url: str = FIREBLOCKS_API,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.credential = credential
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "X-API-Key": self.credential.api_key,
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Sign and execute one request.

        Args:
            method: HTTP method
            path: API path, e.g. ``/v1/transactions``
            params: Query parameters
            body: JSON body
            timeout: Per-call deadline in seconds (defaults to ``self.timeout``)

        Returns:
            Decoded JSON body of a 2xx response

        Raises:
            FireblocksTransportError: On connection, DNS or TLS failure
            FireblocksTimeoutError: If the call exceeds its deadline
            FireblocksServerError: On a 4xx/5xx response
            ResponseParseError: If a 2xx body is not JSON
        """
        full_path = build_path(path, params)
        data = encode_body(body)
        token = sign(method, full_path, data, self.credential)

        logger.debug(f"{method} {self.base_url}{full_path}")
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{full_path}",
                data=data,
                headers=self._headers(token.token),
                timeout=timeout if timeout is not None else self.timeout,
            )
        except requests.RequestException as e:
            error = classify_exception(e)
            logger.warning(f"{method} {full_path} failed: {error}")
            raise error from e

        logger.debug(f"{method} {full_path} -> {response.status_code}")
        error = classify_response(response)
        if error is not None:
            logger.warning(f"{method} {full_path} rejected ({response.status_code}): {error}")
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise ResponseParseError(
                f"Invalid JSON in {response.status_code} response to {method} {full_path}", e
            ) from e

    def close(self) -> None:
        self.session.close()

