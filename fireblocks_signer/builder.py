"""
ClientBuilder - validates credentials and configuration before any network use.
"""
import logging
import os
import urllib.parse
import uuid
from dataclasses import replace
from typing import TYPE_CHECKING, Iterable, Optional, Union

from .config import ClientConfig
from .exceptions import InvalidApiKeyError, InvalidCredentialError
from .jwt_signer import Credential, load_private_key
from .transport import FIREBLOCKS_API, FIREBLOCKS_SANDBOX_API, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger(__name__)


def validate_api_key(api_key: str) -> str:
    """
    Check that an API key parses as a UUID (any version).

    Raises:
        InvalidApiKeyError: If it does not
    """
    try:
        uuid.UUID(str(api_key))
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidApiKeyError(f"API key must be a valid UUID (got: {str(api_key)[:8]!r}…)", e) from e
    return api_key


def validate_url(url: str) -> str:
    """
    Validate an endpoint override.

    Raises:
        ValueError: If the URL is malformed or uses http:// for a non-local host
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    if parsed.scheme not in ("http", "https") or not host:
        raise ValueError(f"Invalid Fireblocks URL '{url}'")
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        raise ValueError(f"Fireblocks URL must use https:// for security (got: {parsed.scheme}://)")
    return url.rstrip('/')


class ClientBuilder:
    """
    Builds a ``Client`` from a raw API key and PEM private key.

    Overrides are collected into a ``ClientConfig`` and validated as a batch
    by ``build()``, in the order: API key, private key, URL, other overrides.

    Example:
        client = (
            ClientBuilder(api_key, pem)
            .with_sandbox()
            .with_timeout(15)
            .build()
        )
    """

    def __init__(
        self,
        api_key: str,
        secret: Union[bytes, str],
        config: Optional[ClientConfig] = None,
    ):
        self.api_key = api_key
        self.secret = secret
        self.config = config or ClientConfig()

    @classmethod
    def from_env(cls) -> "ClientBuilder":
        """
        Create a builder from ``FIREBLOCKS_API_KEY`` and ``FIREBLOCKS_SECRET``
        (or ``FIREBLOCKS_SECRET_PATH``) plus ``ClientConfig.from_env()``.
        """
        api_key = os.environ.get("FIREBLOCKS_API_KEY")
        if not api_key:
            raise InvalidApiKeyError("FIREBLOCKS_API_KEY is not set")

        secret = os.environ.get("FIREBLOCKS_SECRET")
        if not secret:
            secret_path = os.environ.get("FIREBLOCKS_SECRET_PATH")
            if not secret_path:
                raise InvalidCredentialError("FIREBLOCKS_SECRET or FIREBLOCKS_SECRET_PATH is not set")
            try:
                with open(secret_path, "rb") as f:
                    secret = f.read()
            except OSError as e:
                raise InvalidCredentialError(f"Cannot read secret key file {secret_path}: {e}", e) from e

        return cls(api_key, secret, ClientConfig.from_env())

    def with_url(self, url: str) -> "ClientBuilder":
        self.config = replace(self.config, url=url)
        return self

    def with_sandbox(self, sandbox: bool = True) -> "ClientBuilder":
        self.config = replace(self.config, sandbox=sandbox)
        return self

    def with_user_agent(self, user_agent: str) -> "ClientBuilder":
        self.config = replace(self.config, user_agent=user_agent)
        return self

    def with_timeout(self, timeout: float) -> "ClientBuilder":
        self.config = replace(self.config, timeout=timeout)
        return self

    def with_assets(self, assets: Iterable[str]) -> "ClientBuilder":
        self.config = replace(self.config, assets=frozenset(assets))
        return self

    def build(self) -> "Client":
        """
        Validate everything and return a ready client. No network call is made.

        Raises:
            InvalidApiKeyError: If the API key is not a UUID
            InvalidCredentialError: If the secret is not a PEM RSA private key
            ValueError: If an override is invalid
        """
        from .client import Client

        api_key = validate_api_key(self.api_key)
        private_key = load_private_key(self.secret)

        config = self.config
        if config.url:
            base_url = validate_url(config.url)
        else:
            base_url = FIREBLOCKS_SANDBOX_API if config.sandbox else FIREBLOCKS_API

        timeout = DEFAULT_TIMEOUT if config.timeout is None else config.timeout
        if timeout <= 0:
            raise ValueError(f"timeout must be positive (got: {timeout})")
        user_agent = config.user_agent or DEFAULT_USER_AGENT
        if not config.assets:
            raise ValueError("at least one asset must be accepted")

        logger.debug(f"Building Fireblocks client for {base_url} (api key {api_key[:8]}…)")
        return Client(
            Credential(api_key=api_key, private_key=private_key),
            base_url=base_url,
            user_agent=user_agent,
            timeout=timeout,
            assets=config.assets,
        )
