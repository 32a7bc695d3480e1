"""
Exceptions for the Fireblocks signer transport.

Every failure surfaced by the client is one of the classes below. Lower-layer
exceptions (requests, pydantic, cryptography) are kept on ``cause`` and chained
with ``raise ... from``.
"""
from typing import Optional


class FireblocksError(Exception):
    """Base exception for all Fireblocks signer errors."""

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class InvalidApiKeyError(FireblocksError):
    """Raised when the API key is not a valid UUID."""
    pass


class InvalidCredentialError(FireblocksError):
    """Raised when the private key material cannot be loaded."""
    pass


class TokenSigningError(InvalidCredentialError):
    """Raised when a JWT cannot be signed with the configured key."""
    pass


class FireblocksTransportError(FireblocksError):
    """Raised on connection, DNS or TLS failures."""
    pass


class FireblocksTimeoutError(FireblocksError):
    """
    Raised when a deadline is exceeded.

    ``stage`` is ``"request"`` when a single HTTP call timed out and ``"poll"``
    when the overall polling deadline elapsed.
    """

    REQUEST = "request"
    POLL = "poll"

    def __init__(
        self,
        message: str = "Operation timed out",
        stage: str = REQUEST,
        cause: Optional[BaseException] = None,
    ):
        self.stage = stage
        super().__init__(message, cause)


class FireblocksServerError(FireblocksError):
    """Raised when the Fireblocks API rejects a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[int] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class ResponseParseError(FireblocksError):
    """Raised when a successful response body does not match the API contract."""
    pass


class NoAddressError(FireblocksError):
    """Raised when a vault has no address for the requested asset."""

    def __init__(self, vault_account_id: str, asset_id: str):
        self.vault_account_id = vault_account_id
        self.asset_id = asset_id
        super().__init__(f"No pubkey for vault {vault_account_id} asset {asset_id}")


class UnknownAssetError(FireblocksError):
    """Raised when an asset id is not in the accepted set."""

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Unknown asset {asset_id!r}")


class InvalidSignatureError(FireblocksError):
    """Raised when a returned signature does not decode to 64 bytes."""
    pass


class InvalidRequestError(FireblocksError):
    """Raised when caller-supplied request fields are rejected before sending."""
    pass
