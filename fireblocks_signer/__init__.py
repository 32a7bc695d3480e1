"""
Fireblocks signer transport.

Signs and submits opaque transaction payloads to the Fireblocks API and polls
them until they reach a terminal status.

    from fireblocks_signer import ClientBuilder

    client = ClientBuilder(api_key, pem).with_sandbox().build()
    created = client.sign_only("SOL_TEST", "0", base64_tx)
    response, signature = client.poll(created.id, timeout=90, interval=7)
"""
from .builder import ClientBuilder
from .client import Client
from .config import ClientConfig, init
from .exceptions import (
    FireblocksError, InvalidApiKeyError, InvalidCredentialError, TokenSigningError,
    FireblocksTransportError, FireblocksTimeoutError, FireblocksServerError,
    ResponseParseError, NoAddressError, UnknownAssetError, InvalidSignatureError,
    InvalidRequestError
)
from .jwt_signer import Credential, SignedToken, sign, verify_token
from .models import (
    Asset, CreateTransactionResponse, ExtraParameters, TransactionOperation,
    TransactionRequest, TransactionResponse, TransactionStatus, TransferPeerPath,
    VaultWalletAddress
)
from .poller import StatusPoller
from .transport import FIREBLOCKS_API, FIREBLOCKS_SANDBOX_API
from .version import __version__

__all__ = [
    "Client",
    "ClientBuilder",
    "ClientConfig",
    "init",
    "Credential",
    "SignedToken",
    "sign",
    "verify_token",
    "StatusPoller",
    "Asset",
    "CreateTransactionResponse",
    "ExtraParameters",
    "TransactionOperation",
    "TransactionRequest",
    "TransactionResponse",
    "TransactionStatus",
    "TransferPeerPath",
    "VaultWalletAddress",
    "FireblocksError",
    "InvalidApiKeyError",
    "InvalidCredentialError",
    "TokenSigningError",
    "FireblocksTransportError",
    "FireblocksTimeoutError",
    "FireblocksServerError",
    "ResponseParseError",
    "NoAddressError",
    "UnknownAssetError",
    "InvalidSignatureError",
    "InvalidRequestError",
    "FIREBLOCKS_API",
    "FIREBLOCKS_SANDBOX_API",
    "__version__",
]
