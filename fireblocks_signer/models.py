"""
Data models for the Fireblocks signer transport.

Field aliases are bit-exact to the Fireblocks REST contract.
"""
import binascii
from enum import Enum
from typing import Any, Dict, List, Optional

import base58
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidSignatureError

SIGNATURE_LENGTH = 64


class Asset(str, Enum):
    """Asset ids accepted by default."""
    SOL = "SOL"
    SOL_TEST = "SOL_TEST"


DEFAULT_ASSETS = frozenset(a.value for a in Asset)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with wire aliases, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ExtraParameters(_WireModel):
    """Operation-specific parameters for a program call"""
    program_call_data: str = Field(..., alias="programCallData")
    sign_only: Optional[bool] = Field(None, alias="signOnly")
    use_durable_nonce: Optional[bool] = Field(None, alias="useDurableNonce")


class TransactionOperation(str, Enum):
    TRANSFER = "TRANSFER"
    PROGRAM_CALL = "PROGRAM_CALL"
    CONTRACT_CALL = "CONTRACT_CALL"
    RAW = "RAW"
    TYPED_MESSAGE = "TYPED_MESSAGE"


class TransferPeerPathType(str, Enum):
    VAULT_ACCOUNT = "VAULT_ACCOUNT"
    EXCHANGE_ACCOUNT = "EXCHANGE_ACCOUNT"
    INTERNAL_WALLET = "INTERNAL_WALLET"
    EXTERNAL_WALLET = "EXTERNAL_WALLET"
    ONE_TIME_ADDRESS = "ONE_TIME_ADDRESS"


class TransferPeerPath(_WireModel):
    """Source reference of a transaction"""
    type: TransferPeerPathType = TransferPeerPathType.VAULT_ACCOUNT
    id: str = Field(..., min_length=1)


class OneTimeAddress(_WireModel):
    address: str = Field(..., min_length=1)
    tag: Optional[str] = None


class DestinationTransferPeerPath(_WireModel):
    """Destination reference of a transfer"""
    type: TransferPeerPathType = TransferPeerPathType.ONE_TIME_ADDRESS
    id: Optional[str] = None
    one_time_address: Optional[OneTimeAddress] = Field(None, alias="oneTimeAddress")


class TransactionRequest(_WireModel):
    """Body of ``POST /v1/transactions``"""
    operation: TransactionOperation
    asset_id: str = Field(..., alias="assetId", min_length=1)
    source: TransferPeerPath
    destination: Optional[DestinationTransferPeerPath] = None
    amount: Optional[str] = None
    note: Optional[str] = None
    external_tx_id: Optional[str] = Field(None, alias="externalTxId")
    extra_parameters: Optional[ExtraParameters] = Field(None, alias="extraParameters")


class TransactionStatus(str, Enum):
    """Lifecycle of a Fireblocks transaction"""
    SUBMITTED = "SUBMITTED"
    QUEUED = "QUEUED"
    PENDING_AML_SCREENING = "PENDING_AML_SCREENING"
    PENDING_ENRICHMENT = "PENDING_ENRICHMENT"
    PENDING_AUTHORIZATION = "PENDING_AUTHORIZATION"
    PENDING_SIGNATURE = "PENDING_SIGNATURE"
    PENDING_3RD_PARTY_MANUAL_APPROVAL = "PENDING_3RD_PARTY_MANUAL_APPROVAL"
    PENDING_3RD_PARTY = "PENDING_3RD_PARTY"
    BROADCASTING = "BROADCASTING"
    CONFIRMING = "CONFIRMING"
    CANCELLING = "CANCELLING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"
    BLOCKED = "BLOCKED"
    TIMEOUT = "TIMEOUT"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES

    @property
    def is_success(self) -> bool:
        return self is TransactionStatus.COMPLETED

    def __str__(self) -> str:
        return self.value


_TERMINAL_STATUSES = frozenset({
    TransactionStatus.COMPLETED,
    TransactionStatus.CANCELLED,
    TransactionStatus.REJECTED,
    TransactionStatus.FAILED,
    TransactionStatus.BLOCKED,
    TransactionStatus.TIMEOUT,
})


class CreateTransactionResponse(_WireModel):
    """Response of a submission"""
    id: str = Field(..., min_length=1)
    status: TransactionStatus

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class MessageSignature(_WireModel):
    full_sig: Optional[str] = Field(None, alias="fullSig")
    r: Optional[str] = None
    s: Optional[str] = None
    v: Optional[int] = None


class SignedMessage(_WireModel):
    content: Optional[str] = None
    algorithm: Optional[str] = None
    derivation_path: Optional[List[int]] = Field(None, alias="derivationPath")
    signature: Optional[MessageSignature] = None
    public_key: Optional[str] = Field(None, alias="publicKey")


class SystemMessageInfo(_WireModel):
    type: Optional[str] = None
    message: Optional[str] = None


class TransactionResponse(_WireModel):
    """Body of ``GET /v1/transactions/{txId}``"""
    id: str = Field(..., min_length=1)
    status: TransactionStatus
    sub_status: Optional[str] = Field(None, alias="subStatus")
    tx_hash: Optional[str] = Field(None, alias="txHash")
    asset_id: Optional[str] = Field(None, alias="assetId")
    operation: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[int] = Field(None, alias="createdAt")
    last_updated: Optional[int] = Field(None, alias="lastUpdated")
    signed_messages: Optional[List[SignedMessage]] = Field(None, alias="signedMessages")
    system_messages: Optional[List[SystemMessageInfo]] = Field(None, alias="systemMessages")

    def signature(self) -> Optional[str]:
        """
        Extract the base58 transaction signature, if one is available.

        ``txHash`` is used when set (a broadcast Solana transaction's hash is its
        first signature). Otherwise the first signed message's ``fullSig`` hex
        is re-encoded as base58.

        Raises:
            InvalidSignatureError: If the value does not decode to 64 bytes
        """
        if self.tx_hash:
            try:
                raw = base58.b58decode(self.tx_hash)
            except ValueError as e:
                raise InvalidSignatureError(f"txHash is not base58: {self.tx_hash!r}", e) from e
            _check_length(raw, "txHash")
            return self.tx_hash

        for message in self.signed_messages or []:
            if message.signature is None or not message.signature.full_sig:
                continue
            try:
                raw = binascii.unhexlify(message.signature.full_sig)
            except (binascii.Error, ValueError) as e:
                raise InvalidSignatureError("fullSig is not valid hex", e) from e
            _check_length(raw, "fullSig")
            return base58.b58encode(raw).decode("ascii")

        return None

    def __str__(self) -> str:
        if self.sub_status:
            return f"{self.id} {self.status} ({self.sub_status})"
        return f"{self.id} {self.status}"


def _check_length(raw: bytes, field: str) -> None:
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"{field} decodes to {len(raw)} bytes, expected {SIGNATURE_LENGTH}"
        )


class VaultWalletAddress(_WireModel):
    """An address held by a vault account"""
    asset_id: str = Field(..., alias="assetId")
    address: str
    description: Optional[str] = None
    tag: Optional[str] = None
    type: Optional[str] = None
    legacy_address: Optional[str] = Field(None, alias="legacyAddress")


class VaultAddressesResponse(_WireModel):
    addresses: List[VaultWalletAddress]
