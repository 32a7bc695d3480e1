"""
Client - signed access to the Fireblocks transaction API.
"""
import logging
import urllib.parse
from typing import Any, FrozenSet, List, Optional, Tuple, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .exceptions import (
    FireblocksError, InvalidRequestError, NoAddressError, ResponseParseError, UnknownAssetError
)
from .jwt_signer import Credential
from .models import (
    DEFAULT_ASSETS, CreateTransactionResponse, TransactionOperation, TransactionRequest,
    TransactionResponse, VaultAddressesResponse, VaultWalletAddress
)
from .poller import ProgressCallback, StatusPoller
from .transport import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, FIREBLOCKS_API, HttpTransport

M = TypeVar('M', bound=BaseModel)

TRANSACTIONS_PATH = "/v1/transactions"


def _quote(segment: str) -> str:
    return urllib.parse.quote(str(segment), safe="")


class Client:
    """
    Client for the Fireblocks transaction API.

    Build instances with ``ClientBuilder``, which validates credentials first.
    Every operation is a single signed HTTP call; nothing is retried, so a
    submission is sent at most once.
    """

    def __init__(
        self,
        credential: Credential,
        base_url: str = FIREBLOCKS_API,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        assets: FrozenSet[str] = DEFAULT_ASSETS,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the client

        Args:
            credential: API key and RSA signing key
            base_url: API endpoint
            user_agent: ``User-Agent`` header value
            timeout: Per-request deadline in seconds
            assets: Asset ids accepted for submissions
            session: Optional pre-configured requests session
            logger: Optional logger instance
        """
        self.transport = HttpTransport(
            credential,
            base_url=base_url,
            user_agent=user_agent,
            timeout=timeout,
            session=session,
        )
        self.assets = frozenset(assets)
        self.logger = logger or logging.getLogger(__name__)

    @property
    def api_key(self) -> str:
        return self.transport.credential.api_key

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    @property
    def timeout(self) -> float:
        return self.transport.timeout

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the HTTP session."""
        self.transport.close()

    def _call(
        self,
        model: Type[M],
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> M:
        data = self.transport.request(method, path, params=params, body=body, timeout=timeout)
        return self._parse(model, data, f"{method} {path}")

    def _parse(self, model: Type[M], data: Any, context: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self.logger.error(f"Unexpected response body for {context}: {e.error_count()} errors")
            raise ResponseParseError(f"Invalid {model.__name__} in response to {context}: {e}", e) from e

    def _check_asset(self, asset_id: str) -> None:
        if not asset_id or asset_id not in self.assets:
            raise UnknownAssetError(asset_id)

    @staticmethod
    def _check_vault(vault_account_id: str) -> None:
        if not vault_account_id or not str(vault_account_id).strip():
            raise InvalidRequestError(f"Vault account id must not be empty (got: {vault_account_id!r})")

    @staticmethod
    def _request(**fields: Any) -> TransactionRequest:
        try:
            return TransactionRequest(**fields)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid transaction request: {e}", e) from e

    def addresses(self, vault_account_id: str, asset_id: str) -> List[VaultWalletAddress]:
        """
        List the addresses of a vault account for an asset.

        Args:
            vault_account_id: Vault account id, e.g. "0"
            asset_id: Asset id, e.g. "SOL"

        Returns:
            Addresses, possibly empty

        Raises:
            InvalidRequestError: If the vault account id is empty
        """
        self._check_vault(vault_account_id)
        path = (
            f"/v1/vault/accounts/{_quote(vault_account_id)}/{_quote(asset_id)}"
            "/addresses_paginated"
        )
        response = self._call(VaultAddressesResponse, "GET", path)
        return response.addresses

    def address(self, vault_account_id: str, asset_id: str) -> str:
        """
        Get the address of a vault account for an asset.

        Raises:
            NoAddressError: If the vault holds no address for the asset
        """
        addresses = self.addresses(vault_account_id, asset_id)
        if not addresses:
            raise NoAddressError(vault_account_id, asset_id)
        return addresses[0].address

    def create_transaction(self, request: TransactionRequest) -> CreateTransactionResponse:
        """
        Submit a transaction. Sent exactly once; failures are not retried.

        Raises:
            UnknownAssetError: If the asset is not accepted by this client
        """
        self._check_asset(request.asset_id)
        body = request.to_wire()
        try:
            response = self._call(CreateTransactionResponse, "POST", TRANSACTIONS_PATH, body=body)
        except FireblocksError as e:
            self.logger.error(f"Transaction submission failed ({request.operation.value} {request.asset_id}): {e}")
            raise
        self.logger.info(f"Submitted {request.operation.value} transaction {response}")
        return response

    def _program_call(
        self,
        asset_id: str,
        vault_id: str,
        program_call_data: str,
        sign_only: Optional[bool],
        use_durable_nonce: Optional[bool],
        note: Optional[str],
    ) -> CreateTransactionResponse:
        self._check_asset(asset_id)
        self._check_vault(vault_id)
        request = self._request(
            operation=TransactionOperation.PROGRAM_CALL,
            asset_id=asset_id,
            source={"id": vault_id},
            note=note,
            extra_parameters={
                "program_call_data": program_call_data,
                "sign_only": sign_only,
                "use_durable_nonce": use_durable_nonce,
            },
        )
        return self.create_transaction(request)

    def program_call(
        self,
        asset_id: str,
        vault_id: str,
        program_call_data: str,
        use_durable_nonce: Optional[bool] = None,
        note: Optional[str] = None,
    ) -> CreateTransactionResponse:
        """
        Have Fireblocks sign and broadcast a serialized transaction.

        Args:
            asset_id: Asset id, e.g. "SOL"
            vault_id: Source vault account id
            program_call_data: Base64 encoded transaction
            use_durable_nonce: Set ``useDurableNonce`` on the request
            note: Optional transaction note

        Returns:
            Created transaction id and initial status

        Raises:
            UnknownAssetError: If the asset is not accepted by this client
            InvalidRequestError: If the vault id or other request fields are invalid
        """
        return self._program_call(asset_id, vault_id, program_call_data, None, use_durable_nonce, note)

    def sign_only(
        self,
        asset_id: str,
        vault_id: str,
        program_call_data: str,
        use_durable_nonce: Optional[bool] = None,
        note: Optional[str] = None,
    ) -> CreateTransactionResponse:
        """
        Have Fireblocks co-sign a serialized transaction without broadcasting it.

        The signature is returned by ``get_transaction``/``poll`` once completed.
        """
        return self._program_call(asset_id, vault_id, program_call_data, True, use_durable_nonce, note)

    def transfer(
        self,
        asset_id: str,
        vault_id: str,
        amount: str,
        destination_address: str,
        note: Optional[str] = None,
    ) -> CreateTransactionResponse:
        """
        Transfer ``amount`` of an asset from a vault to a one-time address.
        """
        self._check_asset(asset_id)
        self._check_vault(vault_id)
        request = self._request(
            operation=TransactionOperation.TRANSFER,
            asset_id=asset_id,
            source={"id": vault_id},
            destination={"one_time_address": {"address": destination_address}},
            amount=str(amount),
            note=note,
        )
        return self.create_transaction(request)

    def get_transaction(
        self,
        tx_id: str,
        timeout: Optional[float] = None,
    ) -> Tuple[TransactionResponse, Optional[str]]:
        """
        Fetch a transaction and its signature, if one is available.

        Args:
            tx_id: Fireblocks transaction id
            timeout: Per-call deadline overriding the client default

        Returns:
            (response, base58 signature or None)

        Raises:
            InvalidSignatureError: If a returned signature is not 64 bytes
        """
        path = f"{TRANSACTIONS_PATH}/{_quote(tx_id)}"
        response = self._call(TransactionResponse, "GET", path, timeout=timeout)
        return response, response.signature()

    def poll(
        self,
        tx_id: str,
        timeout: float,
        interval: float,
        callback: Optional[ProgressCallback] = None,
    ) -> Tuple[TransactionResponse, Optional[str]]:
        """
        Poll a transaction until terminal. See ``StatusPoller.poll``.
        """
        return StatusPoller(self).poll(tx_id, timeout, interval, callback)
