"""
Tests for the Client domain operations.
"""
import json
from unittest.mock import patch

import pytest
import requests

from fireblocks_signer import (
    CreateTransactionResponse, FireblocksError, FireblocksServerError, FireblocksTransportError,
    InvalidRequestError, InvalidSignatureError, NoAddressError, ResponseParseError,
    TransactionStatus, UnknownAssetError
)
from conftest import (
    TEST_ADDRESS, TEST_BASE_URL, TEST_PROGRAM_CALL_DATA, TEST_SIGNATURE, TEST_TX_ID,
    tx_body, tx_url
)

ADDRESSES_URL = f"{TEST_BASE_URL}/v1/vault/accounts/0/SOL/addresses_paginated"
TRANSACTIONS_URL = f"{TEST_BASE_URL}/v1/transactions"


def test_address(client, requests_mock):
    requests_mock.get(ADDRESSES_URL, json={"addresses": [{"assetId": "SOL", "address": TEST_ADDRESS}]})

    assert client.address("0", "SOL") == TEST_ADDRESS
    assert requests_mock.request_history[0].method == "GET"


def test_addresses_returns_all(client, requests_mock):
    requests_mock.get(ADDRESSES_URL, json={
        "addresses": [
            {"assetId": "SOL", "address": TEST_ADDRESS, "description": "main"},
            {"assetId": "SOL", "address": "11111111111111111111111111111111"},
        ],
        "paging": {},
    })
    addresses = client.addresses("0", "SOL")
    assert [a.address for a in addresses] == [TEST_ADDRESS, "11111111111111111111111111111111"]
    assert addresses[0].description == "main"


def test_address_missing(client, requests_mock):
    requests_mock.get(ADDRESSES_URL, json={"addresses": []})
    with pytest.raises(NoAddressError) as excinfo:
        client.address("0", "SOL")
    assert excinfo.value.vault_account_id == "0"
    assert excinfo.value.asset_id == "SOL"


def test_address_vault_not_found(client, requests_mock):
    requests_mock.get(ADDRESSES_URL, status_code=400, json={"message": "vault not found"})
    with pytest.raises(FireblocksServerError) as excinfo:
        client.address("0", "SOL")
    assert excinfo.value.message == "vault not found"
    assert not isinstance(excinfo.value, ResponseParseError)


def test_address_malformed_body(client, requests_mock):
    requests_mock.get(ADDRESSES_URL, json={"addresses": [{"assetId": "SOL"}]})
    with pytest.raises(ResponseParseError):
        client.address("0", "SOL")


def test_program_call(client, requests_mock):
    requests_mock.post(TRANSACTIONS_URL, json={"id": TEST_TX_ID, "status": "SUBMITTED"})

    response = client.program_call("SOL", "0", TEST_PROGRAM_CALL_DATA)

    assert isinstance(response, CreateTransactionResponse)
    assert response.id == TEST_TX_ID
    assert response.status is TransactionStatus.SUBMITTED
    sent = json.loads(requests_mock.request_history[0].body)
    assert sent == {
        "operation": "PROGRAM_CALL",
        "assetId": "SOL",
        "source": {"type": "VAULT_ACCOUNT", "id": "0"},
        "extraParameters": {"programCallData": TEST_PROGRAM_CALL_DATA},
    }


def test_sign_only(client, requests_mock):
    requests_mock.post(TRANSACTIONS_URL, json={"id": TEST_TX_ID, "status": "SUBMITTED"})

    client.sign_only("SOL_TEST", "0", TEST_PROGRAM_CALL_DATA, use_durable_nonce=True, note="memo")

    sent = json.loads(requests_mock.request_history[0].body)
    assert sent["assetId"] == "SOL_TEST"
    assert sent["note"] == "memo"
    assert sent["extraParameters"] == {
        "programCallData": TEST_PROGRAM_CALL_DATA,
        "signOnly": True,
        "useDurableNonce": True,
    }


def test_transfer(client, requests_mock):
    requests_mock.post(TRANSACTIONS_URL, json={"id": TEST_TX_ID, "status": "SUBMITTED"})

    client.transfer("SOL", "0", "0.5", TEST_ADDRESS)

    sent = json.loads(requests_mock.request_history[0].body)
    assert sent["operation"] == "TRANSFER"
    assert sent["amount"] == "0.5"
    assert sent["destination"] == {"type": "ONE_TIME_ADDRESS", "oneTimeAddress": {"address": TEST_ADDRESS}}


@pytest.mark.parametrize("asset_id", ["ETH", "", "sol"])
def test_unknown_asset_rejected_before_submission(client, requests_mock, asset_id):
    with pytest.raises(UnknownAssetError):
        client.sign_only(asset_id, "0", TEST_PROGRAM_CALL_DATA)
    assert requests_mock.call_count == 0


@pytest.mark.parametrize("vault_id", ["", "  "])
def test_empty_vault_rejected_before_submission(client, requests_mock, vault_id):
    with pytest.raises(InvalidRequestError) as excinfo:
        client.sign_only("SOL", vault_id, TEST_PROGRAM_CALL_DATA)
    assert isinstance(excinfo.value, FireblocksError)
    with pytest.raises(FireblocksError):
        client.transfer("SOL", vault_id, "1", TEST_ADDRESS)
    with pytest.raises(FireblocksError):
        client.addresses(vault_id, "SOL")
    assert requests_mock.call_count == 0


def test_invalid_request_fields_wrapped(client, requests_mock):
    with pytest.raises(InvalidRequestError) as excinfo:
        client.transfer("SOL", "0", "1", "")
    assert excinfo.value.cause is not None
    assert requests_mock.call_count == 0


def test_submission_not_retried(client, requests_mock):
    requests_mock.post(TRANSACTIONS_URL, status_code=503, text="unavailable", reason="Service Unavailable")
    with pytest.raises(FireblocksServerError, match="503"):
        client.program_call("SOL", "0", TEST_PROGRAM_CALL_DATA)
    assert requests_mock.call_count == 1


def test_submission_transport_failure_not_retried(client, requests_mock):
    requests_mock.post(TRANSACTIONS_URL, exc=requests.ConnectionError("reset"))
    with pytest.raises(FireblocksTransportError):
        client.program_call("SOL", "0", TEST_PROGRAM_CALL_DATA)
    assert requests_mock.call_count == 1


def test_submission_missing_id(client, requests_mock):
    requests_mock.post(TRANSACTIONS_URL, json={"status": "SUBMITTED"})
    with pytest.raises(ResponseParseError):
        client.program_call("SOL", "0", TEST_PROGRAM_CALL_DATA)


def test_get_transaction_with_signature(client, requests_mock):
    requests_mock.get(tx_url(), json=tx_body("COMPLETED", txHash=TEST_SIGNATURE))

    response, signature = client.get_transaction(TEST_TX_ID)

    assert response.status is TransactionStatus.COMPLETED
    assert signature == TEST_SIGNATURE


def test_get_transaction_pending(client, requests_mock):
    requests_mock.get(tx_url(), json=tx_body("PENDING_SIGNATURE"))
    response, signature = client.get_transaction(TEST_TX_ID, timeout=3)
    assert response.status is TransactionStatus.PENDING_SIGNATURE
    assert signature is None
    assert requests_mock.request_history[0].timeout == 3


def test_get_transaction_bad_signature(client, requests_mock):
    requests_mock.get(tx_url(), json=tx_body("COMPLETED", txHash="abc"))
    with pytest.raises(InvalidSignatureError):
        client.get_transaction(TEST_TX_ID)


def test_context_manager_closes_session(client):
    with patch.object(client.transport.session, "close") as close:
        with client as c:
            assert c is client
    close.assert_called_once_with()


def test_get_transaction_null_signed_messages(client, requests_mock):
    requests_mock.get(tx_url(), json=tx_body("PENDING_SIGNATURE", signedMessages=None, txHash=None))

    response, signature = client.get_transaction(TEST_TX_ID)

    assert response.status is TransactionStatus.PENDING_SIGNATURE
    assert response.signed_messages is None
    assert signature is None
