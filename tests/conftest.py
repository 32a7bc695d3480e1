"""
Pytest fixtures for the Fireblocks signer tests.
"""
import time

import base58
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from fireblocks_signer import ClientBuilder, FIREBLOCKS_SANDBOX_API
from fireblocks_signer import _rate_limited_log

# Constants for testing
TEST_API_KEY = "550e8400-e29b-41d4-a716-446655440000"
TEST_BASE_URL = FIREBLOCKS_SANDBOX_API
TEST_TX_ID = "3a0b5c1e-7f0d-4a1e-9b7e-2d1c0a9e8f7b"
TEST_ADDRESS = "FdtiepBtP98oU2uPNgAzUoGwggUDdRXwJH2KJo3oUaix"
TEST_SIGNATURE_BYTES = bytes(range(64))
TEST_SIGNATURE = base58.b58encode(TEST_SIGNATURE_BYTES).decode("ascii")
TEST_PROGRAM_CALL_DATA = "AQABAs0fZXhhbXBsZSB0cmFuc2FjdGlvbg=="


@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    """Make time.sleep instantaneous so polling tests don't slow the suite down."""
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_rate_limited_log():
    _rate_limited_log.reset()
    yield
    _rate_limited_log.reset()


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_pem(rsa_key):
    """PKCS#1 PEM, the format Fireblocks hands out."""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def rsa_pkcs8_pem(rsa_key):
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def ec_pem():
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def client(rsa_pem):
    """Client pointed at the sandbox endpoint; HTTP is stubbed with requests_mock."""
    client = (
        ClientBuilder(TEST_API_KEY, rsa_pem)
        .with_sandbox()
        .with_user_agent("fireblocks-signer-test")
        .with_timeout(15)
        .build()
    )
    yield client
    client.close()


def tx_url(tx_id: str = TEST_TX_ID) -> str:
    return f"{TEST_BASE_URL}/v1/transactions/{tx_id}"


def tx_body(status: str, tx_id: str = TEST_TX_ID, **fields) -> dict:
    body = {"id": tx_id, "status": status}
    body.update(fields)
    return body
