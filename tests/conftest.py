"""Shared fixtures for Search Ads authentication tests."""

from datetime import datetime, timedelta, timezone
from typing import Callable, List

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from searchads_core.config import IdentityConfig


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class TokenEndpoint:
    """Fake Apple token endpoint recording every exchange request."""

    def __init__(self, expires_in: int = 3600):
        self.expires_in = expires_in
        self.requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = self.issue_token

    def issue_token(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "access_token": f"access-token-{len(self.requests)}",
                "token_type": "Bearer",
                "expires_in": self.expires_in,
                "scope": "searchadsorg",
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def private_key():
    """Freshly generated P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def private_key_pem(private_key):
    """SEC1 ("EC PRIVATE KEY") encoding of the test key."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def private_key_pkcs8_pem(private_key):
    """PKCS#8 ("PRIVATE KEY") encoding of the test key."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def identity(private_key):
    """Valid identity configuration with a 20 minute assertion lifetime."""
    return IdentityConfig(
        org_id="TEST_ORG_ID",
        key_id="TEST_KEY_ID",
        team_id="TEST_TEAM_ID",
        client_id="TEST_CLIENT_ID",
        private_key=private_key,
        assertion_lifetime=timedelta(minutes=20),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_endpoint():
    return TokenEndpoint()
