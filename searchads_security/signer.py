"""
ES256 client assertion signing.

Apple Search Ads expects the OAuth client secret to be a JWT signed by the
private key uploaded to the Search Ads UI.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from searchads_core.config import ASSERTION_AUDIENCE, IdentityConfig
from searchads_core.errors import SigningError

logger = logging.getLogger(__name__)

ASSERTION_ALGORITHM = "ES256"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ClientAssertion:
    """A signed client assertion and the moment it stops being accepted."""

    value: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return bool(self.value) and self.expires_at > now


class AssertionSigner:
    """Signs client assertions for a single identity."""

    def __init__(self, identity: IdentityConfig, clock: Optional[Clock] = None):
        """
        Initialize the signer.

        Args:
            identity: Validated identity configuration
            clock: Source of the current time (defaults to UTC wall clock)
        """
        self.identity = identity
        self.clock = clock or utc_now

    def sign(self) -> ClientAssertion:
        """
        Sign a fresh client assertion valid for the configured lifetime.

        Returns:
            Signed assertion with its expiry

        Raises:
            SigningError: If the signing primitive rejects the key or claims
        """
        now = self.clock()
        expires_at = now + self.identity.assertion_lifetime
        value = sign_assertion(
            issuer=self.identity.team_id,
            subject=self.identity.client_id,
            key_id=self.identity.key_id,
            private_key=self.identity.private_key,
            issued_at=now,
            lifetime=self.identity.assertion_lifetime,
        )
        logger.debug(f"Signed client assertion (kid={self.identity.key_id}, expires={expires_at.isoformat()})")
        return ClientAssertion(value=value, expires_at=expires_at)


def sign_assertion(
    issuer: str,
    subject: str,
    key_id: str,
    private_key: ec.EllipticCurvePrivateKey,
    issued_at: datetime,
    lifetime: timedelta,
    audience: str = ASSERTION_AUDIENCE,
) -> str:
    """
    Produce a compact ES256 JWS over the client assertion claims.

    The key ID goes in the JOSE header so Apple can select the matching public key.
    """
    payload = {
        "iss": issuer,
        "sub": subject,
        "aud": audience,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }

    try:
        return jwt.encode(
            payload,
            private_key,
            algorithm=ASSERTION_ALGORITHM,
            headers={"kid": key_id},
        )
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise SigningError(f"could not sign client assertion: {e}") from e
