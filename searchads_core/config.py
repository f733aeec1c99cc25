"""
Configuration for the Apple Search Ads client.

Holds the immutable identity configuration consumed by the token manager and the
environment-driven settings used to build it.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from searchads_core.errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_AUTH_URL = "https://appleid.apple.com/auth"
DEFAULT_API_URL = "https://api.searchads.apple.com/api/v4/"
AUTH_HOST = "appleid.apple.com"
ASSERTION_AUDIENCE = "https://appleid.apple.com"
TOKEN_SCOPE = "searchadsorg"

# Apple rejects client secrets that live longer than 20 minutes
MAX_ASSERTION_LIFETIME = timedelta(minutes=20)
DEFAULT_TIMEOUT_SECONDS = 30.0


def parse_private_key(blob: Union[bytes, str]) -> ec.EllipticCurvePrivateKey:
    """
    Parse a PEM-encoded P-256 private key.

    Both SEC1 (``EC PRIVATE KEY``) and PKCS#8 (``PRIVATE KEY``) blocks are accepted.

    Args:
        blob: PEM bytes or text

    Returns:
        Parsed elliptic-curve private key

    Raises:
        ConfigurationError: If the blob is not PEM, not a private key, or not P-256
    """
    if isinstance(blob, str):
        blob = blob.encode()

    if b"-----BEGIN" not in blob:
        raise ConfigurationError("no PEM block found in private key data")

    try:
        key = serialization.load_pem_private_key(blob.strip(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(f"private key could not be parsed: {e}") from e

    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ConfigurationError(
            f"private key must be an elliptic-curve key, got {type(key).__name__}"
        )

    if not isinstance(key.curve, ec.SECP256R1):
        raise ConfigurationError(
            f"private key must use the P-256 curve, got {key.curve.name}"
        )

    return key


def load_private_key_file(path: Union[str, Path]) -> ec.EllipticCurvePrivateKey:
    """Read and parse a PEM private key from ``path``."""
    key_path = Path(path)
    try:
        blob = key_path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"private key file {key_path} could not be read: {e}") from e
    return parse_private_key(blob)


@dataclass(frozen=True)
class IdentityConfig:
    """
    Identity used to sign client assertions.

    Created once at startup and never mutated. Validation is eager: a bad key or
    lifetime fails construction instead of the first request.
    """

    org_id: str
    key_id: str
    team_id: str
    client_id: str
    private_key: ec.EllipticCurvePrivateKey
    assertion_lifetime: timedelta = MAX_ASSERTION_LIFETIME

    def __post_init__(self) -> None:
        for name in ("org_id", "key_id", "team_id", "client_id"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(f"{name} must be a non-empty string")

        if not isinstance(self.private_key, ec.EllipticCurvePrivateKey):
            raise ConfigurationError("private_key must be a parsed elliptic-curve private key")

        if self.assertion_lifetime <= timedelta(0):
            raise ConfigurationError("assertion lifetime must be positive")

        if self.assertion_lifetime > MAX_ASSERTION_LIFETIME:
            raise ConfigurationError(
                f"assertion lifetime {self.assertion_lifetime} exceeds the "
                f"maximum of {MAX_ASSERTION_LIFETIME}",
                details={"max_seconds": int(MAX_ASSERTION_LIFETIME.total_seconds())},
            )

    @classmethod
    def from_pem(
        cls,
        org_id: str,
        key_id: str,
        team_id: str,
        client_id: str,
        private_key: Union[bytes, str],
        assertion_lifetime: timedelta = MAX_ASSERTION_LIFETIME,
    ) -> "IdentityConfig":
        """Build an identity from raw PEM key material."""
        return cls(
            org_id=org_id,
            key_id=key_id,
            team_id=team_id,
            client_id=client_id,
            private_key=parse_private_key(private_key),
            assertion_lifetime=assertion_lifetime,
        )


class SearchAdsSettings(BaseSettings):
    """
    Environment-driven client settings.

    Reads ``SEARCH_ADS_*`` variables, optionally from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_ADS_",
        env_file=".env",
        extra="ignore",
    )

    org_id: str
    key_id: str
    team_id: str
    client_id: str
    private_key: Optional[SecretStr] = None
    private_key_path: Optional[Path] = None
    assertion_lifetime_minutes: int = 20
    auth_url: str = DEFAULT_AUTH_URL
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    token_retry_attempts: int = Field(default=3, ge=1)

    def load_private_key(self) -> ec.EllipticCurvePrivateKey:
        """Resolve the private key from inline PEM or a key file."""
        if self.private_key is not None and self.private_key_path is not None:
            raise ConfigurationError("set only one of private_key or private_key_path")

        if self.private_key is not None:
            return parse_private_key(self.private_key.get_secret_value())

        if self.private_key_path is not None:
            return load_private_key_file(self.private_key_path)

        raise ConfigurationError("no private key provided (private_key or private_key_path)")

    def identity(self) -> IdentityConfig:
        """Build the validated identity configuration."""
        return IdentityConfig(
            org_id=self.org_id,
            key_id=self.key_id,
            team_id=self.team_id,
            client_id=self.client_id,
            private_key=self.load_private_key(),
            assertion_lifetime=timedelta(minutes=self.assertion_lifetime_minutes),
        )


def load_settings(**overrides: Any) -> SearchAdsSettings:
    """
    Load settings from the environment, applying explicit overrides.

    Raises:
        ConfigurationError: If required settings are missing or malformed
    """
    try:
        settings = SearchAdsSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "invalid Search Ads settings",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e

    logger.info(f"Search Ads settings loaded (org={settings.org_id})")
    return settings
