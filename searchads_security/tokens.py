"""
Token cache and OAuth exchange for Apple Search Ads.

A locally signed client assertion is traded for a short-lived bearer access
token via the client-credentials grant. Both credentials are cached and renewed
lazily when they expire.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional, Union

import httpx
from pydantic import BaseModel, Field, ValidationError

from searchads_core.config import (
    DEFAULT_AUTH_URL,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_ASSERTION_LIFETIME,
    TOKEN_SCOPE,
    IdentityConfig,
)
from searchads_core.errors import DecodeError, TokenExchangeRejected, TransportError
from searchads_security.signer import AssertionSigner, ClientAssertion, Clock, utc_now

logger = logging.getLogger(__name__)


class AccessToken(BaseModel):
    """Access token issued by the Apple token endpoint."""

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int = Field(ge=0)
    scope: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_valid(self, now: datetime) -> bool:
        """Usable iff non-empty and not yet expired."""
        if not self.access_token or self.expires_at is None:
            return False
        return self.expires_at > now


class TokenSource(ABC):
    """Anything able to hand out client assertions and access tokens."""

    @abstractmethod
    def get_assertion(self) -> str:
        """Return a currently valid client assertion."""

    @abstractmethod
    async def get_access_token(self) -> str:
        """Return a currently valid access token."""

    @abstractmethod
    def is_assertion_valid(self) -> bool:
        """Whether the cached assertion can still be used."""

    @abstractmethod
    def is_access_token_valid(self) -> bool:
        """Whether the cached access token can still be used."""

    async def aclose(self) -> None:
        """Release any resources held by the source."""


class TokenManager(TokenSource):
    """
    Owns the assertion and access-token lifecycle for one identity.

    Both slots hold at most one credential. Concurrent callers that find the
    access token expired share a single in-flight exchange.
    """

    def __init__(
        self,
        identity: IdentityConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        auth_url: str = DEFAULT_AUTH_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the token manager.

        Args:
            identity: Validated identity configuration
            http_client: Client used for the token exchange (one is created if omitted)
            auth_url: Base URL of the Apple identity service
            timeout: Exchange timeout in seconds for the default client
            clock: Source of the current time
        """
        self.identity = identity
        self.auth_url = auth_url.rstrip("/")
        self.clock = clock or utc_now
        self.signer = AssertionSigner(identity, clock=self.clock)

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

        self._assertion: Optional[ClientAssertion] = None
        self._access_token: Optional[AccessToken] = None
        self._assertion_lock = threading.Lock()
        self._refresh_lock = asyncio.Lock()
        self._refresh_task: Optional["asyncio.Task[AccessToken]"] = None

        logger.info(
            f"TokenManager initialized (org={identity.org_id}, client={identity.client_id}, "
            f"assertion_lifetime={identity.assertion_lifetime})"
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
        **kwargs,
    ) -> "TokenManager":
        """Build a manager straight from identifiers and PEM key material."""
        identity = IdentityConfig.from_pem(
            org_id=org_id,
            key_id=key_id,
            team_id=team_id,
            client_id=client_id,
            private_key=private_key,
            assertion_lifetime=assertion_lifetime,
        )
        return cls(identity, **kwargs)

    @property
    def token_url(self) -> str:
        return f"{self.auth_url}/oauth2/token"

    def is_assertion_valid(self) -> bool:
        assertion = self._assertion
        return assertion is not None and assertion.is_valid(self.clock())

    def is_access_token_valid(self) -> bool:
        token = self._access_token
        return token is not None and token.is_valid(self.clock())

    def get_assertion(self) -> str:
        """
        Return the cached client assertion, signing a new one if it expired.

        Never performs network I/O.

        Raises:
            SigningError: If signing fails
        """
        with self._assertion_lock:
            if self.is_assertion_valid():
                return self._assertion.value

            self._assertion = self.signer.sign()
            return self._assertion.value

    async def get_access_token(self) -> str:
        """
        Return the cached access token, exchanging a fresh assertion if it expired.

        Raises:
            SigningError: If the assertion could not be signed
            TransportError: If the token endpoint could not be reached
            TokenExchangeRejected: If the token endpoint answered with an error status
            DecodeError: If the token response was malformed
        """
        if self.is_access_token_valid():
            logger.debug("Access token cache hit")
            return self._access_token.access_token

        async with self._refresh_lock:
            if self.is_access_token_valid():
                return self._access_token.access_token

            task = self._refresh_task
            if task is None or task.done():
                task = asyncio.ensure_future(self._refresh_access_token())
                task.add_done_callback(self._on_refresh_done)
                self._refresh_task = task

        # Cancelling one waiter must not cancel the shared refresh
        token = await asyncio.shield(task)
        return token.access_token

    def invalidate(self) -> None:
        """Drop both cached credentials so the next call refreshes them."""
        with self._assertion_lock:
            self._assertion = None
        self._access_token = None
        logger.info("Cached Search Ads credentials invalidated")

    async def _refresh_access_token(self) -> AccessToken:
        assertion = self.get_assertion()
        token = await self._exchange(assertion)
        self._access_token = token
        logger.info(
            f"Access token issued (type={token.token_type}, expires_in={token.expires_in}s)"
        )
        return token

    def _on_refresh_done(self, task: "asyncio.Task[AccessToken]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the failure as retrieved even if every waiter went away
            task.exception()

    async def _exchange(self, assertion: str) -> AccessToken:
        """Trade ``assertion`` for an access token at the token endpoint."""
        url = httpx.URL(self.token_url)
        params = {
            "grant_type": "client_credentials",
            "client_id": self.identity.client_id,
            "client_secret": assertion,
            "scope": TOKEN_SCOPE,
        }
        headers = {
            "Host": url.netloc.decode("ascii"),
            "Content-Type": "application/x-www-form-urlencoded",
        }

        try:
            response = await self.http_client.post(url, params=params, headers=headers)
        except httpx.DecodingError as e:
            raise DecodeError(f"token response body could not be decoded: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Token exchange request to {url.host} failed: {e}")
            raise TransportError(f"token request to {url.host} failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"Token exchange rejected with HTTP {response.status_code}")
            raise TokenExchangeRejected(response.status_code, response.text)

        received_at = self.clock()
        try:
            token = AccessToken.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(
                f"token response could not be decoded ({e.error_count()} error(s))",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

        return token.model_copy(
            update={"expires_at": received_at + timedelta(seconds=token.expires_in)}
        )

    async def aclose(self) -> None:
        """Close the exchange client if this manager created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "TokenManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class StaticTokenSource(TokenSource):
    """
    Token source that hands out fixed credentials.

    Never touches the network; useful in tests and for pre-issued tokens.
    """

    def __init__(self, access_token: str, assertion: str = ""):
        self.access_token = access_token
        self.assertion = assertion
        self.access_token_calls = 0

    def get_assertion(self) -> str:
        return self.assertion

    async def get_access_token(self) -> str:
        self.access_token_calls += 1
        return self.access_token

    def is_assertion_valid(self) -> bool:
        return True

    def is_access_token_valid(self) -> bool:
        return True
