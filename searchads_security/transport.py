"""
httpx transport that authenticates every outgoing Search Ads request.
"""

import logging
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from searchads_core.errors import TransportError
from searchads_security.tokens import TokenSource

logger = logging.getLogger(__name__)

ORG_CONTEXT_HEADER = "X-AP-Context"


class AuthTransport(httpx.AsyncBaseTransport):
    """
    Transport wrapper that sets the bearer token and org context on each request.

    Token acquisition is retried on network failures only. A request is never sent
    without a valid token.
    """

    def __init__(
        self,
        token_source: TokenSource,
        org_id: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_retry_attempts: int = 3,
        token_retry_wait: Optional[wait_base] = None,
        owns_token_source: bool = False,
    ):
        """
        Initialize the transport.

        Args:
            token_source: Source of access tokens (usually a TokenManager)
            org_id: Search Ads organization ID sent in the context header
            transport: Inner transport doing the network I/O (one is created if omitted)
            token_retry_attempts: Attempts at obtaining a token on network failure
            token_retry_wait: Wait strategy between attempts
            owns_token_source: Close the token source together with this transport
        """
        self.token_source = token_source
        self.org_id = org_id
        self.transport = transport or httpx.AsyncHTTPTransport()
        self.token_retry_attempts = token_retry_attempts
        self.token_retry_wait = token_retry_wait or wait_exponential_jitter(initial=0.5, max=5)
        self.owns_token_source = owns_token_source

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        token = await self._obtain_access_token()

        request.headers["Authorization"] = f"Bearer {token}"
        request.headers[ORG_CONTEXT_HEADER] = f"orgId={self.org_id}"

        return await self.transport.handle_async_request(request)

    async def _obtain_access_token(self) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.token_retry_attempts),
            wait=self.token_retry_wait,
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        token = ""
        async for attempt in retrying:
            with attempt:
                token = await self.token_source.get_access_token()
        return token

    def client(self, **kwargs: Any) -> httpx.AsyncClient:
        """Return an ``httpx.AsyncClient`` that sends requests through this transport."""
        return httpx.AsyncClient(transport=self, **kwargs)

    async def aclose(self) -> None:
        await self.transport.aclose()
        if self.owns_token_source:
            await self.token_source.aclose()
