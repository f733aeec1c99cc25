"""
Factories for authenticated Apple Search Ads HTTP clients.

Resource services (campaigns, ad groups, keywords, reports) only need the
``httpx.AsyncClient`` returned by ``create_client``.
"""

import logging
from typing import Any, Optional

import httpx

from searchads_core.config import SearchAdsSettings
from searchads_security.tokens import TokenManager
from searchads_security.transport import AuthTransport

logger = logging.getLogger(__name__)


def create_auth_transport(
    settings: SearchAdsSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    token_client: Optional[httpx.AsyncClient] = None,
) -> AuthTransport:
    """
    Build the authenticating transport for the configured identity.

    Args:
        settings: Client settings
        transport: Inner transport for API requests (default created per instance)
        token_client: Client for the token exchange (default created per instance)

    Returns:
        Configured AuthTransport

    Raises:
        ConfigurationError: If the key or lifetime is invalid
    """
    manager = TokenManager(
        settings.identity(),
        http_client=token_client,
        auth_url=settings.auth_url,
        timeout=settings.timeout_seconds,
    )
    return AuthTransport(
        token_source=manager,
        org_id=settings.org_id,
        transport=transport,
        token_retry_attempts=settings.token_retry_attempts,
        owns_token_source=True,
    )


def create_client(
    settings: SearchAdsSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    token_client: Optional[httpx.AsyncClient] = None,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create an ``httpx.AsyncClient`` bound to the Search Ads API with authentication applied.

    Closing the client also closes the token manager's own exchange client.
    """
    auth_transport = create_auth_transport(settings, transport=transport, token_client=token_client)
    client_kwargs.setdefault("timeout", settings.timeout_seconds)
    client = auth_transport.client(base_url=settings.api_url, **client_kwargs)
    logger.info(f"Search Ads client created (org={settings.org_id}, base_url={settings.api_url})")
    return client
