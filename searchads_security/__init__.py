"""Security modules for Search Ads authentication."""

from searchads_security.signer import (
    AssertionSigner,
    ClientAssertion,
    sign_assertion,
)
from searchads_security.tokens import (
    AccessToken,
    TokenSource,
    TokenManager,
    StaticTokenSource,
)
from searchads_security.transport import (
    ORG_CONTEXT_HEADER,
    AuthTransport,
)

__all__ = [
    "AssertionSigner",
    "ClientAssertion",
    "sign_assertion",
    "AccessToken",
    "TokenSource",
    "TokenManager",
    "StaticTokenSource",
    "ORG_CONTEXT_HEADER",
    "AuthTransport",
]
