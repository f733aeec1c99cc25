"""Core modules for the Apple Search Ads client."""

from searchads_core.errors import (
    AuthStage,
    ErrorCategory,
    ErrorDetail,
    SearchAdsError,
    ConfigurationError,
    SigningError,
    TransportError,
    TokenExchangeRejected,
    DecodeError,
)
from searchads_core.config import (
    DEFAULT_API_URL,
    DEFAULT_AUTH_URL,
    MAX_ASSERTION_LIFETIME,
    IdentityConfig,
    SearchAdsSettings,
    load_settings,
    load_private_key_file,
    parse_private_key,
)

__all__ = [
    # Errors
    "AuthStage",
    "ErrorCategory",
    "ErrorDetail",
    "SearchAdsError",
    "ConfigurationError",
    "SigningError",
    "TransportError",
    "TokenExchangeRejected",
    "DecodeError",
    # Config
    "DEFAULT_API_URL",
    "DEFAULT_AUTH_URL",
    "MAX_ASSERTION_LIFETIME",
    "IdentityConfig",
    "SearchAdsSettings",
    "load_settings",
    "load_private_key_file",
    "parse_private_key",
]
