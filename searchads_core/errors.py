"""
Error taxonomy for the Apple Search Ads authentication stack.

Every error names the stage (configuration, signing, exchange, decode) that failed.
"""

from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass


class ErrorCategory(str, Enum):
    """Error category classification."""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    TRANSPORT = "transport"
    EXTERNAL_API = "external_api"
    DECODE = "decode"


class AuthStage(str, Enum):
    """Stage of the credential lifecycle an error originated from."""

    CONFIGURATION = "configuration"
    SIGNING = "signing"
    EXCHANGE = "exchange"
    DECODE = "decode"


@dataclass
class ErrorDetail:
    """Detailed error information."""

    category: ErrorCategory
    code: str
    message: str
    stage: AuthStage
    retryable: bool
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging or API responses."""
        result = {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "stage": self.stage.value,
            "retryable": self.retryable,
        }
        if self.details:
            result["details"] = self.details
        return result


class SearchAdsError(Exception):
    """Base exception for all Search Ads client errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        code: str,
        stage: AuthStage,
        retryable: bool = False,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.error_detail = ErrorDetail(
            category=category,
            code=code,
            message=message,
            stage=stage,
            retryable=retryable,
            details=details or {}
        )

    @property
    def stage(self) -> AuthStage:
        return self.error_detail.stage

    @property
    def retryable(self) -> bool:
        return self.error_detail.retryable


class ConfigurationError(SearchAdsError):
    """Invalid identity configuration (bad PEM, non-EC key, invalid lifetime)."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"configuration: {message}",
            category=ErrorCategory.CONFIGURATION,
            code="INVALID_CONFIGURATION",
            stage=AuthStage.CONFIGURATION,
            retryable=False,
            details=details
        )


class SigningError(SearchAdsError):
    """The client assertion could not be signed."""

    def __init__(self, message: str = "Failed to sign client assertion", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"signing: {message}",
            category=ErrorCategory.AUTHENTICATION,
            code="SIGNING_FAILED",
            stage=AuthStage.SIGNING,
            retryable=False,
            details=details
        )


class TransportError(SearchAdsError):
    """Network failure (DNS, connect, timeout) while exchanging the assertion."""

    def __init__(self, message: str = "Token exchange request failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"exchange: {message}",
            category=ErrorCategory.TRANSPORT,
            code="TOKEN_EXCHANGE_TRANSPORT_ERROR",
            stage=AuthStage.EXCHANGE,
            retryable=True,
            details=details
        )


class TokenExchangeRejected(SearchAdsError):
    """The token endpoint answered with an HTTP error status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(
            message=f"exchange: token endpoint rejected the request with HTTP {status_code}: {body}",
            category=ErrorCategory.EXTERNAL_API,
            code="TOKEN_EXCHANGE_REJECTED",
            stage=AuthStage.EXCHANGE,
            retryable=False,
            details={"status_code": status_code, "body": body}
        )


class DecodeError(SearchAdsError):
    """The token endpoint response body could not be decoded."""

    def __init__(self, message: str = "Malformed token response", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"decode: {message}",
            category=ErrorCategory.DECODE,
            code="TOKEN_RESPONSE_MALFORMED",
            stage=AuthStage.DECODE,
            retryable=False,
            details=details
        )
