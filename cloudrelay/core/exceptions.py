"""Core exceptions for the relay."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for relay errors."""

    status_code = 500
    error_type = "api_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    status_code = 400
    error_type = "invalid_request_error"

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class AuthenticationError(ProxyError):
    """Credential was rejected or has expired."""

    status_code = 401
    error_type = "invalid_request_error"


class RateLimitError(ProxyError):
    """Quota or resource exhaustion upstream."""

    status_code = 429
    error_type = "rate_limit_exceeded"

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        reset_after: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.model = model
        self.reset_after = reset_after


class PermissionDeniedError(ProxyError):
    """Upstream refused the request for this account."""

    status_code = 403
    error_type = "permission_denied"

    def __init__(self, message: str, needs_verification: bool = False) -> None:
        super().__init__(message)
        self.needs_verification = needs_verification


class ServiceUnavailableError(ProxyError):
    """Upstream outage or every endpoint failed."""

    status_code = 503
    error_type = "api_error"


class NoAccountsError(ProxyError):
    """No usable account left in the pool."""

    status_code = 400
    error_type = "invalid_request_error"


class TranslationError(ProxyError):
    """A backend reply could not be translated at all."""

    status_code = 502
    error_type = "api_error"
