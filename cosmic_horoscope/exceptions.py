"""
Custom exceptions for horoscope generation.

Every failure that reaches an API caller is one of these types. Each carries
the ErrorCode used to build the HTTP response.
"""

from typing import Any, Dict, Optional

from cosmic_horoscope.utils.error_codes import ErrorCode, get_error_message


class HoroscopeError(Exception):
    """Base exception for the horoscope API."""

    error_code = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[ErrorCode] = None
    ):
        """
        Initialize horoscope error.

        Args:
            message: Error message (defaults to the message for the error code)
            details: Optional diagnostic details
            error_code: Optional error code overriding the class default
        """
        if error_code is not None:
            self.error_code = error_code
        self.message = message or get_error_message(self.error_code)
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(HoroscopeError):
    """Raised when request parameters are missing or malformed."""

    error_code = ErrorCode.VALIDATION_MISSING_PARAMETER

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: Optional[ErrorCode] = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            error_code: Specific validation error code
        """
        details = {'field': field} if field else None
        super().__init__(message, details=details, error_code=error_code)
        self.field = field


class ConfigurationError(HoroscopeError):
    """Raised when a required credential or setting is absent or invalid."""

    error_code = ErrorCode.INTERNAL_CONFIGURATION_ERROR


class UpstreamError(HoroscopeError):
    """
    Raised when the generation provider call fails.

    This covers unknown statuses, transport failures and responses that
    are missing the expected generated content.
    """

    error_code = ErrorCode.UPSTREAM_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize upstream error.

        Args:
            message: Error message from the provider or client
            status_code: HTTP status returned by the provider, if any
            details: Provider response body for diagnostics
        """
        super().__init__(message, details=details)
        self.status_code = status_code


class UpstreamOverloadedError(UpstreamError):
    """Raised when the provider is transiently overloaded or unavailable."""

    error_code = ErrorCode.UPSTREAM_OVERLOADED


class UpstreamAuthError(UpstreamError):
    """Raised when the provider rejects the configured credentials."""

    error_code = ErrorCode.UPSTREAM_AUTH_FAILED


class UpstreamRateLimitedError(UpstreamError):
    """Raised when the provider rate-limits the caller."""

    error_code = ErrorCode.UPSTREAM_RATE_LIMITED


class RetryExhaustedError(UpstreamOverloadedError):
    """Raised when an overloaded provider kept failing for every attempt."""

    def __init__(self, last_error: Exception, attempts: int):
        """
        Initialize retry exhausted error.

        Args:
            last_error: Error raised by the final attempt
            attempts: Number of attempts made
        """
        super().__init__(
            f'Generation failed after {attempts} attempts: {last_error}',
            status_code=getattr(last_error, 'status_code', None),
            details={'attempts': attempts}
        )
        self.last_error = last_error
        self.attempts = attempts
