"""
Standardized error codes for the horoscope API.

This module provides a centralized enumeration of all error codes returned
to API callers, together with their HTTP status codes and default messages.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the system.

    Error codes are organized by category:
    - Validation (VALIDATION_*)
    - Request routing (REQUEST_*)
    - Generation provider (UPSTREAM_*)
    - Internal Errors (INTERNAL_*)
    """

    # Validation Errors
    VALIDATION_MISSING_PARAMETER = 'VALIDATION_MISSING_PARAMETER'
    VALIDATION_INVALID_SIGN = 'VALIDATION_INVALID_SIGN'
    VALIDATION_INVALID_TIMEFRAME = 'VALIDATION_INVALID_TIMEFRAME'
    VALIDATION_INVALID_BIRTH_DATE = 'VALIDATION_INVALID_BIRTH_DATE'
    VALIDATION_INVALID_MESSAGE_FORMAT = 'VALIDATION_INVALID_MESSAGE_FORMAT'

    # Request Routing Errors
    REQUEST_METHOD_NOT_ALLOWED = 'REQUEST_METHOD_NOT_ALLOWED'
    REQUEST_NOT_FOUND = 'REQUEST_NOT_FOUND'

    # Generation Provider Errors
    UPSTREAM_OVERLOADED = 'UPSTREAM_OVERLOADED'
    UPSTREAM_AUTH_FAILED = 'UPSTREAM_AUTH_FAILED'
    UPSTREAM_RATE_LIMITED = 'UPSTREAM_RATE_LIMITED'
    UPSTREAM_ERROR = 'UPSTREAM_ERROR'

    # Internal Errors
    INTERNAL_SERVER_ERROR = 'INTERNAL_SERVER_ERROR'
    INTERNAL_CONFIGURATION_ERROR = 'INTERNAL_CONFIGURATION_ERROR'


# Error code to HTTP status code mapping
ERROR_CODE_TO_HTTP_STATUS = {
    # Validation (400)
    ErrorCode.VALIDATION_MISSING_PARAMETER: 400,
    ErrorCode.VALIDATION_INVALID_SIGN: 400,
    ErrorCode.VALIDATION_INVALID_TIMEFRAME: 400,
    ErrorCode.VALIDATION_INVALID_BIRTH_DATE: 400,
    ErrorCode.VALIDATION_INVALID_MESSAGE_FORMAT: 400,

    # Request Routing (404, 405)
    ErrorCode.REQUEST_METHOD_NOT_ALLOWED: 405,
    ErrorCode.REQUEST_NOT_FOUND: 404,

    # Generation Provider (429, 502, 503)
    ErrorCode.UPSTREAM_OVERLOADED: 503,
    ErrorCode.UPSTREAM_AUTH_FAILED: 502,
    ErrorCode.UPSTREAM_RATE_LIMITED: 429,
    ErrorCode.UPSTREAM_ERROR: 502,

    # Internal Errors (500)
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 500,
}


# Error code to user-friendly message mapping
ERROR_CODE_TO_MESSAGE = {
    # Validation
    ErrorCode.VALIDATION_MISSING_PARAMETER: 'Missing required parameters',
    ErrorCode.VALIDATION_INVALID_SIGN: 'Invalid zodiac sign',
    ErrorCode.VALIDATION_INVALID_TIMEFRAME: 'Invalid timeframe',
    ErrorCode.VALIDATION_INVALID_BIRTH_DATE: 'Invalid birth date',
    ErrorCode.VALIDATION_INVALID_MESSAGE_FORMAT: 'Request body must be a JSON object',

    # Request Routing
    ErrorCode.REQUEST_METHOD_NOT_ALLOWED: 'Method not allowed',
    ErrorCode.REQUEST_NOT_FOUND: 'Not found',

    # Generation Provider
    ErrorCode.UPSTREAM_OVERLOADED: 'The horoscope service is busy. Please try again later.',
    ErrorCode.UPSTREAM_AUTH_FAILED: 'API authentication failed',
    ErrorCode.UPSTREAM_RATE_LIMITED: 'Rate limit exceeded. Please wait before making more requests.',
    ErrorCode.UPSTREAM_ERROR: 'Failed to generate horoscope',

    # Internal Errors
    ErrorCode.INTERNAL_SERVER_ERROR: 'Internal server error',
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 'Configuration error',
}


def get_http_status(error_code: ErrorCode) -> int:
    """
    Get HTTP status code for error code.

    Args:
        error_code: Error code enum value

    Returns:
        HTTP status code (default: 500)
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(error_code, 500)


def get_error_message(error_code: ErrorCode) -> str:
    """
    Get user-friendly error message for error code.

    Args:
        error_code: Error code enum value

    Returns:
        User-friendly error message
    """
    return ERROR_CODE_TO_MESSAGE.get(error_code, 'An error occurred')


def format_error_body(
    error_code: ErrorCode,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Format standardized error body.

    Args:
        error_code: Error code enum value
        message: Optional message overriding the default for the code
        details: Optional additional error details

    Returns:
        Error body dictionary

    Example:
        >>> format_error_body(ErrorCode.VALIDATION_INVALID_TIMEFRAME)
        {
            'type': 'error',
            'code': 'VALIDATION_INVALID_TIMEFRAME',
            'message': 'Invalid timeframe',
            'timestamp': 1699500000000
        }
    """
    body = {
        'type': 'error',
        'code': error_code.value,
        'message': message or get_error_message(error_code),
        'timestamp': int(time.time() * 1000)
    }

    if details:
        body['details'] = details

    return body
