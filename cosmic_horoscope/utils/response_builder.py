"""
Utility for building standardized API Gateway responses.
"""
import json
from typing import Any, Dict, Optional

from .error_codes import ErrorCode, format_error_body, get_http_status

JSON_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*',
}


def success_response(
    status_code: int = 200,
    body: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build success response.

    Args:
        status_code: HTTP status code
        body: Response body dict

    Returns:
        API Gateway response dict
    """
    return {
        'statusCode': status_code,
        'headers': dict(JSON_HEADERS),
        'body': json.dumps(body or {})
    }


def error_response(
    error_code: ErrorCode,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status_code: Optional[int] = None
) -> Dict[str, Any]:
    """
    Build error response.

    Args:
        error_code: Application error code
        message: Human-readable error message (default: message for the code)
        details: Optional additional error details
        status_code: HTTP status code (default: status mapped from the code)

    Returns:
        API Gateway response dict
    """
    return {
        'statusCode': status_code or get_http_status(error_code),
        'headers': dict(JSON_HEADERS),
        'body': json.dumps(format_error_body(error_code, message, details), default=str)
    }


def text_response(
    body: str,
    content_type: str,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Build a non-JSON response.

    Args:
        body: Response body text
        content_type: Content-Type header value
        status_code: HTTP status code
        headers: Additional headers

    Returns:
        API Gateway response dict
    """
    response_headers = {'Content-Type': content_type}
    if headers:
        response_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': response_headers,
        'body': body
    }
