"""
Unit tests for error codes, exceptions and response building.
"""

import json

import pytest

from cosmic_horoscope.exceptions import (
    ConfigurationError,
    HoroscopeError,
    RetryExhaustedError,
    UpstreamOverloadedError,
    ValidationError,
)
from cosmic_horoscope.utils.error_codes import (
    ErrorCode,
    format_error_body,
    get_error_message,
    get_http_status,
)
from cosmic_horoscope.utils.response_builder import (
    error_response,
    success_response,
    text_response,
)


class TestErrorCodes:
    """Test suite for error code mappings."""

    @pytest.mark.parametrize('error_code,status', [
        (ErrorCode.VALIDATION_MISSING_PARAMETER, 400),
        (ErrorCode.VALIDATION_INVALID_TIMEFRAME, 400),
        (ErrorCode.REQUEST_METHOD_NOT_ALLOWED, 405),
        (ErrorCode.REQUEST_NOT_FOUND, 404),
        (ErrorCode.UPSTREAM_OVERLOADED, 503),
        (ErrorCode.UPSTREAM_AUTH_FAILED, 502),
        (ErrorCode.UPSTREAM_RATE_LIMITED, 429),
        (ErrorCode.UPSTREAM_ERROR, 502),
        (ErrorCode.INTERNAL_CONFIGURATION_ERROR, 500),
        (ErrorCode.INTERNAL_SERVER_ERROR, 500),
    ])
    def test_http_status(self, error_code, status):
        assert get_http_status(error_code) == status

    def test_every_code_has_status_and_message(self):
        for error_code in ErrorCode:
            assert get_http_status(error_code) >= 400
            assert get_error_message(error_code) != 'An error occurred'

    def test_format_error_body(self):
        body = format_error_body(ErrorCode.VALIDATION_INVALID_SIGN, details={'field': 'sign'})

        assert body['type'] == 'error'
        assert body['code'] == 'VALIDATION_INVALID_SIGN'
        assert body['message'] == get_error_message(ErrorCode.VALIDATION_INVALID_SIGN)
        assert body['details'] == {'field': 'sign'}
        assert isinstance(body['timestamp'], int)

    def test_format_error_body_without_details(self):
        body = format_error_body(ErrorCode.INTERNAL_SERVER_ERROR, 'Internal server error')

        assert 'details' not in body


class TestExceptions:
    """Test suite for the exception hierarchy."""

    def test_default_message_from_code(self):
        error = ConfigurationError()

        assert error.error_code == ErrorCode.INTERNAL_CONFIGURATION_ERROR
        assert error.message == 'Configuration error'
        assert error.details == {}

    def test_error_code_override(self):
        error = ValidationError('bad sign', field='sign', error_code=ErrorCode.VALIDATION_INVALID_SIGN)

        assert error.error_code == ErrorCode.VALIDATION_INVALID_SIGN
        assert error.details == {'field': 'sign'}
        assert ValidationError.error_code == ErrorCode.VALIDATION_MISSING_PARAMETER

    def test_retry_exhausted_error(self):
        last_error = UpstreamOverloadedError('The model is overloaded', status_code=503)

        error = RetryExhaustedError(last_error, attempts=3)

        assert isinstance(error, UpstreamOverloadedError)
        assert isinstance(error, HoroscopeError)
        assert error.status_code == 503
        assert error.attempts == 3
        assert error.last_error is last_error
        assert error.message == 'Generation failed after 3 attempts: The model is overloaded'


class TestResponseBuilder:
    """Test suite for API Gateway response helpers."""

    def test_success_response(self):
        response = success_response(200, {'horoscope': 'X'})

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'] == 'application/json'
        assert response['headers']['Access-Control-Allow-Origin'] == '*'
        assert json.loads(response['body']) == {'horoscope': 'X'}

    def test_error_response_uses_mapped_status(self):
        response = error_response(ErrorCode.UPSTREAM_RATE_LIMITED)

        assert response['statusCode'] == 429
        body = json.loads(response['body'])
        assert body['code'] == 'UPSTREAM_RATE_LIMITED'
        assert body['message'] == 'Rate limit exceeded. Please wait before making more requests.'

    def test_error_response_status_override(self):
        response = error_response(ErrorCode.UPSTREAM_ERROR, 'Gateway timeout', status_code=504)

        assert response['statusCode'] == 504
        assert json.loads(response['body'])['message'] == 'Gateway timeout'

    def test_text_response(self):
        response = text_response('<xml/>', 'application/xml', headers={'X-Test': '1'})

        assert response == {
            'statusCode': 200,
            'headers': {'Content-Type': 'application/xml', 'X-Test': '1'},
            'body': '<xml/>'
        }
