"""
Input validation utilities for horoscope requests.
"""
import base64
import binascii
import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from cosmic_horoscope.exceptions import ValidationError
from cosmic_horoscope.models import (
    Granularity,
    HoroscopeRequest,
    ZodiacSign,
    ZODIAC_SIGNS,
    find_sign,
)
from .error_codes import ErrorCode

BIRTH_DATE_FORMAT = '%Y-%m-%d'


def parse_request_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse the JSON body of an API Gateway event.

    Args:
        event: API Gateway HTTP API event

    Returns:
        Parsed body dictionary

    Raises:
        ValidationError: If the body is not a JSON object
    """
    raw_body = event.get('body') or '{}'

    if event.get('isBase64Encoded'):
        try:
            raw_body = base64.b64decode(raw_body).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError):
            raise ValidationError(
                'Request body is not valid base64-encoded UTF-8',
                error_code=ErrorCode.VALIDATION_INVALID_MESSAGE_FORMAT
            )

    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError:
        raise ValidationError(
            'Request body must be valid JSON',
            error_code=ErrorCode.VALIDATION_INVALID_MESSAGE_FORMAT
        )

    if not isinstance(body, dict):
        raise ValidationError(
            'Request body must be a JSON object',
            error_code=ErrorCode.VALIDATION_INVALID_MESSAGE_FORMAT
        )

    return body


def validate_sign(sign: Any) -> ZodiacSign:
    """
    Validate the requested zodiac sign.

    Accepts either a sign name or an object with a `name` field.

    Args:
        sign: Sign value from the request body

    Returns:
        Canonical ZodiacSign

    Raises:
        ValidationError: If the sign is missing or unknown
    """
    if isinstance(sign, dict):
        sign = sign.get('name')

    if not sign:
        raise ValidationError(
            'sign is required',
            field='sign',
            error_code=ErrorCode.VALIDATION_MISSING_PARAMETER
        )

    zodiac_sign = find_sign(sign) if isinstance(sign, str) else None
    if zodiac_sign is None:
        raise ValidationError(
            f'sign must be one of: {", ".join(s.name for s in ZODIAC_SIGNS)}',
            field='sign',
            error_code=ErrorCode.VALIDATION_INVALID_SIGN
        )

    return zodiac_sign


def validate_timeframe(timeframe: Any) -> Granularity:
    """
    Validate the requested timeframe.

    Args:
        timeframe: Timeframe value from the request body

    Returns:
        Granularity

    Raises:
        ValidationError: If the timeframe is missing or unknown
    """
    if not timeframe:
        raise ValidationError(
            'timeframe is required',
            field='timeframe',
            error_code=ErrorCode.VALIDATION_MISSING_PARAMETER
        )

    try:
        return Granularity(timeframe)
    except ValueError:
        raise ValidationError(
            f'timeframe must be one of: {", ".join(g.value for g in Granularity)}',
            field='timeframe',
            error_code=ErrorCode.VALIDATION_INVALID_TIMEFRAME
        )


def validate_birth_date(
    birth_date: Any,
    today: Optional[date] = None
) -> Optional[date]:
    """
    Validate the optional birth date.

    Args:
        birth_date: Birth date string (YYYY-MM-DD), None or empty
        today: Current date (default: today in UTC)

    Returns:
        Parsed date, or None when no birth date was supplied

    Raises:
        ValidationError: If the date is malformed or in the future
    """
    if birth_date is None or birth_date == '':
        return None

    if not isinstance(birth_date, str):
        raise ValidationError(
            'birthDate must be a string in YYYY-MM-DD format',
            field='birthDate',
            error_code=ErrorCode.VALIDATION_INVALID_BIRTH_DATE
        )

    try:
        parsed = datetime.strptime(birth_date.strip(), BIRTH_DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(
            'birthDate must be a valid date in YYYY-MM-DD format',
            field='birthDate',
            error_code=ErrorCode.VALIDATION_INVALID_BIRTH_DATE
        )

    today = today or datetime.now(timezone.utc).date()
    if parsed > today:
        raise ValidationError(
            'birthDate cannot be in the future',
            field='birthDate',
            error_code=ErrorCode.VALIDATION_INVALID_BIRTH_DATE
        )

    return parsed


def validate_horoscope_request(
    body: Dict[str, Any],
    today: Optional[date] = None
) -> HoroscopeRequest:
    """
    Validate a horoscope request body.

    Args:
        body: Parsed request body
        today: Current date used for birth date validation

    Returns:
        Validated HoroscopeRequest

    Raises:
        ValidationError: If any parameter is missing or malformed
    """
    sign = body.get('sign')
    timeframe = body.get('timeframe')

    if not sign or not timeframe:
        raise ValidationError(
            'Missing required parameters: sign and timeframe',
            field='sign' if not sign else 'timeframe',
            error_code=ErrorCode.VALIDATION_MISSING_PARAMETER
        )

    return HoroscopeRequest(
        sign=validate_sign(sign),
        granularity=validate_timeframe(timeframe),
        birth_date=validate_birth_date(body.get('birthDate'), today=today)
    )
