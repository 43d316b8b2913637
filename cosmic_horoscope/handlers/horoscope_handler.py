"""
HTTP API Lambda handler for horoscope generation.

This handler implements the horoscope API endpoints:
- POST /api/generate-horoscope - Get (cached or freshly generated) horoscope
- GET /health - Health check with cache statistics
"""
import asyncio
from typing import Any, Dict, Optional

from cosmic_horoscope.config import get_settings
from cosmic_horoscope.exceptions import HoroscopeError
from cosmic_horoscope.models import GenerationMode, HoroscopeRequest, HoroscopeResult
from cosmic_horoscope.services import GeminiClient, HoroscopeCache, HoroscopeService
from cosmic_horoscope.utils.biorhythm import calculate_zodiac_sign
from cosmic_horoscope.utils.error_codes import ErrorCode
from cosmic_horoscope.utils.metrics_emitter import MetricsEmitter, create_metrics_emitter
from cosmic_horoscope.utils.response_builder import error_response, success_response
from cosmic_horoscope.utils.retry import RetryingInvoker, RetryPolicy
from cosmic_horoscope.utils.structured_logger import (
    LoggingContext,
    configure_lambda_logging,
    get_structured_logger,
)
from cosmic_horoscope.utils.validators import parse_request_body, validate_horoscope_request

# Configure logging
configure_lambda_logging()

GENERATE_PATH = '/api/generate-horoscope'
HEALTH_PATH = '/health'

# Service state shared across invocations of a warm container
_service: Optional[HoroscopeService] = None
_metrics: Optional[MetricsEmitter] = None


def get_service() -> HoroscopeService:
    """
    Get the container-wide horoscope service, creating it on first use.

    Returns:
        HoroscopeService configured from environment settings
    """
    global _service, _metrics

    if _service is None:
        settings = get_settings()
        _metrics = create_metrics_emitter(settings.metrics_enabled, settings.metrics_namespace)

        on_retry = None
        if _metrics is not None:
            metrics = _metrics
            on_retry = lambda attempt, delay, error: metrics.emit_generation_retry(attempt)  # noqa: E731

        invoker = RetryingInvoker(
            RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                initial_delay=settings.retry_initial_delay,
                backoff_multiplier=settings.retry_backoff_multiplier
            ),
            on_retry=on_retry
        )

        _service = HoroscopeService(
            cache=HoroscopeCache(),
            generator=GeminiClient.from_settings(settings),
            invoker=invoker,
            mode=GenerationMode(settings.generation_mode),
            single_flight=settings.single_flight_enabled,
            metrics=_metrics
        )

    return _service


def reset_service() -> None:
    """Discard the container-wide service (used by tests)."""
    global _service, _metrics
    _service = None
    _metrics = None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    HTTP API Lambda handler for horoscope requests.

    Routes:
    - POST /api/generate-horoscope -> generate_horoscope
    - GET /health -> health_check
    """
    request_context = event.get('requestContext', {})
    http = request_context.get('http', {})
    http_method = http.get('method', '')
    path = http.get('path', '')
    request_id = request_context.get('requestId')

    logger = get_structured_logger('HoroscopeHandler', request_id=request_id)
    logger.info('HTTP request received', operation='route', method=http_method, path=path)

    try:
        # Route to appropriate handler
        if path == GENERATE_PATH:
            if http_method != 'POST':
                return error_response(ErrorCode.REQUEST_METHOD_NOT_ALLOWED)
            return generate_horoscope(event, logger)
        elif http_method == 'GET' and path == HEALTH_PATH:
            return health_check()
        else:
            return error_response(ErrorCode.REQUEST_NOT_FOUND)

    except HoroscopeError as e:
        log = logger.warning if e.error_code.value.startswith('VALIDATION_') else logger.error
        log(
            f'Request failed: {e.message}',
            operation='route',
            error_code=e.error_code.value,
            details=e.details
        )
        return error_response(e.error_code, e.message, e.details or None)

    except Exception as e:
        logger.error(
            'Unhandled error',
            operation='route',
            error=e,
            include_traceback=True
        )
        if _metrics is not None:
            _metrics.emit_lambda_error('HoroscopeHandler', type(e).__name__)
        return error_response(ErrorCode.INTERNAL_SERVER_ERROR)

    finally:
        if _metrics is not None:
            _metrics.flush()


def generate_horoscope(event: Dict[str, Any], logger) -> Dict[str, Any]:
    """Validate the request and return a cached or newly generated horoscope."""
    body = parse_request_body(event)
    request = validate_horoscope_request(body)
    service = get_service()

    with LoggingContext(
        logger,
        'get_horoscope',
        sign=request.sign.name,
        timeframe=request.granularity.value
    ):
        result = _run_async(service.get_horoscope(request))

    logger.info(
        'Horoscope served',
        operation='generate_horoscope',
        sign=request.sign.name,
        timeframe=request.granularity.value,
        cached=result.cached,
        personalized=result.personalized
    )

    return success_response(200, format_result(request, result))


def format_result(request: HoroscopeRequest, result: HoroscopeResult) -> Dict[str, Any]:
    """
    Build the success response body.

    Args:
        request: Validated request
        result: Service result

    Returns:
        Response body dictionary
    """
    body = {
        'horoscope': result.payload,
        'cached': result.cached,
        'generatedAt': result.generated_at.isoformat(),
        'timeframe': result.granularity.value,
        'sign': request.sign.name,
        'personalized': result.personalized,
    }

    if request.birth_date is not None:
        body['natalSun'] = calculate_zodiac_sign(request.birth_date).name

    return body


def health_check() -> Dict[str, Any]:
    """Health check endpoint."""
    service = get_service()
    return success_response(200, {
        'status': 'healthy',
        'cache': service.cache.get_cache_stats(),
        'mode': service.mode.value,
    })


def _run_async(coro):
    """Run a coroutine to completion on a fresh event loop."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
