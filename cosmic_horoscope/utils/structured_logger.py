"""
Structured JSON logging for Lambda functions.

This module provides a structured logger that outputs JSON-formatted
logs with request correlation, context, and standardized fields for
CloudWatch Logs Insights queries.
"""

import json
import logging
import os
import time
import traceback
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional


class LogEncoder(json.JSONEncoder):
    """JSON encoder that handles dates, enums and arbitrary objects."""
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return str(obj)


class StructuredLogger:
    """
    Structured JSON logger for Lambda functions.

    Outputs logs in JSON format with:
    - Timestamp (ISO 8601)
    - Log level
    - Correlation ID (requestId)
    - Component and operation
    - Message and additional context
    """

    def __init__(
        self,
        component: str,
        request_id: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component name (e.g., 'HoroscopeHandler')
            request_id: Request identifier from the API Gateway event
        """
        self.component = component
        self.request_id = request_id
        self.logger = logging.getLogger(component)

        # Set log level from environment or default to INFO
        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.logger.setLevel(getattr(logging, log_level, logging.INFO))

    def _format_log(
        self,
        level: str,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ) -> str:
        """
        Format log entry as JSON.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Log message
            operation: Operation being performed
            **kwargs: Additional context fields

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level,
            'component': self.component,
            'message': message
        }

        if self.request_id:
            log_entry['requestId'] = self.request_id

        if operation:
            log_entry['operation'] = operation

        if kwargs:
            log_entry['context'] = kwargs

        return json.dumps(log_entry, cls=LogEncoder)

    def debug(self, message: str, operation: Optional[str] = None, **kwargs) -> None:
        """Log debug message."""
        self.logger.debug(self._format_log('DEBUG', message, operation, **kwargs))

    def info(self, message: str, operation: Optional[str] = None, **kwargs) -> None:
        """Log info message."""
        self.logger.info(self._format_log('INFO', message, operation, **kwargs))

    def warning(self, message: str, operation: Optional[str] = None, **kwargs) -> None:
        """Log warning message."""
        self.logger.warning(self._format_log('WARNING', message, operation, **kwargs))

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        error: Optional[BaseException] = None,
        include_traceback: bool = False,
        **kwargs
    ) -> None:
        """
        Log error message.

        Args:
            message: Log message
            operation: Operation being performed
            error: Exception object if available
            include_traceback: Attach the formatted traceback of `error`
            **kwargs: Additional context
        """
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_message'] = str(error)
            if include_traceback:
                kwargs['traceback'] = ''.join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                )

        self.logger.error(self._format_log('ERROR', message, operation, **kwargs))

    def log_performance(
        self,
        operation: str,
        duration_ms: float,
        **kwargs
    ) -> None:
        """
        Log performance metric at DEBUG level.

        Args:
            operation: Operation name
            duration_ms: Duration in milliseconds
            **kwargs: Additional context
        """
        self.debug(
            f'Performance: {operation}',
            operation='performance',
            operation_name=operation,
            duration_ms=duration_ms,
            **kwargs
        )


class LoggingContext:
    """
    Context manager for logging operation duration.

    Automatically logs operation start, end, and duration.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        operation: str,
        **kwargs
    ):
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.start_time: Optional[float] = None

    def __enter__(self):
        """Log operation start."""
        self.start_time = time.time()
        self.logger.debug(
            f'Starting operation: {self.operation}',
            operation=self.operation,
            **self.context
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log operation end and duration."""
        if self.start_time is not None:
            duration_ms = (time.time() - self.start_time) * 1000

            if exc_type is not None:
                self.logger.warning(
                    f'Operation failed: {self.operation}',
                    operation=self.operation,
                    error_type=exc_type.__name__,
                    duration_ms=duration_ms,
                    **self.context
                )
            else:
                self.logger.log_performance(
                    self.operation,
                    duration_ms,
                    **self.context
                )


def get_structured_logger(
    component: str,
    request_id: Optional[str] = None
) -> StructuredLogger:
    """
    Factory function for creating StructuredLogger instances.

    Args:
        component: Name of the component (e.g., 'HoroscopeHandler')
        request_id: Optional request ID for correlation

    Returns:
        Configured StructuredLogger instance

    Example:
        >>> logger = get_structured_logger('HoroscopeHandler', request_id='abc-123')
        >>> logger.info('Horoscope served', sign='Leo', cached=True)
    """
    return StructuredLogger(component=component, request_id=request_id)


def configure_lambda_logging(log_level: Optional[str] = None) -> None:
    """
    Configure logging for Lambda environment.

    Sets up root logger to output to stdout with appropriate format.
    Should be called at module level in Lambda handlers.

    Args:
        log_level: Level name (default: LOG_LEVEL environment variable or INFO)
    """
    log_level = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(message)s',  # Just the message, we format as JSON
        force=True
    )

    # Disable third-party debug logging unless explicitly enabled
    if log_level != 'DEBUG':
        logging.getLogger('boto3').setLevel(logging.WARNING)
        logging.getLogger('botocore').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
