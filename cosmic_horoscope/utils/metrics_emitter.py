"""
CloudWatch metrics emitter for the horoscope API.

This module provides utilities for emitting CloudWatch metrics for cache
effectiveness, generation latency, retries and failures.
"""

import logging
import time
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class MetricsEmitter:
    """
    Emits CloudWatch metrics for horoscope generation.

    Metrics are buffered and sent in batches; emission failures are logged
    and never fail the request being served.
    """

    def __init__(
        self,
        namespace: str = 'CosmicHoroscope/API',
        cloudwatch_client=None,
        buffer_size: int = 20
    ):
        """
        Initialize metrics emitter.

        Args:
            namespace: CloudWatch namespace for metrics
            cloudwatch_client: Optional CloudWatch client for testing
            buffer_size: Number of metrics buffered before an automatic flush
        """
        self.namespace = namespace
        self.cloudwatch = cloudwatch_client or boto3.client('cloudwatch')
        self._metric_buffer: List[Dict] = []
        self._buffer_size = buffer_size

    def emit_cache_hit(self, timeframe: str) -> None:
        """
        Emit metric for a horoscope served from the cache.

        Args:
            timeframe: Requested timeframe (daily, weekly, monthly)
        """
        self._add_metric(
            metric_name='CacheHits',
            value=1,
            unit='Count',
            dimensions=[{'Name': 'Timeframe', 'Value': timeframe}]
        )

    def emit_cache_miss(self, timeframe: str) -> None:
        """
        Emit metric for a cache miss or stale entry.

        Args:
            timeframe: Requested timeframe (daily, weekly, monthly)
        """
        self._add_metric(
            metric_name='CacheMisses',
            value=1,
            unit='Count',
            dimensions=[{'Name': 'Timeframe', 'Value': timeframe}]
        )

    def emit_generation_latency(self, timeframe: str, latency_ms: float) -> None:
        """
        Emit metric for generation latency, retries included.

        Args:
            timeframe: Generated timeframe
            latency_ms: Latency in milliseconds
        """
        self._add_metric(
            metric_name='GenerationLatency',
            value=latency_ms,
            unit='Milliseconds',
            dimensions=[{'Name': 'Timeframe', 'Value': timeframe}]
        )

    def emit_generation_retry(self, attempt: int) -> None:
        """
        Emit metric for a retried generation call.

        Args:
            attempt: Number of the attempt that failed
        """
        self._add_metric(
            metric_name='GenerationRetries',
            value=1,
            unit='Count',
            dimensions=[{'Name': 'Attempt', 'Value': str(attempt)}]
        )

    def emit_generation_failure(self, error_code: str) -> None:
        """
        Emit metric for a generation failure surfaced to a caller.

        Args:
            error_code: ErrorCode value of the failure
        """
        self._add_metric(
            metric_name='GenerationFailures',
            value=1,
            unit='Count',
            dimensions=[{'Name': 'ErrorCode', 'Value': error_code}]
        )

    def emit_lambda_error(self, handler_name: str, error_type: str) -> None:
        """
        Emit metric for an unclassified Lambda error.

        Args:
            handler_name: Name of Lambda handler
            error_type: Exception class name
        """
        self._add_metric(
            metric_name='LambdaErrors',
            value=1,
            unit='Count',
            dimensions=[
                {'Name': 'Handler', 'Value': handler_name},
                {'Name': 'ErrorType', 'Value': error_type}
            ]
        )

    def _add_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: List[Dict]
    ) -> None:
        """
        Add metric to buffer and flush if needed.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Metric unit
            dimensions: Metric dimensions
        """
        self._metric_buffer.append({
            'MetricName': metric_name,
            'Value': value,
            'Unit': unit,
            'Dimensions': dimensions,
            'Timestamp': time.time()
        })

        if len(self._metric_buffer) >= self._buffer_size:
            self.flush()

    def pending_count(self) -> int:
        """Get the number of buffered metrics not yet sent."""
        return len(self._metric_buffer)

    def flush(self) -> None:
        """Flush buffered metrics to CloudWatch."""
        if not self._metric_buffer:
            return

        try:
            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=self._metric_buffer
            )
            self._metric_buffer = []
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                f"Failed to emit metrics: {e}",
                extra={'namespace': self.namespace, 'buffered': len(self._metric_buffer)}
            )
            self._metric_buffer = []


def create_metrics_emitter(enabled: bool, namespace: str) -> Optional[MetricsEmitter]:
    """
    Create a metrics emitter when metrics are enabled.

    Args:
        enabled: Whether CloudWatch metrics should be emitted
        namespace: CloudWatch namespace

    Returns:
        MetricsEmitter, or None when metrics are disabled
    """
    if not enabled:
        return None
    return MetricsEmitter(namespace=namespace)
