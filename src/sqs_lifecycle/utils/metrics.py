"""
Module: metrics.py
Description: CloudWatch custom metrics publishing.

Publishes counters for degraded attribute fetches and failed
visibility/delete calls so operators can spot queue configuration
problems that the coordinator otherwise absorbs.

Key Components:
- MetricsClient: CloudWatch metrics client
- put_metric(): Publish individual metrics
- Graceful error handling for metrics failures

Dependencies: boto3, botocore, typing, logger
"""

from typing import Optional

import boto3
from botocore.config import Config

from sqs_lifecycle.utils.logger import get_logger

logger = get_logger(__name__)


class MetricsClient:
    """CloudWatch metrics client."""

    def __init__(
        self,
        namespace: str = "SQSLifecycle",
        region_name: Optional[str] = None,
        proxy_url: Optional[str] = None
    ):
        """
        Initialize metrics client.

        Args:
            namespace: CloudWatch metrics namespace
            region_name: Optional AWS region override
            proxy_url: Optional outbound proxy for CloudWatch calls
        """
        self.namespace = namespace

        config = Config(proxies={'http': proxy_url, 'https': proxy_url}) if proxy_url else None
        self.cloudwatch = boto3.client('cloudwatch', region_name=region_name, config=config)

        logger.info(
            "Metrics client initialized",
            namespace=namespace
        )

    def put_metric(
        self,
        metric_name: str,
        value: float = 1,
        unit: str = 'Count',
        dimensions: Optional[dict] = None
    ) -> None:
        """
        Publish a metric to CloudWatch.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Metric unit (Count, Seconds, etc.)
            dimensions: Optional metric dimensions
        """
        try:
            metric_data = {
                'MetricName': metric_name,
                'Value': value,
                'Unit': unit
            }

            if dimensions:
                metric_data['Dimensions'] = [
                    {'Name': k, 'Value': v}
                    for k, v in dimensions.items()
                ]

            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=[metric_data]
            )

            logger.debug(
                "Metric published to CloudWatch",
                metric_name=metric_name,
                value=value,
                unit=unit,
                dimensions=dimensions,
                namespace=self.namespace
            )

        except Exception as e:
            # Metrics never fail the message lifecycle
            logger.warning(
                "Failed to publish metric",
                metric_name=metric_name,
                value=value,
                error=str(e),
                namespace=self.namespace
            )

    def close(self) -> None:
        """Release the underlying CloudWatch client."""
        self.cloudwatch.close()
