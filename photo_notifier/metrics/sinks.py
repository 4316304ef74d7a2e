"""Metrics sinks for batch counters.

Publishing is fire-and-forget: callers log and ignore sink failures, so a
metrics outage never affects delivery.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import boto3

from photo_notifier.logging import get_logger

logger = get_logger(__name__, component="metrics")

# Counter name -> key in the batch counter mapping
METRIC_NAMES = {
    "NotificationMessagesProcessed": "processed_messages",
    "EmailsSent": "emails_sent",
    "ChatMessagesSent": "chat_sent",
    "NotificationSendingErrors": "failed_messages",
    "DuplicatesSkipped": "duplicates_skipped",
}


class MetricsSink(ABC):
    """Destination for batch counters."""

    @abstractmethod
    def publish(self, counters: Mapping[str, int]) -> None:
        """Publish one batch worth of counters.

        Args:
            counters: Counter values keyed as in BatchMetrics.to_dict()
        """


class NullMetricsSink(MetricsSink):
    """Sink used when metrics are disabled."""

    def publish(self, counters: Mapping[str, int]) -> None:
        return None


class LogMetricsSink(MetricsSink):
    """Emits counters as a structured log line."""

    def __init__(self, namespace: str, function_name: str) -> None:
        self.namespace = namespace
        self.function_name = function_name

    def publish(self, counters: Mapping[str, int]) -> None:
        logger.info(
            "Batch metrics",
            extra={
                "event": "metrics.published",
                "namespace": self.namespace,
                "function_name": self.function_name,
                **{name: int(counters.get(key, 0)) for name, key in METRIC_NAMES.items()},
            },
        )


class CloudWatchMetricsSink(MetricsSink):
    """Publishes counters to CloudWatch with a FunctionName dimension."""

    def __init__(
        self,
        namespace: str,
        function_name: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.namespace = namespace
        self.function_name = function_name
        self._client = client or boto3.client("cloudwatch", **_client_kwargs(region, endpoint_url))

    def publish(self, counters: Mapping[str, int]) -> None:
        dimensions = [{"Name": "FunctionName", "Value": self.function_name}]
        metric_data = [
            {
                "MetricName": name,
                "Value": int(counters.get(key, 0)),
                "Unit": "Count",
                "Dimensions": dimensions,
            }
            for name, key in METRIC_NAMES.items()
        ]
        self._client.put_metric_data(Namespace=self.namespace, MetricData=metric_data)
        logger.debug(
            f"Published {len(metric_data)} metrics to CloudWatch",
            extra={"event": "metrics.published", "namespace": self.namespace},
        )


def _client_kwargs(region: Optional[str], endpoint_url: Optional[str]) -> Dict[str, str]:
    kwargs = {}
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return kwargs
