"""Tests for metrics sinks."""

import logging
from unittest.mock import Mock, patch

from photo_notifier.dispatch.models import BatchMetrics
from photo_notifier.metrics import (
    METRIC_NAMES,
    CloudWatchMetricsSink,
    LogMetricsSink,
    NullMetricsSink,
)

COUNTERS = BatchMetrics(
    total_messages=4,
    processed_messages=3,
    sent_messages=1,
    partial_messages=1,
    emails_sent=2,
    chat_sent=1,
    failed_messages=1,
    duplicates_skipped=1,
).to_dict()


def test_cloudwatch_sink_publishes_counters():
    client = Mock()
    sink = CloudWatchMetricsSink(
        namespace="FaceSearch/Test", function_name="notifier-test", client=client
    )

    sink.publish(COUNTERS)

    client.put_metric_data.assert_called_once()
    kwargs = client.put_metric_data.call_args.kwargs
    assert kwargs["Namespace"] == "FaceSearch/Test"
    values = {item["MetricName"]: item["Value"] for item in kwargs["MetricData"]}
    assert values == {
        "NotificationMessagesProcessed": 3,
        "EmailsSent": 2,
        "ChatMessagesSent": 1,
        "NotificationSendingErrors": 1,
        "DuplicatesSkipped": 1,
    }
    for item in kwargs["MetricData"]:
        assert item["Unit"] == "Count"
        assert item["Dimensions"] == [{"Name": "FunctionName", "Value": "notifier-test"}]


def test_cloudwatch_sink_builds_regional_client():
    with patch("photo_notifier.metrics.sinks.boto3") as boto3:
        CloudWatchMetricsSink(
            namespace="ns",
            function_name="fn",
            region="eu-west-1",
            endpoint_url="http://localhost:4566",
        )

    boto3.client.assert_called_once_with(
        "cloudwatch", region_name="eu-west-1", endpoint_url="http://localhost:4566"
    )


def test_cloudwatch_sink_without_region_uses_sdk_defaults():
    with patch("photo_notifier.metrics.sinks.boto3") as boto3:
        CloudWatchMetricsSink(namespace="ns", function_name="fn")

    boto3.client.assert_called_once_with("cloudwatch")


def test_log_sink_emits_structured_line(caplog):
    sink = LogMetricsSink(namespace="FaceSearch/Test", function_name="notifier-test")

    with caplog.at_level(logging.INFO, logger="photo_notifier.metrics.sinks"):
        sink.publish(COUNTERS)

    record = next(r for r in caplog.records if getattr(r, "event", None) == "metrics.published")
    assert record.namespace == "FaceSearch/Test"
    assert record.EmailsSent == 2
    assert record.DuplicatesSkipped == 1


def test_null_sink_accepts_counters():
    assert NullMetricsSink().publish(COUNTERS) is None


def test_metric_names_cover_batch_counters():
    assert set(METRIC_NAMES.values()) <= set(COUNTERS)
