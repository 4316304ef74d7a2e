"""Batch metrics publishing."""

from .sinks import (
    METRIC_NAMES,
    CloudWatchMetricsSink,
    LogMetricsSink,
    MetricsSink,
    NullMetricsSink,
)

__all__ = [
    "METRIC_NAMES",
    "MetricsSink",
    "NullMetricsSink",
    "LogMetricsSink",
    "CloudWatchMetricsSink",
]
