"""Batch dispatch of queue records to the notification orchestrator."""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from photo_notifier.domain.exceptions import JobDecodeError
from photo_notifier.domain.validation import decode_job_body
from photo_notifier.logging import get_logger
from photo_notifier.logging.context import bind_context, log_context
from photo_notifier.metrics.sinks import MetricsSink, NullMetricsSink
from photo_notifier.notifications.models import JobResult, JobStatus
from photo_notifier.notifications.orchestrator import NotificationOrchestrator
from photo_notifier.utils.timestamps import utc_now

from .models import BatchMetrics, BatchResult

logger = get_logger(__name__, component="dispatcher")


def record_identifier(record: Any, position: int) -> str:
    """Queue message id of a record, falling back to its batch position."""
    if not isinstance(record, Mapping):
        return f"record-{position}"
    for key in ("messageId", "recordId", "message_id"):
        value = record.get(key)
        if value:
            return str(value)
    return f"record-{position}"


class BatchDispatcher:
    """
    Processes a batch of queue records, one notification job per record.

    Records are isolated from each other: a record that cannot be decoded or
    whose processing raises is reported as FAILED and the rest of the batch
    continues. Only FAILED records are returned for redelivery.
    """

    def __init__(
        self,
        orchestrator: NotificationOrchestrator,
        metrics_sink: Optional[MetricsSink] = None,
        max_concurrent_records: int = 1,
    ):
        """
        Initialize the dispatcher.

        Args:
            orchestrator: Per-job orchestrator
            metrics_sink: Destination for batch counters (disabled if None)
            max_concurrent_records: Records processed at the same time
        """
        self.orchestrator = orchestrator
        self.metrics_sink = metrics_sink or NullMetricsSink()
        self.max_concurrent_records = max(1, max_concurrent_records)

    def dispatch(self, records: Sequence[Mapping[str, Any]]) -> BatchResult:
        """
        Process every record in the batch.

        Args:
            records: Queue records, each with an identifier and a ``body``

        Returns:
            BatchResult with per-record results in record order
        """
        batch_id = uuid4().hex
        metrics = BatchMetrics(total_messages=len(records))

        with log_context(batch_id=batch_id):
            logger.info(
                f"Processing batch of {len(records)} records",
                extra={"event": "batch.started", "record_count": len(records)},
            )

            outcomes = self._process_all(records)
            results: List[JobResult] = []
            for result, raised in outcomes:
                metrics.record(result, raised=raised)
                results.append(result)

            self._publish(metrics)

            batch = BatchResult(
                batch_id=batch_id,
                processed_at=utc_now(),
                results=results,
                metrics=metrics,
            )
            logger.info(
                f"Batch completed: {metrics.processed_messages}/{metrics.total_messages} processed, "
                f"{metrics.failed_messages} failed, {metrics.duplicates_skipped} duplicates skipped",
                extra={"event": "batch.completed", **metrics.to_dict()},
            )
            return batch

    def _process_all(self, records: Sequence[Mapping[str, Any]]) -> List[tuple]:
        if self.max_concurrent_records == 1 or len(records) <= 1:
            return [self._process_record(record, i) for i, record in enumerate(records)]

        workers = min(self.max_concurrent_records, len(records))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="record") as executor:
            futures = [
                executor.submit(bind_context(self._process_record), record, i)
                for i, record in enumerate(records)
            ]
            return [future.result() for future in futures]

    def _process_record(self, record: Mapping[str, Any], position: int) -> tuple:
        """Run one record; returns (result, raised)."""
        record_id = record_identifier(record, position)
        try:
            if not isinstance(record, Mapping):
                raise JobDecodeError(f"Queue record is not an object: {type(record).__name__}")
            payload = decode_job_body(record.get("body"))
            return self.orchestrator.process(record_id, payload), False
        except Exception as e:
            logger.error(
                f"Error processing record {record_id}: {e}",
                exc_info=True,
                extra={
                    "event": "batch.record_failed",
                    "record_id": record_id,
                    "error_type": type(e).__name__,
                },
            )
            return JobResult(record_id=record_id, status=JobStatus.FAILED, reason=str(e)), True

    def _publish(self, metrics: BatchMetrics) -> None:
        counters: Dict[str, int] = metrics.to_dict()
        try:
            self.metrics_sink.publish(counters)
        except Exception as e:
            # Metrics never affect the batch outcome
            logger.error(
                f"Failed to publish batch metrics: {e}",
                extra={"event": "metrics.publish_failed", "error_type": type(e).__name__},
            )
