"""Data models for batch execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from photo_notifier.notifications.models import JobResult, JobStatus
from photo_notifier.utils.timestamps import format_timestamp


@dataclass
class BatchMetrics:
    """
    Counters for one queue batch.

    Attributes:
        total_messages: Records in the batch
        processed_messages: Records that reached a terminal status without raising
        sent_messages: Records with status SENT
        partial_messages: Records with status PARTIAL
        emails_sent: SENT or PARTIAL records whose email is delivered
        chat_sent: SENT or PARTIAL records whose chat message is delivered
        failed_messages: Records with status FAILED (including ones that raised)
        duplicates_skipped: Records skipped because everything was already sent
    """

    total_messages: int = 0
    processed_messages: int = 0
    sent_messages: int = 0
    partial_messages: int = 0
    emails_sent: int = 0
    chat_sent: int = 0
    failed_messages: int = 0
    duplicates_skipped: int = 0

    def record(self, result: JobResult, raised: bool = False) -> None:
        """Count one record's result."""
        if not raised:
            self.processed_messages += 1

        if result.status in (JobStatus.SENT, JobStatus.PARTIAL):
            if result.status is JobStatus.SENT:
                self.sent_messages += 1
            else:
                self.partial_messages += 1
            if result.email_sent:
                self.emails_sent += 1
            if result.chat_sent:
                self.chat_sent += 1
        elif result.status is JobStatus.SKIPPED:
            self.duplicates_skipped += 1
        elif result.status is JobStatus.FAILED:
            self.failed_messages += 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_messages": self.total_messages,
            "processed_messages": self.processed_messages,
            "sent_messages": self.sent_messages,
            "partial_messages": self.partial_messages,
            "emails_sent": self.emails_sent,
            "chat_sent": self.chat_sent,
            "failed_messages": self.failed_messages,
            "duplicates_skipped": self.duplicates_skipped,
        }

    def to_summary(self) -> Dict[str, int]:
        """Counters with the camelCase keys used in batch responses."""
        return {
            "totalMessages": self.total_messages,
            "processedMessages": self.processed_messages,
            "sentMessages": self.sent_messages,
            "partialMessages": self.partial_messages,
            "emailsSent": self.emails_sent,
            "chatSent": self.chat_sent,
            "failedMessages": self.failed_messages,
            "duplicatesSkipped": self.duplicates_skipped,
        }


@dataclass
class BatchResult:
    """
    Aggregate results from processing one queue batch.

    Attributes:
        batch_id: Identifier used to correlate the batch's log lines
        results: Per-record results, in record order
        metrics: Aggregate counters
        processed_at: UTC timestamp when the batch completed
    """

    batch_id: str
    processed_at: datetime
    results: List[JobResult] = field(default_factory=list)
    metrics: BatchMetrics = field(default_factory=BatchMetrics)

    @property
    def failed_record_ids(self) -> List[str]:
        return [result.record_id for result in self.results if result.is_failure()]

    @property
    def had_failures(self) -> bool:
        return any(result.is_failure() for result in self.results)

    def to_response(self) -> Dict[str, Any]:
        """Partial-batch response: only FAILED records are redelivered."""
        return {
            "batchItemFailures": [
                {"itemIdentifier": record_id} for record_id in self.failed_record_ids
            ],
            "summary": self.metrics.to_summary(),
            "processedAt": format_timestamp(self.processed_at, include_microseconds=True),
        }
