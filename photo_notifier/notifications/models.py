"""Data models and exceptions for the notification orchestrator.

This module defines the per-job result type and the custom exceptions
raised while turning a queue record into delivered notifications.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from photo_notifier.domain.exceptions import (  # noqa: F401
    JobDecodeError,
    NotificationError,
    NotificationTemplateError,
)
from photo_notifier.domain.models import Channel, ChannelOutcome


class JobStatus(str, Enum):
    """Terminal state of one job attempt."""

    SENT = "sent"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class JobResult:
    """Result of processing one queue record.

    Used by the dispatcher for the retry set and batch metrics.

    Attributes:
        record_id: Queue message identifier
        status: Terminal job status
        event_id: Event identifier, when it could be parsed
        guest_id: Guest identifier, when it could be parsed
        reason: Failure or skip reason
        outcomes: Channel outcomes from this attempt (empty when nothing was sent)
        email_sent: Email delivered in this attempt or already delivered
        chat_sent: Chat delivered in this attempt or already delivered
    """

    record_id: str
    status: JobStatus
    event_id: Optional[str] = None
    guest_id: Optional[str] = None
    reason: Optional[str] = None
    outcomes: List[ChannelOutcome] = field(default_factory=list)
    email_sent: bool = False
    chat_sent: bool = False

    def is_failure(self) -> bool:
        """Check if the queue should redeliver this record."""
        return self.status is JobStatus.FAILED

    def outcome_for(self, channel: Channel) -> Optional[ChannelOutcome]:
        for outcome in self.outcomes:
            if outcome.channel is channel:
                return outcome
        return None

    def to_summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {
            "recordId": self.record_id,
            "status": self.status.value,
            "emailSent": self.email_sent,
            "chatSent": self.chat_sent,
        }
        if self.event_id:
            summary["eventId"] = self.event_id
            summary["guestId"] = self.guest_id
        if self.reason:
            summary["reason"] = self.reason
        return summary
