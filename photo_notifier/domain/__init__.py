"""Domain models and job validation."""

from .models import (
    Channel,
    ChannelDelivery,
    ChannelOutcome,
    ChannelStatus,
    CommitResult,
    ChatAttachment,
    ChatContent,
    CommitStatus,
    DeliveryRecord,
    DeliveryState,
    EmailContent,
    MatchSummary,
    NotificationJob,
    NotificationStatus,
    Presentation,
    Recipient,
    TopMatch,
)

__all__ = [
    "Channel",
    "ChannelDelivery",
    "ChannelOutcome",
    "ChannelStatus",
    "CommitResult",
    "ChatAttachment",
    "ChatContent",
    "CommitStatus",
    "DeliveryRecord",
    "DeliveryState",
    "EmailContent",
    "MatchSummary",
    "NotificationJob",
    "NotificationStatus",
    "Presentation",
    "Recipient",
    "TopMatch",
]
