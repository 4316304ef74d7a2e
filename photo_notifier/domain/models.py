"""Core domain models for notification jobs and delivery state.

This module defines the data structures used throughout the application:
- NotificationJob: a guest matched to photos at an event (validated input)
- DeliveryState / DeliveryRecord: what the store knows about a recipient
- ChannelOutcome: the uniform result of one channel send attempt
- CommitResult: what the conditional store write did per channel
- EmailContent / ChatContent: rendered content handed to channel senders
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field, field_validator

from photo_notifier.utils.timestamps import ensure_utc, parse_iso_datetime


class Channel(str, Enum):
    """Notification channels, also the column prefix in the delivery store."""

    EMAIL = "email"
    CHAT = "chat"


class ChannelStatus(str, Enum):
    """Per-channel delivery status."""

    UNSENT = "unsent"
    SENT = "sent"
    FAILED = "failed"


class NotificationStatus(str, Enum):
    """Aggregate status across channels."""

    UNSET = "unset"
    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"


_JOB_MODEL_CONFIG = {"frozen": True, "populate_by_name": True, "extra": "ignore"}


class Recipient(BaseModel):
    """Contact details of the matched guest."""

    display_name: str = Field(..., alias="name", description="Guest display name")
    email: Optional[str] = Field(None, description="Guest email address")
    phone: Optional[str] = Field(None, description="Guest phone number, any formatting")

    @field_validator("display_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Guest name cannot be empty")
        return v.strip()

    @field_validator("email", "phone", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    model_config = _JOB_MODEL_CONFIG


class TopMatch(BaseModel):
    """One matched photo."""

    asset_ref: str = Field(..., alias="imageUrl", description="Public URL of the photo")
    score: float = Field(0.0, alias="similarity", description="Similarity in [0, 1]")

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        if v is None:
            return 0.0
        return min(max(float(v), 0.0), 1.0)

    @property
    def percent(self) -> int:
        return round(self.score * 100)

    model_config = _JOB_MODEL_CONFIG


class MatchSummary(BaseModel):
    """How well the guest matched the event photos."""

    total_matches: int = Field(..., alias="totalMatches", gt=0)
    best_score: float = Field(0.0, alias="bestSimilarity")
    average_score: float = Field(0.0, alias="averageSimilarity")
    new_matches: Optional[int] = Field(None, alias="newMatches")
    top_matches: List[TopMatch] = Field(default_factory=list, alias="topMatches")

    @field_validator("best_score", "average_score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        if v is None:
            return 0.0
        return min(max(float(v), 0.0), 1.0)

    model_config = _JOB_MODEL_CONFIG


class Presentation(BaseModel):
    """Event and business display fields supplied by the producer."""

    gallery_url: str = Field(..., alias="galleryUrl", description="Outbound gallery link base")
    event_name: Optional[str] = Field(None, alias="eventName")
    business_name: Optional[str] = Field(None, alias="businessName")
    business_logo: Optional[str] = Field(None, alias="businessLogo")
    business_description: Optional[str] = Field(None, alias="businessDescription")
    business_website: Optional[str] = Field(None, alias="businessWebsite")
    business_phone: Optional[str] = Field(None, alias="businessPhone")
    business_email: Optional[str] = Field(None, alias="businessEmail")
    social_links: Dict[str, str] = Field(default_factory=dict, alias="socialLinks")
    processed_at: Optional[datetime] = Field(None, alias="processedAt")

    @field_validator("processed_at", mode="before")
    @classmethod
    def parse_processed_at(cls, v):
        # Producers send ISO strings or epoch millis; anything else is dropped
        if v is None or isinstance(v, datetime):
            return ensure_utc(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            try:
                return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None
        if isinstance(v, str):
            return parse_iso_datetime(v)
        return None

    @field_validator("social_links", mode="before")
    @classmethod
    def drop_empty_links(cls, v):
        if not isinstance(v, dict):
            return {}
        return {k: str(url) for k, url in v.items() if url}

    model_config = _JOB_MODEL_CONFIG


class NotificationJob(BaseModel):
    """A validated "guest matched to N photos" job.

    Produced only by ``validate_job``; downstream code never sees a
    partially-valid payload.
    """

    event_id: str = Field(..., alias="eventId", min_length=1)
    guest_id: str = Field(..., alias="guestId", min_length=1)
    recipient: Recipient = Field(..., alias="guestInfo")
    match_summary: MatchSummary = Field(..., alias="matchInfo")
    presentation: Presentation = Field(..., alias="emailMetadata")
    client_domain: Optional[str] = Field(None, alias="clientDomain")

    @field_validator("event_id", "guest_id", mode="before")
    @classmethod
    def coerce_identity(cls, v):
        return str(v).strip() if v is not None else v

    @property
    def gallery_link(self) -> str:
        """Personal gallery link for this guest."""
        base = (self.client_domain or self.presentation.gallery_url).rstrip("/")
        query = urlencode({"eventId": self.event_id, "guestId": self.guest_id})
        return f"{base}/gallery?{query}"

    model_config = _JOB_MODEL_CONFIG


@dataclass(frozen=True)
class DeliveryState:
    """Which channels the store already reports as sent."""

    email_sent: bool = False
    chat_sent: bool = False

    def is_sent(self, channel: Channel) -> bool:
        if channel is Channel.EMAIL:
            return self.email_sent
        return self.chat_sent


@dataclass
class ChannelDelivery:
    """Persisted per-channel fields of a delivery record."""

    status: ChannelStatus = ChannelStatus.UNSENT
    sent: bool = False
    message_id: Optional[str] = None
    delivered_at: Optional[datetime] = None


@dataclass
class DeliveryRecord:
    """Persisted delivery state for one (event_id, guest_id) pair."""

    event_id: str
    guest_id: str
    email: ChannelDelivery = field(default_factory=ChannelDelivery)
    chat: ChannelDelivery = field(default_factory=ChannelDelivery)
    notification_status: NotificationStatus = NotificationStatus.UNSET
    notification_error: Optional[str] = None
    notification_updated_at: Optional[datetime] = None

    def channel(self, channel: Channel) -> ChannelDelivery:
        return self.email if channel is Channel.EMAIL else self.chat


@dataclass(frozen=True)
class ChannelOutcome:
    """Uniform result of one channel send attempt.

    Attributes:
        channel: Channel the attempt was made on
        success: Whether the provider accepted the message
        provider_message_id: Provider id of the (primary) message
        error_detail: Failure reason when success is False
        retryable_hint: Whether a queue redelivery could plausibly succeed
        deferred: Provider rate-limited and queued the message (soft success)
        retry_after: Provider's retry-after hint in seconds, when deferred
        attachments_sent: Media attachments delivered (telemetry only)
        attachments_total: Media attachments attempted (telemetry only)
    """

    channel: Channel
    success: bool
    provider_message_id: Optional[str] = None
    error_detail: Optional[str] = None
    retryable_hint: Optional[bool] = None
    deferred: bool = False
    retry_after: Optional[int] = None
    attachments_sent: int = 0
    attachments_total: int = 0

    @classmethod
    def failed(
        cls, channel: Channel, error_detail: str, retryable: Optional[bool] = None
    ) -> "ChannelOutcome":
        return cls(
            channel=channel,
            success=False,
            error_detail=error_detail,
            retryable_hint=retryable,
        )


class CommitStatus(str, Enum):
    """Result of the conditional write for one channel."""

    COMMITTED = "committed"
    ALREADY_DELIVERED = "already_delivered"


@dataclass
class CommitResult:
    """What ``commit_channel_results`` did, per successful channel."""

    channels: Dict[Channel, CommitStatus] = field(default_factory=dict)

    @property
    def already_delivered(self) -> bool:
        return any(s is CommitStatus.ALREADY_DELIVERED for s in self.channels.values())

    def status_for(self, channel: Channel) -> Optional[CommitStatus]:
        return self.channels.get(channel)


@dataclass(frozen=True)
class EmailContent:
    """Rendered email for one job."""

    subject: str
    html: str
    text: str
    photo_count: int = 0


@dataclass(frozen=True)
class ChatAttachment:
    """One photo sent after the chat text message."""

    url: str
    caption: str


@dataclass(frozen=True)
class ChatContent:
    """Rendered chat message and its photo attachments."""

    text: str
    attachments: List[ChatAttachment] = field(default_factory=list)
