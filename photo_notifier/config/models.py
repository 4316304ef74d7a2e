"""Configuration schema models using Pydantic.

All models are frozen: the configuration is built once at process start and
passed explicitly into the orchestrator and channel senders.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MetricsBackend(str, Enum):
    """Where batch counters are published."""

    LOG = "log"
    CLOUDWATCH = "cloudwatch"


class AwsConfig(BaseModel):
    """Region and endpoint selection for AWS-hosted collaborators."""

    region: str = Field("ap-south-1", min_length=1, description="AWS region")
    endpoint_url: Optional[str] = Field(
        None, description="Custom endpoint URL (LocalStack, VPC endpoints)"
    )

    model_config = {"frozen": True}


class EmailChannelConfig(BaseModel):
    """Email channel (Gmail API) settings."""

    enabled: bool = Field(True, description="Send email notifications")
    max_photos: int = Field(6, ge=0, le=20, description="Photos shown in the email body")
    from_name: str = Field("Hapzea Photo Sharing", min_length=1)
    reply_to: str = Field("support@hapzea.com", min_length=3)
    mailer: str = Field("Hapzea-FaceSearch-v3.0", min_length=1, description="X-Mailer header")
    api_url: str = Field("https://gmail.googleapis.com", description="Gmail API base URL")
    token_url: str = Field("https://oauth2.googleapis.com/token", description="OAuth2 token endpoint")
    request_timeout: float = Field(15.0, gt=0, le=120, description="Per-request timeout (seconds)")

    @field_validator("from_name", "mailer")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    model_config = {"frozen": True}


class ChatChannelConfig(BaseModel):
    """Chat channel (WhatsApp sender API) settings."""

    enabled: bool = Field(True, description="Send WhatsApp notifications")
    max_photos: int = Field(3, ge=0, le=10, description="Photos attached after the text message")
    api_url: str = Field("https://www.wasenderapi.com", description="WhatsApp API base URL")
    session: str = Field("default", min_length=1, description="Sender session name")
    request_timeout: float = Field(8.0, gt=0, le=60, description="Text request timeout (seconds)")
    media_timeout: float = Field(15.0, gt=0, le=120, description="Media request timeout (seconds)")
    send_timeout: float = Field(
        15.0, gt=0, le=300, description="Bound on the whole text+media send (seconds)"
    )
    pre_send_delay_min: float = Field(2.0, ge=0, description="Lower bound of random pre-send delay")
    pre_send_delay_max: float = Field(7.0, ge=0, description="Upper bound of random pre-send delay")
    attachment_delay: float = Field(1.0, ge=0, le=30, description="Delay between media messages")
    default_country_code: str = Field("91", pattern=r"^\d{1,3}$")

    @model_validator(mode="after")
    def validate_delay_window(self):
        if self.pre_send_delay_max < self.pre_send_delay_min:
            raise ValueError(
                "pre_send_delay_max must be greater than or equal to pre_send_delay_min"
            )
        return self

    model_config = {"frozen": True}


class ChannelsConfig(BaseModel):
    """Per-channel settings."""

    email: EmailChannelConfig = Field(default_factory=EmailChannelConfig)
    chat: ChatChannelConfig = Field(default_factory=ChatChannelConfig)

    @model_validator(mode="after")
    def validate_any_enabled(self):
        if not self.email.enabled and not self.chat.enabled:
            raise ValueError("At least one channel must be enabled (email or chat)")
        return self

    model_config = {"frozen": True}


class ContactConfig(BaseModel):
    """Contact defaults rendered into notifications."""

    support_email: str = Field("support@hapzea.com", min_length=3)
    company_website: str = Field("https://hapzea.com", min_length=1)

    model_config = {"frozen": True}


class ProcessingConfig(BaseModel):
    """Job processing behaviour."""

    max_retries: int = Field(
        3, ge=0, le=10, description="Advisory; redelivery is driven by the queue"
    )
    parallel_channels: bool = Field(True, description="Run email and chat sends concurrently")
    max_concurrent_records: int = Field(
        1, ge=1, le=32, description="Records processed concurrently within a batch"
    )

    model_config = {"frozen": True}


class MetricsConfig(BaseModel):
    """Batch metrics publishing."""

    enabled: bool = Field(True, description="Publish batch counters")
    backend: MetricsBackend = Field(MetricsBackend.LOG)
    namespace: str = Field("FaceSearch/EnhancedNotifications", min_length=1)
    function_name: str = Field("enhanced-notification-sender", min_length=1)

    model_config = {"frozen": True, "use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="Log output format")
    debug: bool = Field(False, description="Verbose logging including full job payloads")

    model_config = {"frozen": True, "use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the photo match notifier."""

    aws: AwsConfig = Field(default_factory=AwsConfig)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    contact: ContactConfig = Field(default_factory=ContactConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    @property
    def email_enabled(self) -> bool:
        return self.channels.email.enabled

    @property
    def chat_enabled(self) -> bool:
        return self.channels.chat.enabled
