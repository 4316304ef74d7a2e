"""Process-wide wiring of configuration, storage, channels and dispatch.

A Runtime is built once per process (or per warm function container) and
reused for every batch.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from photo_notifier.channels.base import ChannelSender
from photo_notifier.channels.chat_channel import ChatChannel
from photo_notifier.channels.email_channel import EmailChannel
from photo_notifier.channels.gmail import GmailClient, GmailTokenProvider
from photo_notifier.channels.whatsapp import WhatsAppClient
from photo_notifier.config.environment import EnvironmentConfig
from photo_notifier.config.models import AppConfig, MetricsBackend
from photo_notifier.dispatch.dispatcher import BatchDispatcher
from photo_notifier.logging import get_logger
from photo_notifier.logging.config import configure_logging, mask_secret
from photo_notifier.metrics.sinks import (
    CloudWatchMetricsSink,
    LogMetricsSink,
    MetricsSink,
    NullMetricsSink,
)
from photo_notifier.notifications.orchestrator import NotificationOrchestrator
from photo_notifier.notifications.templates import TemplateRenderer
from photo_notifier.persistence.database import close_database, init_database
from photo_notifier.persistence.repositories import DeliveryRecordRepository

logger = get_logger(__name__, component="runtime")


@dataclass
class Runtime:
    """Long-lived collaborators shared by every batch."""

    app_config: AppConfig
    env_config: EnvironmentConfig
    repository: DeliveryRecordRepository
    orchestrator: NotificationOrchestrator
    dispatcher: BatchDispatcher
    channels: List[ChannelSender] = field(default_factory=list)

    def close(self) -> None:
        for channel in self.channels:
            channel.close()
        close_database()


def resolve_log_level(
    app_config: AppConfig, env_config: EnvironmentConfig, override: Optional[str] = None
) -> str:
    """Log level priority: CLI > environment > config; debug logging forces DEBUG."""
    if env_config.debug_logging or app_config.logging.debug:
        return "DEBUG"
    if override:
        return override.upper()
    if env_config.log_level:
        return env_config.log_level
    return app_config.logging.level


def apply_environment_overrides(
    app_config: AppConfig, env_config: EnvironmentConfig
) -> AppConfig:
    """Fold environment switches into the frozen application config."""
    updates = {}
    if env_config.debug_logging and not app_config.logging.debug:
        updates["logging"] = app_config.logging.model_copy(update={"debug": True})
    if env_config.aws_region and env_config.aws_region != app_config.aws.region:
        updates["aws"] = app_config.aws.model_copy(update={"region": env_config.aws_region})
    return app_config.model_copy(update=updates) if updates else app_config


def setup_logging(
    app_config: AppConfig, env_config: EnvironmentConfig, override: Optional[str] = None
) -> str:
    level = resolve_log_level(app_config, env_config, override)
    configure_logging(
        level=level,
        format_type=app_config.logging.format,
        environment=os.environ.get("ENVIRONMENT", "local"),
    )
    return level


def build_channels(app_config: AppConfig, env_config: EnvironmentConfig) -> List[ChannelSender]:
    """Create senders for the enabled channels, email first."""
    channels: List[ChannelSender] = []

    email_config = app_config.channels.email
    if email_config.enabled:
        channels.append(
            EmailChannel(
                token_provider=GmailTokenProvider(
                    client_id=env_config.gmail_client_id,
                    client_secret=env_config.gmail_client_secret,
                    refresh_token=env_config.gmail_refresh_token,
                    token_url=email_config.token_url,
                    timeout=email_config.request_timeout,
                ),
                client=GmailClient(
                    api_url=email_config.api_url, timeout=email_config.request_timeout
                ),
                from_address=env_config.from_email,
                from_name=email_config.from_name,
                reply_to=email_config.reply_to,
                mailer=email_config.mailer,
            )
        )

    chat_config = app_config.channels.chat
    if chat_config.enabled:
        channels.append(
            ChatChannel(
                client=WhatsAppClient(
                    api_key=env_config.whatsapp_api_key,
                    api_url=chat_config.api_url,
                    session_name=chat_config.session,
                    timeout=chat_config.request_timeout,
                    media_timeout=chat_config.media_timeout,
                ),
                config=chat_config,
            )
        )

    return channels


def build_metrics_sink(app_config: AppConfig) -> MetricsSink:
    metrics_config = app_config.metrics
    if not metrics_config.enabled:
        return NullMetricsSink()

    if metrics_config.backend == MetricsBackend.CLOUDWATCH.value:
        return CloudWatchMetricsSink(
            namespace=metrics_config.namespace,
            function_name=metrics_config.function_name,
            region=app_config.aws.region,
            endpoint_url=app_config.aws.endpoint_url,
        )
    return LogMetricsSink(
        namespace=metrics_config.namespace, function_name=metrics_config.function_name
    )


def build_runtime(app_config: AppConfig, env_config: EnvironmentConfig) -> Runtime:
    """
    Initialize the delivery store and wire every collaborator.

    Args:
        app_config: Validated application configuration
        env_config: Validated environment configuration

    Returns:
        Runtime ready to dispatch batches

    Raises:
        DatabaseConnectionError: If the delivery store cannot be reached
    """
    app_config = apply_environment_overrides(app_config, env_config)
    init_database(env_config.database_url)

    repository = DeliveryRecordRepository()
    channels = build_channels(app_config, env_config)
    orchestrator = NotificationOrchestrator(
        repository=repository,
        settings=app_config,
        channels=channels,
        renderer=TemplateRenderer(),
    )
    dispatcher = BatchDispatcher(
        orchestrator=orchestrator,
        metrics_sink=build_metrics_sink(app_config),
        max_concurrent_records=app_config.processing.max_concurrent_records,
    )

    logger.info(
        "Notification runtime initialized",
        extra={
            "event": "service.initialized",
            "channels": [channel.name for channel in channels],
            "gmail_user": env_config.gmail_user or "NOT SET",
            "gmail_client_id": mask_secret(env_config.gmail_client_id or ""),
            "whatsapp_api_key": mask_secret(env_config.whatsapp_api_key or ""),
            "metrics_enabled": app_config.metrics.enabled,
            "metrics_backend": app_config.metrics.backend,
            "aws_region": app_config.aws.region,
            "parallel_channels": app_config.processing.parallel_channels,
            "max_concurrent_records": app_config.processing.max_concurrent_records,
        },
    )

    return Runtime(
        app_config=app_config,
        env_config=env_config,
        repository=repository,
        orchestrator=orchestrator,
        dispatcher=dispatcher,
        channels=channels,
    )
