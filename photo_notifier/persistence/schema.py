"""Database schema definition and ORM models.

This module defines the delivery_records table and the conversion from its
ORM model to the DeliveryRecord domain model.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, Index, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from photo_notifier.domain.models import (
    Channel,
    ChannelDelivery,
    ChannelStatus,
    DeliveryRecord,
    NotificationStatus,
)
from photo_notifier.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class DeliveryRecordModel(Base):
    """ORM model for delivery_records table.

    One row per (event_id, guest_id). Channel columns are prefixed with the
    channel name so updates for different channels touch disjoint columns.
    """

    __tablename__ = "delivery_records"

    # Composite primary key
    event_id = Column(String(128), primary_key=True, nullable=False)
    guest_id = Column(String(128), primary_key=True, nullable=False)

    # Email channel
    email_status = Column(String(16), nullable=False, default=ChannelStatus.UNSENT.value)
    email_sent = Column(Boolean, nullable=False, default=False)
    email_message_id = Column(String(255), nullable=True)
    email_delivered_at = Column(String(50), nullable=True)

    # Chat channel
    chat_status = Column(String(16), nullable=False, default=ChannelStatus.UNSENT.value)
    chat_sent = Column(Boolean, nullable=False, default=False)
    chat_message_id = Column(String(255), nullable=True)
    chat_delivered_at = Column(String(50), nullable=True)

    # Aggregate (timestamps stored as ISO 8601 strings)
    notification_status = Column(
        String(16), nullable=False, default=NotificationStatus.UNSET.value
    )
    notification_error = Column(Text, nullable=True)
    notification_updated_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_delivery_records_status", "notification_status"),)

    @classmethod
    def blank(cls, event_id: str, guest_id: str) -> "DeliveryRecordModel":
        """A record in the state upstream producers create before enqueueing."""
        return cls(
            event_id=event_id,
            guest_id=guest_id,
            email_status=ChannelStatus.UNSENT.value,
            email_sent=False,
            chat_status=ChannelStatus.UNSENT.value,
            chat_sent=False,
            notification_status=NotificationStatus.UNSET.value,
        )

    def to_domain(self) -> DeliveryRecord:
        """Convert ORM model to domain model."""
        return DeliveryRecord(
            event_id=self.event_id,
            guest_id=self.guest_id,
            email=self._channel_delivery(Channel.EMAIL),
            chat=self._channel_delivery(Channel.CHAT),
            notification_status=NotificationStatus(
                self.notification_status or NotificationStatus.UNSET.value
            ),
            notification_error=self.notification_error,
            notification_updated_at=parse_iso_datetime(self.notification_updated_at),
        )

    def _channel_delivery(self, channel: Channel) -> ChannelDelivery:
        prefix = channel.value
        status = getattr(self, f"{prefix}_status") or ChannelStatus.UNSENT.value
        return ChannelDelivery(
            status=ChannelStatus(status),
            sent=bool(getattr(self, f"{prefix}_sent")),
            message_id=getattr(self, f"{prefix}_message_id"),
            delivered_at=parse_iso_datetime(getattr(self, f"{prefix}_delivered_at")),
        )


def channel_column(channel: Channel, field: str) -> Column:
    """Return the ``{channel}_{field}`` column of the delivery_records table."""
    return DeliveryRecordModel.__table__.c[f"{channel.value}_{field}"]


def format_db_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 string for database storage."""
    if dt is None:
        return None
    return format_timestamp(dt, include_microseconds=True)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
