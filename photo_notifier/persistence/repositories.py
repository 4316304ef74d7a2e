"""Data access layer for delivery state.

The repository owns its transactions: every public method opens a session
from the injected factory, so one call is one transaction. Methods return
domain models rather than ORM models.
"""

import logging
from typing import Callable, ContextManager, Iterable, Optional

from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from photo_notifier.domain.models import (
    ChannelOutcome,
    ChannelStatus,
    CommitResult,
    CommitStatus,
    DeliveryRecord,
    DeliveryState,
    NotificationStatus,
)
from photo_notifier.utils.timestamps import utc_now

from .database import get_session
from .exceptions import DataIntegrityError, PersistenceError
from .schema import DeliveryRecordModel, channel_column, format_db_timestamp

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]

_records = DeliveryRecordModel.__table__


def _record_key(event_id: str, guest_id: str):
    return and_(_records.c.event_id == event_id, _records.c.guest_id == guest_id)


class DeliveryRecordRepository:
    """Repository for per-recipient delivery records."""

    def __init__(self, session_factory: SessionFactory = get_session):
        """Initialize repository with a session factory.

        Args:
            session_factory: Zero-argument callable returning a transactional
                session context manager (defaults to ``get_session``)
        """
        self._session_factory = session_factory

    def get_delivery_state(self, event_id: str, guest_id: str) -> DeliveryState:
        """Read which channels are already delivered.

        Fails open: if the store cannot be read, both channels are reported
        as not sent and a warning is logged. A later conditional commit still
        prevents a second "sent" mark.

        Returns:
            DeliveryState for the pair (all False when the record is absent)
        """
        try:
            with self._session_factory() as session:
                stmt = select(
                    _records.c.email_status,
                    _records.c.email_sent,
                    _records.c.chat_status,
                    _records.c.chat_sent,
                ).where(_record_key(event_id, guest_id))
                row = session.execute(stmt).first()

            if row is None:
                return DeliveryState()

            sent = ChannelStatus.SENT.value
            return DeliveryState(
                email_sent=row.email_status == sent or row.email_sent is True,
                chat_sent=row.chat_status == sent or row.chat_sent is True,
            )

        except (SQLAlchemyError, PersistenceError, AttributeError, TypeError) as e:
            logger.warning(
                f"Could not read delivery state for {event_id}/{guest_id}, assuming unsent: {e}",
                extra={
                    "event": "delivery_state.read_failed",
                    "error_type": type(e).__name__,
                },
            )
            return DeliveryState()

    def commit_channel_results(
        self,
        event_id: str,
        guest_id: str,
        outcomes: Iterable[ChannelOutcome],
        aggregate_status: NotificationStatus,
        error_summary: Optional[str] = None,
    ) -> CommitResult:
        """Persist channel outcomes and the aggregate status in one transaction.

        Each successful channel is marked sent with an UPDATE conditioned on
        ``{channel}_sent IS NOT TRUE``. When no row matches, another attempt
        already marked the channel sent; that channel is reported as
        ALREADY_DELIVERED and its stored message id is left untouched.

        Args:
            event_id: Event identifier
            guest_id: Guest identifier
            outcomes: Channel outcomes from this attempt
            aggregate_status: Status to store in notification_status
            error_summary: Optional error text for partial/failed attempts

        Returns:
            CommitResult with a CommitStatus per successful channel

        Raises:
            PersistenceError: If database error occurs
        """
        now = format_db_timestamp(utc_now())
        result = CommitResult()
        key = _record_key(event_id, guest_id)

        try:
            with self._session_factory() as session:
                self._ensure_record(session, event_id, guest_id)

                for outcome in outcomes:
                    prefix = outcome.channel.value
                    not_sent = channel_column(outcome.channel, "sent").is_not(True)

                    if not outcome.success:
                        session.execute(
                            update(_records)
                            .where(key, not_sent)
                            .values({f"{prefix}_status": ChannelStatus.FAILED.value})
                        )
                        continue

                    stmt = (
                        update(_records)
                        .where(key, not_sent)
                        .values(
                            {
                                f"{prefix}_status": ChannelStatus.SENT.value,
                                f"{prefix}_sent": True,
                                f"{prefix}_message_id": outcome.provider_message_id,
                                f"{prefix}_delivered_at": now,
                            }
                        )
                    )
                    if session.execute(stmt).rowcount:
                        result.channels[outcome.channel] = CommitStatus.COMMITTED
                    else:
                        result.channels[outcome.channel] = CommitStatus.ALREADY_DELIVERED
                        logger.info(
                            f"{prefix} already marked sent for {event_id}/{guest_id}",
                            extra={
                                "event": "delivery.commit.already_delivered",
                                "channel": prefix,
                            },
                        )

                session.execute(
                    update(_records)
                    .where(key)
                    .values(
                        notification_status=NotificationStatus(aggregate_status).value,
                        notification_error=error_summary,
                        notification_updated_at=now,
                    )
                )

            return result

        except SQLAlchemyError as e:
            logger.error(
                f"Error committing delivery results for {event_id}/{guest_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to commit delivery results: {e}") from e

    def record_failure(self, event_id: str, guest_id: str, error: str) -> None:
        """Mark the record failed with an error message.

        Unconditional: failure records carry no duplicate-send risk, so they
        may overwrite earlier aggregate state. Channel fields are not touched.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            with self._session_factory() as session:
                self._ensure_record(session, event_id, guest_id)
                session.execute(
                    update(_records)
                    .where(_record_key(event_id, guest_id))
                    .values(
                        notification_status=NotificationStatus.FAILED.value,
                        notification_error=error,
                        notification_updated_at=format_db_timestamp(utc_now()),
                    )
                )
        except SQLAlchemyError as e:
            logger.error(
                f"Error recording failure for {event_id}/{guest_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to record failure: {e}") from e

    def get_record(self, event_id: str, guest_id: str) -> Optional[DeliveryRecord]:
        """Retrieve the full delivery record.

        Returns:
            DeliveryRecord if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            with self._session_factory() as session:
                model = session.get(DeliveryRecordModel, (event_id, guest_id))
                return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(
                f"Error retrieving delivery record {event_id}/{guest_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to retrieve delivery record: {e}") from e

    def seed(self, event_id: str, guest_id: str) -> DeliveryRecord:
        """Create a blank (unsent) record if none exists (idempotent).

        This is the operation upstream producers perform before enqueueing a job.

        Returns:
            The existing or newly created record

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            with self._session_factory() as session:
                self._ensure_record(session, event_id, guest_id)
        except SQLAlchemyError as e:
            logger.error(
                f"Error seeding delivery record {event_id}/{guest_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to seed delivery record: {e}") from e

        record = self.get_record(event_id, guest_id)
        if record is None:
            raise DataIntegrityError(f"Delivery record {event_id}/{guest_id} missing after seed")
        return record

    def _ensure_record(self, session: Session, event_id: str, guest_id: str) -> None:
        """Insert a blank row unless one exists, so UPDATEs always have a target."""
        exists = session.execute(
            select(_records.c.event_id).where(_record_key(event_id, guest_id))
        ).first()
        if exists is not None:
            return

        blank = DeliveryRecordModel.blank(event_id, guest_id)
        try:
            session.execute(
                insert(_records).values(
                    {column.name: getattr(blank, column.name) for column in _records.columns}
                )
            )
        except IntegrityError:
            # Row inserted concurrently; no earlier statement in this transaction
            logger.debug(f"Delivery record {event_id}/{guest_id} created concurrently")
            session.rollback()
