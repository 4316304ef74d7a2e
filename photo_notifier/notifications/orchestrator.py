"""Per-job notification orchestrator.

This module provides NotificationOrchestrator, which takes one decoded job
through the delivery state machine:

    RECEIVED -> STATE_CHECKED -> VALIDATED -> CHANNELS_DISPATCHED -> COMMITTED
    -> SENT | PARTIAL | SKIPPED | FAILED

Duplicate suppression has two layers: the delivery state read skips work
that is already done, and the conditional commit in the repository makes
sure only one concurrent attempt marks a channel sent.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from photo_notifier.channels.base import ChannelSender
from photo_notifier.config.models import AppConfig
from photo_notifier.domain.models import (
    Channel,
    ChannelOutcome,
    CommitStatus,
    DeliveryState,
    NotificationJob,
    NotificationStatus,
)
from photo_notifier.domain.validation import extract_identity, validate_job
from photo_notifier.logging import get_logger
from photo_notifier.logging.context import bind_context, log_context
from photo_notifier.persistence.repositories import DeliveryRecordRepository

from .models import JobResult, JobStatus
from .payloads import build_chat_context, build_email_context
from .templates import TemplateRenderer

logger = get_logger(__name__, component="orchestrator")

REASON_ALREADY_SENT = "All notifications already sent"
REASON_SOME_FAILED = "Some notifications failed"
REASON_ALL_FAILED = "All notifications failed"
REASON_NOTHING_ELIGIBLE = "No eligible channel for recipient"

_CHANNEL_LABELS = {Channel.EMAIL: "Email", Channel.CHAT: "WhatsApp"}


class NotificationOrchestrator:
    """Runs one notification job from delivery-state check to final commit.

    Coordinates the entire flow:
    1. Read delivery state; skip when every enabled channel is already sent
    2. Validate the job payload
    3. Render and send on each eligible channel not yet sent
    4. Commit successful channels with a conditional write
    5. Classify the attempt as SENT, PARTIAL or FAILED

    Channels are independent: one channel's failure or exception never
    prevents the other from being attempted.
    """

    def __init__(
        self,
        repository: DeliveryRecordRepository,
        settings: AppConfig,
        channels: Sequence[ChannelSender],
        renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the orchestrator.

        Args:
            repository: Delivery state store
            settings: Immutable application configuration
            channels: Senders for the enabled channels
            renderer: Template renderer (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.repository = repository
        self.settings = settings
        self.channels: Dict[Channel, ChannelSender] = {sender.channel: sender for sender in channels}
        self.renderer = renderer or TemplateRenderer()
        self.logger = logger_instance or logger

    @property
    def chat_enabled(self) -> bool:
        return Channel.CHAT in self.channels

    def process(self, record_id: str, payload: Any) -> JobResult:
        """Process one decoded job payload.

        Args:
            record_id: Queue message identifier
            payload: Decoded ``payload`` member of the record body

        Returns:
            JobResult with the terminal status of this attempt

        Raises:
            Exception: Any unexpected error, after a best-effort failure write
        """
        event_id, guest_id = extract_identity(payload)

        with log_context(record_id=record_id, event_id=event_id, guest_id=guest_id):
            self.logger.info(
                f"Processing notification job {record_id}",
                extra={"event": "job.received"},
            )
            if self.settings.logging.debug:
                self.logger.debug("Job payload", extra={"event": "job.payload", "payload": payload})

            try:
                return self._process(record_id, payload, event_id, guest_id)
            except Exception as e:
                self.logger.error(
                    f"Unexpected error processing job {record_id}: {e}",
                    exc_info=True,
                    extra={"event": "job.error", "error_type": type(e).__name__},
                )
                if event_id and guest_id:
                    self._record_failure_best_effort(event_id, guest_id, f"processing_error: {e}")
                raise

    def _process(
        self,
        record_id: str,
        payload: Any,
        event_id: Optional[str],
        guest_id: Optional[str],
    ) -> JobResult:
        # Step 1: Check prior delivery state
        state = DeliveryState()
        if event_id and guest_id:
            state = self.repository.get_delivery_state(event_id, guest_id)
            if all(state.is_sent(channel) for channel in self.channels):
                self.logger.info(
                    f"Skipping job {record_id} - all notifications already sent",
                    extra={"event": "job.skipped", "reason": "already_sent"},
                )
                return JobResult(
                    record_id=record_id,
                    status=JobStatus.SKIPPED,
                    event_id=event_id,
                    guest_id=guest_id,
                    reason=REASON_ALREADY_SENT,
                    email_sent=state.email_sent,
                    chat_sent=state.chat_sent,
                )

        # Step 2: Validate
        validation = validate_job(payload, chat_enabled=self.chat_enabled)
        if not validation.valid:
            self.logger.warning(
                f"Invalid notification job {record_id}: {validation.reason}",
                extra={"event": "job.validation_failed", "reason": validation.reason},
            )
            if event_id and guest_id:
                self.repository.record_failure(event_id, guest_id, validation.reason)
            return JobResult(
                record_id=record_id,
                status=JobStatus.FAILED,
                event_id=event_id,
                guest_id=guest_id,
                reason=validation.reason,
            )
        job = validation.job

        # Step 3: Send on eligible channels that are not yet delivered
        planned = []
        for channel, sender in self.channels.items():
            if state.is_sent(channel):
                self.logger.info(
                    f"{_CHANNEL_LABELS[channel]} already sent, skipping",
                    extra={"event": "channel.skipped", "channel": channel.value, "reason": "already_sent"},
                )
            elif not sender.is_eligible(job):
                self.logger.info(
                    f"{_CHANNEL_LABELS[channel]} not applicable for recipient, skipping",
                    extra={"event": "channel.skipped", "channel": channel.value, "reason": "ineligible"},
                )
            else:
                planned.append(channel)

        outcomes = self._dispatch(job, planned)

        # Step 4: Classify and commit
        delivered = {channel for channel in self.channels if state.is_sent(channel)}
        delivered.update(outcome.channel for outcome in outcomes if outcome.success)
        failures = [outcome for outcome in outcomes if not outcome.success]
        errors = [
            f"{_CHANNEL_LABELS[outcome.channel]}: {outcome.error_detail}" for outcome in failures
        ]

        if not delivered:
            reason = REASON_ALL_FAILED if outcomes else REASON_NOTHING_ELIGIBLE
            if outcomes:
                self.repository.commit_channel_results(
                    job.event_id,
                    job.guest_id,
                    outcomes,
                    NotificationStatus.FAILED,
                    error_summary="; ".join(errors),
                )
            else:
                self.repository.record_failure(job.event_id, job.guest_id, reason)
            self.logger.warning(
                f"All notifications failed for job {record_id}",
                extra={"event": "job.completed", "status": JobStatus.FAILED.value, "errors": errors},
            )
            return JobResult(
                record_id=record_id,
                status=JobStatus.FAILED,
                event_id=job.event_id,
                guest_id=job.guest_id,
                reason=reason,
                outcomes=outcomes,
            )

        status = JobStatus.PARTIAL if failures else JobStatus.SENT
        commit = self.repository.commit_channel_results(
            job.event_id,
            job.guest_id,
            outcomes,
            NotificationStatus.PARTIAL if failures else NotificationStatus.SENT,
            error_summary="; ".join(errors) or None,
        )
        for channel, commit_status in commit.channels.items():
            if commit_status is CommitStatus.ALREADY_DELIVERED:
                # Another attempt won the conditional write; its record stands
                self.logger.info(
                    f"{_CHANNEL_LABELS[channel]} was marked sent by a concurrent attempt",
                    extra={"event": "job.duplicate_send_detected", "channel": channel.value},
                )

        self.logger.info(
            f"Job {record_id} completed with status {status.value}",
            extra={
                "event": "job.completed",
                "status": status.value,
                "email_sent": Channel.EMAIL in delivered,
                "chat_sent": Channel.CHAT in delivered,
            },
        )
        return JobResult(
            record_id=record_id,
            status=status,
            event_id=job.event_id,
            guest_id=job.guest_id,
            reason=REASON_SOME_FAILED if failures else None,
            outcomes=outcomes,
            email_sent=Channel.EMAIL in delivered,
            chat_sent=Channel.CHAT in delivered,
        )

    def _dispatch(self, job: NotificationJob, planned: List[Channel]) -> List[ChannelOutcome]:
        """Run the planned channels, concurrently when configured."""
        if not planned:
            return []

        if len(planned) == 1 or not self.settings.processing.parallel_channels:
            return [self._run_channel(job, channel) for channel in planned]

        with ThreadPoolExecutor(max_workers=len(planned), thread_name_prefix="channel") as executor:
            futures = [
                executor.submit(bind_context(self._run_channel), job, channel)
                for channel in planned
            ]
            return [future.result() for future in futures]

    def _run_channel(self, job: NotificationJob, channel: Channel) -> ChannelOutcome:
        """Render and send on one channel; never raises."""
        with log_context(channel=channel.value):
            try:
                content = self._render(job, channel)
                return self.channels[channel].send(job, content)
            except Exception as e:
                self.logger.error(
                    f"{_CHANNEL_LABELS[channel]} processing error: {e}",
                    exc_info=True,
                    extra={
                        "event": "channel.send.failure",
                        "channel": channel.value,
                        "error_type": type(e).__name__,
                    },
                )
                return ChannelOutcome.failed(channel, str(e))

    def _render(self, job: NotificationJob, channel: Channel):
        contact = self.settings.contact
        if channel is Channel.EMAIL:
            context = build_email_context(job, contact, self.settings.channels.email.max_photos)
            return self.renderer.render_email(context)
        context = build_chat_context(job, contact, self.settings.channels.chat.max_photos)
        return self.renderer.render_chat(context)

    def _record_failure_best_effort(self, event_id: str, guest_id: str, error: str) -> None:
        try:
            self.repository.record_failure(event_id, guest_id, error)
        except Exception as e:
            # The original error is re-raised by the caller; this one is only logged
            self.logger.error(
                f"Failed to record processing error for {event_id}/{guest_id}: {e}",
                extra={"event": "job.failure_write_failed", "error_type": type(e).__name__},
            )
