"""Chat channel backed by the WhatsApp sender API.

A chat notification is a composite send: a randomized pre-send delay, one
text message, then up to ``max_photos`` photo attachments. The text message
decides the outcome; attachment failures are only counted.
"""

import random
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional

from photo_notifier.config.models import ChatChannelConfig
from photo_notifier.domain.models import Channel, ChannelOutcome, ChatContent, NotificationJob
from photo_notifier.logging import get_logger
from photo_notifier.logging.context import bind_context

from .base import ChannelSender
from .exceptions import TransportError, TransportHTTPError, TransportTimeoutError
from .whatsapp import WhatsAppClient, format_phone_number

logger = get_logger(__name__, component="chat_channel")


class ChatChannel(ChannelSender):
    """Sends the rendered chat message and photos to the guest's phone."""

    channel = Channel.CHAT

    def __init__(
        self,
        client: WhatsAppClient,
        config: ChatChannelConfig,
        sleep: Callable[[float], None] = time.sleep,
        uniform: Callable[[float, float], float] = random.uniform,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.client = client
        self.config = config
        self._sleep = sleep
        self._uniform = uniform
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="chat-send"
        )

    def is_eligible(self, job: NotificationJob) -> bool:
        return bool(job.recipient.phone)

    def send(self, job: NotificationJob, content: ChatContent) -> ChannelOutcome:
        if not self.client.configured:
            return self._failure("WhatsApp API key not configured", retryable=False)

        phone = format_phone_number(job.recipient.phone, self.config.default_country_code)
        if phone is None:
            return self._failure("Invalid phone number format", retryable=False)

        delay = self._uniform(self.config.pre_send_delay_min, self.config.pre_send_delay_max)
        logger.debug(
            f"Waiting {delay:.1f}s before WhatsApp send",
            extra={"event": "chat.pre_send_delay", "delay_seconds": round(delay, 3)},
        )
        self._sleep(delay)

        timeout = self.config.send_timeout
        future = self._executor.submit(bind_context(self._deliver), phone, content)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            # The worker thread cannot be interrupted; it is left to finish on its own
            future.cancel()
            return self._failure(f"WhatsApp processing timeout after {timeout:g}s", retryable=True)

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def _deliver(self, phone: str, content: ChatContent) -> ChannelOutcome:
        try:
            text_result = self.client.send_text(phone, content.text)
        except TransportTimeoutError as e:
            return self._failure(f"Text message failed: {e}", retryable=True)
        except TransportHTTPError as e:
            return self._failure(f"Text message failed: {e}", retryable=e.retryable)
        except TransportError as e:
            return self._failure(f"Text message failed: {e}", retryable=True)

        if text_result.rate_limited:
            # Provider queued the message; resending now would duplicate it
            logger.info(
                "WhatsApp message deferred by provider rate limit",
                extra={
                    "event": "channel.send.success",
                    "channel": self.name,
                    "deferred": True,
                    "retry_after": text_result.retry_after,
                },
            )
            return ChannelOutcome(
                channel=self.channel,
                success=True,
                provider_message_id=text_result.message_id,
                deferred=True,
                retry_after=text_result.retry_after,
            )

        attachments = content.attachments[: self.config.max_photos]
        sent = 0
        for index, attachment in enumerate(attachments):
            try:
                self.client.send_media(phone, attachment.url, attachment.caption)
                sent += 1
            except TransportError as e:
                logger.warning(
                    f"Attachment {index + 1}/{len(attachments)} failed: {e}",
                    extra={"event": "chat.attachment.failed", "attachment_index": index + 1},
                )
            if index < len(attachments) - 1:
                self._sleep(self.config.attachment_delay)

        logger.info(
            f"WhatsApp message sent with {sent}/{len(attachments)} photos",
            extra={
                "event": "channel.send.success",
                "channel": self.name,
                "provider_message_id": text_result.message_id,
                "attachments_sent": sent,
                "attachments_total": len(attachments),
            },
        )
        return ChannelOutcome(
            channel=self.channel,
            success=True,
            provider_message_id=text_result.message_id,
            attachments_sent=sent,
            attachments_total=len(attachments),
        )

    def _failure(self, detail: str, retryable: bool) -> ChannelOutcome:
        logger.warning(
            f"WhatsApp send failed: {detail}",
            extra={
                "event": "channel.send.failure",
                "channel": self.name,
                "retryable": retryable,
            },
        )
        return ChannelOutcome.failed(self.channel, detail, retryable=retryable)
