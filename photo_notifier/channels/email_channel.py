"""Email channel backed by the Gmail API."""

from typing import Optional

from photo_notifier.domain.models import Channel, ChannelOutcome, EmailContent, NotificationJob
from photo_notifier.domain.validation import is_valid_email
from photo_notifier.logging import get_logger

from .base import ChannelSender
from .exceptions import TransportAuthError, TransportError, TransportHTTPError, TransportTimeoutError
from .gmail import GmailClient, GmailTokenProvider, build_email_message

logger = get_logger(__name__, component="email_channel")


class EmailChannel(ChannelSender):
    """Sends the rendered email to the guest's address."""

    channel = Channel.EMAIL

    def __init__(
        self,
        token_provider: GmailTokenProvider,
        client: GmailClient,
        from_address: Optional[str],
        from_name: str,
        reply_to: str,
        mailer: str,
    ) -> None:
        self.token_provider = token_provider
        self.client = client
        self.from_address = from_address
        self.from_name = from_name
        self.reply_to = reply_to
        self.mailer = mailer

    def is_eligible(self, job: NotificationJob) -> bool:
        return is_valid_email(job.recipient.email)

    def send(self, job: NotificationJob, content: EmailContent) -> ChannelOutcome:
        if not self.from_address:
            return ChannelOutcome.failed(self.channel, "Sender email address not configured", retryable=False)

        message = build_email_message(
            to_address=job.recipient.email,
            from_address=self.from_address,
            from_name=self.from_name,
            reply_to=self.reply_to,
            content=content,
            event_id=job.event_id,
            guest_id=job.guest_id,
            mailer=self.mailer,
        )

        try:
            access_token = self.token_provider.get_access_token()
            message_id = self.client.send_raw(access_token, message)
        except TransportAuthError as e:
            return self._failure(f"Gmail authentication failed: {e}", retryable=True)
        except TransportTimeoutError as e:
            return self._failure(f"Gmail API timeout: {e}", retryable=True)
        except TransportHTTPError as e:
            if e.status_code == 401:
                # Revoked or expired early; the next attempt fetches a new token
                self.token_provider.invalidate()
            return self._failure(f"Gmail API error: {e}", retryable=e.retryable or e.status_code == 401)
        except TransportError as e:
            return self._failure(f"Gmail API error: {e}", retryable=True)

        logger.info(
            "Email sent",
            extra={
                "event": "channel.send.success",
                "channel": self.name,
                "provider_message_id": message_id,
            },
        )
        return ChannelOutcome(
            channel=self.channel,
            success=True,
            provider_message_id=message_id,
        )

    def _failure(self, detail: str, retryable: bool) -> ChannelOutcome:
        logger.warning(
            f"Email send failed: {detail}",
            extra={
                "event": "channel.send.failure",
                "channel": self.name,
                "retryable": retryable,
            },
        )
        return ChannelOutcome.failed(self.channel, detail, retryable=retryable)
