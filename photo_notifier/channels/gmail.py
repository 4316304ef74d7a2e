"""Gmail REST API transport.

Credentials follow the OAuth2 refresh-token flow: a long-lived refresh token
is exchanged for a short-lived access token by ``google-auth``, which tracks
the token's expiry. The token is shared by every thread of the process.
"""

import base64
import functools
import threading
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from typing import Optional

import google.auth.exceptions
import google.auth.transport.requests
import requests
from google.oauth2.credentials import Credentials

from photo_notifier.domain.models import EmailContent
from photo_notifier.logging import get_logger

from .base import USER_AGENT, HttpTransport, parse_json_body
from .exceptions import TransportAuthError, TransportHTTPError

logger = get_logger(__name__, component="gmail")

SEND_PATH = "/gmail/v1/users/me/messages/send"


class GmailTokenProvider:
    """Keeps OAuth user credentials fresh and hands out access tokens."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        token_url: str,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.credentials = Credentials(
            token=None,
            refresh_token=refresh_token,
            client_id=client_id,
            client_secret=client_secret,
            token_uri=token_url,
        )
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})
        self._auth_request = google.auth.transport.requests.Request(session=self._session)
        self._lock = threading.Lock()

    def get_access_token(self) -> str:
        """Return a valid access token, refreshing it when needed.

        Raises:
            TransportAuthError: If credentials are missing or the grant fails
        """
        with self._lock:
            if self.credentials.valid:
                return self.credentials.token

            creds = self.credentials
            if not (creds.client_id and creds.client_secret and creds.refresh_token):
                raise TransportAuthError("Gmail OAuth credentials not configured")

            try:
                creds.refresh(functools.partial(self._auth_request, timeout=self.timeout))
            except google.auth.exceptions.RefreshError as e:
                raise TransportAuthError(f"OAuth token refresh failed: {e}") from e
            except google.auth.exceptions.TransportError as e:
                raise TransportAuthError(f"OAuth token request failed: {e}") from e

            logger.debug(
                "Gmail access token refreshed",
                extra={"event": "gmail.token.refreshed", "expiry": str(creds.expiry)},
            )
            return creds.token

    def invalidate(self) -> None:
        """Drop the cached token (e.g. after the API rejected it)."""
        with self._lock:
            self.credentials.token = None
            self.credentials.expiry = None


def build_email_message(
    to_address: str,
    from_address: str,
    from_name: str,
    reply_to: str,
    content: EmailContent,
    event_id: str,
    guest_id: str,
    mailer: str,
) -> EmailMessage:
    """Build a multipart/alternative message (plain text + HTML).

    Args:
        to_address: Recipient email address
        from_address: Sender address
        from_name: Sender display name
        reply_to: Reply-To address
        content: Rendered subject and bodies
        event_id: Event identifier (X-Event-ID header)
        guest_id: Guest identifier (X-Guest-ID header)
        mailer: X-Mailer header value

    Returns:
        EmailMessage ready for serialization
    """
    message = EmailMessage()
    message["To"] = to_address
    message["From"] = formataddr((from_name, from_address))
    message["Reply-To"] = reply_to
    message["Subject"] = content.subject
    message["Date"] = formatdate(usegmt=True)
    message["Message-ID"] = make_msgid(domain=from_address.rpartition("@")[2] or None)
    message["X-Email-Type"] = "photo_match_notification"
    message["X-Event-ID"] = event_id
    message["X-Guest-ID"] = guest_id
    message["X-Photo-Count"] = str(content.photo_count)
    message["X-Mailer"] = mailer

    message.set_content(content.text)
    message.add_alternative(content.html, subtype="html")
    return message


def encode_message(message: EmailMessage) -> str:
    """Base64url-encode a message without padding, as the Gmail API expects."""
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


class GmailClient(HttpTransport):
    """Sends raw RFC 2822 messages through the Gmail API."""

    def __init__(
        self,
        api_url: str = "https://gmail.googleapis.com",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.send_url = api_url.rstrip("/") + SEND_PATH

    def send_raw(self, access_token: str, message: EmailMessage) -> str:
        """Send a message and return the provider message id.

        Raises:
            TransportHTTPError: On HTTP errors or a response without an id
            TransportTimeoutError: On timeout
        """
        response = self._request(
            self.send_url,
            headers={"Authorization": f"Bearer {access_token}"},
            json_data={"raw": encode_message(message)},
        )

        body = parse_json_body(response) or {}
        message_id = body.get("id")
        if not message_id:
            raise TransportHTTPError(
                "Gmail API response did not contain a message id",
                status_code=response.status_code,
                url=self.send_url,
            )
        return str(message_id)
