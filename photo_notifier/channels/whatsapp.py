"""WhatsApp sender API transport.

The sender API accepts a text message and media messages per session. A 429
means the provider queued the message for later delivery, so it is reported
as a rate-limited result rather than an error.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from photo_notifier.logging import get_logger
from photo_notifier.utils.timestamps import epoch_millis

from .base import HttpTransport, parse_json_body

logger = get_logger(__name__, component="whatsapp")

TEXT_PATH = "/api/send-message"
MEDIA_PATH = "/api/send-media"
DEFAULT_RETRY_AFTER = 60

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class ChatSendResult:
    """Result of one WhatsApp API call."""

    message_id: str
    rate_limited: bool = False
    retry_after: Optional[int] = None


def format_phone_number(phone: Optional[str], default_country_code: str = "91") -> Optional[str]:
    """Normalize a phone number to the digits-only international form.

    - Numbers already carrying the default country code (code + 10 digits) are kept
    - 10-digit local mobile numbers starting 6-9 get the default country code
    - Other numbers of 10-15 digits are assumed to be international already

    Returns:
        Digits-only number, or None if the number cannot be used
    """
    if not phone or phone.strip().lower() == "unknown":
        return None

    digits = _NON_DIGITS.sub("", phone)

    if digits.startswith(default_country_code) and len(digits) == len(default_country_code) + 10:
        return digits
    if len(digits) == 10 and digits[0] in "6789":
        return default_country_code + digits
    if 10 <= len(digits) <= 15:
        return digits
    return None


class WhatsAppClient(HttpTransport):
    """Client for the WhatsApp sender HTTP API.

    Attributes:
        api_url: Base URL of the sender API
        session_name: Sender session the messages go out on
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://www.wasenderapi.com",
        session_name: str = "default",
        timeout: float = 8.0,
        media_timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.session_name = session_name
        self.media_timeout = media_timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send_text(self, to: str, text: str) -> ChatSendResult:
        """Send a text message.

        Raises:
            TransportHTTPError: On non-429 HTTP errors
            TransportTimeoutError: On timeout
        """
        url = self.api_url + TEXT_PATH
        response = self._request(
            url,
            headers=self._auth_headers(),
            json_data={"session": self.session_name, "to": to, "text": text},
            accept_status=(429,),
        )
        body = parse_json_body(response)

        if response.status_code == 429:
            retry_after = _retry_after(body)
            logger.warning(
                f"WhatsApp rate limited, provider retries after {retry_after}s",
                extra={"event": "whatsapp.rate_limited", "retry_after": retry_after},
            )
            return ChatSendResult(
                message_id=f"wa_ratelimit_{epoch_millis()}",
                rate_limited=True,
                retry_after=retry_after,
            )

        # A 2xx without a parseable body still means the message was accepted
        return ChatSendResult(message_id=_message_id(body, "wa_text"))

    def send_media(self, to: str, media_url: str, caption: str) -> ChatSendResult:
        """Send an image by URL with a caption.

        Raises:
            TransportHTTPError: On HTTP errors
            TransportTimeoutError: On timeout
        """
        url = self.api_url + MEDIA_PATH
        response = self._request(
            url,
            headers=self._auth_headers(),
            json_data={
                "session": self.session_name,
                "to": to,
                "media": {"url": media_url, "caption": caption},
            },
            timeout=self.media_timeout,
        )
        return ChatSendResult(message_id=_message_id(parse_json_body(response), "wa_img"))

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}


def _message_id(body: Optional[Dict[str, Any]], prefix: str) -> str:
    if body:
        for key in ("id", "messageId", "message_id"):
            if body.get(key):
                return str(body[key])
    return f"{prefix}_{epoch_millis()}"


def _retry_after(body: Optional[Dict[str, Any]]) -> int:
    try:
        return int((body or {}).get("retry_after") or DEFAULT_RETRY_AFTER)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
