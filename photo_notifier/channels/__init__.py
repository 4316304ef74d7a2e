"""Notification channels and their provider transports.

Each channel turns rendered content into a ChannelOutcome and never raises
for transport failures.
"""

from .base import ChannelSender, HttpTransport
from .chat_channel import ChatChannel
from .email_channel import EmailChannel
from .exceptions import (
    TransportAuthError,
    TransportError,
    TransportHTTPError,
    TransportTimeoutError,
)
from .gmail import GmailClient, GmailTokenProvider, build_email_message
from .whatsapp import ChatSendResult, WhatsAppClient, format_phone_number

__all__ = [
    # Channels
    "ChannelSender",
    "EmailChannel",
    "ChatChannel",
    # Transports
    "HttpTransport",
    "GmailClient",
    "GmailTokenProvider",
    "WhatsAppClient",
    "ChatSendResult",
    "build_email_message",
    "format_phone_number",
    # Exceptions
    "TransportError",
    "TransportAuthError",
    "TransportHTTPError",
    "TransportTimeoutError",
]
