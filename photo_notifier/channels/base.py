"""Base classes shared by all notification channels.

This module provides the abstract ChannelSender contract and HttpTransport,
the shared HTTP request handling used by the Gmail and WhatsApp clients.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

import requests

from photo_notifier.domain.models import Channel, ChannelOutcome, NotificationJob
from photo_notifier.logging import get_logger

from .exceptions import TransportHTTPError, TransportTimeoutError

logger = get_logger(__name__, component="transport")

USER_AGENT = "PhotoMatchNotifier/1.0"


class ChannelSender(ABC):
    """Base class for notification channels.

    Implementations must never raise for transport failures: every problem
    is reported as an unsuccessful ChannelOutcome.
    """

    channel: Channel

    @property
    def name(self) -> str:
        return self.channel.value

    @abstractmethod
    def is_eligible(self, job: NotificationJob) -> bool:
        """Whether this channel should be attempted for the job at all."""

    @abstractmethod
    def send(self, job: NotificationJob, content: Any) -> ChannelOutcome:
        """Deliver rendered content to the job's recipient.

        Args:
            job: Validated notification job
            content: Rendered content for this channel

        Returns:
            ChannelOutcome describing the attempt
        """

    def close(self) -> None:
        """Release worker threads or connections held by the channel."""


class HttpTransport:
    """Shared requests.Session handling for provider API clients.

    Attributes:
        timeout: Default per-request timeout in seconds
    """

    def __init__(self, timeout: float, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def _request(
        self,
        url: str,
        method: str = "POST",
        headers: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        accept_status: Iterable[int] = (),
    ) -> requests.Response:
        """Make an HTTP request with error handling.

        Args:
            url: URL to request
            method: HTTP method (default "POST")
            headers: Additional headers (merged with session defaults)
            json_data: JSON body
            timeout: Per-request timeout, defaults to self.timeout
            accept_status: Error statuses returned to the caller instead of raised

        Returns:
            The response (2xx, or a status listed in accept_status)

        Raises:
            TransportHTTPError: On 4xx/5xx status or connection failure
            TransportTimeoutError: On request timeout
        """
        timeout = timeout or self.timeout

        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "transport.request",
                    "method": method,
                    "url": url,
                    "timeout": timeout,
                },
            )

            response = self._session.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data,
                timeout=timeout,
            )

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {timeout} seconds",
                extra={
                    "event": "transport.retryable_error",
                    "error_type": "Timeout",
                    "url": url,
                    "timeout": timeout,
                },
            )
            raise TransportTimeoutError(
                f"Request to {url} timed out after {timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "transport.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise TransportHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400 and response.status_code not in accept_status:
            is_retryable = response.status_code >= 500
            logger.log(
                logging.WARNING if is_retryable else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "transport.retryable_error" if is_retryable else "transport.error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise TransportHTTPError(
                f"HTTP {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
                url=url,
            )

        return response


def parse_json_body(response: requests.Response) -> Optional[Dict[str, Any]]:
    """Parse a JSON object body, or None when the body is not a JSON object."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _error_message(response: requests.Response) -> str:
    """Best human-readable error from a provider error body."""
    body = parse_json_body(response)
    if body:
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        for key in ("message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason or "request failed"
