"""Custom exceptions for provider transports."""


class TransportError(Exception):
    """Base exception for all transport errors.

    Channels catch this and convert it into a failed ChannelOutcome; it never
    escapes a channel's send().
    """

    pass


class TransportAuthError(TransportError):
    """Acquiring provider credentials (e.g. an OAuth access token) failed."""

    pass


class TransportHTTPError(TransportError):
    """HTTP request failed with a 4xx or 5xx status, or could not be made at all.

    A status_code of 0 means no response was received (connection error).
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (e.g., 404, 500), 0 if no response
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def retryable(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500


class TransportTimeoutError(TransportError):
    """HTTP request (or a composite send) did not complete in time."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url
