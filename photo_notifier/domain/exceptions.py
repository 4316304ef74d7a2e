"""Exceptions raised while turning a queue record into a notification."""


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class JobDecodeError(NotificationError):
    """Raised when a queue record body cannot be decoded into a job payload."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass
