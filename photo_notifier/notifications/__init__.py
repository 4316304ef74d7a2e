"""Notification orchestration for photo match jobs.

This module provides the per-job pipeline:
- NotificationOrchestrator: State machine from delivery-state check to commit
- JobResult / JobStatus: Result data structures for job outcomes
- TemplateRenderer: Jinja2-based email and chat template rendering
- Payload utilities: Context builders for templates

The orchestrator integrates the channel senders with the delivery state
store to deliver each notification at most once per recipient and channel.
"""

from .models import (
    JobDecodeError,
    JobResult,
    JobStatus,
    NotificationError,
    NotificationTemplateError,
)
from .orchestrator import NotificationOrchestrator
from .payloads import build_chat_context, build_email_context
from .templates import TemplateRenderer

__all__ = [
    # Main orchestrator
    "NotificationOrchestrator",
    # Models and results
    "JobResult",
    "JobStatus",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "JobDecodeError",
    # Components
    "TemplateRenderer",
    # Utilities
    "build_email_context",
    "build_chat_context",
]
