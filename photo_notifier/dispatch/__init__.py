"""Batch dispatch of queue records."""

from .dispatcher import BatchDispatcher, record_identifier
from .models import BatchMetrics, BatchResult

__all__ = [
    "BatchDispatcher",
    "BatchMetrics",
    "BatchResult",
    "record_identifier",
]
