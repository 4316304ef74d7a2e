"""Context propagation for structured logging.

Fields pushed here (batch_id, record_id, event_id, guest_id, channel) are
injected into every log record emitted inside the scope. Context uses
contextvars, so each worker thread started by the dispatcher or the
orchestrator carries its own copy.
"""

from contextvars import ContextVar, Token, copy_context
from typing import Any, Callable, Dict, Optional


LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Get a copy of the current logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge new fields into the logging context.

    Use pop_log_context() with the returned token to restore the previous state.

    Example:
        >>> token = push_log_context(event_id="evt-1", guest_id="g-42")
        >>> # ... every log line now carries event_id and guest_id ...
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context to the state captured by ``token``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Clear all logging context fields (primarily for tests)."""
    LogContextVar.set({})


def bind_context(func: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap ``func`` so it runs inside a copy of the caller's context.

    Thread pools do not inherit contextvars; submitting
    ``bind_context(fn)`` instead of ``fn`` keeps record/event fields on
    log lines emitted from worker threads.
    """
    ctx = copy_context()

    def runner(*args, **kwargs):
        return ctx.run(func, *args, **kwargs)

    return runner


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(record_id="msg-1", event_id="evt-1"):
        ...     logger.info("Processing job")  # includes record_id and event_id
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
