"""Queue-triggered function entry point.

The runtime is built on the first invocation and reused while the container
stays warm. The response uses the partial batch failure shape, so only
records that failed are redelivered by the queue.
"""

import threading
from typing import Any, Dict, Optional

from photo_notifier.config.loader import load_config
from photo_notifier.logging import get_logger
from photo_notifier.runtime import Runtime, build_runtime, setup_logging

logger = get_logger(__name__, component="handler")

_runtime: Optional[Runtime] = None
_runtime_lock = threading.Lock()


def get_runtime() -> Runtime:
    """Return the cached runtime, building it on first use."""
    global _runtime
    with _runtime_lock:
        if _runtime is None:
            app_config, env_config = load_config()
            setup_logging(app_config, env_config)
            _runtime = build_runtime(app_config, env_config)
        return _runtime


def reset_runtime() -> None:
    """Close and forget the cached runtime."""
    global _runtime
    with _runtime_lock:
        if _runtime is not None:
            _runtime.close()
        _runtime = None


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Process one queue batch.

    Args:
        event: Trigger event with a ``Records`` list
        context: Function context (unused)

    Returns:
        ``{"batchItemFailures": [...], "summary": {...}, "processedAt": ...}``
    """
    records = (event or {}).get("Records") or []
    runtime = get_runtime()
    logger.info(
        f"Received batch with {len(records)} records",
        extra={"event": "handler.invoked", "record_count": len(records)},
    )
    return runtime.dispatcher.dispatch(records).to_response()
