"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for settings that are valid but probably unintended.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    channels = config_dict.get("channels", {})
    if isinstance(channels, dict):
        chat = channels.get("chat", {})
        if isinstance(chat, dict) and chat.get("enabled", True):
            if chat.get("max_photos", 3) == 0:
                warning_messages.append(
                    "Chat channel is enabled with max_photos=0; only the text message will be sent"
                )

            # A pre-send delay longer than the send budget is spent before the bounded send
            send_timeout = chat.get("send_timeout", 15.0)
            delay_max = chat.get("pre_send_delay_max", 7.0)
            if (
                isinstance(send_timeout, (int, float))
                and isinstance(delay_max, (int, float))
                and delay_max >= send_timeout
            ):
                warning_messages.append(
                    f"pre_send_delay_max ({delay_max}s) is not shorter than send_timeout "
                    f"({send_timeout}s); queue visibility timeouts may be exceeded"
                )

        email = channels.get("email", {})
        if isinstance(email, dict) and not email.get("enabled", True):
            warning_messages.append("Email channel is disabled; only chat notifications will be sent")

    processing = config_dict.get("processing", {})
    if isinstance(processing, dict):
        concurrency = processing.get("max_concurrent_records", 1)
        if isinstance(concurrency, int) and concurrency > 8:
            warning_messages.append(
                f"max_concurrent_records={concurrency} may trigger provider rate limits"
            )

    metrics = config_dict.get("metrics", {})
    if isinstance(metrics, dict) and metrics.get("backend") == "cloudwatch":
        if not metrics.get("enabled", True):
            warning_messages.append("metrics.backend is cloudwatch but metrics are disabled")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
