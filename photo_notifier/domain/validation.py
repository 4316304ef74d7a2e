"""Decode-and-validate step for inbound notification jobs.

``validate_job`` is pure: it inspects the decoded payload in a fixed order,
stops at the first problem, and only then coerces the payload into a typed
``NotificationJob``. Reasons are stable strings because they are persisted
into the delivery record and surfaced in batch responses.
"""

import json
import re
from dataclasses import dataclass
from numbers import Number
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

from .exceptions import JobDecodeError
from .models import NotificationJob

_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REASON_MISSING_JOB = "Missing notification job data"
REASON_MISSING_IDS = "Missing eventId or guestId"
REASON_MISSING_GUEST = "Missing guest information"
REASON_MISSING_NAME = "Missing guest name"
REASON_INVALID_MATCH = "Missing or invalid match information"
REASON_NO_MATCHES = "No matches to notify about"
REASON_MISSING_GALLERY = "Missing gallery URL"
REASON_NO_CONTACT = "Missing or invalid contact information (email/phone)"


@dataclass(frozen=True)
class ValidationResult:
    """Either a typed job (valid) or a rejection reason."""

    valid: bool
    job: Optional[NotificationJob] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, job: NotificationJob) -> "ValidationResult":
        return cls(valid=True, job=job)

    @classmethod
    def reject(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)


def is_valid_email(address: Optional[str]) -> bool:
    """Check for a ``local@domain.tld`` shape.

    One ``@``, no whitespace, a ``.`` after the ``@``. Exotic but valid
    addresses may be rejected.
    """
    if not address or not isinstance(address, str):
        return False
    return bool(_EMAIL_SHAPE.match(address))


def extract_identity(payload: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return (event_id, guest_id) if both are present, else (None, None)."""
    if not isinstance(payload, Mapping):
        return None, None
    event_id = _present(payload.get("eventId"))
    guest_id = _present(payload.get("guestId"))
    if event_id is None or guest_id is None:
        return None, None
    return event_id, guest_id


def validate_job(payload: Any, chat_enabled: bool) -> ValidationResult:
    """Validate a decoded job payload.

    Args:
        payload: The ``payload`` member of the queue record body
        chat_enabled: Whether a phone number alone makes the guest reachable

    Returns:
        ValidationResult with the typed job, or the first failing reason
    """
    if not payload or not isinstance(payload, Mapping):
        return ValidationResult.reject(REASON_MISSING_JOB)

    event_id, guest_id = extract_identity(payload)
    if event_id is None:
        return ValidationResult.reject(REASON_MISSING_IDS)

    guest = payload.get("guestInfo")
    if not guest or not isinstance(guest, Mapping):
        return ValidationResult.reject(REASON_MISSING_GUEST)

    if _present(guest.get("name")) is None:
        return ValidationResult.reject(REASON_MISSING_NAME)

    match_info = payload.get("matchInfo")
    total = match_info.get("totalMatches") if isinstance(match_info, Mapping) else None
    # bool is a Number subclass; True is not a match count
    if not isinstance(total, Number) or isinstance(total, bool):
        return ValidationResult.reject(REASON_INVALID_MATCH)
    if total <= 0:
        return ValidationResult.reject(REASON_NO_MATCHES)

    metadata = payload.get("emailMetadata")
    if not isinstance(metadata, Mapping) or _present(metadata.get("galleryUrl")) is None:
        return ValidationResult.reject(REASON_MISSING_GALLERY)

    has_email = is_valid_email(guest.get("email"))
    has_phone = _present(guest.get("phone")) is not None
    if not has_email and not (chat_enabled and has_phone):
        return ValidationResult.reject(REASON_NO_CONTACT)

    try:
        job = NotificationJob.model_validate(payload)
    except ValidationError as e:
        return ValidationResult.reject(f"Invalid notification job: {_summarize(e)}")

    return ValidationResult.ok(job)


def decode_job_body(body: Any) -> Any:
    """Parse a queue record body and return its ``payload`` member.

    Raises:
        JobDecodeError: If the body is not JSON or has no payload
    """
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")

    if isinstance(body, Mapping):
        message = body
    else:
        try:
            message = json.loads(body)
        except (TypeError, ValueError) as e:
            raise JobDecodeError(f"Record body is not valid JSON: {e}") from e

    if not isinstance(message, Mapping) or "payload" not in message:
        raise JobDecodeError("Record body has no 'payload' member")

    return message["payload"]


def _present(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors()[:3]:
        location = ".".join(str(loc) for loc in item["loc"])
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
