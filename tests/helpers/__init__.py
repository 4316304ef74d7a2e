"""Test helper utilities for photo match notifier tests."""

from .builders import (
    BASE_PAYLOAD,
    FakeChannel,
    make_guest,
    make_job,
    make_payload,
    make_record,
)

__all__ = [
    "BASE_PAYLOAD",
    "FakeChannel",
    "make_guest",
    "make_job",
    "make_payload",
    "make_record",
]
