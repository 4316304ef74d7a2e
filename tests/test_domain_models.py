"""Unit tests for domain models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from photo_notifier.domain.models import (
    Channel,
    ChannelOutcome,
    CommitResult,
    CommitStatus,
    DeliveryRecord,
    DeliveryState,
    NotificationJob,
)
from photo_notifier.notifications.models import JobResult, JobStatus
from tests.helpers import make_guest, make_job, make_payload


class TestNotificationJob:
    """Tests for the typed job model."""

    def test_aliases_map_to_domain_names(self):
        job = make_job()

        assert job.recipient.display_name == "Asha Rao"
        assert job.match_summary.best_score == 0.97
        assert job.match_summary.top_matches[0].asset_ref == "https://cdn.example.com/p/1.jpg"
        assert job.presentation.gallery_url == "https://photos.example.com"

    def test_job_is_frozen(self):
        job = make_job()

        with pytest.raises(ValidationError):
            job.event_id = "other"

    def test_unknown_fields_are_ignored(self):
        job = make_job(priority="high")

        assert not hasattr(job, "priority")

    def test_blank_contact_fields_become_none(self):
        job = make_job(guestInfo=make_guest(email="  ", phone=""))

        assert job.recipient.email is None
        assert job.recipient.phone is None

    def test_scores_are_clamped(self):
        payload = make_payload()
        payload["matchInfo"]["bestSimilarity"] = 1.4
        payload["matchInfo"]["topMatches"] = [{"imageUrl": "https://x/1.jpg", "similarity": -0.2}]

        job = NotificationJob.model_validate(payload)

        assert job.match_summary.best_score == 1.0
        assert job.match_summary.top_matches[0].score == 0.0
        assert job.match_summary.top_matches[0].percent == 0

    def test_unparseable_processed_at_is_dropped(self):
        metadata = {"galleryUrl": "https://photos.example.com", "processedAt": "yesterday"}

        assert make_job(emailMetadata=metadata).presentation.processed_at is None

    @pytest.mark.parametrize("millis", [1e20, -1e20, 10**30])
    def test_out_of_range_epoch_processed_at_is_dropped(self, millis):
        metadata = {"galleryUrl": "https://photos.example.com", "processedAt": millis}

        assert make_job(emailMetadata=metadata).presentation.processed_at is None

    def test_epoch_millis_processed_at(self):
        metadata = {"galleryUrl": "https://photos.example.com", "processedAt": 1700000000000}

        processed_at = make_job(emailMetadata=metadata).presentation.processed_at

        assert processed_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_gallery_link_encodes_ids(self):
        job = make_job(guestId="guest 7&x")

        assert job.gallery_link == (
            "https://photos.example.com/gallery?eventId=evt-100&guestId=guest+7%26x"
        )


class TestDeliveryState:
    def test_is_sent(self):
        state = DeliveryState(email_sent=True)

        assert state.is_sent(Channel.EMAIL)
        assert not state.is_sent(Channel.CHAT)


class TestDeliveryRecord:
    def test_channel_accessor(self):
        record = DeliveryRecord(event_id="e", guest_id="g")
        record.chat.message_id = "wa-1"

        assert record.channel(Channel.CHAT).message_id == "wa-1"
        assert record.channel(Channel.EMAIL).message_id is None


class TestChannelOutcome:
    def test_failed_constructor(self):
        outcome = ChannelOutcome.failed(Channel.CHAT, "Invalid phone number format", retryable=False)

        assert not outcome.success
        assert outcome.channel is Channel.CHAT
        assert outcome.error_detail == "Invalid phone number format"
        assert outcome.retryable_hint is False
        assert outcome.provider_message_id is None


class TestCommitResult:
    def test_already_delivered(self):
        result = CommitResult(
            channels={
                Channel.EMAIL: CommitStatus.COMMITTED,
                Channel.CHAT: CommitStatus.ALREADY_DELIVERED,
            }
        )

        assert result.already_delivered
        assert result.status_for(Channel.CHAT) is CommitStatus.ALREADY_DELIVERED

    def test_empty(self):
        result = CommitResult()

        assert not result.already_delivered
        assert result.status_for(Channel.EMAIL) is None


class TestJobResult:
    def test_summary_for_sent_job(self):
        result = JobResult(
            record_id="msg-1",
            status=JobStatus.SENT,
            event_id="evt-1",
            guest_id="guest-1",
            email_sent=True,
            chat_sent=True,
        )

        assert result.to_summary() == {
            "recordId": "msg-1",
            "status": "sent",
            "emailSent": True,
            "chatSent": True,
            "eventId": "evt-1",
            "guestId": "guest-1",
        }
        assert not result.is_failure()

    def test_summary_for_undecodable_record(self):
        result = JobResult(record_id="msg-2", status=JobStatus.FAILED, reason="Record body is not valid JSON")

        summary = result.to_summary()

        assert "eventId" not in summary
        assert summary["reason"] == "Record body is not valid JSON"
        assert result.is_failure()

    def test_outcome_for(self):
        outcome = ChannelOutcome(channel=Channel.EMAIL, success=True, provider_message_id="gm-1")
        result = JobResult(record_id="msg-1", status=JobStatus.PARTIAL, outcomes=[outcome])

        assert result.outcome_for(Channel.EMAIL) is outcome
        assert result.outcome_for(Channel.CHAT) is None


def test_processed_at_from_datetime_is_utc():
    metadata = {
        "galleryUrl": "https://photos.example.com",
        "processedAt": datetime(2024, 11, 2, 18, 30),
    }

    processed_at = make_job(emailMetadata=metadata).presentation.processed_at

    assert processed_at == datetime(2024, 11, 2, 18, 30, tzinfo=timezone.utc)
