"""Payload resolution for notification templates.

This module builds the context dictionaries the Jinja2 templates render from.
Defaults for optional presentation fields live here so templates stay simple.
"""

from typing import Any, Dict

from photo_notifier.config.models import ContactConfig
from photo_notifier.domain.models import NotificationJob
from photo_notifier.utils.timestamps import utc_now

DEFAULT_BUSINESS_NAME = "Hapzea"
DEFAULT_EVENT_NAME = "the event"


def build_base_context(job: NotificationJob, contact: ContactConfig) -> Dict[str, Any]:
    """Fields shared by the email and chat templates.

    Args:
        job: Validated notification job
        contact: Support contact details

    Returns:
        Dictionary with keys:
        - guest_name, event_id, guest_id
        - photo_count, new_matches
        - event_name, business_name (with defaults applied)
        - gallery_url: Personal gallery link for this guest
        - best_match, average_match: Similarity as integer percent
        - support_email, company_website
    """
    summary = job.match_summary
    presentation = job.presentation

    return {
        "guest_name": job.recipient.display_name,
        "event_id": job.event_id,
        "guest_id": job.guest_id,
        "photo_count": summary.total_matches,
        "new_matches": summary.new_matches or summary.total_matches,
        "event_name": presentation.event_name or DEFAULT_EVENT_NAME,
        "business_name": presentation.business_name or DEFAULT_BUSINESS_NAME,
        "gallery_url": job.gallery_link,
        "best_match": round(summary.best_score * 100),
        "average_match": round(summary.average_score * 100),
        "support_email": contact.support_email,
        "company_website": contact.company_website,
    }


def build_email_context(
    job: NotificationJob, contact: ContactConfig, max_photos: int
) -> Dict[str, Any]:
    """Build the email template context.

    Adds business branding, up to ``max_photos`` photos, and the processed
    date on top of the shared context.
    """
    presentation = job.presentation
    processed_at = presentation.processed_at or utc_now()

    top_photos = [
        {
            "url": match.asset_ref,
            "alt": f"Matched photo {index}",
            "similarity": match.percent,
        }
        for index, match in enumerate(job.match_summary.top_matches[:max_photos], start=1)
    ]

    return {
        **build_base_context(job, contact),
        "guest_email": job.recipient.email,
        "business_logo": presentation.business_logo,
        "business_description": presentation.business_description,
        "business_website": presentation.business_website,
        "business_phone": presentation.business_phone,
        "business_email": presentation.business_email,
        "social_links": dict(presentation.social_links),
        "top_photos": top_photos,
        "processed_date": processed_at.strftime("%d %b %Y"),
        "current_year": utc_now().year,
    }


def build_chat_context(
    job: NotificationJob, contact: ContactConfig, max_photos: int
) -> Dict[str, Any]:
    """Build the chat template context.

    ``photos`` holds the attachments in send order with their 1-based index,
    used to render one caption per photo.
    """
    photos = [
        {"index": index, "url": match.asset_ref, "similarity": match.percent}
        for index, match in enumerate(job.match_summary.top_matches[:max_photos], start=1)
    ]

    return {
        **build_base_context(job, contact),
        "hashtag": "".join((job.presentation.business_name or DEFAULT_BUSINESS_NAME).split()),
        "photos": photos,
    }
