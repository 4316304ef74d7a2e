"""Template rendering for email and chat notifications using Jinja2.

This module wraps Jinja2 template rendering with caching and strict
undefined checking to catch template errors early.
"""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from photo_notifier.domain.models import ChatAttachment, ChatContent, EmailContent

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders notification templates using Jinja2.

    Templates live in the photo_notifier.notifications.message_templates
    package directory. Only ``*.html.j2`` templates are HTML-escaped; the
    subject and chat templates are plain text.

    Templates are cached for reuse across multiple invocations.
    """

    def __init__(
        self,
        template_dir: str = "message_templates",
        subject_template: str = "match_subject.txt.j2",
        html_template: str = "match_body.html.j2",
        text_template: str = "match_body.txt.j2",
        chat_template: str = "chat_message.txt.j2",
        caption_template: str = "chat_caption.txt.j2",
    ):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within photo_notifier.notifications package
            subject_template: Filename of email subject line template
            html_template: Filename of HTML email body template
            text_template: Filename of plain text email body template
            chat_template: Filename of chat message template
            caption_template: Filename of chat photo caption template
        """
        self.subject_template_name = subject_template
        self.html_template_name = html_template
        self.text_template_name = text_template
        self.chat_template_name = chat_template
        self.caption_template_name = caption_template

        self.env = Environment(
            loader=PackageLoader("photo_notifier.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
            keep_trailing_newline=False,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render_email(self, context: Dict[str, Any]) -> EmailContent:
        """Render subject, HTML and plain text email bodies.

        Args:
            context: Output of build_email_context()

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        try:
            subject = self._render(self.subject_template_name, context)
            html_body = self._render(self.html_template_name, context)
            text_body = self._render(self.text_template_name, context)
        except TemplateError as e:
            raise self._error("email", e) from e

        return EmailContent(
            # Single line; header folding is left to the email package
            subject=" ".join(subject.split()),
            html=html_body,
            text=text_body,
            photo_count=context["photo_count"],
        )

    def render_chat(self, context: Dict[str, Any]) -> ChatContent:
        """Render the chat message and one caption per photo.

        Args:
            context: Output of build_chat_context()

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        try:
            text = self._render(self.chat_template_name, context)
            attachments = [
                ChatAttachment(
                    url=photo["url"],
                    caption=self._render(
                        self.caption_template_name, {**context, "photo": photo}
                    ).strip(),
                )
                for photo in context["photos"]
            ]
        except TemplateError as e:
            raise self._error("chat", e) from e

        return ChatContent(text=text.strip(), attachments=attachments)

    def _render(self, template_name: str, context: Dict[str, Any]) -> str:
        return self.env.get_template(template_name).render(context)

    def _error(self, kind: str, error: Exception) -> NotificationTemplateError:
        error_msg = f"{kind.capitalize()} template rendering failed: {error}"
        logger.error(error_msg, exc_info=True)
        return NotificationTemplateError(error_msg)
