"""
Email delivery for rendered notifications.

HTML notifications are sent as multipart/alternative messages: a plain-text
part generated from the HTML with html2text, followed by the HTML part.
Plain notifications (the fallback for payloads that cannot be rendered) are
sent as text/plain.

Transport failures are logged and re-raised as EmailSendError; they are
reported to the caller, never swallowed.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

import html2text

from share_webhook.config_schema import SmtpConfig
from share_webhook.error_handling import ErrorCode, log_error_with_context
from share_webhook.models import RequestContext

logger = logging.getLogger(__name__)

SENDER_LOCAL_PART = 'webhook'


class EmailSendError(Exception):
    """Raised when the SMTP server refuses or fails to deliver a message."""
    pass


def html_to_plain_text(html: str) -> str:
    """
    Convert an HTML email body to a plain-text alternative.

    Args:
        html: Full HTML document

    Returns:
        Markdown-flavoured plain text
    """
    h = html2text.HTML2Text()
    h.ignore_links = False  # Keep link targets
    h.ignore_images = True
    h.body_width = 0  # Don't wrap lines
    h.unicode_snob = True
    return h.handle(html).strip()


def clean_header(value: str) -> str:
    """Collapse line breaks so a value is safe to use as a header."""
    return ' '.join(value.replace('\r', '\n').split('\n')).strip()


class EmailAction:
    """
    Sends notification emails over SMTP.

    Args:
        smtp_config: SMTP connection settings
        password: SMTP password, required when smtp_config.username is set
        smtp_factory: Callable creating the SMTP session (smtplib.SMTP by
            default; tests pass a mock)

    Example:
        >>> action = EmailAction(config.smtp, password=get_secret(config.smtp.password_env))
        >>> action.send_html_email('inbox@example.com', rendered.subject, rendered.html, ctx)
    """

    def __init__(
        self,
        smtp_config: SmtpConfig,
        password: Optional[str] = None,
        smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None
    ):
        self._config = smtp_config
        self._password = password
        self._smtp_factory = smtp_factory or smtplib.SMTP

    def _new_message(self, to: str, subject: str, ctx: RequestContext) -> EmailMessage:
        message = EmailMessage()
        message['From'] = f"{SENDER_LOCAL_PART}@{ctx.from_domain}"
        message['To'] = to
        message['Subject'] = clean_header(subject)
        return message

    def build_html_message(self, to: str, subject: str, html: str, ctx: RequestContext) -> EmailMessage:
        """Build a multipart/alternative message with text and HTML parts."""
        message = self._new_message(to, subject, ctx)
        message.set_content(html_to_plain_text(html), charset='utf-8')
        message.add_alternative(html, subtype='html', charset='utf-8')
        return message

    def build_plain_message(self, to: str, subject: str, body: str, ctx: RequestContext) -> EmailMessage:
        """Build a text/plain message."""
        message = self._new_message(to, subject, ctx)
        message.set_content(body, charset='utf-8')
        return message

    def send_html_email(self, to: str, subject: str, html: str, ctx: RequestContext) -> None:
        """
        Send an HTML email.

        Raises:
            EmailSendError: If delivery fails
        """
        self._deliver(self.build_html_message(to, subject, html, ctx))

    def send_plain_email(self, to: str, subject: str, body: str, ctx: RequestContext) -> None:
        """
        Send a plain-text email.

        Raises:
            EmailSendError: If delivery fails
        """
        self._deliver(self.build_plain_message(to, subject, body, ctx))

    def _deliver(self, message: EmailMessage) -> None:
        config = self._config
        try:
            with self._smtp_factory(config.host, config.port, timeout=config.timeout_seconds) as smtp:
                if config.use_tls:
                    smtp.starttls()
                if config.username:
                    smtp.login(config.username, self._password or '')
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            log_error_with_context(
                e, ErrorCode.EMAIL_SEND_FAILED,
                "Sending notification email",
                context={'to': message['To'], 'host': f"{config.host}:{config.port}"},
                include_traceback=False
            )
            raise EmailSendError(f"Mail failed ({config.host}:{config.port}): {e}") from e

        logger.info(f"Sent email to {message['To']}: {message['Subject']!r}")
