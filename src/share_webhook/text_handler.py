"""
Intake for text and JSON share payloads.

Turns an inbound request body into the message that gets emailed:

    - application/json with a string `text_or_url` field: the field is
      rendered, the other keys become "Additional Fields"
    - application/json without it (or invalid JSON): plain-text fallback
      listing the request metadata and the pretty-printed body
    - any other content type: the body itself is rendered as shared text

Integration Pattern:
    handler = TextHandler.from_config(config, email_action)
    message = handler.handle(body, content_type, ctx)
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from share_webhook.config_schema import ShareWebhookConfig
from share_webhook.email_action import EmailAction
from share_webhook.html_assembler import HtmlAssembler
from share_webhook.logging_context import request_logging_context
from share_webhook.models import RequestContext, TextFormat
from share_webhook.share_renderer import default_assembler, render_shared_text

logger = logging.getLogger(__name__)

DEFAULT_TEXT_FIELD = 'text_or_url'
DEFAULT_MAX_TEXT_SIZE = 1024 * 1024
JSON_CONTENT_TYPE = 'application/json'


class PayloadError(Exception):
    """Base exception for payloads rejected before rendering."""
    pass


class EmptyPayloadError(PayloadError):
    """Raised when the request body is empty."""

    def __init__(self) -> None:
        super().__init__("Empty body")


class PayloadTooLargeError(PayloadError):
    """Raised when the request body exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Payload too large: {size} bytes (limit {limit})")


@dataclass(frozen=True)
class OutgoingMessage:
    """
    Email ready to be sent.

    Fields:
        subject: Email subject
        body: HTML document when is_html, plain text otherwise
        is_html: Whether body is HTML
        text_format: Detected format of rendered content (None for the plain fallback)
    """
    subject: str
    body: str
    is_html: bool
    text_format: Optional[TextFormat] = None


def _is_json(content_type: str) -> bool:
    return JSON_CONTENT_TYPE in (content_type or '').lower()


class TextHandler:
    """
    Builds and optionally sends notifications for text payloads.

    Args:
        max_text_size: Maximum body size in bytes
        text_field: JSON key holding the shared text
        email_to: Recipient; no email is sent when None
        email_action: Email sender used when email_to is set
        assembler: HtmlAssembler (default: package templates)
    """

    def __init__(
        self,
        max_text_size: int = DEFAULT_MAX_TEXT_SIZE,
        text_field: str = DEFAULT_TEXT_FIELD,
        email_to: Optional[str] = None,
        email_action: Optional[EmailAction] = None,
        assembler: Optional[HtmlAssembler] = None
    ):
        if email_to and email_action is None:
            raise ValueError("email_action is required when email_to is set")
        self.max_text_size = max_text_size
        self.text_field = text_field
        self.email_to = email_to
        self.email_action = email_action
        self.assembler = assembler or default_assembler()

    @classmethod
    def from_config(cls, config: ShareWebhookConfig, email_action: Optional[EmailAction] = None) -> 'TextHandler':
        """Create a handler from validated configuration."""
        assembler = HtmlAssembler(config.paths.template_dir) if config.paths.template_dir else None
        return cls(
            max_text_size=config.limits.max_text_size,
            text_field=config.payload.text_field,
            email_to=config.email.to if config.email.enabled and email_action else None,
            email_action=email_action,
            assembler=assembler,
        )

    def _check_size(self, body: Union[bytes, str]) -> str:
        raw = body.encode('utf-8') if isinstance(body, str) else body
        if not raw:
            raise EmptyPayloadError()
        if len(raw) > self.max_text_size:
            raise PayloadTooLargeError(len(raw), self.max_text_size)
        return raw.decode('utf-8', errors='replace') if isinstance(body, bytes) else body

    def build_message(self, body: Union[bytes, str], content_type: str, ctx: RequestContext) -> OutgoingMessage:
        """
        Build the outgoing message for a request body.

        Args:
            body: Raw request body
            content_type: Request Content-Type header
            ctx: Request metadata

        Returns:
            OutgoingMessage

        Raises:
            EmptyPayloadError: If the body is empty
            PayloadTooLargeError: If the body exceeds max_text_size bytes
        """
        text = self._check_size(body)

        if not _is_json(content_type):
            rendered = render_shared_text(text, ctx, assembler=self.assembler)
            return OutgoingMessage(rendered.subject, rendered.html, True, rendered.text_format)

        try:
            decoded = json.loads(text)
        except ValueError:
            logger.warning("JSON payload could not be decoded, sending plain fallback")
            decoded = None

        if isinstance(decoded, dict) and isinstance(decoded.get(self.text_field), str):
            extra_fields: Dict[str, Any] = {k: v for k, v in decoded.items() if k != self.text_field}
            rendered = render_shared_text(decoded[self.text_field], ctx, extra_fields, self.assembler)
            return OutgoingMessage(rendered.subject, rendered.html, True, rendered.text_format)

        logger.info(f"JSON payload has no string '{self.text_field}' field, sending plain fallback")
        return self.build_plain_message(text, content_type, ctx, decoded)

    def build_plain_message(
        self,
        text: str,
        content_type: str,
        ctx: RequestContext,
        decoded: Any = None
    ) -> OutgoingMessage:
        """Plain-text notification listing request metadata and the body."""
        if isinstance(decoded, (dict, list)):
            text = json.dumps(decoded, indent=4, ensure_ascii=False)

        message = (
            f"Time: {ctx.time}\n"
            f"IP: {ctx.ip}\n"
            "Method: POST\n"
            f"Content-Type: {content_type}\n"
            f"User-Agent: {ctx.user_agent}\n\n"
            f"Body:\n{text}\n"
        )
        return OutgoingMessage(f"Webhook payload {ctx.time}", message, False)

    def handle(self, body: Union[bytes, str], content_type: str, ctx: RequestContext) -> OutgoingMessage:
        """
        Build the message for a request and send it when a recipient is configured.

        Raises:
            PayloadError: If the body is rejected
            EmailSendError: If delivery fails
        """
        with request_logging_context(client_ip=ctx.ip) as request_id:
            logger.info(f"Handling payload ({content_type or 'no content type'}) as request {request_id}")
            message = self.build_message(body, content_type, ctx)

            if self.email_to:
                if message.is_html:
                    self.email_action.send_html_email(self.email_to, message.subject, message.body, ctx)
                else:
                    self.email_action.send_plain_email(self.email_to, message.subject, message.body, ctx)
            else:
                logger.debug("Email disabled, message built but not sent")

            return message
