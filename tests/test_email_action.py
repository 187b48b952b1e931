"""
Tests for SMTP delivery.

The SMTP session is replaced by a MagicMock factory; no network is used.
"""
import smtplib
from unittest.mock import MagicMock

import pytest

from share_webhook.config_schema import SmtpConfig
from share_webhook.email_action import (
    EmailAction,
    EmailSendError,
    clean_header,
    html_to_plain_text,
)

HTML = '<html><body><h1>Title</h1><p>Some <strong>bold</strong> and <a href="https://x.io">a link</a></p></body></html>'


@pytest.fixture
def smtp_session():
    return MagicMock()


@pytest.fixture
def smtp_factory(smtp_session):
    factory = MagicMock()
    factory.return_value.__enter__.return_value = smtp_session
    return factory


def _action(smtp_factory, **config):
    return EmailAction(SmtpConfig(**config), password='secret', smtp_factory=smtp_factory)


class TestHelpers:
    """Tests for html_to_plain_text() and clean_header()."""

    def test_plain_text_alternative(self):
        text = html_to_plain_text(HTML)
        assert '# Title' in text
        assert '**bold**' in text
        assert 'https://x.io' in text
        assert '<' not in text

    def test_clean_header_collapses_newlines(self):
        assert clean_header('Shared: a\r\nBcc: evil@example.com') == 'Shared: a  Bcc: evil@example.com'


class TestBuildMessages:
    """Tests for message construction."""

    def test_html_message_is_multipart(self, smtp_factory, ctx):
        message = _action(smtp_factory).build_html_message('inbox@example.com', 'Shared: Title', HTML, ctx)

        assert message['From'] == 'webhook@example.com'
        assert message['To'] == 'inbox@example.com'
        assert message['Subject'] == 'Shared: Title'
        assert message.get_content_type() == 'multipart/alternative'
        parts = [part.get_content_type() for part in message.iter_parts()]
        assert parts == ['text/plain', 'text/html']
        assert '<h1>Title</h1>' in message.get_body(('html',)).get_content()

    def test_plain_message(self, smtp_factory, ctx):
        message = _action(smtp_factory).build_plain_message('inbox@example.com', 'Webhook payload', 'Body:\nx', ctx)

        assert message.get_content_type() == 'text/plain'
        assert message.get_content().startswith('Body:\nx')

    def test_unicode_subject(self, smtp_factory, ctx):
        message = _action(smtp_factory).build_plain_message('inbox@example.com', 'Shared: Grüße', 'x', ctx)
        assert message['Subject'] == 'Shared: Grüße'


class TestDelivery:
    """Tests for send_html_email() / send_plain_email()."""

    def test_send_html(self, smtp_factory, smtp_session, ctx):
        _action(smtp_factory, host='mail.example.com', port=2525, timeout_seconds=5).send_html_email(
            'inbox@example.com', 'Shared: Title', HTML, ctx
        )

        smtp_factory.assert_called_once_with('mail.example.com', 2525, timeout=5)
        smtp_session.send_message.assert_called_once()
        sent = smtp_session.send_message.call_args[0][0]
        assert sent['Subject'] == 'Shared: Title'
        smtp_session.starttls.assert_not_called()
        smtp_session.login.assert_not_called()

    def test_tls_and_login(self, smtp_factory, smtp_session, ctx):
        _action(smtp_factory, use_tls=True, username='user').send_plain_email('inbox@example.com', 's', 'b', ctx)

        smtp_session.starttls.assert_called_once()
        smtp_session.login.assert_called_once_with('user', 'secret')

    def test_smtp_error_raises_email_send_error(self, smtp_factory, smtp_session, ctx, caplog):
        smtp_session.send_message.side_effect = smtplib.SMTPRecipientsRefused({'inbox@example.com': (550, b'no')})

        with pytest.raises(EmailSendError, match='Mail failed'):
            _action(smtp_factory).send_html_email('inbox@example.com', 's', HTML, ctx)
        assert 'E3001' in caplog.text

    def test_connection_error_raises_email_send_error(self, smtp_factory, ctx):
        smtp_factory.side_effect = ConnectionRefusedError('refused')

        with pytest.raises(EmailSendError) as exc_info:
            _action(smtp_factory).send_plain_email('inbox@example.com', 's', 'b', ctx)
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)
