"""
Shared fixtures for share-webhook tests.
"""
import logging
import os

import pytest
from bs4 import BeautifulSoup

from share_webhook.logging_context import clear_context
from share_webhook.models import RequestContext


SAMPLE_LOG = """LOGARTE
📱 Session 2024-05-01 12:00 (Pixel 7)
3 entries
[12:00:01] [NAVIGATION] /home
[12:00:02] [NETWORK] GET /api/items
200 OK
[12:00:03] [custom] something <b>bold</b>"""


@pytest.fixture
def ctx():
    """Fixed request context so rendered footers are deterministic."""
    return RequestContext(
        time='2024-05-01T12:00:00+00:00',
        ip='203.0.113.7',
        user_agent='curl/8.0',
        from_domain='example.com',
    )


@pytest.fixture
def sample_log():
    """A small Logarte export with three entries."""
    return SAMPLE_LOG


@pytest.fixture
def soup():
    """Parse an HTML string with BeautifulSoup."""
    def _parse(html):
        return BeautifulSoup(html, 'html.parser')
    return _parse


@pytest.fixture
def reset_logging():
    """Reset the package logger and request context after a test."""
    yield
    root_logger = logging.getLogger('share_webhook')
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.NOTSET)
    clear_context()


@pytest.fixture(autouse=True)
def clean_share_webhook_env(monkeypatch):
    """Keep SHARE_WEBHOOK_* and LOG_* variables from the host out of tests."""
    for key in list(os.environ):
        if key.startswith('SHARE_WEBHOOK_') or key.startswith('LOG_') or key == 'SMTP_PASSWORD':
            monkeypatch.delenv(key, raising=False)
