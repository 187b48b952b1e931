"""
share-webhook: turn freeform shared text into HTML email notifications.

The public entry point is :func:`render_shared_text`, which classifies the
text (Logarte debug export or generic markdown-ish text), renders it and
returns the subject and HTML body.
"""
from share_webhook.models import RequestContext, RenderedEmail, TextFormat
from share_webhook.share_renderer import render_shared_text

__version__ = '0.1.0'

__all__ = [
    'RequestContext',
    'RenderedEmail',
    'TextFormat',
    'render_shared_text',
]
