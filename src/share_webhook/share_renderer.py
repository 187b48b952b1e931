"""
Rendering pipeline: shared text in, subject and HTML email body out.

    raw text -> classify -> parse_log              -> log template
                         -> extract_subject
                            + render_blocks         -> generic template

The pipeline is a pure function of its inputs. The only object shared
between calls is the default HtmlAssembler, whose Jinja2 environment is
read-only once built.
"""
import logging
from functools import lru_cache
from typing import Any, Mapping, Optional

from share_webhook.block_renderer import render_blocks
from share_webhook.classifier import classify
from share_webhook.html_assembler import HtmlAssembler
from share_webhook.log_parser import parse_log
from share_webhook.models import RenderedEmail, RequestContext, TextFormat
from share_webhook.subject_extractor import extract_subject

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def default_assembler() -> HtmlAssembler:
    """Assembler using the templates shipped with the package."""
    return HtmlAssembler()


def render_shared_text(
    text: str,
    ctx: RequestContext,
    extra_fields: Optional[Mapping[str, Any]] = None,
    assembler: Optional[HtmlAssembler] = None
) -> RenderedEmail:
    """
    Render shared text into an email subject and HTML body.

    Args:
        text: Shared text (Logarte export, markdown or plain text)
        ctx: Request metadata shown in the footer
        extra_fields: Other fields of a JSON payload, shown under generic text
        assembler: HtmlAssembler to use (default: package templates)

    Returns:
        RenderedEmail with subject, HTML and the detected TextFormat

    Example:
        >>> ctx = RequestContext(time='2024-05-01T12:00:00+00:00', ip='127.0.0.1', user_agent='curl')
        >>> render_shared_text('# Title\\nBody', ctx).subject
        'Shared: Title'
    """
    assembler = assembler or default_assembler()
    text_format = classify(text)

    if text_format is TextFormat.STRUCTURED_LOG:
        parsed = parse_log(text)
        subject = parsed.subject
        html = assembler.build_log_html(parsed, ctx)
    else:
        subject = extract_subject(text)
        html = assembler.build_generic_html(render_blocks(text), subject, ctx, extra_fields)

    logger.info(f"Rendered {text_format.value} content: {subject!r}")
    return RenderedEmail(subject=subject, html=html, text_format=text_format)
