"""
HTML email assembly using Jinja2.

Wraps rendered content into a complete HTML document using one of two
templates shipped in share_webhook/templates:

    - log_email.html.j2      Logarte exports (header, stats, entry cards)
    - generic_email.html.j2  Generic text (title, block HTML, extra fields)

Both templates end with a footer carrying the receipt time, client IP and
user agent. Autoescaping is enabled; only HTML produced by the block
renderer is marked safe.

Usage:
    >>> assembler = HtmlAssembler()
    >>> html = assembler.build_generic_html(body_html, 'Shared: Title', ctx)
"""
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    PackageLoader,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup, escape

from share_webhook.models import ParsedLog, RequestContext

logger = logging.getLogger(__name__)

LOG_TEMPLATE = 'log_email.html.j2'
GENERIC_TEMPLATE = 'generic_email.html.j2'

UNKNOWN_TYPE_LABEL = 'UNKNOWN'

_SUBJECT_PREFIX_RE = re.compile(r'^Shared:\s*')


class TemplateRenderError(Exception):
    """Raised when an email template cannot be loaded or rendered."""
    pass


class BadgePalette(NamedTuple):
    """Background, foreground and border colours of an entry type badge."""
    bg: str
    fg: str
    border: str


TYPE_PALETTES: Dict[str, BadgePalette] = {
    'NAVIGATION': BadgePalette('#e3f2fd', '#1565c0', '#90caf9'),
    'LOG': BadgePalette('#e8f5e9', '#2e7d32', '#a5d6a7'),
    'NETWORK': BadgePalette('#fff3e0', '#e65100', '#ffcc80'),
    'DATABASE': BadgePalette('#f3e5f5', '#6a1b9a', '#ce93d8'),
}

DEFAULT_PALETTE = BadgePalette('#f5f5f5', '#424242', '#bdbdbd')


def palette_for(entry_type: str) -> BadgePalette:
    """Look up the badge colours for an (uppercased) entry type."""
    return TYPE_PALETTES.get(entry_type.upper(), DEFAULT_PALETTE)


def format_field_value(value: Any) -> str:
    """
    Render an extra JSON field value as display text.

    Booleans become true/false, None becomes an empty string, lists and
    objects are shown as compact JSON and other scalars use str().
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'))
    return str(value)


def display_title(subject: str) -> str:
    """Strip the "Shared: " prefix used in email subjects."""
    return _SUBJECT_PREFIX_RE.sub('', subject)


def _nl2br_filter(value: str) -> Markup:
    """Escape text and turn each line break into exactly one <br>."""
    escaped = str(escape(value))
    return Markup(escaped.replace('\n', '<br>'))


class HtmlAssembler:
    """
    Renders the log and generic email templates.

    The Jinja2 environment is built once per assembler and only read
    afterwards, so one assembler can serve concurrent render calls.

    Args:
        template_dir: Optional directory holding replacement templates with
            the same names; defaults to the templates shipped in the package
    """

    def __init__(self, template_dir: Optional[Union[str, Path]] = None):
        self._template_dir = template_dir
        self._env = self._create_jinja2_environment()

    def _create_jinja2_environment(self) -> Environment:
        if self._template_dir:
            loader = FileSystemLoader(str(self._template_dir))
        else:
            loader = PackageLoader('share_webhook', 'templates')

        env = Environment(
            loader=loader,
            autoescape=select_autoescape(['html', 'xml', 'html.j2']),
            trim_blocks=True,
            lstrip_blocks=True
        )
        env.filters['nl2br'] = _nl2br_filter
        logger.debug(f"Jinja2 environment created (template_dir={self._template_dir or 'package'})")
        return env

    def _render(self, template_name: str, **context: Any) -> str:
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except TemplateNotFound as e:
            error_msg = f"Template not found: {e}"
            logger.error(error_msg)
            raise TemplateRenderError(error_msg) from e
        except TemplateError as e:
            error_msg = f"Error rendering template {template_name}: {e}"
            logger.error(error_msg)
            raise TemplateRenderError(error_msg) from e

    def build_log_html(self, parsed: ParsedLog, ctx: RequestContext) -> str:
        """
        Build the HTML email for a parsed Logarte export.

        Entry content is escaped verbatim (no inline markdown) with line
        breaks preserved.

        Args:
            parsed: Result of parse_log()
            ctx: Request metadata for the footer

        Returns:
            Full HTML document
        """
        entries: List[Dict[str, Any]] = []
        for entry in parsed.entries:
            entries.append({
                'time': entry.time,
                'type_label': entry.type or UNKNOWN_TYPE_LABEL,
                'has_badge': entry.has_header,
                'colors': palette_for(entry.type),
                'content': entry.content,
            })

        return self._render(
            LOG_TEMPLATE,
            header_lines=parsed.header_lines,
            stats_line=parsed.stats_line,
            entries=entries,
            ctx=ctx,
        )

    def build_generic_html(
        self,
        body_html: str,
        subject: str,
        ctx: RequestContext,
        extra_fields: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Build the HTML email for generic text.

        Args:
            body_html: Fragment produced by render_blocks()
            subject: Email subject (its "Shared: " prefix is dropped for the title)
            ctx: Request metadata for the footer
            extra_fields: Additional JSON payload fields shown as a key/value table

        Returns:
            Full HTML document
        """
        fields = [(str(key), format_field_value(value)) for key, value in (extra_fields or {}).items()]
        return self._render(
            GENERIC_TEMPLATE,
            title=display_title(subject),
            body_html=Markup(body_html),
            extra_fields=fields,
            ctx=ctx,
        )
