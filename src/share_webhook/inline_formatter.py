"""
Inline markdown formatting for a single run of text.

The run is HTML-escaped first, so every tag in the output was introduced by
one of the substitutions below. Stages, in order:

    1. HTML escape (NUL characters become U+FFFD)
    2. `code` spans (shielded from the later stages)
    3. ***bold italic*** / ___bold italic___
    4. **bold** / __bold__
    5. *italic* / _italic_ (underscores only at ASCII word boundaries)
    6. [label](url) links, for allow-listed URL schemes only
"""

import html
import re
from typing import List

CODE_STYLE = 'background:#f0f0f0;padding:1px 5px;border-radius:3px;font-size:0.9em;'
LINK_STYLE = 'color:#1565c0;'

SAFE_LINK_SCHEMES = frozenset({'http', 'https', 'mailto'})

_CODE_SPAN_RE = re.compile(r'`([^`]+)`')
_BOLD_ITALIC_RES = (
    re.compile(r'\*{3}([^*]+)\*{3}'),
    re.compile(r'_{3}([^_]+)_{3}'),
)
_BOLD_RES = (
    re.compile(r'\*{2}([^*]+)\*{2}'),
    re.compile(r'_{2}([^_]+)_{2}'),
)
_ITALIC_STAR_RE = re.compile(r'\*([^*]+)\*')
# ASCII-only word test; Unicode letters around underscores are not considered yet
_ITALIC_UNDERSCORE_RE = re.compile(r'(?<![A-Za-z0-9_])_([^_]+)_(?![A-Za-z0-9_])')
# Targets may hold one level of balanced parentheses, e.g. wiki URLs
_LINK_RE = re.compile(r'\[([^\]]+)\]\(((?:[^()]|\([^()]*\))+)\)')

_PLACEHOLDER_RE = re.compile(r'\x00(\d+)\x00')
_URL_SCHEME_RE = re.compile(r'^([A-Za-z][A-Za-z0-9+.\-]*):')
# Browsers drop C0 controls and spaces when resolving a URL scheme
_URL_IGNORED_CHARS_RE = re.compile(r'[\x00-\x20\x7f]+')


def escape_html(text: str) -> str:
    """Escape &, <, >, double and single quotes."""
    return html.escape(text, quote=True)


def is_safe_url(url: str) -> bool:
    """
    Check a link target against the scheme allow-list.

    Args:
        url: Link target as it appears in already-escaped text

    Returns:
        True for http, https and mailto URLs and for URLs without a scheme
        (relative links, fragments); False for anything else, such as
        javascript: or data: URLs.

    Examples:
        >>> is_safe_url('https://example.com')
        True
        >>> is_safe_url('java\\tscript:alert(1)')
        False
    """
    candidate = _URL_IGNORED_CHARS_RE.sub('', html.unescape(url))
    match = _URL_SCHEME_RE.match(candidate)
    if match is None:
        return True
    return match.group(1).lower() in SAFE_LINK_SCHEMES


def _render_link(match: 're.Match[str]', code_texts: List[str]) -> str:
    label = match.group(1)
    # Code spans in a target are plain URL text, not markup
    url = _PLACEHOLDER_RE.sub(lambda m: code_texts[int(m.group(1))], match.group(2))
    if '<' in url or not is_safe_url(url):
        # Emphasis tags from the target would end up inside the href
        return label
    return f'<a href="{url}" style="{LINK_STYLE}">{label}</a>'


def format_inline(text: str) -> str:
    """
    Escape a run of text and apply inline markdown.

    Args:
        text: Raw inline text (one heading, list item, quote or paragraph)

    Returns:
        HTML fragment with inline formatting applied

    Examples:
        >>> format_inline('Some *italic* and **bold** <b>')
        'Some <em>italic</em> and <strong>bold</strong> &lt;b&gt;'
    """
    text = escape_html(text.replace('\x00', '\ufffd'))

    code_texts: List[str] = []

    def _stash_code(match: 're.Match[str]') -> str:
        code_texts.append(match.group(1))
        return f'\x00{len(code_texts) - 1}\x00'

    text = _CODE_SPAN_RE.sub(_stash_code, text)

    for pattern in _BOLD_ITALIC_RES:
        text = pattern.sub(r'<strong><em>\1</em></strong>', text)
    for pattern in _BOLD_RES:
        text = pattern.sub(r'<strong>\1</strong>', text)
    text = _ITALIC_STAR_RE.sub(r'<em>\1</em>', text)
    text = _ITALIC_UNDERSCORE_RE.sub(r'<em>\1</em>', text)

    text = _LINK_RE.sub(lambda m: _render_link(m, code_texts), text)

    if code_texts:
        text = _PLACEHOLDER_RE.sub(
            lambda m: f'<code style="{CODE_STYLE}">{code_texts[int(m.group(1))]}</code>', text
        )
    return text
