"""
Block-level markdown rendering for generic shared text.

The renderer is an explicit finite-state machine consuming one line at a
time and producing HTML directly; no document tree is built. Its state only
lives for the duration of one render_blocks() call.

States:
    NONE            - between blocks
    FRONT_MATTER    - buffering `key: value` lines of a leading --- block
    CODE            - inside a ``` fence, lines are copied verbatim
    LIST_ORDERED    - an <ol> is open
    LIST_UNORDERED  - an <ul> is open

Outside FRONT_MATTER and CODE, each line goes through the rules of
_BlockMachine.RULES in order and the first matching rule handles it.
"""

import logging
import re
from enum import Enum
from typing import Callable, List, Optional

from share_webhook.inline_formatter import escape_html, format_inline
from share_webhook.models import split_lines

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = '---'

RULE_HTML = '<hr style="border:none;border-top:1px solid #e0e0e0;margin:20px 0;">'
PRE_OPEN_HTML = (
    '<pre style="background:#f5f5f5;border:1px solid #e0e0e0;border-radius:4px;'
    'padding:12px;overflow-x:auto;font-size:13px;line-height:1.5;"><code>'
)
PRE_CLOSE_HTML = '</code></pre>'
LIST_STYLE = 'margin:8px 0;padding-left:24px;line-height:1.7;'
LIST_ITEM_OPEN_HTML = '<li style="margin-bottom:6px;">'
BLOCKQUOTE_STYLE = (
    'margin:10px 0;padding:8px 16px;border-left:3px solid #90caf9;'
    'background:#f8f9ff;color:#555;font-style:italic;'
)
PARAGRAPH_STYLE = 'margin:8px 0;line-height:1.7;color:#333;'
META_TABLE_STYLE = 'width:100%;border-collapse:collapse;margin-bottom:16px;font-size:13px;'
META_KEY_STYLE = 'padding:4px 12px 4px 0;color:#757575;font-weight:bold;white-space:nowrap;vertical-align:top;'
META_VALUE_STYLE = 'padding:4px 0;color:#333;'

HEADING_SIZES = {1: '22px', 2: '18px', 3: '16px', 4: '14px', 5: '13px', 6: '12px'}

_CODE_FENCE_RE = re.compile(r'^```')
_RULE_RE = re.compile(r'^(\*{3,}|-{3,}|_{3,})$')
_HEADING_RE = re.compile(r'^(#{1,6})\s+(.+)$')
_ORDERED_ITEM_RE = re.compile(r'^([0-9]+)\.\s+(.+)$')
_UNORDERED_ITEM_RE = re.compile(r'^[-*]\s+(.+)$')
_BLOCKQUOTE_RE = re.compile(r'^>\s*(.*)$')
_CONTINUATION_RE = re.compile(r'^(?: {4}|\t)(.+)$')
_FRONT_MATTER_PAIR_RE = re.compile(r'^([^:]+):\s*(.*)$')


class BlockState(Enum):
    """Block-level states of the renderer."""
    NONE = 'none'
    FRONT_MATTER = 'front_matter'
    CODE = 'code'
    LIST_ORDERED = 'list_ordered'
    LIST_UNORDERED = 'list_unordered'


LIST_TAGS = {
    BlockState.LIST_ORDERED: 'ol',
    BlockState.LIST_UNORDERED: 'ul',
}


def metadata_table_html(lines: List[str]) -> str:
    """
    Render front-matter lines as a two-column metadata table.

    Args:
        lines: Lines between the --- delimiters

    Returns:
        HTML table, or an empty string when no line holds a `key: value` pair
    """
    rows = []
    for line in lines:
        match = _FRONT_MATTER_PAIR_RE.match(line.strip())
        if match is None:
            continue
        key = escape_html(match.group(1).strip())
        value = escape_html(match.group(2).strip(' \t\'"'))
        rows.append(
            f'<tr><td style="{META_KEY_STYLE}">{key}</td>'
            f'<td style="{META_VALUE_STYLE}">{value}</td></tr>'
        )
    if not rows:
        return ''
    return f'<table style="{META_TABLE_STYLE}">' + ''.join(rows) + '</table>'


def heading_html(level: int, text: str) -> str:
    size = HEADING_SIZES[level]
    margin_top = '24px' if level <= 2 else '18px'
    border = 'border-bottom:1px solid #e0e0e0;padding-bottom:6px;' if level <= 2 else ''
    return (
        f'<h{level} style="font-size:{size};color:#1a237e;margin:{margin_top} 0 10px 0;{border}">'
        f'{format_inline(text)}</h{level}>'
    )


class _BlockMachine:
    """Line consumer holding the transient state of one render call."""

    def __init__(self) -> None:
        self.state = BlockState.NONE
        self.parts: List[str] = []
        self.front_matter_started = False
        self.front_matter_lines: List[str] = []

    # -- state helpers ---------------------------------------------------

    @property
    def in_list(self) -> bool:
        return self.state in LIST_TAGS

    def _close_list(self) -> None:
        if self.in_list:
            self.parts.append(f'</{LIST_TAGS[self.state]}>')
            self.state = BlockState.NONE

    def _open_list(self, state: BlockState) -> None:
        if self.state is state:
            return
        self._close_list()
        self.parts.append(f'<{LIST_TAGS[state]} style="{LIST_STYLE}">')
        self.state = state

    def _emitted_nothing(self) -> bool:
        return not any(self.parts)

    # -- per-state handlers ----------------------------------------------

    def _feed_code(self, line: str, trimmed: str) -> None:
        if _CODE_FENCE_RE.match(trimmed):
            self.parts.append(PRE_CLOSE_HTML)
            self.state = BlockState.NONE
        else:
            self.parts.append(escape_html(line) + '\n')

    def _feed_front_matter(self, line: str, trimmed: str) -> None:
        if trimmed == FRONT_MATTER_DELIMITER:
            self.parts.append(metadata_table_html(self.front_matter_lines))
            self.front_matter_lines = []
            self.state = BlockState.NONE
        else:
            self.front_matter_lines.append(line)

    # -- dispatch rules, in priority order -------------------------------

    def _front_matter_delimiter(self, line: str, trimmed: str) -> bool:
        if trimmed != FRONT_MATTER_DELIMITER:
            return False
        if not self.front_matter_started and self._emitted_nothing():
            self.front_matter_started = True
            self.state = BlockState.FRONT_MATTER
            return True
        self._close_list()
        self.parts.append(RULE_HTML)
        return True

    def _code_fence(self, line: str, trimmed: str) -> bool:
        if not _CODE_FENCE_RE.match(trimmed):
            return False
        self._close_list()
        self.parts.append(PRE_OPEN_HTML)
        self.state = BlockState.CODE
        return True

    def _horizontal_rule(self, line: str, trimmed: str) -> bool:
        if not _RULE_RE.match(trimmed):
            return False
        self._close_list()
        self.parts.append(RULE_HTML)
        return True

    def _heading(self, line: str, trimmed: str) -> bool:
        match = _HEADING_RE.match(trimmed)
        if match is None:
            return False
        self._close_list()
        self.parts.append(heading_html(len(match.group(1)), match.group(2)))
        return True

    def _list_item(self, state: BlockState, text: Optional[str]) -> bool:
        if text is None:
            return False
        self._open_list(state)
        self.parts.append(f'{LIST_ITEM_OPEN_HTML}{format_inline(text)}</li>')
        return True

    def _ordered_item(self, line: str, trimmed: str) -> bool:
        match = _ORDERED_ITEM_RE.match(trimmed)
        return self._list_item(BlockState.LIST_ORDERED, match.group(2) if match else None)

    def _unordered_item(self, line: str, trimmed: str) -> bool:
        match = _UNORDERED_ITEM_RE.match(trimmed)
        return self._list_item(BlockState.LIST_UNORDERED, match.group(1) if match else None)

    def _blockquote(self, line: str, trimmed: str) -> bool:
        match = _BLOCKQUOTE_RE.match(trimmed)
        if match is None:
            return False
        self._close_list()
        self.parts.append(
            f'<blockquote style="{BLOCKQUOTE_STYLE}">{format_inline(match.group(1))}</blockquote>'
        )
        return True

    def _continuation(self, line: str, trimmed: str) -> bool:
        if not self.in_list or not trimmed:
            return False
        match = _CONTINUATION_RE.match(line)
        if match is None:
            return False
        # Keep the continuation inside the item that is still the last part
        last_item = self.parts[-1]
        self.parts[-1] = last_item[:-len('</li>')] + '<br>' + format_inline(match.group(1).strip()) + '</li>'
        return True

    def _blank(self, line: str, trimmed: str) -> bool:
        if trimmed:
            return False
        self._close_list()
        return True

    def _paragraph(self, line: str, trimmed: str) -> bool:
        self._close_list()
        self.parts.append(f'<p style="{PARAGRAPH_STYLE}">{format_inline(trimmed)}</p>')
        return True

    RULES: List[Callable[['_BlockMachine', str, str], bool]] = [
        _front_matter_delimiter,
        _code_fence,
        _horizontal_rule,
        _heading,
        _ordered_item,
        _unordered_item,
        _blockquote,
        _continuation,
        _blank,
        _paragraph,
    ]

    # -- driver ------------------------------------------------------------

    def feed(self, line: str) -> None:
        trimmed = line.strip()
        if self.state is BlockState.CODE:
            self._feed_code(line, trimmed)
            return
        if self.state is BlockState.FRONT_MATTER:
            self._feed_front_matter(line, trimmed)
            return
        for rule in self.RULES:
            if rule(self, line, trimmed):
                return

    def finish(self) -> str:
        if self.state is BlockState.FRONT_MATTER:
            # Never closed: the opening --- was a rule after all
            pending = self.front_matter_lines
            self.front_matter_lines = []
            self.state = BlockState.NONE
            self.parts.append(RULE_HTML)
            for line in pending:
                self.feed(line)
        if self.in_list:
            self._close_list()
        if self.state is BlockState.CODE:
            self.parts.append(PRE_CLOSE_HTML)
            self.state = BlockState.NONE
        return ''.join(self.parts)


def render_blocks(text: str) -> str:
    """
    Convert markdown-ish text to an HTML fragment for an email body.

    Handles front matter, fenced code blocks, horizontal rules, headings,
    ordered and unordered lists (one level), blockquotes, indented list
    continuations and paragraphs. Unterminated lists and code fences are
    closed at end of input.

    Args:
        text: Raw shared text

    Returns:
        HTML fragment (no surrounding document)

    Example:
        render_blocks('- one\\n- two') yields a single <ul> holding two <li>
        items; render_blocks('```\\n<b>') yields an escaped, closed <pre> block.
    """
    machine = _BlockMachine()
    lines = split_lines(text)
    for line in lines:
        machine.feed(line)
    html = machine.finish()
    logger.debug(f"Rendered {len(lines)} lines into {len(html)} characters of HTML")
    return html
