"""
Subject line extraction for generic shared text.
"""

import re
from typing import List, Optional

from share_webhook.block_renderer import FRONT_MATTER_DELIMITER
from share_webhook.models import split_lines

SUBJECT_PREFIX = 'Shared: '
FALLBACK_SUBJECT = 'Shared content'
MAX_SUBJECT_LENGTH = 80
TRUNCATED_LENGTH = 77
ELLIPSIS = '...'

_HEADING_RE = re.compile(r'^#{1,6}\s+(.+)$')
_STAR_EMPHASIS_RE = re.compile(r'\*{1,3}([^*]+)\*{1,3}')
_UNDERSCORE_EMPHASIS_RE = re.compile(r'(?<![A-Za-z0-9_])_{1,3}([^_]+)_{1,3}(?![A-Za-z0-9_])')


def _body_start(lines: List[str]) -> int:
    """Index of the first line after a leading front-matter block (0 if none)."""
    first = next((i for i, line in enumerate(lines) if line.strip()), None)
    if first is None or lines[first].strip() != FRONT_MATTER_DELIMITER:
        return 0
    for index in range(first + 1, len(lines)):
        if lines[index].strip() == FRONT_MATTER_DELIMITER:
            return index + 1
    # Unterminated front matter is rendered as ordinary text
    return 0


def _find_candidate(lines: List[str]) -> Optional[str]:
    first_line = None
    for line in lines[_body_start(lines):]:
        trimmed = line.strip()
        if not trimmed or trimmed == FRONT_MATTER_DELIMITER:
            continue
        match = _HEADING_RE.match(trimmed)
        if match:
            return match.group(1).strip()
        if first_line is None:
            first_line = trimmed
    return first_line


def strip_emphasis(text: str) -> str:
    """Remove bold/italic markers, leaving the emphasised words."""
    text = _STAR_EMPHASIS_RE.sub(r'\1', text)
    return _UNDERSCORE_EMPHASIS_RE.sub(r'\1', text)


def extract_subject(text: str) -> str:
    """
    Extract a subject line from generic shared text.

    Tries the first heading, then the first non-empty line (front matter
    skipped), then a fixed fallback. Emphasis markers are stripped and long
    subjects are truncated to 77 characters plus an ellipsis.

    Args:
        text: Raw shared text

    Returns:
        Subject line prefixed with "Shared: "

    Examples:
        >>> extract_subject('# Title\\nSome *italic* and **bold**.')
        'Shared: Title'
        >>> extract_subject('')
        'Shared: Shared content'
    """
    candidate = _find_candidate(split_lines(text)) or FALLBACK_SUBJECT
    subject = strip_emphasis(candidate)
    if len(subject) > MAX_SUBJECT_LENGTH:
        subject = subject[:TRUNCATED_LENGTH] + ELLIPSIS
    return f"{SUBJECT_PREFIX}{subject}"
