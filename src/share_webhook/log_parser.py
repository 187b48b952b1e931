"""
Parser for Logarte debug-console exports.

A Logarte export looks like:

    LOGARTE
    📱 Session 2024-05-01 12:00
    42 entries
    [12:00:01] [NAVIGATION] /home
    [12:00:02] [NETWORK] GET /api/items
    200 OK

Everything before the first timestamped line is header; the rest is split
into entries at every `[H:M:S] [TYPE]` line start. Parsing never fails:
text without well-formed entries yields an empty or content-only entry list.
"""

import logging
import re
from typing import List

from share_webhook.models import LogEntry, ParsedLog, split_lines

logger = logging.getLogger(__name__)

LOG_LABEL = 'Logarte'

_TIMESTAMP_PREFIX_RE = re.compile(r'^\[\d+:\d+:\d+\]')
_ENTRY_SPLIT_RE = re.compile(r'(?=^\[\d+:\d+:\d+\]\s*\[\w+\])', re.MULTILINE | re.ASCII)
_ENTRY_HEADER_RE = re.compile(r'^\[(\d+:\d+:\d+)\]\s*\[(\w+)\](.*)$', re.DOTALL | re.ASCII)
_LEADING_NON_WORD_RE = re.compile(r'^\W*')


def _session_subject(header_lines: List[str]) -> str:
    """Build the email subject from the session line (second header line)."""
    if len(header_lines) < 2:
        return LOG_LABEL
    session_info = _LEADING_NON_WORD_RE.sub('', header_lines[1])
    if not session_info:
        return LOG_LABEL
    return f"{LOG_LABEL}: {session_info}"


def _parse_entry(segment: str) -> LogEntry:
    match = _ENTRY_HEADER_RE.match(segment)
    if match is None:
        return LogEntry(content=segment)
    return LogEntry(
        time=match.group(1),
        type=match.group(2).upper(),
        content=match.group(3).strip(),
    )


def parse_log(text: str) -> ParsedLog:
    """
    Parse a Logarte export into header lines and entries.

    Args:
        text: Raw shared text already classified as a structured log

    Returns:
        ParsedLog with the subject, the non-blank header lines and the
        entries in source order.

    Examples:
        >>> parsed = parse_log("LOGARTE\\nSession abc\\n[12:00:01] [LOG] hello")
        >>> parsed.subject
        'Logarte: Session abc'
        >>> parsed.entries[0].type
        'LOG'
    """
    lines = split_lines(text)

    header_lines: List[str] = []
    entry_start = len(lines)
    for index, line in enumerate(lines):
        trimmed = line.strip()
        if _TIMESTAMP_PREFIX_RE.match(trimmed):
            entry_start = index
            break
        if trimmed:
            header_lines.append(trimmed)

    entries: List[LogEntry] = []
    remaining = '\n'.join(lines[entry_start:])
    for segment in _ENTRY_SPLIT_RE.split(remaining):
        segment = segment.strip()
        if segment:
            entries.append(_parse_entry(segment))

    logger.debug(f"Parsed Logarte export: {len(header_lines)} header lines, {len(entries)} entries")
    return ParsedLog(
        subject=_session_subject(header_lines),
        header_lines=header_lines,
        entries=entries,
    )
