"""
Data models for the share rendering pipeline.

Every object in this module is created at the start of one render call and
discarded at its end; nothing here is shared across requests.

Integration Pattern:
    1. The intake layer builds a RequestContext for the inbound request
    2. The classifier decides the TextFormat of the shared text
    3. Logarte exports are parsed into a ParsedLog of LogEntry items
    4. The pipeline returns a RenderedEmail (subject + HTML body)

    Example:
        ctx = RequestContext.now(ip='203.0.113.7', user_agent='curl/8.0')
        rendered = render_shared_text(text, ctx)
        send(rendered.subject, rendered.html)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List


class TextFormat(str, Enum):
    """Kinds of shared text the classifier can recognise."""
    STRUCTURED_LOG = 'structured-log'
    GENERIC = 'generic'


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request metadata shown in the email footer.

    Fields:
        time: ISO-8601 receipt timestamp
        ip: Client IP address
        user_agent: Client User-Agent header
        from_domain: Domain used for the sender address (webhook@<domain>)
    """
    time: str
    ip: str = 'unknown'
    user_agent: str = 'unknown'
    from_domain: str = 'localhost'

    @classmethod
    def now(
        cls,
        ip: str = 'unknown',
        user_agent: str = 'unknown',
        from_domain: str = 'localhost'
    ) -> 'RequestContext':
        """Build a context stamped with the current local time."""
        stamp = datetime.now().astimezone().isoformat(timespec='seconds')
        return cls(time=stamp, ip=ip, user_agent=user_agent, from_domain=from_domain)


@dataclass
class LogEntry:
    """
    One timestamped entry of a Logarte export.

    Entries without a recognisable `[HH:MM:SS] [TYPE]` header keep empty
    `time` and `type` and carry the raw segment as content.
    """
    content: str
    time: str = ''
    type: str = ''

    @property
    def has_header(self) -> bool:
        return bool(self.time or self.type)


@dataclass
class ParsedLog:
    """Result of parsing a Logarte export."""
    subject: str
    header_lines: List[str] = field(default_factory=list)
    entries: List[LogEntry] = field(default_factory=list)

    @property
    def stats_line(self) -> str:
        """First header line mentioning the entry count, or an empty string."""
        for line in self.header_lines:
            if 'entries' in line:
                return line
        return ''


@dataclass(frozen=True)
class RenderedEmail:
    """Subject and HTML body produced for one piece of shared text."""
    subject: str
    html: str
    text_format: TextFormat


def split_lines(text: str) -> List[str]:
    """
    Split text into lines after normalising CRLF and CR line endings.

    An empty string yields a single empty line, and a trailing newline
    yields a trailing empty line.
    """
    return text.replace('\r\n', '\n').replace('\r', '\n').split('\n')
