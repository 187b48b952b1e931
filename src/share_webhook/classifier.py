"""
Format classification for shared text.

Decides whether a payload is a Logarte debug-console export or generic
free text / markdown.
"""

import logging

from share_webhook.models import TextFormat, split_lines

logger = logging.getLogger(__name__)

# Literal token found on the first line of every Logarte export
LOG_MARKER = 'LOGARTE'

# A Logarte export always has a title, a session line and at least one entry
MIN_LOG_LINES = 3


def classify(text: str) -> TextFormat:
    """
    Classify shared text as a structured-log export or generic text.

    Args:
        text: Raw shared text

    Returns:
        TextFormat.STRUCTURED_LOG if the text has at least 3 lines and its
        first non-empty line contains the Logarte marker, otherwise
        TextFormat.GENERIC.

    Examples:
        >>> classify("LOGARTE\\nSession abc\\n[12:00:01] [LOG] hello")
        <TextFormat.STRUCTURED_LOG: 'structured-log'>
        >>> classify("LOGARTE\\nonly two lines")
        <TextFormat.GENERIC: 'generic'>
    """
    lines = split_lines(text)
    if len(lines) < MIN_LOG_LINES:
        return TextFormat.GENERIC

    first_line = next((line.strip() for line in lines if line.strip()), '')
    if LOG_MARKER in first_line:
        logger.debug(f"Classified text as structured log ({len(lines)} lines)")
        return TextFormat.STRUCTURED_LOG
    return TextFormat.GENERIC
