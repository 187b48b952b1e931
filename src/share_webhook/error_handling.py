"""
Error codes and error reporting helpers.

Failures inside share-webhook are raised as module-specific exceptions
(ConfigError, PayloadError, EmailSendError, TemplateRenderError). At the
boundary (CLI, intake) they are mapped to a stable code and category with
categorize_error(), and logged once with log_error_with_context().
"""

import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class ErrorCode:
    """Stable error codes, grouped by category in blocks of a thousand."""
    # Payload errors (1xxx)
    PAYLOAD_EMPTY = "E1001"
    PAYLOAD_TOO_LARGE = "E1002"
    PAYLOAD_INVALID = "E1003"

    # Configuration errors (2xxx)
    CONFIG_MISSING = "E2001"
    CONFIG_INVALID = "E2002"

    # Email errors (3xxx)
    EMAIL_SEND_FAILED = "E3001"

    # Template errors (4xxx)
    TEMPLATE_RENDER_FAILED = "E4001"

    # File system errors (5xxx)
    FILE_READ_FAILED = "E5001"
    FILE_WRITE_FAILED = "E5002"

    # Unknown errors (9xxx)
    UNKNOWN_ERROR = "E9001"


def log_error_with_context(
    error: Exception,
    error_code: str,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
    include_traceback: bool = True
) -> None:
    """
    Log a failed operation as "[code] operation failed: Type: message | Context: ...".

    Args:
        error: Exception raised by the operation
        error_code: One of the ErrorCode constants
        operation: What was being attempted, e.g. "Sending notification email"
        context: Additional context dictionary (recipient, content type, etc.)
        level: Logging level (default: ERROR)
        include_traceback: Whether to include full traceback (default: True)

    Example:
        >>> try:
        ...     smtp.send_message(message)
        ... except smtplib.SMTPException as e:
        ...     log_error_with_context(
        ...         e, ErrorCode.EMAIL_SEND_FAILED,
        ...         "Sending notification email",
        ...         context={'to': 'inbox@example.com'}
        ...     )
    """
    error_type = type(error).__name__

    context_str = ""
    if context:
        context_items = [f"{k}={v}" for k, v in context.items() if v is not None]
        if context_items:
            context_str = f" | Context: {', '.join(context_items)}"

    log_message = f"[{error_code}] {operation} failed: {error_type}: {error}{context_str}"

    logger.log(level, log_message, exc_info=include_traceback)


def categorize_error(error: Exception) -> tuple[str, str]:
    """
    Map an exception to its error code and a human-readable category.

    Args:
        error: Exception to classify

    Returns:
        Tuple of (error_code, category)

    Example:
        >>> categorize_error(PayloadTooLargeError(2048, 1024))
        ('E1002', 'Payload')
    """
    from share_webhook.config import ConfigError
    from share_webhook.email_action import EmailSendError
    from share_webhook.html_assembler import TemplateRenderError
    from share_webhook.text_handler import EmptyPayloadError, PayloadError, PayloadTooLargeError

    if isinstance(error, EmptyPayloadError):
        return ErrorCode.PAYLOAD_EMPTY, "Payload"
    elif isinstance(error, PayloadTooLargeError):
        return ErrorCode.PAYLOAD_TOO_LARGE, "Payload"
    elif isinstance(error, PayloadError):
        return ErrorCode.PAYLOAD_INVALID, "Payload"
    elif isinstance(error, ConfigError):
        if 'not found' in str(error).lower():
            return ErrorCode.CONFIG_MISSING, "Configuration"
        return ErrorCode.CONFIG_INVALID, "Configuration"
    elif isinstance(error, EmailSendError):
        return ErrorCode.EMAIL_SEND_FAILED, "Email"
    elif isinstance(error, TemplateRenderError):
        return ErrorCode.TEMPLATE_RENDER_FAILED, "Template"
    elif isinstance(error, PermissionError):
        return ErrorCode.FILE_WRITE_FAILED, "File System"
    elif isinstance(error, (FileNotFoundError, IsADirectoryError)):
        return ErrorCode.FILE_READ_FAILED, "File System"
    elif isinstance(error, OSError):
        return ErrorCode.FILE_WRITE_FAILED, "File System"
    else:
        return ErrorCode.UNKNOWN_ERROR, "Unknown"
