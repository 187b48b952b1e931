"""
Logging Context Module

Stores request-scoped information (request_id, client_ip) that the
ContextFilter in logging_config attaches to every log record. Values live
in contextvars, so concurrent requests never see each other's context.

Usage:
    >>> from share_webhook.logging_context import request_logging_context
    >>>
    >>> with request_logging_context(request_id='a1b2c3d4', client_ip='203.0.113.7'):
    ...     logger.info("This log will include the request id")
"""
import contextvars
import uuid
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar('request_id', default=None)
_client_ip: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar('client_ip', default=None)


def new_request_id() -> str:
    """Generate a short random request identifier."""
    return uuid.uuid4().hex[:8]


def get_logging_context() -> Dict[str, Any]:
    """
    Get the current logging context.

    Returns:
        Dictionary with the fields that are currently set
        (request_id, client_ip)
    """
    context = {}
    request_id = _request_id.get()
    client_ip = _client_ip.get()
    if request_id is not None:
        context['request_id'] = request_id
    if client_ip is not None:
        context['client_ip'] = client_ip
    return context


def set_request_context(request_id: Optional[str] = None, client_ip: Optional[str] = None) -> None:
    """Set request context fields for the current execution context."""
    _request_id.set(request_id)
    _client_ip.set(client_ip)


def clear_context() -> None:
    """Clear all request context fields."""
    _request_id.set(None)
    _client_ip.set(None)


@contextmanager
def request_logging_context(
    request_id: Optional[str] = None,
    client_ip: Optional[str] = None
) -> Iterator[str]:
    """
    Context manager setting request context for the duration of a block.

    Previous values are restored on exit, even when the block raises.

    Args:
        request_id: Request identifier (generated when omitted)
        client_ip: Client IP address

    Yields:
        The request id in effect inside the block
    """
    request_id = request_id or new_request_id()
    id_token = _request_id.set(request_id)
    ip_token = _client_ip.set(client_ip)
    try:
        yield request_id
    finally:
        _request_id.reset(id_token)
        _client_ip.reset(ip_token)
