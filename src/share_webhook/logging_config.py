"""
Logging Configuration Module

Centralized logging configuration for share-webhook. Call init_logging()
once at startup (the CLI does this); library modules only use
logging.getLogger(__name__), so they inherit from the 'share_webhook'
logger configured here.

Key Features:
    - Plain text and JSON formats
    - Console, rotating file and JSONL handlers
    - YAML config file (`logging:` section) and environment overrides
    - Request context (request_id, client_ip) on every record

Usage:
    >>> from share_webhook.logging_config import init_logging
    >>>
    >>> # Initialize with defaults (console only)
    >>> init_logging()
    >>>
    >>> # Initialize with config file
    >>> init_logging(config_path='config/config.yaml')
    >>>
    >>> # Initialize with runtime overrides
    >>> init_logging(overrides={'level': 'DEBUG', 'format': 'json'})
"""
import copy
import logging
import logging.handlers
import sys
import os
from pathlib import Path
from typing import Optional, Dict, Any, Union
import json
from datetime import datetime, timezone

import yaml

from share_webhook.logging_context import get_logging_context

ROOT_LOGGER_NAME = 'share_webhook'

PLAIN_FORMAT = '%(asctime)s %(levelname)-8s [%(request_id)s] [%(component)s] %(message)s'
PLAIN_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Default configuration
DEFAULT_CONFIG = {
    'level': 'INFO',
    'format': 'plain',  # 'plain' or 'json'
    'handlers': {
        'console': {
            'enabled': True,
            'stream': 'stdout'  # 'stdout' or 'stderr'
        },
        'file': {
            'enabled': False,
            'path': 'logs/share_webhook.log',
            'level': 'INFO',
            'max_bytes': 10 * 1024 * 1024,  # 10MB
            'backup_count': 5
        },
        'json_file': {
            'enabled': False,
            'path': 'logs/share_webhook.jsonl',
            'level': 'INFO'
        }
    }
}

# Environment variable overrides
ENV_VAR_MAPPING = {
    'LOG_LEVEL': 'level',
    'LOG_FORMAT': 'format',
    'LOG_FILE': ('handlers', 'file', 'path'),
    'LOG_CONSOLE': ('handlers', 'console', 'enabled'),
    'LOG_JSON_FILE': ('handlers', 'json_file', 'enabled'),
    'LOG_JSON_PATH': ('handlers', 'json_file', 'path'),
}

_BOOLEAN_ENV_VARS = ('LOG_CONSOLE', 'LOG_JSON_FILE')

# Keys read from a config file; anything else belongs to the application config
LOGGING_KEYS = ('level', 'format', 'handlers')


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Formats log records as one JSON object per line with context fields included.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage(),
            'component': getattr(record, 'component', record.name),
        }

        for field in ('request_id', 'client_ip'):
            value = getattr(record, field, None)
            if value not in (None, 'N/A'):
                log_data[field] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Filter that adds request context fields and the component name to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_logging_context()
        record.request_id = context.get('request_id', 'N/A')
        record.client_ip = context.get('client_ip', 'N/A')

        if not hasattr(record, 'component'):
            # Last part of the module path, e.g. 'block_renderer'
            record.component = record.name.split('.')[-1]

        return True


def _load_config_from_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load logging configuration from a YAML file.

    The file may be a dedicated logging config or the application config
    with a `logging:` section.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Logging config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {}

    section = data.get('logging', data)
    if not isinstance(section, dict):
        return {}
    return {key: section[key] for key in LOGGING_KEYS if key in section}


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Args:
        config: Configuration dictionary

    Returns:
        Updated copy of the configuration dictionary
    """
    config = copy.deepcopy(config)

    for env_var, config_path in ENV_VAR_MAPPING.items():
        env_value = os.environ.get(env_var)
        if env_value is None:
            continue

        if isinstance(config_path, tuple):
            current = config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            if env_var in _BOOLEAN_ENV_VARS:
                current[config_path[-1]] = env_value.lower() in ('true', '1', 'yes', 'on')
            else:
                current[config_path[-1]] = env_value
        elif config_path == 'level':
            config[config_path] = env_value.upper()
        else:
            config[config_path] = env_value.lower()

    return config


def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge configuration dictionaries."""
    result = copy.deepcopy(base)

    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_config(result[key], value)
        else:
            result[key] = value

    return result


def _level(name: Any) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


def _make_formatter(log_format: str) -> logging.Formatter:
    if log_format == 'json':
        return JSONFormatter()
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt=PLAIN_DATEFMT)


def _attach(logger: logging.Logger, handler: logging.Handler, level: Any,
            formatter: logging.Formatter, context_filter: ContextFilter) -> None:
    handler.setLevel(_level(level))
    handler.setFormatter(formatter)
    handler.addFilter(context_filter)
    logger.addHandler(handler)


def _file_path(handler_config: Dict[str, Any], default: str) -> Path:
    path = Path(handler_config.get('path', default))
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _setup_handlers(logger: logging.Logger, config: Dict[str, Any]) -> None:
    """
    Replace the handlers of the package logger with the configured ones.

    Handlers without their own level follow the top-level 'level'.
    """
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    handlers = config.get('handlers', {})
    level = config.get('level', 'INFO')
    formatter = _make_formatter(config.get('format', 'plain'))
    context_filter = ContextFilter()

    console = handlers.get('console', {})
    if console.get('enabled', True):
        stream = sys.stderr if console.get('stream') == 'stderr' else sys.stdout
        _attach(logger, logging.StreamHandler(stream), console.get('level', level), formatter, context_filter)

    rotating = handlers.get('file', {})
    if rotating.get('enabled', False):
        path = _file_path(rotating, 'logs/share_webhook.log')
        handler = logging.handlers.RotatingFileHandler(
            str(path),
            maxBytes=rotating.get('max_bytes', 10 * 1024 * 1024),
            backupCount=rotating.get('backup_count', 5),
            encoding='utf-8'
        )
        _attach(logger, handler, rotating.get('level', level), formatter, context_filter)

    jsonl = handlers.get('json_file', {})
    if jsonl.get('enabled', False):
        path = _file_path(jsonl, 'logs/share_webhook.jsonl')
        _attach(logger, logging.FileHandler(str(path), encoding='utf-8'),
                jsonl.get('level', level), JSONFormatter(), context_filter)


def init_logging(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Initialize the share_webhook logger.

    Precedence (lowest to highest): defaults, config file, environment
    variables, runtime overrides.

    Args:
        config_path: Optional path to a YAML configuration file
        overrides: Optional dictionary of runtime overrides (e.g., {'level': 'DEBUG'})

    Returns:
        The effective logging configuration

    Raises:
        FileNotFoundError: If config_path is specified but file doesn't exist
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config = _merge_config(config, _load_config_from_file(config_path))

    config = _apply_env_overrides(config)

    if overrides:
        config = _merge_config(config, overrides)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(_level(config.get('level', 'INFO')))

    _setup_handlers(root_logger, config)

    root_logger.debug(f"Logging initialized: level={config.get('level')}, format={config.get('format')}")
    if config_path:
        root_logger.debug(f"Logging configuration loaded from: {config_path}")

    return config
