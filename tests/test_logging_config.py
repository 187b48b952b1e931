"""
Tests for logging configuration and request context.
"""
import json
import logging

import pytest

from share_webhook.logging_config import (
    ContextFilter,
    JSONFormatter,
    init_logging,
)
from share_webhook.logging_context import (
    clear_context,
    get_logging_context,
    new_request_id,
    request_logging_context,
    set_request_context,
)


def _record(message='hello', name='share_webhook.block_renderer'):
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, None, None)


class TestInitLogging:
    """Tests for init_logging()."""

    def test_defaults(self, reset_logging):
        config = init_logging()

        root_logger = logging.getLogger('share_webhook')
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1
        assert config['format'] == 'plain'

    def test_runtime_overrides(self, reset_logging):
        init_logging(overrides={'level': 'DEBUG'})
        assert logging.getLogger('share_webhook').level == logging.DEBUG

    def test_console_stream_override(self, reset_logging):
        import sys
        init_logging(overrides={'handlers': {'console': {'stream': 'stderr'}}})
        handler = logging.getLogger('share_webhook').handlers[0]
        assert handler.stream is sys.stderr

    def test_env_overrides(self, reset_logging, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'warning')
        monkeypatch.setenv('LOG_FORMAT', 'JSON')

        config = init_logging()

        assert config['level'] == 'WARNING'
        assert config['format'] == 'json'
        handler = logging.getLogger('share_webhook').handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_overrides_beat_env(self, reset_logging, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'ERROR')
        init_logging(overrides={'level': 'DEBUG'})
        assert logging.getLogger('share_webhook').level == logging.DEBUG

    def test_config_file_logging_section(self, reset_logging, tmp_path):
        log_path = tmp_path / 'logs' / 'app.log'
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(
            "email:\n  enabled: false\n"
            "logging:\n"
            "  level: WARNING\n"
            "  handlers:\n"
            "    console:\n      enabled: false\n"
            "    file:\n"
            "      enabled: true\n"
            f"      path: {log_path.as_posix()}\n",
            encoding='utf-8'
        )

        init_logging(config_path=config_path)
        logger = logging.getLogger('share_webhook.test')
        logger.warning("written to file")

        root_logger = logging.getLogger('share_webhook')
        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        for handler in root_logger.handlers:
            handler.flush()
        assert 'written to file' in log_path.read_text(encoding='utf-8')

    def test_missing_config_file(self, reset_logging, tmp_path):
        with pytest.raises(FileNotFoundError):
            init_logging(config_path=tmp_path / 'missing.yaml')

    def test_json_file_handler(self, reset_logging, tmp_path):
        json_path = tmp_path / 'app.jsonl'
        init_logging(overrides={
            'handlers': {
                'console': {'enabled': False},
                'json_file': {'enabled': True, 'path': str(json_path)},
            }
        })

        with request_logging_context(request_id='abc12345', client_ip='203.0.113.7'):
            logging.getLogger('share_webhook.text_handler').info("payload handled")
        for handler in logging.getLogger('share_webhook').handlers:
            handler.flush()

        line = json_path.read_text(encoding='utf-8').strip().splitlines()[-1]
        data = json.loads(line)
        assert data['message'] == 'payload handled'
        assert data['request_id'] == 'abc12345'
        assert data['client_ip'] == '203.0.113.7'
        assert data['component'] == 'text_handler'

    def test_reinit_replaces_handlers(self, reset_logging):
        init_logging()
        init_logging()
        assert len(logging.getLogger('share_webhook').handlers) == 1


class TestFormatterAndFilter:
    """Tests for JSONFormatter and ContextFilter."""

    def test_filter_without_context(self, reset_logging):
        clear_context()
        record = _record()
        assert ContextFilter().filter(record) is True
        assert record.request_id == 'N/A'
        assert record.client_ip == 'N/A'
        assert record.component == 'block_renderer'

    def test_filter_with_context(self, reset_logging):
        set_request_context(request_id='r1', client_ip='10.0.0.1')
        record = _record()
        ContextFilter().filter(record)
        assert record.request_id == 'r1'
        assert record.client_ip == '10.0.0.1'

    def test_json_formatter_omits_missing_context(self, reset_logging):
        record = _record('plain message')
        ContextFilter().filter(record)
        data = json.loads(JSONFormatter().format(record))

        assert data['message'] == 'plain message'
        assert data['level'] == 'INFO'
        assert 'request_id' not in data
        assert 'client_ip' not in data


class TestLoggingContext:
    """Tests for the contextvars-based request context."""

    def test_context_manager_restores(self, reset_logging):
        set_request_context(request_id='outer')
        with request_logging_context(request_id='inner', client_ip='1.2.3.4') as request_id:
            assert request_id == 'inner'
            assert get_logging_context() == {'request_id': 'inner', 'client_ip': '1.2.3.4'}
        assert get_logging_context() == {'request_id': 'outer'}

    def test_context_manager_restores_on_error(self, reset_logging):
        clear_context()
        with pytest.raises(RuntimeError):
            with request_logging_context(request_id='x'):
                raise RuntimeError('fail')
        assert get_logging_context() == {}

    def test_generated_request_id(self, reset_logging):
        with request_logging_context() as request_id:
            assert len(request_id) == 8
            assert get_logging_context()['request_id'] == request_id

    def test_new_request_ids_differ(self):
        assert new_request_id() != new_request_id()

    def test_clear_context(self):
        set_request_context(request_id='a', client_ip='b')
        clear_context()
        assert get_logging_context() == {}
