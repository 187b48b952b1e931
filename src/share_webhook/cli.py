"""
Command-line interface for share-webhook.

CLI Structure:
    share-webhook render [FILE] [--content-type TYPE] [-o OUTPUT]
    share-webhook classify [FILE]
    share-webhook send [FILE] [--content-type TYPE]

FILE defaults to standard input. Logging goes to stderr so rendered HTML
can be piped from stdout.
"""
import click
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from share_webhook import __version__
from share_webhook.classifier import classify
from share_webhook.config import get_secret
from share_webhook.config_loader import ConfigLoader
from share_webhook.email_action import EmailAction
from share_webhook.error_handling import ErrorCode, categorize_error, log_error_with_context
from share_webhook.logging_config import init_logging
from share_webhook.models import RequestContext
from share_webhook.text_handler import TextHandler

logger = logging.getLogger(__name__)


def _read_input(source: Optional[Path]) -> bytes:
    if source is None:
        return sys.stdin.buffer.read()
    return source.read_bytes()


def _fail(error: Exception, operation: str) -> None:
    code, category = categorize_error(error)
    if code == ErrorCode.UNKNOWN_ERROR:
        log_error_with_context(error, code, operation)
    click.echo(f"Error [{code}] {category}: {error}", err=True)
    sys.exit(1)


def _load_config(ctx: click.Context):
    return ConfigLoader(ctx.obj['config_path'], ctx.obj['env_path']).load()


@click.group()
@click.version_option(version=__version__, prog_name='share-webhook')
@click.option(
    '--config',
    type=click.Path(path_type=Path),
    default=None,
    help='Path to YAML configuration file (default: built-in defaults)'
)
@click.option(
    '--env',
    type=click.Path(path_type=Path),
    default='.env',
    help='Path to .env secrets file, loaded when present (default: .env)'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='WARNING',
    help='Logging level (default: WARNING)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], env: Path, log_level: str):
    """
    share-webhook: render shared text into HTML email notifications.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = str(config) if config else None
    ctx.obj['env_path'] = str(env)

    overrides = {'level': log_level.upper(), 'handlers': {'console': {'stream': 'stderr'}}}
    try:
        init_logging(config_path=config if config and config.exists() else None, overrides=overrides)
    except (OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Warning: logging configuration ignored: {e}", err=True)
        init_logging(overrides=overrides)
    logger.debug(f"share-webhook {__version__}, config={ctx.obj['config_path'] or 'defaults'}")


@cli.command()
@click.argument('source', required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--content-type', default='text/plain', show_default=True, help='Content type of the payload')
@click.option('--ip', default='127.0.0.1', show_default=True, help='Client IP shown in the footer')
@click.option('--user-agent', default=f'share-webhook-cli/{__version__}', help='User agent shown in the footer')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Write the document to a file instead of stdout')
@click.pass_context
def render(ctx: click.Context, source: Optional[Path], content_type: str, ip: str,
           user_agent: str, output: Optional[Path]):
    """Render a payload and print the resulting email body."""
    try:
        config = _load_config(ctx)
        handler = TextHandler.from_config(config)
        request_ctx = RequestContext.now(ip=ip, user_agent=user_agent, from_domain=config.email.from_domain)
        message = handler.build_message(_read_input(source), content_type, request_ctx)

        if output:
            output.write_text(message.body, encoding='utf-8')
        else:
            click.echo(message.body)
        click.echo(f"Subject: {message.subject}", err=True)
    except Exception as e:
        _fail(e, "Rendering payload")


@cli.command(name='classify')
@click.argument('source', required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def classify_command(source: Optional[Path]):
    """Print whether a text is a structured-log export or generic text."""
    text = _read_input(source).decode('utf-8', errors='replace')
    click.echo(classify(text).value)


@cli.command()
@click.argument('source', required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--content-type', default='text/plain', show_default=True, help='Content type of the payload')
@click.option('--ip', default='127.0.0.1', show_default=True, help='Client IP shown in the footer')
@click.option('--user-agent', default=f'share-webhook-cli/{__version__}', help='User agent shown in the footer')
@click.pass_context
def send(ctx: click.Context, source: Optional[Path], content_type: str, ip: str, user_agent: str):
    """Render a payload and email it to the configured recipient."""
    try:
        config = _load_config(ctx)
        if not config.email.enabled:
            click.echo("Email is disabled in the configuration; nothing sent.", err=True)
            sys.exit(1)

        password = get_secret(config.smtp.password_env) if config.smtp.username else None
        handler = TextHandler.from_config(config, EmailAction(config.smtp, password=password))
        request_ctx = RequestContext.now(ip=ip, user_agent=user_agent, from_domain=config.email.from_domain)
        message = handler.handle(_read_input(source), content_type, request_ctx)
        click.echo(f"Sent: {message.subject}")
    except Exception as e:
        _fail(e, "Sending payload")


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()
