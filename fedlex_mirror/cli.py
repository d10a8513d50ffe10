# === FILE: fedlex_mirror/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of the fedlex mirror tools.

Commands:
  fetch     Resolve the sitemaps (or read urls.txt) and download pending pages
  extract   Render downloaded pages locally and record their links
  status    Show ledger line counts and the number of mirror files
  config    Show the effective configuration

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml if present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Additional log file
  --log-format FORMAT Logging format string

Both fetch and extract resume from their ledgers, so re-running them after an
interruption needs no arguments.

Example:
  fedlex-mirror fetch
  fedlex-mirror --log-level DEBUG extract --concurrency 10
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from fedlex_mirror import __version__
from fedlex_mirror.config import load_config
from fedlex_mirror.engine import collect_status, run_extract, run_fetch
from fedlex_mirror.logger import DEFAULT_FORMAT, configure

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str, code: int = 1):
    click.secho(message, fg='red', err=True)
    sys.exit(code)


def _run(coro):
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        print_error('Interrupted, progress is saved; run the command again to resume', 130)
    except Exception as e:
        print_error(f'Run failed: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='fedlex-mirror, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML/JSON config file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Also write logs to this file'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Format string for log lines'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Offline mirror and link graph of fedlex.admin.ch."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Cannot load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('fetch', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--concurrency', '-n', 'concurrency',
    type=click.IntRange(min=1),
    default=None,
    help='Parallel requests (overrides fetch_concurrency)'
)
@click.pass_context
def fetch(ctx, concurrency):
    """Download every page listed in the sitemaps into the mirror."""
    cfg = ctx.obj['config']
    if concurrency is not None:
        cfg = cfg.model_copy(update={'fetch_concurrency': concurrency})
    stats = _run(run_fetch(cfg))
    click.echo(f"Downloaded {stats.done} pages ({stats.failed} failed), "
               f"{stats.documents} linked documents queued, {stats.edges} edges")


@cli.command('extract', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--concurrency', '-n', 'concurrency',
    type=click.IntRange(min=1),
    default=None,
    help='Pages rendered per batch (overrides extract_concurrency)'
)
@click.option(
    '--timeout', '-t', 'timeout',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Per-page render timeout in seconds (overrides render_timeout)'
)
@click.pass_context
def extract(ctx, concurrency, timeout):
    """Render mirrored pages locally and append their links to the edge list."""
    cfg = ctx.obj['config']
    update = {}
    if concurrency is not None:
        update['extract_concurrency'] = concurrency
    if timeout is not None:
        update['render_timeout'] = timeout
    if update:
        cfg = cfg.model_copy(update=update)
    stats = _run(run_extract(cfg))
    click.echo(f"Processed {stats.done} pages ({stats.failed} failed), {stats.edges} edges")


@cli.command('status', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def status(ctx):
    """Show how far fetch and extract have come."""
    cfg = ctx.obj['config']
    for name, value in collect_status(cfg).items():
        click.echo(f'{name:<13}{value}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(json.dumps(cfg.model_dump(mode='json'), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
