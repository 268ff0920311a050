#!/usr/bin/env python3
"""
AgroSync CLI - Command Line Interface
"""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import click

from agrosync.config.config_loader import load_config
from agrosync.core.exceptions import AgroSyncError
from agrosync.core.logging_manager import setup_logging
from agrosync.core.migration import import_legacy_export
from agrosync.core.services import build_services


@asynccontextmanager
async def _services(config_path: Optional[str]):
    """Start services without the connectivity monitor for a one-shot command"""
    services = build_services(load_config(config_path))
    await services.start(start_monitor=False)
    try:
        yield services
    finally:
        await services.stop()


def _run(coro):
    try:
        return asyncio.run(coro)
    except (AgroSyncError, ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()


@click.group()
@click.option('--config', 'config_path', default=None, help='Path to YAML config file')
@click.option('--log-level', default=None, help='Override the configured log level')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str]):
    """AgroSync Command Line Interface"""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path

    logging_config = load_config(config_path).get('logging', {})
    setup_logging(log_level or logging_config.get('level', 'INFO'), logging_config.get('file') or None)


@cli.command()
@click.pass_context
def serve(ctx):
    """Run the HTTP API server"""
    from agrosync.main import main
    main(ctx.obj['config_path'])


@cli.command()
@click.pass_context
def sync(ctx):
    """Push pending local changes to the remote store"""

    async def run_sync():
        async with _services(ctx.obj['config_path']) as services:
            result = await services.engine.sync_to_remote()
            pending = await services.queue.count()
        return result, pending

    result, pending = _run(run_sync())
    if not result.success:
        click.echo("Sync skipped or failed (offline, already running, or store error)", err=True)
    click.echo(f"Synced {result.synced_count} changes, {result.error_count} errors, {pending} pending")


@cli.command()
@click.pass_context
def status(ctx):
    """Show sync status"""

    async def run_status():
        async with _services(ctx.obj['config_path']) as services:
            return await services.engine.get_sync_status()

    sync_status = _run(run_status())

    click.echo("AgroSync Status:")
    click.echo("=" * 30)
    click.echo(f"Online:         {'yes' if sync_status.is_online else 'no'}")
    click.echo(f"Pending:        {sync_status.pending_count}")
    click.echo(f"Stalled:        {sync_status.stalled_count}")
    last_sync = sync_status.last_sync_time if sync_status.last_sync_time is not None else 'never'
    click.echo(f"Last sync (ms): {last_sync}")


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print items as JSON')
@click.pass_context
def queue(ctx, as_json: bool):
    """List pending operations in sync order"""

    async def run_queue():
        async with _services(ctx.obj['config_path']) as services:
            return await services.queue.drain()

    items = _run(run_queue())

    if as_json:
        click.echo(json.dumps([item.to_dict() for item in items], indent=2))
        return

    if not items:
        click.echo("Queue is empty")
        return

    for item in items:
        line = f"#{item.id} {item.operation.value} {item.entity_type.value}/{item.entity_id} @ {item.timestamp}"
        if item.retry_count:
            line += f" (retries: {item.retry_count}, last error: {item.last_error})"
        click.echo(line)


@cli.command('clear-queue')
@click.confirmation_option(prompt='Discard all pending operations? They will never reach the remote store.')
@click.pass_context
def clear_queue(ctx):
    """Discard every pending operation"""

    async def run_clear():
        async with _services(ctx.obj['config_path']) as services:
            return await services.queue.clear()

    removed = _run(run_clear())
    click.echo(f"Removed {removed} queued operations")


@cli.command()
@click.argument('entity_types', nargs=-1)
@click.pass_context
def pull(ctx, entity_types: Tuple[str, ...]):
    """Refresh local records from the remote store"""

    async def run_pull():
        async with _services(ctx.obj['config_path']) as services:
            return await services.engine.pull_from_remote(list(entity_types) or None)

    result = _run(run_pull())

    for entity_type, count in result.refreshed.items():
        click.echo(f"  {entity_type}: {count} records")
    if result.skipped:
        click.echo(f"Skipped (pending local changes): {', '.join(result.skipped)}")
    if result.failed:
        click.echo(f"Failed: {', '.join(result.failed)}", err=True)


@cli.command('import-legacy')
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.option('--force', is_flag=True, help='Import even if a previous import completed')
@click.pass_context
def import_legacy(ctx, source: str, force: bool):
    """Import a legacy JSON export into the local store"""

    async def run_import():
        async with _services(ctx.obj['config_path']) as services:
            return await import_legacy_export(services.local_store, source, force=force)

    imported = _run(run_import())

    if not imported:
        click.echo("Nothing imported (already completed; use --force to re-import)")
        return
    for entity_type, count in imported.items():
        click.echo(f"Imported {count} {entity_type} records")


if __name__ == '__main__':
    cli()
