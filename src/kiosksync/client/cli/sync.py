"""Sync commands for the kiosksync CLI.

Commands:
- sync: Deliver queued items now
- run: Watch connectivity and deliver queued items whenever it returns
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys

import click

from kiosksync.client.app import KioskApp
from kiosksync.client.cli.config import open_app, run_with_app
from kiosksync.client.notifications import SyncNotifier
from kiosksync.client.sync.types import SyncError, SyncRejection, SyncResult


def echo_result(result: SyncResult | SyncRejection) -> None:
    """Print a drain pass result."""
    if isinstance(result, SyncRejection):
        click.echo(f"Sync skipped: {result.reason.value}")
        return

    click.echo(
        f"Synced {result.succeeded} of {result.total} item(s), {result.failed} failed"
    )
    for error in result.errors:
        click.echo(f"  {error.id} ({error.operation}): {error.error}")


@click.command()
def sync() -> None:
    """Deliver all queued items now.

    Fails if the kiosk is offline.
    """

    async def _sync(app: KioskApp) -> SyncResult | SyncRejection:
        return await app.manager.force_sync()

    try:
        result = run_with_app(_sync)
    except SyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    echo_result(result)


@click.command()
@click.option("--notify/--no-notify", default=True, help="Show desktop notifications.")
def run(notify: bool) -> None:
    """Watch connectivity and sync queued items until interrupted.

    Queued items are delivered at startup when online and again every time
    the connection comes back.
    """
    asyncio.run(_run(notify))


async def _run(notify: bool) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    async with open_app() as app:
        manager = app.manager
        if notify:
            manager.subscribe(SyncNotifier())

        status = manager.get_queue_status()
        click.echo(
            f"Watching connectivity ({'online' if manager.check_online_status() else 'offline'}), "
            f"{status.total} item(s) queued. Press Ctrl+C to stop."
        )

        if manager.check_online_status() and status.total:
            echo_result(await manager.sync_all())

        with contextlib.suppress(KeyboardInterrupt, asyncio.CancelledError):
            await stop.wait()

    click.echo("Stopped.")
