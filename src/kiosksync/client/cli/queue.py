"""Queue administration commands for the kiosksync CLI.

Commands:
- enqueue: Add an operation to the queue
- queue list / remove / clear: Inspect and edit pending items
- abandoned list / clear: Inspect items that exhausted their retries
"""

from __future__ import annotations

import json
import sys

import click

from kiosksync.client.app import KioskApp
from kiosksync.client.cli.config import run_with_app
from kiosksync.client.sync.types import AbandonedItem, QueueItem, SyncError


@click.command()
@click.argument("operation")
@click.argument("url")
@click.option("--data", "-d", default="{}", help="JSON object sent as the request body.")
@click.option("--method", "-X", default="POST", show_default=True, help="HTTP method.")
def enqueue(operation: str, url: str, data: str, method: str) -> None:
    """Queue OPERATION for delivery to URL."""
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        click.echo(f"Error: --data is not valid JSON: {e}", err=True)
        sys.exit(1)

    async def _enqueue(app: KioskApp) -> str:
        return await app.manager.enqueue(operation, payload, url, method=method)

    try:
        item_id = run_with_app(_enqueue)
    except SyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Queued {operation} as {item_id}")


@click.group()
def queue() -> None:
    """Inspect and edit the sync queue."""


@queue.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON.")
def list_items(as_json: bool) -> None:
    """List queued items."""

    async def _list(app: KioskApp) -> list[QueueItem]:
        return app.manager.get_queue_items()

    items = run_with_app(_list)

    if as_json:
        click.echo(json.dumps([item.to_dict() for item in items], indent=2))
        return

    if not items:
        click.echo("Queue is empty.")
        return

    for item in items:
        line = (
            f"{item.id}  {item.operation:<12} {item.status.value:<8} "
            f"retries={item.retry_count}  {item.method} {item.url}"
        )
        if item.last_error:
            line += f"  ({item.last_error})"
        click.echo(line)


@queue.command("remove")
@click.argument("item_id")
def remove_item(item_id: str) -> None:
    """Remove ITEM_ID from the queue without delivering it."""

    async def _remove(app: KioskApp) -> bool:
        return await app.manager.remove_queue_item(item_id)

    if not run_with_app(_remove):
        click.echo(f"Error: no queued item {item_id}", err=True)
        sys.exit(1)
    click.echo(f"Removed {item_id}")


@queue.command("clear")
@click.confirmation_option(prompt="Drop every queued item without delivering it?")
def clear_items() -> None:
    """Drop every queued item."""

    async def _clear(app: KioskApp) -> int:
        return await app.manager.clear_queue()

    count = run_with_app(_clear)
    click.echo(f"Removed {count} item(s)")


@click.group()
def abandoned() -> None:
    """Inspect items that were never delivered."""


@abandoned.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON.")
def list_abandoned(as_json: bool) -> None:
    """List abandoned items, oldest first."""

    async def _list(app: KioskApp) -> list[AbandonedItem]:
        return await app.manager.get_abandoned_items()

    records = run_with_app(_list)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        click.echo("No abandoned items.")
        return

    for record in records:
        click.echo(
            f"{record.abandoned_at}  {record.item.id}  {record.item.operation}  {record.reason}"
        )


@abandoned.command("clear")
def clear_abandoned() -> None:
    """Forget abandoned items."""

    async def _clear(app: KioskApp) -> int:
        return await app.manager.clear_abandoned()

    count = run_with_app(_clear)
    click.echo(f"Removed {count} abandoned item(s)")
