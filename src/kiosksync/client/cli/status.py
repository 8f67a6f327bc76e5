"""Status command for the kiosksync CLI.

Commands:
- status: Show connectivity, queue counters and the last sync pass
"""

from __future__ import annotations

import json
from typing import Any

import click

from kiosksync.client.app import KioskApp
from kiosksync.client.cli.config import run_with_app


def format_last_sync(last_sync: dict[str, Any] | None) -> str:
    """One-line summary of the persisted last sync status."""
    if not last_sync:
        return "never"
    results = last_sync.get("results", {})
    return (
        f"{last_sync.get('timestamp', '?')}: "
        f"{results.get('succeeded', 0)}/{results.get('total', 0)} succeeded, "
        f"{results.get('failed', 0)} failed"
    )


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON.")
def status(as_json: bool) -> None:
    """Show network status and pending sync items."""

    async def _status(app: KioskApp) -> dict[str, Any]:
        manager = app.manager
        return {
            "online": manager.check_online_status(),
            "queue": manager.get_queue_status().to_dict(),
            "last_sync": await manager.get_last_sync_status(),
            "abandoned": len(await manager.get_abandoned_items()),
        }

    info = run_with_app(_status)

    if as_json:
        click.echo(json.dumps(info, indent=2))
        return

    queue = info["queue"]
    click.echo(f"Network:   {'online' if info['online'] else 'offline'}")
    click.echo(
        f"Queue:     {queue['total']} item(s) "
        f"({queue['pending']} pending, {queue['failed']} failed)"
    )
    click.echo(f"Last sync: {format_last_sync(info['last_sync'])}")
    if info["abandoned"]:
        click.echo(f"Abandoned: {info['abandoned']} item(s), see 'kiosksync abandoned list'")
