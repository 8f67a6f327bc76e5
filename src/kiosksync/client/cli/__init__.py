"""Command-line interface for kiosksync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Update the kiosk configuration
- status: Show connectivity and queue status
- record: Record an attendance event
- enqueue: Queue an arbitrary operation
- sync: Deliver queued items now
- run: Watch connectivity and sync automatically
- queue: List, remove or clear queued items
- abandoned: List or clear abandoned items
"""

from __future__ import annotations

import click

from kiosksync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_state_path,
    load_config,
    save_config,
    setup_logging,
)
from kiosksync.client.cli.configure import configure
from kiosksync.client.cli.queue import abandoned, enqueue, queue
from kiosksync.client.cli.record import record
from kiosksync.client.cli.status import status
from kiosksync.client.cli.sync import run, sync


@click.group()
@click.version_option(package_name="kiosksync")
@click.option("--verbose", "-v", count=True, help="Log more (-v info, -vv debug).")
@click.option("--log-file", is_flag=True, help="Also log to kiosksync.log in the config directory.")
def cli(verbose: int, log_file: bool) -> None:
    """kiosksync - Offline-first attendance sync for kiosks."""
    setup_logging(verbose, get_config_dir() / "kiosksync.log" if log_file else None)


# Setup commands
cli.add_command(configure)
cli.add_command(status)

# Queue commands
cli.add_command(record)
cli.add_command(enqueue)
cli.add_command(queue)
cli.add_command(abandoned)

# Sync commands
cli.add_command(sync)
cli.add_command(run)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "get_state_path",
    "load_config",
    "save_config",
]
