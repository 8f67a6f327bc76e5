"""Configure command for the kiosksync CLI.

Commands:
- configure: Set the server URL, retry budget and kiosk identity
"""

from __future__ import annotations

import sys
from typing import Any

import click

from kiosksync.client.cli.config import get_config_file, load_config, save_config
from kiosksync.core.config import SyncConfig


@click.command()
@click.option("--server-url", help="Base URL for relative delivery URLs.")
@click.option("--probe-url", help="URL probed with HEAD to detect internet access.")
@click.option("--probe-interval", type=float, help="Seconds between reachability probes.")
@click.option("--timeout", type=float, help="Request timeout in seconds.")
@click.option("--max-retries", type=int, help="Failed attempts before an item is abandoned.")
@click.option(
    "--retry-client-errors/--no-retry-client-errors",
    default=None,
    help="Whether 4xx responses are retried like other failures.",
)
@click.option("--device-id", help="Identifier of this kiosk.")
@click.option("--device-model", help="Hardware model of this kiosk.")
@click.option("--attendance-url", help="Endpoint receiving attendance records.")
@click.option("--show", is_flag=True, help="Print the resulting configuration.")
def configure(show: bool, **options: Any) -> None:
    """Update the kiosk configuration.

    Only the options given are changed; everything else keeps its value.
    """
    config = load_config()
    config.update({k: v for k, v in options.items() if v is not None})

    try:
        sync_config = SyncConfig.from_dict(config)
    except (TypeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    save_config(sync_config.to_dict())
    click.echo(f"Configuration saved to {get_config_file()}")

    if show:
        for key, value in sync_config.to_dict().items():
            click.echo(f"  {key}: {value}")
