"""Record command for the kiosksync CLI.

Commands:
- record: Record an attendance event (delivered now or queued)
"""

from __future__ import annotations

import sys

import click
from pydantic import ValidationError

from kiosksync.client.app import KioskApp
from kiosksync.client.attendance import AttendanceOutcome
from kiosksync.client.cli.config import run_with_app

METHODS = ("fingerprint", "nfc", "barcode", "face")


@click.command()
@click.argument("uid")
@click.option(
    "--method",
    "-m",
    type=click.Choice(METHODS),
    default="fingerprint",
    show_default=True,
    help="How the user was identified.",
)
@click.option("--name", "user_name", help="User display name.")
@click.option("--role", "user_role", help="User role.")
@click.option("--latitude", type=float, default=0.0)
@click.option("--longitude", type=float, default=0.0)
def record(
    uid: str,
    method: str,
    user_name: str | None,
    user_role: str | None,
    latitude: float,
    longitude: float,
) -> None:
    """Record attendance for user UID."""

    async def _record(app: KioskApp) -> AttendanceOutcome:
        return await app.recorder.record(
            uid,
            method,
            user_name=user_name,
            user_role=user_role,
            location=(latitude, longitude),
        )

    try:
        outcome = run_with_app(_record)
    except ValidationError as e:
        click.echo(f"Error: invalid attendance record: {e}", err=True)
        sys.exit(1)

    if outcome.delivered:
        click.echo(f"Attendance recorded for {uid}")
    elif outcome.error:
        click.echo(f"Delivery failed ({outcome.error}), queued as {outcome.item_id}")
    else:
        click.echo(f"Offline: attendance queued as {outcome.item_id}")
