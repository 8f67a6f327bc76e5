"""Configuration utilities for the kiosksync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from kiosksync.client.app import KioskApp, create_app
from kiosksync.client.sync.reachability import HttpProbe, ReachabilityProbe
from kiosksync.core.config import SyncConfig

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for kiosksync.

    Returns:
        $KIOSKSYNC_HOME if set, otherwise ~/.kiosksync.
    """
    override = os.environ.get("KIOSKSYNC_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".kiosksync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_state_path() -> Path:
    """Get the path to the queue state database."""
    return get_config_dir() / "state.db"


def load_config() -> dict[str, Any]:
    """Load configuration from config file.

    Raises:
        click.ClickException: If the file is not a JSON object.
    """
    config_file = get_config_file()
    if not config_file.exists():
        return {}
    try:
        data = json.loads(config_file.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid configuration file {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise click.ClickException(
            f"Invalid configuration file {config_file}: expected a JSON object"
        )
    return data


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def load_sync_config() -> SyncConfig:
    """Load the SyncConfig from the config file (defaults if absent)."""
    try:
        return SyncConfig.from_dict(load_config())
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration in {get_config_file()}: {e}") from e


def setup_logging(verbosity: int = 0, log_path: Path | None = None) -> None:
    """Configure logging to output to stdout and, if given, a file.

    Args:
        verbosity: 0 logs warnings, 1 adds info, 2 or more adds debug.
        log_path: Optional log file.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("kiosksync")
    levels = (logging.WARNING, logging.INFO, logging.DEBUG)
    root_logger.setLevel(levels[min(verbosity, len(levels) - 1)])
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def build_probe(config: SyncConfig) -> ReachabilityProbe:
    """Reachability probe used by CLI commands."""
    return HttpProbe.from_config(config)


def open_app() -> KioskApp:
    """Build the kiosk services from the saved configuration."""
    config = load_sync_config()
    return create_app(config, get_state_path(), probe=build_probe(config))


def run_with_app(func: Callable[[KioskApp], Awaitable[T]]) -> T:
    """Start the kiosk services, run func, and shut them down again."""

    async def _main() -> T:
        async with open_app() as app:
            return await func(app)

    return asyncio.run(_main())
