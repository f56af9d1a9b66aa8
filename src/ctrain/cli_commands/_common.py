"""Helpers shared by commands that need a service configuration."""

from __future__ import annotations

import sys
from pathlib import Path

from ctrain.cli_commands._output import console
from ctrain.config import ConfigError, ConfigLoader, ServiceConfig


def load_config(path: str | None) -> ServiceConfig:
    """Load *path*, or the defaults when no file is given. Exits 1 on error."""
    if path is None:
        return ServiceConfig()
    try:
        return ConfigLoader(Path(path)).load()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}", highlight=False)
        sys.exit(1)
