"""Service configuration — pydantic models and the YAML loader used by ``ctrain serve``."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from ctrain.runtime.gate.models import GateConfig
from ctrain.runtime.sandbox.models import SandboxConfig

MAX_BODY_BYTES = 1 << 20


class ConfigError(Exception):
    """Raised when a configuration file fails parsing or validation."""


class EdgeConfig(BaseModel):
    """Limits applied by the HTTP middleware chain."""

    rate_limit: int = Field(default=30, gt=0, description="Requests allowed per client per window.")
    rate_window: float = Field(default=60.0, gt=0, description="Fixed window length in seconds.")
    sweep_interval: float = Field(default=60.0, gt=0, description="Seconds between expired-window sweeps.")
    max_body_bytes: int = Field(default=MAX_BODY_BYTES, gt=0)


class TelemetrySettings(BaseModel):
    """Optional tracing configuration."""

    enabled: bool = False
    export_to_console: bool = False
    otlp_endpoint: str | None = None


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = True


class ServiceConfig(BaseModel):
    """Top-level service configuration parsed from YAML."""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=0, le=65535)
    lessons: str | None = Field(default=None, description="Lesson catalog file; the bundled catalog when unset.")
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    edge: EdgeConfig = Field(default_factory=EdgeConfig)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigLoader:
    """Load and validate a service YAML file into a :class:`ServiceConfig`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> ServiceConfig:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.  An empty file
        yields the defaults.

        Raises:
            ConfigError: On read errors, YAML parse errors or schema validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Service config YAML must be a mapping")

        try:
            return ServiceConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
