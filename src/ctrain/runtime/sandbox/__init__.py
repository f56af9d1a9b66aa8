"""Sandbox subsystem — isolated execution of submissions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ctrain.runtime.sandbox.executor import SandboxExecutor
from ctrain.runtime.sandbox.interpreter_sandbox import InterpreterSandbox
from ctrain.runtime.sandbox.models import (
    ExecutionVerdict,
    SandboxBackend,
    SandboxConfig,
    SandboxResult,
    Submission,
)
from ctrain.runtime.sandbox.subprocess_sandbox import SubprocessSandbox

if TYPE_CHECKING:
    from ctrain.runtime.gate.models import GateConfig


def build_executor(config: SandboxConfig, gate_config: GateConfig | None = None) -> SandboxExecutor:
    """Return the executor variant selected by ``config.backend``."""
    if config.backend == "interpreter":
        return InterpreterSandbox(config, gate_config)
    return SubprocessSandbox(config)


__all__ = [
    "ExecutionVerdict",
    "InterpreterSandbox",
    "SandboxBackend",
    "SandboxConfig",
    "SandboxExecutor",
    "SandboxResult",
    "Submission",
    "SubprocessSandbox",
    "build_executor",
]
