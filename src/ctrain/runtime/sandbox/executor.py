"""SandboxExecutor protocol — the common interface for sandbox implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ctrain.runtime.gate.models import PolicyMode
    from ctrain.runtime.sandbox.models import SandboxResult


@runtime_checkable
class SandboxExecutor(Protocol):
    """Executes one submission in an isolated environment.

    Two variants exist (process isolation and restricted interpretation).
    A deployment picks one at startup and never mixes them per request.
    ``policy_mode`` tells the import gate which policy the variant relies on.
    """

    policy_mode: PolicyMode

    async def execute(self, source: str, *, timeout: float | None = None) -> SandboxResult:
        """Run *source* and return the raw result."""
        ...
