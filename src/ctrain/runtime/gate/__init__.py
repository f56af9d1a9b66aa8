"""Import gate subsystem — static allow/deny checks on declared imports."""

from ctrain.runtime.gate.gate import ImportGate
from ctrain.runtime.gate.models import (
    DEFAULT_ALLOWLIST,
    DEFAULT_BLOCKED_BUILTINS,
    DEFAULT_DENYLIST,
    GateConfig,
    ImportSet,
    PolicyMode,
)
from ctrain.runtime.gate.policy import PolicyEngine

__all__ = [
    "DEFAULT_ALLOWLIST",
    "DEFAULT_BLOCKED_BUILTINS",
    "DEFAULT_DENYLIST",
    "GateConfig",
    "ImportGate",
    "ImportSet",
    "PolicyEngine",
    "PolicyMode",
]
