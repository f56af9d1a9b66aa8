"""PolicyEngine — evaluates dotted module paths against a policy list.

Pure logic, no I/O.  In ``DENY`` mode a module is refused when it equals a
listed package or lives underneath one (``urllib.request`` under ``urllib``).
In ``ALLOW`` mode the same matching decides what is permitted and
everything else is refused.
"""

from __future__ import annotations

from ctrain.runtime.gate.models import GateConfig, PolicyMode

# `exc.code`, `query.select` and `job.resource` are ordinary attribute accesses.
_COMMON_ATTRIBUTE_NAMES = frozenset({"code", "resource", "select"})


class PolicyEngine:
    """Evaluate module names against a :class:`GateConfig` in one mode."""

    def __init__(self, config: GateConfig, mode: PolicyMode) -> None:
        self._config = config
        self._mode = mode
        self._entries = config.denylist if mode == PolicyMode.DENY else config.allowlist

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def mode(self) -> PolicyMode:
        return self._mode

    def permits(self, module: str) -> bool:
        """Return whether *module* may be imported under this policy."""
        if module.startswith("."):
            return False
        listed = self.matching_entry(module) is not None
        return not listed if self._mode == PolicyMode.DENY else listed

    def matching_entry(self, module: str) -> str | None:
        """Return the policy entry covering *module*, or ``None``.

        The longest match wins so that ``xml.etree`` can be listed
        separately from ``xml``.  In ``DENY`` mode a private C module such
        as ``_socket`` is also matched against its public twin ``socket``.
        """
        for candidate in self._candidates(module):
            parts = candidate.split(".")
            for i in range(len(parts), 0, -1):
                prefix = ".".join(parts[:i])
                if prefix in self._entries:
                    return prefix
        return None

    def denies_attribute(self, name: str) -> bool:
        """Whether ``obj.<name>`` names a denylisted module reached through another one.

        Only meaningful in ``DENY`` mode (``pathlib.os``); a few denylisted
        names double as everyday attribute names and are left alone.
        """
        if self._mode != PolicyMode.DENY or name in _COMMON_ATTRIBUTE_NAMES:
            return False
        return self.matching_entry(name) is not None

    def blocks_builtin(self, name: str) -> bool:
        return name in self._config.blocked_builtins

    def _candidates(self, module: str) -> list[str]:
        candidates = [module]
        if self._mode == PolicyMode.DENY and module.startswith("_"):
            public = module.lstrip("_")
            if public and not public.startswith("."):
                candidates.append(public)
        return candidates
