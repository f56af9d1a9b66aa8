"""ImportGate — static pre-check of a submission's declared imports.

The gate parses the source into an AST and walks it; nothing is compiled
to bytecode or executed.
"""

from __future__ import annotations

import ast
import logging
from typing import NamedTuple

from ctrain.runtime.errors import CompilationError, SecurityViolation
from ctrain.runtime.gate.models import GateConfig, ImportSet, PolicyMode
from ctrain.runtime.gate.policy import PolicyEngine

logger = logging.getLogger(__name__)

# Frame and code attributes reach the host's globals without a leading underscore.
_INTROSPECTION_ATTRS = frozenset(
    {
        "ag_code",
        "ag_frame",
        "cr_code",
        "cr_frame",
        "f_back",
        "f_builtins",
        "f_code",
        "f_globals",
        "f_locals",
        "gi_code",
        "gi_frame",
        "gi_yieldfrom",
        "tb_frame",
        "tb_next",
    }
)


class _Finding(NamedTuple):
    lineno: int
    col: int
    package: str
    reason: str


class _SourceScanner(ast.NodeVisitor):
    """Collect imports and policy findings in source order."""

    def __init__(self, engine: PolicyEngine) -> None:
        self._engine = engine
        self._restricted = engine.mode == PolicyMode.ALLOW
        self._imported_names: set[str] = set()
        self.imports: list[str] = []
        self.findings: list[_Finding] = []

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self._record(node, alias.name)
            self._imported_names.add(alias.asname or alias.name.partition(".")[0])
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self._record(node, "." * node.level + (node.module or ""))
        for alias in node.names:
            self._imported_names.add(alias.asname or alias.name)
            if self._engine.denies_attribute(alias.name):
                self._flag(node, alias.name, "denylisted module reached through another module")
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if self._engine.blocks_builtin(node.id):
            self._flag(node, node.id, "dynamic execution builtin")

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if self._engine.denies_attribute(node.attr):
            self._flag(node, node.attr, "denylisted module reached through another module")
        # Only the allowlist path relies on the namespace as its whole boundary.
        elif self._restricted:
            if _is_private(node.attr):
                self._flag(node, node.attr, "private attribute access")
            elif isinstance(node.ctx, (ast.Store, ast.Del)):
                root = _root_name(node)
                if root in self._imported_names:
                    self._flag(node, root, "assignment to imported object")
        self.generic_visit(node)

    def _record(self, node: ast.stmt, module: str) -> None:
        self.imports.append(module)
        if module.startswith("."):
            self._flag(node, module, "relative import")
        elif not self._engine.permits(module):
            reason = "denylisted" if self._engine.mode == PolicyMode.DENY else "not in allowlist"
            self._flag(node, module, reason)

    def _flag(self, node: ast.AST, package: str, reason: str) -> None:
        self.findings.append(
            _Finding(getattr(node, "lineno", 0), getattr(node, "col_offset", 0), package, reason)
        )


class ImportGate:
    """Enumerate a submission's imports and enforce the policy list.

    ``mode`` is fixed per deployment: ``DENY`` for the subprocess sandbox,
    ``ALLOW`` for the restricted interpreter.
    """

    def __init__(self, config: GateConfig | None = None, *, mode: PolicyMode = PolicyMode.DENY) -> None:
        self._engine = PolicyEngine(config or GateConfig(), mode)

    @property
    def mode(self) -> PolicyMode:
        return self._engine.mode

    def scan(self, source: str) -> ImportSet:
        """Return the declared imports without enforcing the policy.

        Raises:
            CompilationError: If the source does not parse.
        """
        scanner = self._scan(source)
        return ImportSet(modules=frozenset(scanner.imports))

    def check(self, source: str) -> ImportSet:
        """Return the declared imports, or raise on the first violation.

        Raises:
            CompilationError: If the source does not parse.
            SecurityViolation: If an import or builtin reference is forbidden.
        """
        scanner = self._scan(source)
        if scanner.findings:
            first = min(scanner.findings)
            logger.info(
                "Import gate rejected submission: %s (%s) at line %d",
                first.package,
                first.reason,
                first.lineno,
            )
            raise SecurityViolation(first.package, reason=first.reason)
        return ImportSet(modules=frozenset(scanner.imports))

    def _scan(self, source: str) -> _SourceScanner:
        try:
            tree = ast.parse(source, filename="main.py", mode="exec")
        except SyntaxError as exc:
            raise CompilationError(_describe_syntax_error(exc)) from exc
        except ValueError as exc:
            # NUL bytes in the source
            raise CompilationError(str(exc)) from exc

        scanner = _SourceScanner(self._engine)
        scanner.visit(tree)
        return scanner


def _describe_syntax_error(exc: SyntaxError) -> str:
    where = f"main.py:{exc.lineno}" if exc.lineno else "main.py"
    if exc.offset:
        where += f":{exc.offset}"
    return f"{where}: {exc.msg}"


def _is_private(name: str) -> bool:
    return name.startswith("_") or name in _INTROSPECTION_ATTRS


def _root_name(node: ast.expr) -> str | None:
    while isinstance(node, (ast.Attribute, ast.Subscript)):
        node = node.value
    return node.id if isinstance(node, ast.Name) else None
