"""InterpreterSandbox — evaluates a submission in-process against an allowlisted surface.

Used where no OS process boundary is available.  There is no isolation
beyond the namespace itself, so the allowlist *is* the security boundary:

- Only allowlisted modules can be imported, and only through public-only
  proxies built once at construction (never per request).  Module-level
  containers are handed out frozen, and ``random`` gets a generator of its
  own on every call.
- Only an explicit set of builtins is visible; ``open``, ``eval``, ``exec``,
  ``compile``, ``getattr``, ``setattr``, ``globals`` and friends are simply
  absent.
- Every attribute store or delete is routed through a write guard that only
  lets it through on classes, instances and functions the submission
  created itself.  Host classes reached under any alias stay untouched.
- Each evaluation gets a fresh namespace and its own output buffers.

No wall-clock timeout is enforced here; the host runtime owns that budget.
"""

from __future__ import annotations

import ast
import asyncio
import builtins
import importlib
import io
import logging
import random
import sys
import time
import traceback
import types
from typing import Any

from ctrain.runtime.errors import CompilationError, ResourceError, SecurityViolation
from ctrain.runtime.gate.gate import ImportGate
from ctrain.runtime.gate.models import GateConfig, PolicyMode
from ctrain.runtime.sandbox.models import SandboxConfig, SandboxResult

logger = logging.getLogger(__name__)

_SUBMISSION_FILENAME = "main.py"

# Bound in the builtins table; a submission spelling it out could rebind it.
_WRITE_GUARD = "__ctrain_write_guard__"

_SAFE_BUILTINS = frozenset(
    {
        "__build_class__",
        "abs",
        "all",
        "any",
        "ascii",
        "bin",
        "bool",
        "bytearray",
        "bytes",
        "callable",
        "chr",
        "classmethod",
        "complex",
        "dict",
        "divmod",
        "enumerate",
        "filter",
        "float",
        "format",
        "frozenset",
        "hasattr",
        "hash",
        "hex",
        "id",
        "int",
        "isinstance",
        "issubclass",
        "iter",
        "len",
        "list",
        "map",
        "max",
        "min",
        "next",
        "object",
        "oct",
        "ord",
        "pow",
        "property",
        "range",
        "repr",
        "reversed",
        "round",
        "set",
        "slice",
        "sorted",
        "staticmethod",
        "str",
        "sum",
        "super",
        "tuple",
        "type",
        "zip",
    }
)


class InterpreterSandbox:
    """Restricted in-process executor.

    Satisfies the :class:`~ctrain.runtime.sandbox.executor.SandboxExecutor`
    protocol.
    """

    policy_mode = PolicyMode.ALLOW

    def __init__(
        self,
        config: SandboxConfig | None = None,
        gate_config: GateConfig | None = None,
    ) -> None:
        self._config = config or SandboxConfig(backend="interpreter")
        gate_config = gate_config or GateConfig()
        self._gate = ImportGate(gate_config, mode=PolicyMode.ALLOW)
        self._modules = _build_module_table(gate_config.allowlist)
        self._builtins = _build_builtins()
        logger.info(
            "Interpreter sandbox ready: %d importable modules, %d builtins",
            len(self._modules),
            len(self._builtins),
        )

    @property
    def config(self) -> SandboxConfig:
        return self._config

    @property
    def modules(self) -> frozenset[str]:
        """Names resolvable by ``import`` inside a submission."""
        return frozenset(self._modules)

    async def execute(self, source: str, *, timeout: float | None = None) -> SandboxResult:
        """Evaluate *source* once in a fresh namespace.

        *timeout* is accepted for protocol compatibility and ignored.
        """
        self._gate.check(source)
        if _WRITE_GUARD in source:
            raise SecurityViolation(_WRITE_GUARD, reason="reserved name")
        return await asyncio.to_thread(self._evaluate, source)

    def _evaluate(self, source: str) -> SandboxResult:
        code = _compile_guarded(source)
        stdout = io.StringIO()
        stderr = io.StringIO()
        namespace = self._fresh_namespace(stdout)

        start = time.monotonic()
        exit_code = 0
        error: str | None = None
        try:
            exec(code, namespace)  # noqa: S102
        except SystemExit as exc:
            exit_code, error = _describe_system_exit(exc)
        except (Exception, KeyboardInterrupt) as exc:
            exit_code = 1
            error = "".join(traceback.format_exception_only(exc)).strip()
            stderr.write(_submission_traceback(exc, source))
        duration_ms = int((time.monotonic() - start) * 1000)

        return SandboxResult(
            exit_code=exit_code,
            output=_combine(stdout.getvalue(), stderr.getvalue()),
            error=error,
            duration_ms=duration_ms,
        )

    def _fresh_namespace(self, stdout: io.StringIO) -> dict[str, Any]:
        modules = dict(self._modules)
        if "random" in modules:
            modules["random"] = _fresh_random(modules["random"])
        owned: dict[int, type] = {}

        def guarded_import(
            name: str,
            globals: dict[str, Any] | None = None,
            locals: dict[str, Any] | None = None,
            fromlist: tuple[str, ...] | None = (),
            level: int = 0,
        ) -> types.ModuleType:
            if level != 0 or name not in modules:
                raise ImportError(f"import of '{name}' is not allowed")
            if fromlist:
                return modules[name]
            top = name.partition(".")[0]
            if top not in modules:
                raise ImportError(f"import of '{top}' is not allowed")
            return modules[top]

        def sandbox_print(
            *args: Any,
            sep: str | None = " ",
            end: str | None = "\n",
            file: Any = None,
            flush: bool = False,
        ) -> None:
            builtins.print(*args, sep=sep, end=end, file=stdout if file is None else file)

        def build_class(func: Any, name: str, *bases: Any, **kwargs: Any) -> Any:
            cls = builtins.__build_class__(func, name, *bases, **kwargs)
            # A metaclass may hand back an existing host class instead of a new one.
            if isinstance(cls, type) and cls.__module__ == "__main__":
                owned[id(cls)] = cls
            return cls

        def write_guard(target: Any) -> Any:
            if _owned_by_submission(target, owned):
                return target
            return _ReadOnlyView(target)

        table = dict(self._builtins)
        table["__import__"] = guarded_import
        table["__build_class__"] = build_class
        table["print"] = sandbox_print
        table[_WRITE_GUARD] = write_guard
        return {"__builtins__": table, "__name__": "__main__"}


class _ReadOnlyModule(types.ModuleType):
    """Module proxy that submissions cannot rebind attributes on."""

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"module '{self.__name__}' is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"module '{self.__name__}' is read-only")


class _ReadOnlyView:
    """Stands in for a host object as the target of an attribute store or delete."""

    __slots__ = ("_target",)

    def __init__(self, target: Any) -> None:
        object.__setattr__(self, "_target", target)

    def __getattr__(self, name: str) -> Any:
        # Augmented assignment reads the attribute before storing it.
        return getattr(self._target, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set '{name}' on {_describe_target(self._target)}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete '{name}' on {_describe_target(self._target)}")


class _GuardedWrites(ast.NodeTransformer):
    """Rewrite ``obj.attr = v`` and ``del obj.attr`` to go through the write guard."""

    def visit_Attribute(self, node: ast.Attribute) -> ast.AST:
        self.generic_visit(node)
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            guarded = ast.Call(
                func=ast.Name(id=_WRITE_GUARD, ctx=ast.Load()),
                args=[node.value],
                keywords=[],
            )
            node.value = ast.copy_location(guarded, node.value)
        return node


def _compile_guarded(source: str) -> types.CodeType:
    try:
        tree = ast.parse(source, filename=_SUBMISSION_FILENAME, mode="exec")
        tree = ast.fix_missing_locations(_GuardedWrites().visit(tree))
        return compile(tree, _SUBMISSION_FILENAME, "exec", dont_inherit=True)
    except (SyntaxError, ValueError) as exc:
        # Parses but does not compile, e.g. `return` at module level.
        raise CompilationError(_describe_compile_error(exc)) from exc


def _owned_by_submission(target: Any, owned: dict[int, type]) -> bool:
    if type(target) is types.FunctionType:
        return target.__code__.co_filename == _SUBMISSION_FILENAME
    cls = target if isinstance(target, type) else type(target)
    return owned.get(id(cls)) is cls


def _describe_target(target: Any) -> str:
    if isinstance(target, type):
        return f"host class '{target.__name__}'"
    return f"host object of type '{type(target).__name__}'"


def _build_module_table(allowlist: frozenset[str]) -> dict[str, types.ModuleType]:
    """Import every allowlisted module once and wrap it in a public-only proxy."""
    table: dict[str, types.ModuleType] = {}
    for name in sorted(allowlist):
        try:
            module = importlib.import_module(name)
        except ImportError as exc:
            raise ResourceError(f"allowlisted module '{name}' cannot be imported: {exc}") from exc
        _proxy(module, name, table)
    for name, proxy in table.items():
        parent, _, attr = name.rpartition(".")
        if parent in table:
            table[parent].__dict__.setdefault(attr, proxy)
    return table


def _proxy(module: types.ModuleType, name: str, table: dict[str, types.ModuleType]) -> types.ModuleType:
    if name in table:
        return table[name]

    proxy = _ReadOnlyModule(name, module.__doc__)
    table[name] = proxy
    for attr in dir(module):
        if attr.startswith("_"):
            continue
        value = getattr(module, attr)
        if isinstance(value, types.ModuleType):
            # Submodules ride along; unrelated modules a package happens to import do not.
            child = f"{name}.{attr}"
            if value.__name__ != child and sys.modules.get(child) is not value:
                continue
            value = _proxy(value, child, table)
        elif isinstance(value, (list, set, dict)):
            value = _freeze(value)
        proxy.__dict__[attr] = value
    return proxy


def _freeze(value: list[Any] | set[Any] | dict[Any, Any]) -> Any:
    if isinstance(value, dict):
        return types.MappingProxyType(dict(value))
    if isinstance(value, set):
        return frozenset(value)
    return tuple(value)


def _fresh_random(shared: types.ModuleType) -> types.ModuleType:
    """Copy of the ``random`` proxy whose module-level functions use a new generator."""
    rng = random.Random()
    proxy = _ReadOnlyModule(shared.__name__, shared.__doc__)
    for attr, value in vars(shared).items():
        if attr.startswith("_"):
            continue
        if isinstance(value, types.MethodType) and isinstance(value.__self__, random.Random):
            value = getattr(rng, value.__name__)
        proxy.__dict__[attr] = value
    return proxy


def _build_builtins() -> dict[str, Any]:
    table = {name: getattr(builtins, name) for name in _SAFE_BUILTINS if hasattr(builtins, name)}
    for name, value in vars(builtins).items():
        if isinstance(value, type) and issubclass(value, BaseException):
            table[name] = value
    return table


def _describe_system_exit(exc: SystemExit) -> tuple[int, str | None]:
    if exc.code is None or exc.code == 0:
        return 0, None
    if isinstance(exc.code, int):
        return exc.code, f"exit status {exc.code}"
    return 1, str(exc.code)


def _submission_traceback(exc: BaseException, source: str) -> str:
    """Render the traceback restricted to frames from the submission itself.

    Source lines come from *source*, never from linecache, so a stray
    ``main.py`` in the host's working directory cannot leak into the output.
    """
    source_lines = source.splitlines()
    frames: list[traceback.FrameSummary] = []
    for frame, lineno in traceback.walk_tb(exc.__traceback__):
        code = frame.f_code
        if code.co_filename != _SUBMISSION_FILENAME:
            continue
        line = source_lines[lineno - 1] if lineno and 0 < lineno <= len(source_lines) else ""
        frames.append(traceback.FrameSummary(code.co_filename, lineno, code.co_name, lookup_line=False, line=line))
    lines = ["Traceback (most recent call last):\n"] if frames else []
    lines.extend(traceback.format_list(frames))
    lines.extend(traceback.format_exception_only(exc))
    return "".join(lines)


def _combine(stdout: str, stderr: str) -> str:
    output = stdout
    if stderr:
        if output:
            output += "\n"
        output += stderr
    return output.strip()


def _describe_compile_error(exc: SyntaxError | ValueError) -> str:
    if isinstance(exc, SyntaxError) and exc.lineno:
        return f"{_SUBMISSION_FILENAME}:{exc.lineno}: {exc.msg}"
    return str(exc)
