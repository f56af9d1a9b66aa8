"""Data models for the import gate."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Anything that lets submitted code spawn processes, open sockets, reach the
# host OS below the language level, poke raw memory, or handle signals.
# C accelerator twins (`_socket`, `_signal`) are covered by their public name.
DEFAULT_DENYLIST: frozenset[str] = frozenset(
    {
        # process spawning
        "subprocess",
        "os",
        "pty",
        "multiprocessing",
        "concurrent",
        "_posixsubprocess",
        "_winapi",
        # raw networking and HTTP
        "socket",
        "ssl",
        "socketserver",
        "asyncio",
        "http",
        "urllib",
        "ftplib",
        "smtplib",
        "poplib",
        "imaplib",
        "xmlrpc",
        "select",
        "selectors",
        "_overlapped",
        # low-level OS and interpreter access
        "posix",
        "nt",
        "resource",
        "fcntl",
        "shutil",
        "sys",
        "importlib",
        "runpy",
        "code",
        "pdb",
        "builtins",
        "_imp",
        "_frozen_importlib",
        "_frozen_importlib_external",
        "_interpreters",
        "_xxsubinterpreters",
        # unsafe memory
        "ctypes",
        "mmap",
        "gc",
        "_testcapi",
        "_testinternalcapi",
        # signals
        "signal",
    }
)

# Modules the restricted interpreter binds into a submission's namespace.
DEFAULT_ALLOWLIST: frozenset[str] = frozenset(
    {
        "bisect",
        "collections",
        "datetime",
        "decimal",
        "enum",
        "fractions",
        "functools",
        "hashlib",
        "heapq",
        "itertools",
        "json",
        "math",
        "random",
        "re",
        "statistics",
        "textwrap",
        "unicodedata",
    }
)

DEFAULT_BLOCKED_BUILTINS: frozenset[str] = frozenset(
    {"__import__", "eval", "exec", "compile", "breakpoint"}
)


class PolicyMode(str, Enum):
    """How the policy list is interpreted."""

    DENY = "deny"
    ALLOW = "allow"


class GateConfig(BaseModel):
    """Policy lists for the import gate. Fixed at process start."""

    model_config = ConfigDict(frozen=True)

    denylist: frozenset[str] = Field(
        default=DEFAULT_DENYLIST,
        description="Forbidden packages (subprocess path).",
    )
    allowlist: frozenset[str] = Field(
        default=DEFAULT_ALLOWLIST,
        description="Permitted packages (interpreter path).",
    )
    blocked_builtins: frozenset[str] = Field(
        default=DEFAULT_BLOCKED_BUILTINS,
        description="Dynamic-execution builtins a submission may not call.",
    )


class ImportSet(BaseModel):
    """Import paths a submission textually declares."""

    model_config = ConfigDict(frozen=True)

    modules: frozenset[str] = Field(default_factory=frozenset)

    def __contains__(self, module: object) -> bool:
        return module in self.modules

    def __len__(self) -> int:
        return len(self.modules)

    def sorted(self) -> list[str]:
        return sorted(self.modules)
