"""Tests for SandboxExecutor protocol conformance and backend selection."""

from ctrain.runtime.gate.models import PolicyMode
from ctrain.runtime.sandbox import build_executor
from ctrain.runtime.sandbox.executor import SandboxExecutor
from ctrain.runtime.sandbox.interpreter_sandbox import InterpreterSandbox
from ctrain.runtime.sandbox.models import SandboxConfig
from ctrain.runtime.sandbox.subprocess_sandbox import SubprocessSandbox


class TestSandboxExecutorProtocol:
    def test_subprocess_sandbox_satisfies_protocol(self) -> None:
        assert isinstance(SubprocessSandbox(), SandboxExecutor)

    def test_interpreter_sandbox_satisfies_protocol(self) -> None:
        assert isinstance(InterpreterSandbox(), SandboxExecutor)

    def test_policy_modes(self) -> None:
        assert SubprocessSandbox.policy_mode == PolicyMode.DENY
        assert InterpreterSandbox.policy_mode == PolicyMode.ALLOW


class TestBuildExecutor:
    def test_subprocess_backend(self) -> None:
        assert isinstance(build_executor(SandboxConfig()), SubprocessSandbox)

    def test_interpreter_backend(self) -> None:
        executor = build_executor(SandboxConfig(backend="interpreter"))
        assert isinstance(executor, InterpreterSandbox)
