"""SubprocessSandbox — runs a submission as a child process in a scratch directory.

Each ``execute()`` call:
1. Creates a uniquely-named scratch directory owned by this call alone.
2. Writes the submission verbatim as the entry-point file.
3. Launches the toolchain in a new session with stderr folded into stdout.
4. Waits with a hard wall-clock deadline; on expiry the whole process
   group is killed and reaped.
5. Removes the scratch directory in a ``finally`` block.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import tempfile
import time
from pathlib import Path

from ctrain.runtime.errors import ResourceError
from ctrain.runtime.gate.models import PolicyMode
from ctrain.runtime.sandbox.models import SandboxConfig, SandboxResult

logger = logging.getLogger(__name__)

_SCRATCH_PREFIX = "ctrain-run-"
_DRAIN_TIMEOUT = 1.0


class SubprocessSandbox:
    """Process-isolated executor.

    Satisfies the :class:`~ctrain.runtime.sandbox.executor.SandboxExecutor`
    protocol.  Holds no per-call state, so any number of ``execute()`` calls
    may run concurrently, each with its own directory and its own deadline.
    """

    policy_mode = PolicyMode.DENY

    def __init__(self, config: SandboxConfig | None = None) -> None:
        self._config = config or SandboxConfig()

    @property
    def config(self) -> SandboxConfig:
        return self._config

    async def execute(self, source: str, *, timeout: float | None = None) -> SandboxResult:
        """Write *source* to a fresh workspace and run the toolchain on it."""
        deadline = timeout or self._config.timeout

        try:
            scratch = tempfile.TemporaryDirectory(prefix=_SCRATCH_PREFIX, dir=self._config.scratch_root)
        except OSError as exc:
            raise ResourceError(f"failed to create temp directory: {exc}") from exc

        try:
            workdir = Path(scratch.name)
            self._write_entrypoint(workdir, source)
            return await self._run(workdir, deadline)
        finally:
            scratch.cleanup()

    def _write_entrypoint(self, workdir: Path, source: str) -> None:
        try:
            (workdir / self._config.entrypoint).write_text(source, encoding="utf-8")
        except OSError as exc:
            raise ResourceError(f"failed to write code: {exc}") from exc

    async def _run(self, workdir: Path, deadline: float) -> SandboxResult:
        env = {**_base_env(), **self._config.env}
        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._config.toolchain,
                cwd=workdir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                env=env,
                start_new_session=True,
            )
        except OSError as exc:
            raise ResourceError(f"failed to start toolchain: {exc}") from exc

        assert proc.stdout is not None
        reader = asyncio.ensure_future(proc.stdout.read())
        timed_out = False
        try:
            await asyncio.wait_for(proc.wait(), timeout=deadline)
        except TimeoutError:
            timed_out = True
        except asyncio.CancelledError:
            reader.cancel()
            raise
        finally:
            # Leftover descendants would otherwise keep the pipe open.
            await _kill(proc)

        combined = await _drain(reader)
        duration_ms = int((time.monotonic() - start) * 1000)
        output = combined.decode(errors="replace").strip()

        if timed_out:
            logger.info("Submission killed after %gs deadline (pid=%s)", deadline, proc.pid)
            return SandboxResult(
                exit_code=proc.returncode if proc.returncode is not None else -signal.SIGKILL,
                output=output,
                timed_out=True,
                error=f"signal: killed (timed out after {deadline:g}s)",
                duration_ms=duration_ms,
            )

        exit_code = proc.returncode or 0
        return SandboxResult(
            exit_code=exit_code,
            output=output,
            error=_describe_exit(exit_code),
            duration_ms=duration_ms,
        )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill the child's process group, then reap the child."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError:
        if proc.returncode is None:
            proc.kill()
    await proc.wait()


async def _drain(reader: asyncio.Future[bytes]) -> bytes:
    try:
        return await asyncio.wait_for(reader, timeout=_DRAIN_TIMEOUT)
    except TimeoutError:
        logger.warning("Output pipe still open %gs after the child exited", _DRAIN_TIMEOUT)
        return b""


def _describe_exit(exit_code: int) -> str | None:
    if exit_code == 0:
        return None
    if exit_code < 0:
        try:
            name = signal.Signals(-exit_code).name
        except ValueError:
            name = str(-exit_code)
        return f"signal: {name}"
    return f"exit status {exit_code}"


def _base_env() -> dict[str, str]:
    """Minimal environment for the child: enough to find the toolchain, nothing else."""
    env = {"PATH": os.environ.get("PATH", os.defpath), "PYTHONDONTWRITEBYTECODE": "1"}
    for key in ("LANG", "LC_ALL", "SYSTEMROOT"):
        if key in os.environ:
            env[key] = os.environ[key]
    return env
