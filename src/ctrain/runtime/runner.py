"""SubmissionRunner — import gate, sandbox and comparator behind one call.

The runner wraps a :class:`~ctrain.runtime.sandbox.executor.SandboxExecutor`
the same way for either variant: the gate's policy mode follows the
executor, so a deployment that picks the interpreter also gets the
allowlist.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ctrain.runtime.comparator import verify
from ctrain.runtime.errors import (
    CompilationError,
    ExecutionFailure,
    ResourceError,
    SecurityViolation,
    VerdictMismatch,
)
from ctrain.runtime.gate.gate import ImportGate
from ctrain.runtime.sandbox.models import ExecutionVerdict, Submission
from ctrain.utils.telemetry import (
    ATTR_BACKEND,
    ATTR_ERROR_KIND,
    ATTR_EXIT_CODE,
    ATTR_LESSON_ID,
    ATTR_POLICY_MODE,
    ATTR_SUCCESS,
    ATTR_TIMED_OUT,
    get_tracer,
)

if TYPE_CHECKING:
    from ctrain.catalog.catalog import LessonCatalog
    from ctrain.runtime.gate.models import GateConfig
    from ctrain.runtime.sandbox.executor import SandboxExecutor
    from ctrain.runtime.sandbox.models import SandboxResult

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class SubmissionRunner:
    """Run one submission to a terminal :class:`ExecutionVerdict`.

    Steps:
    1. **Lookup** — resolve the lesson's expected output; an unknown id
       raises :class:`~ctrain.runtime.errors.LessonNotFoundError`.
    2. **Gate** — static import check; a rejected submission never reaches
       the executor.
    3. **Execute** — delegate to the configured executor.
    4. **Grade** — compare the output against the expected value.

    Every per-submission error becomes a verdict; nothing is retried.
    """

    def __init__(
        self,
        catalog: LessonCatalog,
        executor: SandboxExecutor,
        *,
        gate_config: GateConfig | None = None,
    ) -> None:
        self._catalog = catalog
        self._executor = executor
        self._gate = ImportGate(gate_config, mode=executor.policy_mode)

    @property
    def catalog(self) -> LessonCatalog:
        return self._catalog

    @property
    def executor(self) -> SandboxExecutor:
        return self._executor

    @property
    def gate(self) -> ImportGate:
        return self._gate

    async def run(self, submission: Submission) -> ExecutionVerdict:
        """Gate, execute and grade *submission*.

        Raises:
            LessonNotFoundError: If the lesson id is unknown.
        """
        expected = self._catalog.expected_output(submission.lesson_id)

        with _tracer.start_as_current_span("submission.run") as span:
            span.set_attribute(ATTR_LESSON_ID, submission.lesson_id)
            span.set_attribute(ATTR_BACKEND, type(self._executor).__name__)
            span.set_attribute(ATTR_POLICY_MODE, self._gate.mode.value)

            try:
                self._gate.check(submission.source)
                result = await self._executor.execute(submission.source)
                span.set_attribute(ATTR_EXIT_CODE, result.exit_code)
                span.set_attribute(ATTR_TIMED_OUT, result.timed_out)
                verdict = ExecutionVerdict(success=True, output=self._grade(result, expected))
            except (CompilationError, SecurityViolation) as exc:
                span.set_attribute(ATTR_ERROR_KIND, type(exc).__name__)
                verdict = ExecutionVerdict(success=False, error=str(exc))
            except ResourceError as exc:
                logger.error("Submission for %s failed on the host: %s", submission.lesson_id, exc)
                span.set_attribute(ATTR_ERROR_KIND, type(exc).__name__)
                verdict = ExecutionVerdict(success=False, error=str(exc))
            except ExecutionFailure as exc:
                span.set_attribute(ATTR_ERROR_KIND, type(exc).__name__)
                verdict = ExecutionVerdict(success=False, output=exc.output, error=exc.detail)
            except VerdictMismatch as exc:
                span.set_attribute(ATTR_ERROR_KIND, type(exc).__name__)
                verdict = ExecutionVerdict(success=False, output=exc.actual, error=str(exc))

            span.set_attribute(ATTR_SUCCESS, verdict.success)
            return verdict

    def _grade(self, result: SandboxResult, expected: str) -> str:
        """Return the graded output, or raise why the result does not pass.

        Raises:
            ExecutionFailure: If the execution itself failed or timed out.
            VerdictMismatch: If it succeeded with the wrong output.
        """
        if not result.succeeded:
            raise ExecutionFailure(
                result.error or f"exit status {result.exit_code}",
                output=result.output,
                timed_out=result.timed_out,
            )
        return verify(result.output, expected)


def is_internal_error(verdict: ExecutionVerdict) -> bool:
    """Whether *verdict* reports a host-side fault rather than a submission fault."""
    return verdict.error is not None and verdict.error.startswith("Internal Error")
