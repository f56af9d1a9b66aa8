"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import ctrain

    assert ctrain.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from ctrain.cli import main

    assert callable(main)


def test_runtime_exports() -> None:
    from ctrain.runtime import (
        CompilationError,
        ExecutionFailure,
        ResourceError,
        SecurityViolation,
        SubmissionRunner,
        VerdictMismatch,
        compare,
    )

    assert SubmissionRunner is not None
    assert compare is not None
    assert all(
        cls is not None
        for cls in (CompilationError, ExecutionFailure, ResourceError, SecurityViolation, VerdictMismatch)
    )


def test_edge_exports() -> None:
    from ctrain.edge import (
        AccessLogMiddleware,
        HeaderPolicyMiddleware,
        RateLimiter,
        RateLimitMiddleware,
        RequestGuardMiddleware,
    )

    assert RateLimiter is not None
    assert all(
        m is not None
        for m in (AccessLogMiddleware, HeaderPolicyMiddleware, RateLimitMiddleware, RequestGuardMiddleware)
    )
