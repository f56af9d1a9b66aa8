"""End-to-end tests for the HTTP application."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from ctrain.catalog.catalog import load_default_catalog
from ctrain.config import EdgeConfig, ServiceConfig
from ctrain.runtime.errors import ResourceError
from ctrain.runtime.gate.models import PolicyMode
from ctrain.runtime.runner import SubmissionRunner
from ctrain.runtime.sandbox.models import SandboxConfig
from ctrain.server.app import create_app

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    config = ServiceConfig(sandbox=SandboxConfig(timeout=1.0, scratch_root=str(tmp_path)))
    with TestClient(create_app(config)) as c:
        yield c


def _run(client: TestClient, code: str, concept_id: str = "type-conversion") -> tuple[int, dict[str, object]]:
    resp = client.post("/api/run", json={"code": code, "conceptId": concept_id})
    return resp.status_code, resp.json()


class TestRun:
    def test_correct_submission(self, client: TestClient) -> None:
        status, body = _run(client, "f = 3.7\nprint(int(f))\n")
        assert status == 200
        assert body == {"success": True, "output": "3"}

    def test_wrong_output(self, client: TestClient) -> None:
        status, body = _run(client, "print(3.7)\n")
        assert status == 200
        assert body == {"success": False, "output": "3.7", "error": 'Expected: "3", Got: "3.7"'}

    def test_forbidden_import(self, client: TestClient) -> None:
        status, body = _run(client, "import subprocess\nprint(3)\n")
        assert status == 200
        assert body["success"] is False
        assert body["output"] == ""
        assert str(body["error"]).startswith("Security Violation: package 'subprocess' is not allowed")

    def test_compilation_error(self, client: TestClient) -> None:
        status, body = _run(client, "print(int(3.7)\n")
        assert status == 200
        assert body["success"] is False
        assert str(body["error"]).startswith("Compilation Error:")

    def test_runtime_error(self, client: TestClient) -> None:
        status, body = _run(client, "raise ValueError('nope')\n")
        assert status == 200
        assert body["success"] is False
        assert body["error"] == "exit status 1"
        assert "ValueError: nope" in str(body["output"])

    def test_never_terminates(self, client: TestClient, tmp_path: Path) -> None:
        start = time.monotonic()
        status, body = _run(client, "while True:\n    pass\n")
        elapsed = time.monotonic() - start

        assert status == 200
        assert body["success"] is False
        assert "timed out" in str(body["error"])
        assert 1.0 <= elapsed < 1.0 + 5.0
        assert list(tmp_path.iterdir()) == []

    def test_unknown_concept(self, client: TestClient) -> None:
        status, body = _run(client, "print(3)", concept_id="no-such-concept")
        assert status == 404
        assert body == {"detail": "Concept not found"}

    def test_missing_fields(self, client: TestClient) -> None:
        resp = client.post("/api/run", json={"code": "print(3)"})
        assert resp.status_code == 422

    def test_internal_error_is_500(self) -> None:
        executor = MagicMock()
        executor.policy_mode = PolicyMode.DENY
        executor.execute = AsyncMock(side_effect=ResourceError("failed to create temp directory"))
        runner = SubmissionRunner(load_default_catalog(), executor)

        with TestClient(create_app(runner=runner)) as c:
            status, body = _run(c, "print(3)")

        assert status == 500
        assert body == {"success": False, "output": "", "error": "Internal Error: failed to create temp directory"}


class TestInterpreterBackend:
    def test_correct_submission(self) -> None:
        config = ServiceConfig(sandbox=SandboxConfig(backend="interpreter"))
        with TestClient(create_app(config)) as c:
            status, body = _run(c, "import math\nprint(math.floor(3.7))\n")
        assert status == 200
        assert body == {"success": True, "output": "3"}

    def test_unlisted_import(self) -> None:
        config = ServiceConfig(sandbox=SandboxConfig(backend="interpreter"))
        with TestClient(create_app(config)) as c:
            _, body = _run(c, "import pathlib\nprint(3)\n")
        assert body["success"] is False
        assert str(body["error"]).startswith("Security Violation: package 'pathlib'")


class TestOtherRoutes:
    def test_concepts(self, client: TestClient) -> None:
        resp = client.get("/api/concepts")
        assert resp.status_code == 200
        lessons = resp.json()
        ids = [lesson["id"] for lesson in lessons]
        assert "type-conversion" in ids
        assert all("expectedOutput" in lesson for lesson in lessons)
        by_id = {lesson["id"]: lesson for lesson in lessons}
        assert by_id["type-conversion"]["testCases"][0] == {"input": "3.7", "expected": "3"}
        assert "testCases" not in by_id["hello-world"]

    def test_healthz(self, client: TestClient) -> None:
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_metrics_logged(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="ctrain.metrics")
        resp = client.post(
            "/api/metrics",
            json={"conceptId": "type-conversion", "exitCode": 0, "durationMs": 12, "outputSize": 1},
        )
        assert resp.status_code == 204
        records = [r for r in caplog.records if r.name == "ctrain.metrics"]
        assert records[-1].record == {  # type: ignore[attr-defined]
            "lesson_id": "type-conversion",
            "exit_code": 0,
            "duration_ms": 12,
            "output_size": 1,
        }

    def test_metrics_validation(self, client: TestClient) -> None:
        assert client.post("/api/metrics", json={"exitCode": 0, "durationMs": -1}).status_code == 422


class TestEdgeChain:
    def test_security_headers(self, client: TestClient) -> None:
        resp = client.get("/healthz")
        assert resp.headers["x-frame-options"] == "DENY"
        assert "wasm-unsafe-eval" in resp.headers["content-security-policy"]

    def test_rate_limited(self) -> None:
        config = ServiceConfig(edge=EdgeConfig(rate_limit=2))
        with TestClient(create_app(config)) as c:
            assert c.get("/healthz").status_code == 200
            assert c.get("/healthz").status_code == 200
            resp = c.get("/healthz")
        assert resp.status_code == 429
        assert resp.headers["referrer-policy"] == "strict-origin-when-cross-origin"

    def test_body_too_large(self) -> None:
        config = ServiceConfig(edge=EdgeConfig(max_body_bytes=64))
        with TestClient(create_app(config)) as c:
            resp = c.post("/api/run", json={"code": "x" * 100, "conceptId": "type-conversion"})
        assert resp.status_code == 413
        assert resp.headers["x-content-type-options"] == "nosniff"

    def test_access_log_written(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="ctrain.access")
        client.get("/healthz")
        records = [r for r in caplog.records if r.name == "ctrain.access"]
        assert records[-1].record["path"] == "/healthz"  # type: ignore[attr-defined]
