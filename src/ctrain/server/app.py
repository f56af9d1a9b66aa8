"""FastAPI application factory.

Middleware order, outermost first: header policy, rate limiter, request
guard, access log.  Starlette wraps the last-added middleware outermost,
so they are added in reverse.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from ctrain import __version__
from ctrain.catalog.catalog import LessonCatalog, load_default_catalog
from ctrain.config import ServiceConfig
from ctrain.edge.access_log import AccessLogMiddleware
from ctrain.edge.guard import RequestGuardMiddleware
from ctrain.edge.headers import HeaderPolicyMiddleware
from ctrain.edge.ratelimit import RateLimiter, RateLimitMiddleware
from ctrain.runtime.errors import LessonNotFoundError
from ctrain.runtime.runner import SubmissionRunner, is_internal_error
from ctrain.runtime.sandbox import build_executor
from ctrain.runtime.sandbox.models import Submission
from ctrain.server.models import ExecutionMetrics, RunRequest

logger = logging.getLogger(__name__)
metrics_logger = logging.getLogger("ctrain.metrics")


def create_app(
    config: ServiceConfig | None = None,
    *,
    runner: SubmissionRunner | None = None,
    limiter: RateLimiter | None = None,
) -> FastAPI:
    """Build the service app.

    *runner* and *limiter* default to instances built from *config*.
    """
    config = config or ServiceConfig()
    if runner is None:
        catalog = LessonCatalog.from_yaml(Path(config.lessons)) if config.lessons else load_default_catalog()
        runner = SubmissionRunner(
            catalog,
            build_executor(config.sandbox, config.gate),
            gate_config=config.gate,
        )
    if limiter is None:
        limiter = RateLimiter(config.edge.rate_limit, config.edge.rate_window)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(limiter.run_sweeper(config.edge.sweep_interval))
        logger.info(
            "Serving %d lessons with the %s backend (gate: %s)",
            len(runner.catalog),
            config.sandbox.backend,
            runner.gate.mode.value,
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title="concept-trainer", version=__version__, lifespan=lifespan)
    app.state.runner = runner
    app.state.limiter = limiter

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestGuardMiddleware, max_body_bytes=config.edge.max_body_bytes)
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(HeaderPolicyMiddleware)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/concepts")
    async def list_concepts(request: Request) -> list[dict[str, Any]]:
        catalog: LessonCatalog = request.app.state.runner.catalog
        return [lesson.to_response() for lesson in catalog.all()]

    @app.post("/api/run")
    async def run_submission(body: RunRequest, request: Request) -> JSONResponse:
        active: SubmissionRunner = request.app.state.runner
        try:
            verdict = await active.run(Submission(source=body.code, lesson_id=body.concept_id))
        except LessonNotFoundError:
            raise HTTPException(status_code=404, detail="Concept not found") from None
        status = 500 if is_internal_error(verdict) else 200
        return JSONResponse(verdict.to_response(), status_code=status)

    @app.post("/api/metrics", status_code=204)
    async def report_metrics(body: ExecutionMetrics) -> Response:
        metrics_logger.info(
            "execution metrics",
            extra={"record": body.model_dump(exclude_none=True)},
        )
        return Response(status_code=204)

    return app
