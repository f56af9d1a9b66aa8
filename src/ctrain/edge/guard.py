"""Request body size cap.

Both checks are applied: the declared ``Content-Length`` is rejected up
front, and the body stream itself is counted because the header is
caller-supplied (or absent with chunked encoding).
"""

from __future__ import annotations

import logging

from fastapi import HTTPException
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ctrain.config import MAX_BODY_BYTES

logger = logging.getLogger(__name__)

_TOO_LARGE = "Request body too large"


class BodyTooLargeError(HTTPException):
    def __init__(self, limit: int) -> None:
        super().__init__(status_code=413, detail=_TOO_LARGE)
        self.limit = limit


class RequestGuardMiddleware:
    """Reject bodies larger than *max_body_bytes* with 413."""

    def __init__(self, app: ASGIApp, max_body_bytes: int = MAX_BODY_BYTES) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = _declared_length(scope)
        if declared is not None and declared > self.max_body_bytes:
            logger.info("Rejected %s %s: declared body of %d bytes", scope["method"], scope["path"], declared)
            await _reject(scope, receive, send)
            return

        received = 0
        started = False

        async def guarded_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise BodyTooLargeError(self.max_body_bytes)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, guarded_receive, tracking_send)
        except BodyTooLargeError:
            # Reached only when no exception handler further in turned it into a response.
            if started:
                raise
            logger.info("Rejected %s %s: body exceeded %d bytes", scope["method"], scope["path"], self.max_body_bytes)
            await _reject(scope, receive, send)


def _declared_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", []):
        if name.lower() == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


async def _reject(scope: Scope, receive: Receive, send: Send) -> None:
    response = JSONResponse({"detail": _TOO_LARGE}, status_code=413)
    await response(scope, receive, send)
