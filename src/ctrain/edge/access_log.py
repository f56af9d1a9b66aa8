"""Structured access logging with anomaly flags.

One JSON record per request is written to the ``ctrain.access`` logger
after the handler finishes.  The status and size are what was actually
sent, captured from the ASGI ``send`` stream.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ctrain.edge.client import client_identity

access_logger = logging.getLogger("ctrain.access")

# Lowercased substrings of known scanner and bot user agents.
SCANNER_USER_AGENTS: tuple[str, ...] = (
    "nikto", "sqlmap", "masscan", "nmap", "zgrab", "nuclei",
    "gobuster", "dirb", "dirbuster", "wfuzz", "ffuf", "hydra",
    "metasploit", "acunetix", "nessus", "openvas", "skipfish",
    "appscan", "webinspect", "libwww-perl", "scrapy",
    "semrushbot", "ahrefsbot", "mj12bot", "dotbot", "petalbot",
    "bytespider", "gptbot",
)  # fmt: skip

# Paths commonly probed by scanners and exploit scripts.
SCANNER_PATHS: tuple[str, ...] = (
    "/.env", "/.git/", "/wp-admin", "/wp-login.php", "/wp-content/",
    "/phpmyadmin", "/.htaccess", "/config.php", "/backup",
    "/.ds_store", "/etc/passwd", "/cgi-bin/", "/xmlrpc.php",
    "/actuator", "/.aws/", "/.ssh/", "/shell.php", "/cmd.php",
    "/eval.php", "/.bash_history", "/id_rsa", "/console",
    "/jmx-console", "/manager/html", "/solr/", "/jenkins",
    "/.well-known/security.txt",
)  # fmt: skip

STANDARD_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


class AnomalyFlag(str, Enum):
    SCANNER_USER_AGENT = "scanner_user_agent"
    SCANNER_PATH = "scanner_path"
    UNUSUAL_METHOD = "unusual_method"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"


class AccessLogEntry(BaseModel):
    """One access-log record. ``flags`` and ``referer`` are dropped when empty."""

    ts: str
    method: str
    path: str
    status: int
    latency_ms: int
    ip: str
    ua: str = ""
    size: int = 0
    flags: list[AnomalyFlag] = Field(default_factory=list)
    referer: str = ""

    def to_record(self) -> dict[str, Any]:
        record = self.model_dump(mode="json")
        if not record["flags"]:
            del record["flags"]
        if not record["referer"]:
            del record["referer"]
        return record


def detect_flags(method: str, path: str, user_agent: str, status: int) -> list[AnomalyFlag]:
    """Classify one request. Flags are additive, in a fixed order."""
    flags: list[AnomalyFlag] = []

    ua = user_agent.lower()
    if any(s in ua for s in SCANNER_USER_AGENTS):
        flags.append(AnomalyFlag.SCANNER_USER_AGENT)

    lowered = path.lower()
    if any(p in lowered for p in SCANNER_PATHS):
        flags.append(AnomalyFlag.SCANNER_PATH)

    if method.upper() not in STANDARD_METHODS:
        flags.append(AnomalyFlag.UNUSUAL_METHOD)

    if 400 <= status < 500:
        flags.append(AnomalyFlag.CLIENT_ERROR)
    elif status >= 500:
        flags.append(AnomalyFlag.SERVER_ERROR)
    return flags


class AccessLogMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_code = 200
        size = 0

        async def _send(message: Message) -> None:
            nonlocal status_code, size
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
            elif message["type"] == "http.response.body":
                size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception:
            status_code = 500
            raise
        finally:
            latency_ms = int((time.perf_counter() - started) * 1000)
            entry = _build_entry(scope, status_code, size, latency_ms)
            access_logger.info("%s %s %d", entry.method, entry.path, entry.status, extra={"record": entry.to_record()})


def _build_entry(scope: Scope, status: int, size: int, latency_ms: int) -> AccessLogEntry:
    headers = {name.lower(): value for name, value in scope.get("headers", [])}
    method = scope["method"]
    path = scope.get("path", "")
    ua = headers.get(b"user-agent", b"").decode("latin-1")
    return AccessLogEntry(
        ts=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        method=method,
        path=path,
        status=status,
        latency_ms=latency_ms,
        ip=client_identity(scope),
        ua=ua,
        size=size,
        flags=detect_flags(method, path, ua, status),
        referer=headers.get(b"referer", b"").decode("latin-1"),
    )
