"""Logging setup: newline-delimited JSON (or plain text) on stdout.

Structured records (access log, client metrics) are passed as
``extra={"record": {...}}`` and rendered as the bare JSON object so log
consumers see exactly the documented keys.
"""

from __future__ import annotations

import json
import logging
import sys
import time

TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        structured = getattr(record, "record", None)
        if isinstance(structured, dict):
            return json.dumps(structured, ensure_ascii=False, default=str)

        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Plain formatter that appends a structured record as JSON when present."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        structured = getattr(record, "record", None)
        if isinstance(structured, dict):
            line += " " + json.dumps(structured, ensure_ascii=False, default=str)
        return line


def configure_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    """Replace the root handlers with a single stdout handler."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else TextFormatter())
    root.addHandler(handler)
    # The access middleware replaces uvicorn's own access log.
    logging.getLogger("uvicorn").setLevel(root.level)
    logging.getLogger("uvicorn.error").setLevel(root.level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
