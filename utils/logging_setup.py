"""
Logging setup — plain text for local runs, one JSON object per line otherwise.

The error classifier attaches its structured record as
``extra={"error_record": {...}}``.  The JSON formatter merges those fields
into the emitted object; the text formatter appends them to the line, with
the stack (when present) on the lines that follow.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        error_record = record.__dict__.get("error_record")
        if error_record:
            log.update(error_record)
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """``TEXT_FORMAT`` line, followed by the classifier's record if present."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        error_record = record.__dict__.get("error_record")
        if not error_record:
            return line
        fields = {k: v for k, v in error_record.items() if k != "stack"}
        line += " | " + json.dumps(fields, ensure_ascii=False, default=str)
        stack = error_record.get("stack")
        if stack:
            line += "\n" + stack.rstrip()
        return line


def setup_logging(debug: bool = False, fmt: str = "text") -> None:
    """Configure the root logger once, at startup."""
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    for _noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)
