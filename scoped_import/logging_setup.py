"""
JSONL logging bootstrap for the command-line entry point.
The library never installs handlers itself; hosts opt in here.

Each line carries the record's tag (the ``[import:cache]`` style prefix the
library puts on its messages) and a ``data`` object with the structured
fields passed through ``extra`` (path, source, destination, ...).
"""

import json
import logging
import os
import re
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Any

DEFAULT_PATH = os.environ.get("SCOPED_IMPORT_LOG_PATH", "./scoped_import.log.jsonl")
DEFAULT_LEVEL = os.environ.get("SCOPED_IMPORT_LOG_LEVEL", "INFO").upper()

SCHEMA = {"name": "scoped_import.log", "ver": "2.0.0"}

_TAG = re.compile(r"^\[(?P<tag>[\w.-]+(?::[\w.-]+)*)\]\s*")

# Attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def record_payload(record: logging.LogRecord) -> dict[str, Any]:
    """Build the JSON object written for one record."""
    message = record.getMessage()
    payload: dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
        "lvl": record.levelname,
        "schema": SCHEMA,
        "logger": record.name,
        "thread": record.threadName,
    }

    if match := _TAG.match(message):
        payload["event"] = match["tag"]
        message = message[match.end() :]
    payload["message"] = message

    data = {k: v for k, v in vars(record).items() if k not in _RECORD_FIELDS}
    if data:
        payload["data"] = data
    if record.exc_info:
        payload["exc"] = logging.Formatter().formatException(record.exc_info)
    return payload


class JsonlHandler(logging.Handler):
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(record_payload(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | None = None, level: str | None = None) -> None:
    path = path or DEFAULT_PATH
    level = (level or DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Remove existing handlers of the same kind to avoid duplicates
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
    root.addHandler(JsonlHandler(path))
