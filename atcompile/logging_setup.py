"""
JSONL logging bootstrap.
Installs a single canonical JSONL sink when the CLI has a log path configured.

Compiler and graph log calls pass structured fields through ``extra``
(``event``, ``path``, ``reference``, ``circular``); they land as top-level keys.
"""

import json
import logging
from datetime import UTC
from datetime import datetime
from pathlib import Path

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


class JsonlHandler(logging.Handler):
    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
                "lvl": record.levelname,
                "schema": {"name": "atcompile.log", "ver": "1.0.0"},
                "logger": record.name,
                "event": getattr(record, "event", None),
                "message": record.getMessage(),
            }
            for key, value in record.__dict__.items():
                if key not in _STANDARD_ATTRS:
                    entry.setdefault(key, value)
            if record.exc_info:
                entry["exc"] = logging.Formatter().formatException(record.exc_info)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | Path, level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Only one JSONL sink at a time
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
            h.close()
    root.addHandler(JsonlHandler(path))
