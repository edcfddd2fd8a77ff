"""
Structured JSON logging configuration.
NEVER logs: passwords, generated secrets, file contents.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from devstack.core.run_context import get_run_id

# Extra record attributes copied into the JSON line when present
EXTRA_FIELDS = ("stage", "command", "exit_code", "duration_ms", "service", "path")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = get_run_id()
        if run_id:
            log_data["run_id"] = run_id

        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        # Include exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """
    Configure structured JSON logging.

    stderr carries records at ``level`` and above so that the colored
    progress output on stdout stays readable. When ``log_file`` is given,
    every record from INFO up is also appended there.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    stream_level = getattr(logging, level.upper(), logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())
    handler.setLevel(stream_level)
    root.addHandler(handler)

    root_level = stream_level
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.INFO)
        root.addHandler(file_handler)
        root_level = min(root_level, logging.INFO)

    root.setLevel(root_level)
    # Quiet noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
