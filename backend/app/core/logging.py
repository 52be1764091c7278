"""Structured JSON logging and per-run ID tagging."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

run_id_var: ContextVar[str] = ContextVar("run_id", default="")

_EXTRA_FIELDS = ("day", "latitude", "longitude", "sample_time", "strings", "status", "duration_ms")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter with run ID injection."""

    def format(self, record: logging.LogRecord) -> str:
        import json

        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = run_id_var.get("")
        if rid:
            log_entry["run_id"] = rid

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Include extra fields
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


@contextmanager
def run_context(run_id: str | None = None) -> Iterator[str]:
    """Tag every log record emitted inside the block with a run ID."""
    rid = run_id or str(uuid.uuid4())[:8]
    token = run_id_var.set(rid)
    try:
        yield rid
    finally:
        run_id_var.reset(token)


def setup_logging(json_format: bool = False, level: str | int = logging.INFO) -> None:
    """Configure root logger. Use json_format=True for production."""
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()
    root.addHandler(handler)

    # Quiet noisy libraries
    logging.getLogger("numba").setLevel(logging.WARNING)


def configure_logging() -> None:
    """Apply ``log_json`` / ``log_level`` from the app settings."""
    from app.config import settings

    setup_logging(json_format=settings.log_json, level=settings.log_level.upper())
