"""Structured logging and crash hook setup."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path


_LOGGER_NAME = "switop"
# Optional ``extra=`` fields copied into each JSON line when present.
_EXTRA_FIELDS = ("event", "crash_id", "crashed_thread")


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line, stamped with the record's own creation time."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            value = record.__dict__.get(name)
            if value is not None:
                line[name] = value
        if record.exc_info:
            line["traceback"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=True)


def configure_logging(
    log_file: Path | None = None,
    level: str = "INFO",
    keep_files: int = 7,
    console: bool = True,
) -> logging.Logger:
    """Attach handlers to the ``switop`` logger once per process.

    The console handler goes to stderr and only reports warnings, so the
    dashboard on stdout is not overdrawn by routine messages.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(log_file),
            when="midnight",
            backupCount=max(2, keep_files),
            encoding="utf-8",
        )
        handler.setFormatter(JsonLineFormatter())
        logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(logging.WARNING)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(stream_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.info("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _report_crash(event: str, exc_info, thread_name: str | None = None) -> str:
    crash_id = uuid.uuid4().hex[:12]
    get_logger().critical(
        "%s %s: %s",
        event.replace("_", " "),
        exc_info[0].__name__,
        exc_info[1],
        exc_info=exc_info,
        extra={"event": event, "crash_id": crash_id, "crashed_thread": thread_name},
    )
    return crash_id


def install_crash_hooks() -> None:
    """Log uncaught exceptions, then hand them on to the hooks already installed."""
    previous_hook = sys.excepthook
    previous_thread_hook = threading.excepthook

    def _excepthook(exc_type, exc_value, exc_tb) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            _report_crash("uncaught_exception", (exc_type, exc_value, exc_tb))
        previous_hook(exc_type, exc_value, exc_tb)

    def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
        if args.exc_type is not SystemExit:
            name = args.thread.name if args.thread is not None else None
            _report_crash("thread_exception", (args.exc_type, args.exc_value, args.exc_traceback), name)
        previous_thread_hook(args)

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook
