"""Structured logging for bubble-index.

Records emitted for a run task carry its category, selection and window in
``record.extra_data``; the JSON formatter flattens them into each line and
the plain formatter appends them as ``key=value`` pairs.
"""
from __future__ import annotations

import json
import logging
import sys
from typing import Any, MutableMapping, Optional

TASK_FIELDS = ("category", "selection", "window")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, task fields included."""

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        log_dict.update(getattr(record, "extra_data", None) or {})
        if record.exc_info and record.exc_info[0] is not None:
            log_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_dict, default=str)


class TaskFormatter(logging.Formatter):
    """Plain text lines with the task fields appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(name)s %(levelname)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "extra_data", None)
        if not fields:
            return line
        suffix = " ".join(f"{k}={fields[k]}" for k in TASK_FIELDS if k in fields)
        head, sep, tail = line.partition("\n")
        return f"{head} [{suffix}]{sep}{tail}" if suffix else line


class TaskLogger(logging.LoggerAdapter):
    """Logger adapter that tags every record with one task's identity."""

    def __init__(self, logger: logging.Logger, category: str, selection: str, window: int) -> None:
        super().__init__(logger, {"category": category, "selection": selection, "window": window})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["extra_data"] = {**dict(self.extra or {}), **extra.get("extra_data", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(level: str = "INFO", json_output: bool = False, stream: Optional[Any] = None) -> None:
    """Configure the root logger for a batch run.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Emit JSON lines instead of plain text.
        stream: Destination stream, stderr by default.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else TaskFormatter())
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a namespaced logger under ``bubble_index.<name>``."""
    return logging.getLogger(f"bubble_index.{name}")


def task_logger(name: str, category: str, selection: str, window: int) -> TaskLogger:
    return TaskLogger(get_logger(name), category, selection, window)
