"""Logging utilities for the Rehearsal Coach.

Every record is stamped with the signed-in user (the correlation id) and the
stage the flow was in when the record was emitted, so a log of a rehearsal
reads as a trail through the stages.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
current_stage: ContextVar[str] = ContextVar("current_stage", default="")

# Attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "correlation_id", "stage", "taskName",
}


class RehearsalContextFilter(logging.Filter):
    """Attach the current user and stage to each record."""

    def filter(self, record):
        record.correlation_id = correlation_id.get()
        record.stage = current_stage.get()
        return True


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "user": getattr(record, "correlation_id", ""),
            "stage": getattr(record, "stage", ""),
            "message": record.getMessage(),
        }
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time | LEVEL | logger | [user@stage] message``"""

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        user = getattr(record, "correlation_id", "")
        stage = getattr(record, "stage", "")
        if user or stage:
            where = f"[{user}@{stage}] " if user else f"[{stage}] "
        else:
            where = ""

        message = record.getMessage()
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return f"{timestamp} | {record.levelname:<8} | {record.name:<28} | {where}{message}"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = False,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name
        log_file: Path of the rotating log file
        enable_console: Log to stderr
        enable_file: Log to ``log_file``
        structured: Emit JSON lines instead of human-readable text
        max_file_size: Size in bytes at which the log file rotates
        backup_count: Number of rotated files to keep
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    formatter = StructuredFormatter() if structured else HumanReadableFormatter()
    handlers = []

    if enable_console:
        # stderr keeps log lines out of the shell's own output
        handlers.append(logging.StreamHandler(sys.stderr))

    if enable_file and log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RehearsalContextFilter())
        root_logger.addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("startup").debug("Logging configured", extra={
        "log_level": level,
        "console_enabled": enable_console,
        "file_enabled": enable_file,
        "structured": structured,
    })


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id_value: str) -> None:
    """Set the user the following records belong to; empty string clears it."""
    correlation_id.set(correlation_id_value)


def get_correlation_id() -> str:
    return correlation_id.get()


def set_log_stage(stage: str) -> None:
    current_stage.set(stage)


def log_error(error: BaseException, context: Optional[Dict[str, Any]] = None, level: str = "ERROR",
              logger: Optional[logging.Logger] = None) -> None:
    """Log an exception together with its type and optional context.

    Args:
        error: Exception to log
        context: Additional fields for the record
        level: Log level name
        logger: Logger to use; defaults to the "error" logger
    """
    logger = logger or get_logger("error")
    extra = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
    if context:
        extra.update(context)

    getattr(logger, level.lower())(f"{type(error).__name__}: {error}", extra=extra, exc_info=error)
