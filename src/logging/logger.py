# src/logging/logger.py — v3
"""Logger factory with JSON and text formatters.

Both formatters stamp records with the active translation scope and pipeline
step from logging.context. Timestamps come from the record itself, so lines
queued by a slow handler keep their emission time.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from transnorm.logging.context import LogContext, get_context

ROOT_LOGGER = "transnorm"


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def scope_label(ctx: LogContext) -> str | None:
    """Compact scope tag such as ``de/p7/f12``; None outside a normalization."""
    if not ctx.language_code:
        return None
    label = ctx.language_code
    if ctx.project_id is not None:
        label += f"/p{ctx.project_id}"
    if ctx.file_id is not None:
        label += f"/f{ctx.file_id}"
    return label


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        # Structured payload passed as logger.info(..., extra={"data": {...}})
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable single-line formatter for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            _record_time(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        label = scope_label(ctx)
        if label:
            parts.append(f"[{label}]")
        if ctx.step:
            parts.append(f"({ctx.step})")
        parts.append(f"— {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def build_formatter(log_format: str) -> logging.Formatter:
    """Return the formatter for ``json`` or ``text``.

    Raises:
        ValueError: On any other format name.
    """
    if log_format == "json":
        return JsonFormatter()
    if log_format == "text":
        return TextFormatter()
    raise ValueError(f"Unknown log format {log_format!r}, expected 'json' or 'text'")


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the transnorm root. Configured by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """(Re)configure the transnorm root logger and return it.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" or "text".
        log_file: Optional log file; stderr is always attached.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = build_formatter(log_format)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    # stdout carries CLI output, so logs go to stderr
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        from transnorm.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            log_file, rotation=rotation, retention=retention
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root
