#!/usr/bin/env python3
"""
Logger Factory - Structured JSONL Logging

Console output is plain text on stderr; the optional log file
receives one JSON object per line (python-json-logger) with:
- timestamp: UTC, millisecond precision
- level, component (logger name), event, message
- session_id, invocation_id: correlation IDs from ContextVars
- additional event-specific fields passed to log_event()

Usage:
    from tree_editor.logger_factory import log_event

    log_event(
        logger,
        "fsm_transition",
        from_state="idle",
        to_state="deleting_asset",
        trigger="DELETE_ASSET",
    )
"""

import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Any, List, Optional

from pythonjsonlogger.json import JsonFormatter

from tree_editor.trace_context import get_correlation_ids

# Handlers installed by setup_logging (removed again on re-setup)
_installed_handlers: List[logging.Handler] = []


class UTCJsonFormatter(JsonFormatter):
    """JSON formatter with UTC timestamps and flattened event fields."""

    def formatTime(self, record, datefmt=None):
        ct = time.gmtime(record.created)
        t = time.strftime("%Y-%m-%dT%H:%M:%S", ct)
        return f"{t}.{int(record.msecs):03d}Z"

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        extra_fields = log_record.pop("extra_fields", None) or {}
        log_record.update(extra_fields)
        log_record["level"] = record.levelname
        log_record["component"] = record.name
        for key, value in get_correlation_ids().items():
            if value is not None:
                log_record.setdefault(key, value)


def _make_file_handler(file_path: str, max_bytes: int = 5_000_000, backup_count: int = 5) -> logging.Handler:
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    handler = RotatingFileHandler(
        file_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(UTCJsonFormatter("%(asctime)s %(message)s"))
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Console log level name
        log_file: JSONL log path; no file output when None

    Returns:
        The root logger
    """
    root = logging.getLogger()
    reset_logging()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S'))
    console.setLevel(getattr(logging, level.upper(), logging.INFO))
    _installed_handlers.append(console)

    if log_file:
        _installed_handlers.append(_make_file_handler(log_file))

    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if log_file else console.level)

    return root


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging."""
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()


def log_event(
    logger: logging.Logger,
    event: str,
    message: str = "",
    level: int = logging.INFO,
    **fields: Any
) -> None:
    """
    Log a structured event.

    Args:
        logger: Logger instance (usually the module logger)
        event: Event type (e.g., "fsm_transition", "fsm_operation_failed")
        message: Human-readable message (optional)
        level: Log level (default: INFO)
        **fields: Event-specific fields
    """
    logger.log(
        level,
        message or event,
        extra={
            "event": event,
            "extra_fields": fields
        }
    )
