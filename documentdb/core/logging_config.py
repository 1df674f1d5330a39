"""
Logging infrastructure for the DocumentDB client.

Log records carry no credentials: the ``authorization`` header, request
signatures and master keys are redacted from messages and from the
structured ``context`` attached by ``log_with_context``. Output goes to
stderr, optionally mirrored to a size-rotated file.
"""

import logging
import logging.handlers
import json
import sys
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

REDACTED = "***REDACTED***"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SECRET_CONTEXT_KEYS = frozenset(["authorization", "master_key", "masterkey"])

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


class SensitiveDataFilter(logging.Filter):
    """Redacts master keys and request signatures from log records."""

    PATTERNS = [
        (re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)[^\s,"\'}]+', re.IGNORECASE), rf'\1{REDACTED}'),
        (re.compile(r'(sig(?:=|%3D))[^&\s,"\'}]+', re.IGNORECASE), rf'\1{REDACTED}'),
        (re.compile(r'(master_?key["\']?\s*[:=]\s*["\']?)[^\s,"\'}]+', re.IGNORECASE), rf'\1{REDACTED}'),
        (re.compile(r'(AccountKey=)[^;]+', re.IGNORECASE), rf'\1{REDACTED}'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.PATTERNS:
                record.msg = pattern.sub(replacement, record.msg)
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = {
                key: (REDACTED if key.lower() in SECRET_CONTEXT_KEYS else value)
                for key, value in context.items()
            }
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the call context under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "context"):
            entry["context"] = record.context
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure client logging.

    Replaces any handlers on the root logger. Every handler gets the
    redaction filter.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ("json" or "text")
        log_file: Optional file path mirroring the stderr output
        rotation_size: Size at which the log file is rotated (e.g., "10MB")
        rotation_count: Number of rotated log files to keep
        module_levels: Optional per-logger levels,
                      e.g., {"documentdb.client.executor": "DEBUG"}
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_level(level))
    root_logger.handlers.clear()

    if format_type == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    # stdout is reserved for command output
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=_parse_size(rotation_size),
                backupCount=rotation_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(handler)

    if log_file:
        root_logger.info(f"Logging to file: {log_file} (rotation: {rotation_size}, count: {rotation_count})")

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(_level(module_level))

    root_logger.debug(f"Logging configured: level={level}, format={format_type}")


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _parse_size(size_str: str) -> int:
    """Parse a size such as ``10MB``, ``512KB`` or ``2048`` into bytes."""
    match = _SIZE_RE.match(size_str)
    if not match:
        raise ValueError(f"Invalid log rotation size: {size_str!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "B").upper()])


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with structured context.

    The context is attached as ``record.context``; ``JSONFormatter`` emits it
    and ``SensitiveDataFilter`` redacts secret keys in it.
    """
    extra = {"context": context} if context else {}
    logger.log(level, message, extra=extra)
