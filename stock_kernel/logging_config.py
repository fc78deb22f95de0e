"""
stock_kernel.logging_config -- Structured JSON logging.

Responsibility:
    One JSON object per log line for every logger under the
    ``stock_kernel`` namespace, enriched with the movement-scoped fields
    held in ``LogContext``.

Architecture position:
    Kernel -- imported by every layer.  Depends on the standard library
    only.

Usage:
    from stock_kernel.logging_config import LogContext, get_logger

    logger = get_logger("engines.movement")
    with LogContext.bind(movement_id="MOV-1", reference_document="PO-7"):
        logger.info("movement_applied", extra={"line_count": 2})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO
from uuid import UUID

_NAMESPACE = "stock_kernel"

_CONTEXT_FIELDS = frozenset({
    "correlation_id",
    "movement_id",
    "reference_document",
    "actor_id",
    "trace_id",
})

_context: ContextVar[Mapping[str, str]] = ContextVar("stock_log_context", default={})


class LogContext:
    """
    Movement-scoped fields attached to every record.

    Backed by a single ContextVar holding an immutable snapshot, so values
    follow the current thread or asyncio task.
    """

    @staticmethod
    def _merge(fields: dict[str, str | None]) -> dict[str, str]:
        unknown = set(fields) - _CONTEXT_FIELDS
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Add fields to the current context; None values are ignored."""
        _context.set(cls._merge(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Overlay fields for the duration of a ``with`` block."""
        token = _context.set(cls._merge(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    return repr(value)


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # InventoryError subclasses keep their structured data as attributes.
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


def get_logger(name: str) -> logging.Logger:
    """Return ``stock_kernel.<name>``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``stock_kernel`` logger.

    Only the first call has any effect until ``reset_logging()`` runs.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

        if handler is None:
            handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())

        namespace_logger = logging.getLogger(_NAMESPACE)
        namespace_logger.setLevel(level)
        namespace_logger.propagate = False
        namespace_logger.addHandler(handler)


def reset_logging() -> None:
    """Remove the JSON handler and restore defaults (tests only)."""
    global _configured
    with _lock:
        _configured = False
        namespace_logger = logging.getLogger(_NAMESPACE)
        for handler in list(namespace_logger.handlers):
            namespace_logger.removeHandler(handler)
        namespace_logger.setLevel(logging.WARNING)
        namespace_logger.propagate = True
