"""
stock_engines.tracer -- STOCK_ENGINE_TRACE for engine invocations.

Responsibility:
    ``@traced_engine`` wraps a pure engine entry point and emits one
    structured record per call: engine name and version, a fingerprint of
    the selected inputs, the result status and the elapsed time.

Architecture position:
    Engines -- support code for the calculation layer.  Emits a log record
    and nothing else; arguments are read, never modified.

Invariants enforced:
    - The fingerprint depends only on input values: dataclasses are
      expanded field by field, Decimals keep their exact string form and
      mappings are key-sorted before hashing.

Usage:
    @traced_engine("stock_movement", "1.0", fingerprint_fields=("movement",))
    def apply(self, movement, current_entries, warehouses):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from stock_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _plain(value: Any) -> Any:
    """Reduce a value to JSON-compatible primitives for hashing."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, float)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            "__type__": type(value).__name__,
            **{f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)},
        }
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """First 16 hex digits of the SHA-256 of the named arguments.

    Arguments that were not passed hash as null.
    """
    canonical = json.dumps(
        {name: _plain(arguments.get(name)) for name in fingerprint_fields},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap an engine entry point so every call logs STOCK_ENGINE_TRACE.

    Args:
        engine_name: Engine identifier, e.g. "stock_movement".
        engine_version: Engine version string.
        fingerprint_fields: Parameter names whose values feed the input
            fingerprint; positional and keyword arguments both count.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = None
            if fingerprint_fields:
                arguments = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            status = getattr(result, "status", None)
            _logger.info("STOCK_ENGINE_TRACE", extra={
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "outcome": status.value if isinstance(status, Enum) else status,
                "duration_ms": round(elapsed_ms, 3),
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator
