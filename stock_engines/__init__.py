"""
Module: stock_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (stock_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel (domain, exceptions, logging) and
    stock_config.schema.  MUST NOT import stock_services or ORM models.

Invariants enforced:
    - Purity: engines never read the clock; movement dates are passed in.
    - Decimal-only arithmetic; floats are coerced at the domain boundary.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every ``MovementProcessor.apply`` invocation is traced via
    ``@traced_engine`` (see ``stock_engines.tracer``), emitting a
    STOCK_ENGINE_TRACE log record with an input fingerprint and duration.

Usage:
    from stock_engines import MovementProcessor, MovementResult
"""

from stock_engines.movement import (
    MovementError,
    MovementProcessor,
    MovementResult,
    MovementStatus,
    ValuationChange,
    apply_movement,
    check_valuation,
)

__all__ = [
    "MovementProcessor",
    "apply_movement",
    "MovementResult",
    "MovementError",
    "MovementStatus",
    "ValuationChange",
    "check_valuation",
]
