"""
Movement - Pure stock movement processing.

Validates a movement, applies it line by line to a ledger snapshot with
weighted-average valuation and lot buckets, and returns the updated
snapshot plus kardex lines (or a typed rejection).
"""

from stock_kernel.logging_config import get_logger

logger = get_logger("engines.movement")

from stock_engines.movement.lots import dispatch_from_lots, receive_into_lots
from stock_engines.movement.processor import MovementProcessor, apply_movement
from stock_engines.movement.result import MovementError, MovementResult, MovementStatus
from stock_engines.movement.valuation import (
    ValuationChange,
    check_valuation,
    dispatch,
    receive,
)

__all__ = [
    "MovementProcessor",
    "apply_movement",
    "MovementResult",
    "MovementError",
    "MovementStatus",
    "ValuationChange",
    "receive",
    "dispatch",
    "check_valuation",
    "receive_into_lots",
    "dispatch_from_lots",
]
