"""
Pure domain layer.

This module contains the stock domain value objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from stock_kernel.domain.kardex import KardexDirection, KardexLine
from stock_kernel.domain.movement import (
    DocumentOrigin,
    MovementKind,
    MovementLine,
    MovementRecord,
    MovementState,
)
from stock_kernel.domain.stock import LotBucket, StockKey, StockLedgerEntry
from stock_kernel.domain.warehouse import (
    WarehouseConfig,
    WarehouseKind,
    WarehouseRegistry,
)

__all__ = [
    # Warehouses
    "WarehouseConfig",
    "WarehouseKind",
    "WarehouseRegistry",
    # Ledger
    "StockKey",
    "LotBucket",
    "StockLedgerEntry",
    # Movements
    "MovementKind",
    "MovementState",
    "DocumentOrigin",
    "MovementLine",
    "MovementRecord",
    # Kardex
    "KardexDirection",
    "KardexLine",
]
