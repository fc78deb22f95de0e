"""
stock_engines.movement.lots -- Lot bucket management for lot-tracked warehouses.

Responsibility:
    Add stock to, and remove stock from, the ordered lot buckets of a
    ledger entry.  Called by the processor only when the warehouse tracks
    lots, before the valuation update of the same line.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Returns new bucket
    tuples; the input entry and its buckets are never mutated.

Invariants enforced:
    - A bucket is created on the first receipt of a lot code and appended
      after the existing buckets.
    - A bucket is dropped as soon as its quantity is exactly zero.
    - An existing bucket's expiry is only filled in, never overwritten.
    - With the processor applying the same quantity to the entry, the sum
      of bucket quantities keeps matching quantity on hand.

Failure modes:
    - MissingLotError if no lot code is supplied.
    - LotNotFoundError if a dispatch names a lot the entry does not hold.
    - InsufficientLotStockError if a dispatch exceeds the bucket and the
      warehouse disallows negative stock.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from stock_kernel.domain.stock import LotBucket, StockLedgerEntry
from stock_kernel.domain.values import ZERO
from stock_kernel.exceptions import (
    InsufficientLotStockError,
    LotNotFoundError,
    MissingLotError,
)
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.movement.lots")


def _require_lot_code(entry: StockLedgerEntry, lot_code: str | None) -> str:
    if not lot_code:
        raise MissingLotError(entry.product_id, entry.warehouse_id)
    return lot_code


def receive_into_lots(
    entry: StockLedgerEntry,
    lot_code: str | None,
    quantity: Decimal,
    expiry_date: date | None = None,
) -> tuple[LotBucket, ...]:
    """Return the entry's buckets after adding ``quantity`` to ``lot_code``."""
    code = _require_lot_code(entry, lot_code)

    buckets = list(entry.lots)
    for index, bucket in enumerate(buckets):
        if bucket.lot_code != code:
            continue
        new_quantity = bucket.quantity + quantity
        updated = replace(
            bucket,
            quantity=new_quantity,
            expiry_date=bucket.expiry_date or expiry_date,
        )
        if new_quantity == ZERO:
            del buckets[index]
            logger.debug("lot_bucket_depleted", extra={
                "product_id": entry.product_id,
                "warehouse_id": entry.warehouse_id,
                "lot_code": code,
            })
        else:
            buckets[index] = updated
        return tuple(buckets)

    buckets.append(LotBucket(lot_code=code, quantity=quantity, expiry_date=expiry_date))
    logger.debug("lot_bucket_created", extra={
        "product_id": entry.product_id,
        "warehouse_id": entry.warehouse_id,
        "lot_code": code,
        "quantity": str(quantity),
        "expiry_date": expiry_date.isoformat() if expiry_date else None,
    })
    return tuple(buckets)


def dispatch_from_lots(
    entry: StockLedgerEntry,
    lot_code: str | None,
    quantity: Decimal,
    negative_stock_allowed: bool,
) -> tuple[LotBucket, ...]:
    """Return the entry's buckets after removing ``quantity`` from ``lot_code``."""
    code = _require_lot_code(entry, lot_code)

    buckets = list(entry.lots)
    for index, bucket in enumerate(buckets):
        if bucket.lot_code != code:
            continue
        if not negative_stock_allowed and bucket.quantity < quantity:
            raise InsufficientLotStockError(
                product_id=entry.product_id,
                warehouse_id=entry.warehouse_id,
                lot_code=code,
                requested=quantity,
                available=bucket.quantity,
            )
        new_quantity = bucket.quantity - quantity
        if new_quantity == ZERO:
            del buckets[index]
            logger.debug("lot_bucket_depleted", extra={
                "product_id": entry.product_id,
                "warehouse_id": entry.warehouse_id,
                "lot_code": code,
            })
        else:
            buckets[index] = replace(bucket, quantity=new_quantity)
        return tuple(buckets)

    raise LotNotFoundError(entry.product_id, entry.warehouse_id, code)
