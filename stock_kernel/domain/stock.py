"""
Stock -- Per-product-per-warehouse ledger entries and their lot buckets.

Responsibility:
    Immutable value objects for the current stock position of one product
    in one warehouse: quantity on hand, reservation, weighted-average cost,
    total valuation and (for lot-tracked warehouses) lot buckets.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
    Entries are replaced, never mutated: the movement engine returns new
    instances built with ``dataclasses.replace``.

Invariants (maintained by the movement engine, checked by tests):
    - total_valuation ~= quantity_on_hand * average_unit_cost, and
      total_valuation == 0 whenever quantity_on_hand == 0.
    - sum(lot.quantity for lot in lots) == quantity_on_hand when the
      warehouse tracks lots.
    - No lot bucket with quantity exactly zero is kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from stock_kernel.domain.values import ZERO, to_decimal, to_optional_decimal


class StockKey(NamedTuple):
    """Composite key of a ledger entry."""

    product_id: str
    warehouse_id: str

    def __str__(self) -> str:
        return f"{self.product_id}@{self.warehouse_id}"


@dataclass(frozen=True, slots=True)
class LotBucket:
    """Quantity of one lot code held by a ledger entry."""

    lot_code: str
    quantity: Decimal
    expiry_date: date | None = None

    def __post_init__(self) -> None:
        if not self.lot_code:
            raise ValueError("lot_code is required")
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "lot quantity"))


@dataclass(frozen=True, slots=True)
class StockLedgerEntry:
    """
    Current stock of one product in one warehouse.

    Contract:
        Created implicitly (zero-initialised) on the first movement that
        touches a product/warehouse pair; never deleted, only driven to
        zero.  ``minimum_quantity``, ``maximum_quantity`` and
        ``reorder_point`` are replenishment thresholds carried through
        unchanged by the engine.
    """

    product_id: str
    warehouse_id: str
    quantity_on_hand: Decimal = ZERO
    average_unit_cost: Decimal = ZERO
    total_valuation: Decimal = ZERO
    reserved_quantity: Decimal = ZERO
    lots: tuple[LotBucket, ...] = ()
    last_movement_reference: str | None = None
    minimum_quantity: Decimal | None = None
    maximum_quantity: Decimal | None = None
    reorder_point: Decimal | None = None

    def __post_init__(self) -> None:
        if not self.product_id or not self.warehouse_id:
            raise ValueError("product_id and warehouse_id are required")
        for name in (
            "quantity_on_hand",
            "average_unit_cost",
            "total_valuation",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))
        reserved = self.reserved_quantity
        object.__setattr__(
            self,
            "reserved_quantity",
            ZERO if reserved is None else to_decimal(reserved, "reserved_quantity"),
        )
        for name in ("minimum_quantity", "maximum_quantity", "reorder_point"):
            object.__setattr__(
                self, name, to_optional_decimal(getattr(self, name), name)
            )
        if not isinstance(self.lots, tuple):
            object.__setattr__(self, "lots", tuple(self.lots or ()))

    @classmethod
    def empty(
        cls,
        product_id: str,
        warehouse_id: str,
        reference: str | None = None,
    ) -> StockLedgerEntry:
        """Zero-initialised entry for a pair with no recorded stock."""
        return cls(
            product_id=product_id,
            warehouse_id=warehouse_id,
            last_movement_reference=reference,
        )

    @property
    def key(self) -> StockKey:
        return StockKey(self.product_id, self.warehouse_id)

    @property
    def available_quantity(self) -> Decimal:
        """Quantity on hand minus reserved quantity."""
        return self.quantity_on_hand - self.reserved_quantity

    @property
    def lot_total(self) -> Decimal:
        """Sum of all lot bucket quantities."""
        return sum((lot.quantity for lot in self.lots), ZERO)

    @property
    def needs_reorder(self) -> bool:
        """True when stock has fallen to or below the reorder point."""
        if self.reorder_point is None:
            return False
        return self.quantity_on_hand <= self.reorder_point

    def find_lot(self, lot_code: str) -> LotBucket | None:
        for lot in self.lots:
            if lot.lot_code == lot_code:
                return lot
        return None
