"""
Kardex -- Append-only audit lines produced by stock movements.

One KardexLine is emitted per ledger entry touched by a line item; a
transfer line emits an OUT line at the origin followed by an IN line at
the destination, both carrying the same reference document.  Lines are
never updated or deleted once produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.movement import MovementKind
from stock_kernel.domain.stock import StockKey


class KardexDirection(str, Enum):
    IN = "in"
    OUT = "out"


@dataclass(frozen=True, slots=True)
class KardexLine:
    """
    Immutable audit record of one quantity change.

    ``sequence`` is the 0-based emission order within one processing call.
    ``resulting_*`` fields describe the ledger entry after the change.
    """

    sequence: int
    product_id: str
    warehouse_id: str
    movement_date: date
    reference_document: str
    direction: KardexDirection
    quantity_in: Decimal
    quantity_out: Decimal
    unit_cost: Decimal
    line_value: Decimal
    resulting_stock: Decimal
    resulting_average_cost: Decimal
    resulting_valuation: Decimal
    lot_code: str | None = None
    movement_kind: MovementKind | None = None

    @property
    def key(self) -> StockKey:
        return StockKey(self.product_id, self.warehouse_id)

    @property
    def quantity(self) -> Decimal:
        """Quantity moved, regardless of direction."""
        return self.quantity_in if self.direction == KardexDirection.IN else self.quantity_out
