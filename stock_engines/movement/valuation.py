"""
stock_engines.movement.valuation -- Weighted-average receive/dispatch arithmetic.

Responsibility:
    Compute the new quantity, valuation and average unit cost of a single
    ledger entry when stock enters (receive) or leaves (dispatch).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Does not look at
    warehouse policy or lots; the processor checks those first.

Invariants enforced:
    - Receive: valuation grows by the line value and the average cost is
      recomputed as valuation / quantity at working precision.
    - Dispatch: stock leaves at the entry's current average cost, which is
      unchanged while stock remains.  The remaining valuation is re-derived
      as remaining quantity * average, so rounding never accumulates:
      valuation stays within half a valuation quantum of
      quantity * average after every dispatch.
    - The line value of a dispatch is exactly the valuation it removed.
    - Whenever the resulting quantity is exactly zero, valuation and
      average cost are forced to zero.
    - Valuations and line values are quantized to ``valuation_places``;
      the running average is not rounded (kardex lines show it rounded
      to ``cost_places``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from stock_config.schema import PrecisionSettings
from stock_kernel.domain.stock import StockLedgerEntry
from stock_kernel.domain.values import ZERO


@dataclass(frozen=True, slots=True)
class ValuationChange:
    """A ledger entry after one quantity change, plus the cost applied."""

    entry: StockLedgerEntry
    quantity: Decimal
    unit_cost: Decimal
    line_value: Decimal


def receive(
    entry: StockLedgerEntry,
    quantity: Decimal,
    unit_cost: Decimal,
    precision: PrecisionSettings,
    reference: str,
    line_value: Decimal | None = None,
) -> ValuationChange:
    """
    Add ``quantity`` at ``unit_cost`` to ``entry``.

    ``line_value`` overrides ``quantity * unit_cost``; a transfer passes the
    value its dispatch removed so that valuation moves between warehouses
    without rounding.

    Postconditions:
        new_quantity = old_quantity + quantity
        new_valuation = old_valuation + line_value
        new_average = new_valuation / new_quantity (0 when new_quantity is 0)
    """
    if line_value is None:
        line_value = precision.valuation(quantity * unit_cost)
    new_quantity = entry.quantity_on_hand + quantity
    if new_quantity == ZERO:
        new_valuation = ZERO
        new_average = ZERO
    else:
        new_valuation = precision.valuation(entry.total_valuation + line_value)
        new_average = new_valuation / new_quantity

    updated = replace(
        entry,
        quantity_on_hand=new_quantity,
        total_valuation=new_valuation,
        average_unit_cost=new_average,
        last_movement_reference=reference,
    )
    return ValuationChange(
        entry=updated,
        quantity=quantity,
        unit_cost=unit_cost,
        line_value=line_value,
    )


def dispatch(
    entry: StockLedgerEntry,
    quantity: Decimal,
    precision: PrecisionSettings,
    reference: str,
) -> ValuationChange:
    """
    Remove ``quantity`` from ``entry`` at its current average cost.

    Preconditions:
        quantity > 0 and already quantized; stock policy already checked.

    Postconditions:
        new_quantity = old_quantity - quantity
        new_valuation = new_quantity * average (0 when new_quantity is 0)
        new_average = old_average (0 when new_quantity is 0)
        line_value = old_valuation - new_valuation
    """
    average = entry.average_unit_cost
    new_quantity = entry.quantity_on_hand - quantity
    if new_quantity == ZERO:
        new_valuation = ZERO
        new_average = ZERO
    else:
        new_valuation = precision.valuation(new_quantity * average)
        new_average = average

    updated = replace(
        entry,
        quantity_on_hand=new_quantity,
        total_valuation=new_valuation,
        average_unit_cost=new_average,
        last_movement_reference=reference,
    )
    return ValuationChange(
        entry=updated,
        quantity=quantity,
        unit_cost=average,
        line_value=precision.valuation(entry.total_valuation - new_valuation),
    )


def check_valuation(entry: StockLedgerEntry, precision: PrecisionSettings) -> bool:
    """True when the entry satisfies the valuation invariant."""
    if entry.quantity_on_hand == ZERO:
        return entry.total_valuation == ZERO
    drift = abs(entry.total_valuation - entry.quantity_on_hand * entry.average_unit_cost)
    return drift <= precision.valuation_tolerance(entry.quantity_on_hand)
