"""
stock_engines.movement.result -- Result type returned by the movement processor.

Either contains the full updated ledger snapshot and kardex lines OR an
error, never both.  Callers branch on ``is_success`` / ``error.code``
instead of catching exceptions; ``unwrap()`` is available for callers
that prefer exception flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from stock_kernel.domain.kardex import KardexLine
from stock_kernel.domain.stock import StockKey, StockLedgerEntry
from stock_kernel.exceptions import InventoryError


class MovementStatus(str, Enum):
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass(frozen=True)
class MovementError:
    """
    Machine-readable description of a rejected movement.

    ``code`` is the static code of the InventoryError subclass that
    rejected the movement; ``details`` carries its structured attributes
    (product_id, warehouse_id, requested, available, ...).
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: InventoryError) -> MovementError:
        return cls(code=exc.code, message=str(exc), details=exc.details)


@dataclass(frozen=True)
class MovementResult:
    """
    Outcome of ``MovementProcessor.apply``.

    Contract:
        On success ``entries`` holds every input entry (updated where
        touched, in input order) followed by newly created entries in
        first-touched order, and ``kardex_lines`` holds the audit lines in
        processing order.  On failure both are empty: the caller must not
        persist anything.
    """

    status: MovementStatus
    entries: tuple[StockLedgerEntry, ...] = ()
    kardex_lines: tuple[KardexLine, ...] = ()
    error: MovementError | None = None
    touched_keys: tuple[StockKey, ...] = ()
    exception: InventoryError | None = field(default=None, compare=False, repr=False)

    @classmethod
    def success(
        cls,
        entries: tuple[StockLedgerEntry, ...],
        kardex_lines: tuple[KardexLine, ...],
        touched_keys: tuple[StockKey, ...] = (),
    ) -> MovementResult:
        return cls(
            status=MovementStatus.APPLIED,
            entries=entries,
            kardex_lines=kardex_lines,
            touched_keys=touched_keys,
        )

    @classmethod
    def failure(cls, exc: InventoryError) -> MovementResult:
        return cls(
            status=MovementStatus.REJECTED,
            error=MovementError.from_exception(exc),
            exception=exc,
        )

    @property
    def is_success(self) -> bool:
        return self.status == MovementStatus.APPLIED

    @property
    def touched_entries(self) -> tuple[StockLedgerEntry, ...]:
        """Entries created or changed by the movement, in first-touched order."""
        by_key = {entry.key: entry for entry in self.entries}
        return tuple(by_key[key] for key in self.touched_keys)

    def entry_for(self, product_id: str, warehouse_id: str) -> StockLedgerEntry | None:
        key = StockKey(product_id, warehouse_id)
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def unwrap(self) -> tuple[tuple[StockLedgerEntry, ...], tuple[KardexLine, ...]]:
        """Return ``(entries, kardex_lines)`` or re-raise the rejection."""
        if self.exception is not None:
            raise self.exception
        return self.entries, self.kardex_lines

    def __bool__(self) -> bool:
        return self.is_success
