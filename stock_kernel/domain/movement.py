"""
Movement -- Proposed stock movements and their line items.

Responsibility:
    Describes a receipt, issue, transfer or adjustment as handed to the
    movement engine by the upstream workflow (purchase receiving, sales
    issue, transfer requests, physical counts).

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Sign convention:
    Line quantities are positive for RECEIPT, ISSUE and TRANSFER; signed
    for ADJUSTMENT (positive adds stock at the destination, negative
    removes stock at the source).  Sign validation is the engine's job so
    that a bad line becomes a movement rejection, not a construction error.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.values import to_decimal, to_optional_decimal


class MovementKind(str, Enum):
    """The four structurally different movement kinds."""

    RECEIPT = "receipt"
    ISSUE = "issue"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"


class MovementState(str, Enum):
    """Workflow state of a movement. Only APPLIED movements are processed."""

    PENDING = "pending"
    APPLIED = "applied"
    VOIDED = "voided"


class DocumentOrigin(str, Enum):
    """Business document that produced the movement."""

    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    PRODUCTION = "production"
    SHRINKAGE = "shrinkage"
    RETURN = "return"
    PHYSICAL_COUNT = "physical_count"


@dataclass(frozen=True, slots=True)
class MovementLine:
    """One product line of a movement."""

    product_id: str
    quantity: Decimal
    unit_cost: Decimal | None = None
    lot_code: str | None = None
    expiry_date: date | None = None

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("product_id is required")
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(
            self, "unit_cost", to_optional_decimal(self.unit_cost, "unit_cost")
        )


@dataclass(frozen=True, slots=True)
class MovementRecord:
    """
    A proposed stock movement.

    Contract:
        ``kind`` and ``state`` are normally enum members; unknown kinds are
        kept as given so the engine can reject them with
        UnsupportedMovementKindError.  ``document`` is the reference written
        on kardex lines: the external reference document when present,
        otherwise the movement id.
    """

    movement_id: str
    kind: MovementKind
    state: MovementState
    movement_date: date
    lines: Sequence[MovementLine] = field(default_factory=tuple)
    source_warehouse_id: str | None = None
    destination_warehouse_id: str | None = None
    reference_document: str | None = None
    origin: DocumentOrigin | None = None
    reason: str | None = None
    movement_number: str | None = None
    actor_id: str | None = None
    automatic: bool = False

    def __post_init__(self) -> None:
        if not self.movement_id:
            raise ValueError("movement_id is required")
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def document(self) -> str:
        return self.reference_document or self.movement_id
