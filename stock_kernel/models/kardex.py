"""
Module: stock_kernel.models.kardex
Responsibility: Append-only ORM persistence for kardex lines.
Architecture position: Kernel > Models.

Invariants enforced:
    - Append-only: rows are never updated or deleted once written
      (ORM listeners in db/immutability.py).
    - (product_id, warehouse_id, movement_date) index supports per-entry
      history queries in chronological order.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base
from stock_kernel.domain.kardex import KardexDirection, KardexLine
from stock_kernel.domain.movement import MovementKind


class KardexLineModel(Base):
    """One persisted kardex line."""

    __tablename__ = "kardex_lines"

    __table_args__ = (
        Index("idx_kardex_product_warehouse_date", "product_id", "warehouse_id", "movement_date"),
        Index("idx_kardex_movement", "movement_id"),
    )

    movement_id: Mapped[str] = mapped_column(String(100), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    warehouse_id: Mapped[str] = mapped_column(String(100), nullable=False)
    movement_date: Mapped[date] = mapped_column(nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(nullable=False)
    reference_document: Mapped[str] = mapped_column(String(100), nullable=False)
    movement_kind: Mapped[str | None] = mapped_column(String(20), nullable=True)
    direction: Mapped[str] = mapped_column(String(3), nullable=False)
    lot_code: Mapped[str | None] = mapped_column(String(100), nullable=True)

    quantity_in: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    quantity_out: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    line_value: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    resulting_stock: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    resulting_average_cost: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    resulting_valuation: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    def to_line(self) -> KardexLine:
        return KardexLine(
            sequence=self.sequence,
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            movement_date=self.movement_date,
            reference_document=self.reference_document,
            direction=KardexDirection(self.direction),
            quantity_in=self.quantity_in,
            quantity_out=self.quantity_out,
            unit_cost=self.unit_cost,
            line_value=self.line_value,
            resulting_stock=self.resulting_stock,
            resulting_average_cost=self.resulting_average_cost,
            resulting_valuation=self.resulting_valuation,
            lot_code=self.lot_code,
            movement_kind=MovementKind(self.movement_kind) if self.movement_kind else None,
        )

    @classmethod
    def from_line(
        cls, line: KardexLine, movement_id: str, recorded_at: datetime
    ) -> KardexLineModel:
        return cls(
            movement_id=movement_id,
            recorded_at=recorded_at,
            sequence=line.sequence,
            product_id=line.product_id,
            warehouse_id=line.warehouse_id,
            movement_date=line.movement_date,
            reference_document=line.reference_document,
            movement_kind=line.movement_kind.value if line.movement_kind else None,
            direction=line.direction.value,
            lot_code=line.lot_code,
            quantity_in=line.quantity_in,
            quantity_out=line.quantity_out,
            unit_cost=line.unit_cost,
            line_value=line.line_value,
            resulting_stock=line.resulting_stock,
            resulting_average_cost=line.resulting_average_cost,
            resulting_valuation=line.resulting_valuation,
        )
