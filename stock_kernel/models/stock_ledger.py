"""
Module: stock_kernel.models.stock_ledger
Responsibility: ORM persistence for per-product-per-warehouse ledger entries
    and their lot buckets.
Architecture position: Kernel > Models.  May import from db/base.py and the
    domain stock types it maps to.

Invariants enforced:
    - One row per (product_id, warehouse_id) -- unique constraint.
    - Optimistic concurrency: ``version`` is the mapper's version_id_col, so
      an UPDATE against a row changed by another transaction matches zero
      rows and raises StaleDataError at flush.
    - Lot buckets are child rows ordered by ``position``; the whole set is
      replaced whenever the entry is written.

Failure modes:
    - IntegrityError on a duplicate (product_id, warehouse_id).
    - StaleDataError on a concurrent modification (mapped to
      OptimisticLockError by the movement service).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, UUIDString
from stock_kernel.domain.stock import LotBucket, StockLedgerEntry


class StockLedgerEntryModel(Base):
    """Persistent stock position of one product in one warehouse."""

    __tablename__ = "stock_ledger_entries"

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_stock_ledger_product_warehouse"),
    )

    product_id: Mapped[str] = mapped_column(String(100), nullable=False)
    warehouse_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    quantity_on_hand: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=0)
    reserved_quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=0)
    average_unit_cost: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=0)
    total_valuation: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=0)

    minimum_quantity: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)
    maximum_quantity: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)
    reorder_point: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    last_movement_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    lots: Mapped[list[LotBucketModel]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="LotBucketModel.position",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_entry(self) -> StockLedgerEntry:
        return StockLedgerEntry(
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            quantity_on_hand=self.quantity_on_hand,
            average_unit_cost=self.average_unit_cost,
            total_valuation=self.total_valuation,
            reserved_quantity=self.reserved_quantity,
            lots=tuple(lot.to_bucket() for lot in self.lots),
            last_movement_reference=self.last_movement_reference,
            minimum_quantity=self.minimum_quantity,
            maximum_quantity=self.maximum_quantity,
            reorder_point=self.reorder_point,
        )

    def update_from(self, entry: StockLedgerEntry) -> None:
        """Copy an engine-produced entry onto this row, replacing its lots."""
        self.quantity_on_hand = entry.quantity_on_hand
        self.reserved_quantity = entry.reserved_quantity
        self.average_unit_cost = entry.average_unit_cost
        self.total_valuation = entry.total_valuation
        self.minimum_quantity = entry.minimum_quantity
        self.maximum_quantity = entry.maximum_quantity
        self.reorder_point = entry.reorder_point
        self.last_movement_reference = entry.last_movement_reference
        self.lots = [
            LotBucketModel.from_bucket(bucket, position)
            for position, bucket in enumerate(entry.lots)
        ]

    @classmethod
    def from_entry(cls, entry: StockLedgerEntry) -> StockLedgerEntryModel:
        model = cls(product_id=entry.product_id, warehouse_id=entry.warehouse_id)
        model.update_from(entry)
        return model


class LotBucketModel(Base):
    """One lot bucket of a ledger entry."""

    __tablename__ = "stock_lot_buckets"

    entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("stock_ledger_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    lot_code: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(nullable=True)

    entry: Mapped[StockLedgerEntryModel] = relationship(back_populates="lots")

    def to_bucket(self) -> LotBucket:
        return LotBucket(
            lot_code=self.lot_code,
            quantity=self.quantity,
            expiry_date=self.expiry_date,
        )

    @classmethod
    def from_bucket(cls, bucket: LotBucket, position: int) -> LotBucketModel:
        return cls(
            position=position,
            lot_code=bucket.lot_code,
            quantity=bucket.quantity,
            expiry_date=bucket.expiry_date,
        )
