"""
Module: stock_kernel.models.warehouse
Responsibility: ORM persistence for warehouse configuration.
Architecture position: Kernel > Models.  May import from db/base.py and
    the domain warehouse type it maps to.
"""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base
from stock_kernel.domain.warehouse import WarehouseConfig, WarehouseKind


class WarehouseModel(Base):
    """Persistent warehouse configuration, keyed by ``warehouse_id``."""

    __tablename__ = "warehouses"

    warehouse_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WarehouseKind.CENTRAL.value
    )
    lots_tracked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    negative_stock_allowed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_config(self) -> WarehouseConfig:
        return WarehouseConfig(
            warehouse_id=self.warehouse_id,
            lots_tracked=self.lots_tracked,
            negative_stock_allowed=self.negative_stock_allowed,
            active=self.active,
            name=self.name,
            kind=WarehouseKind(self.kind),
        )

    def update_from(self, config: WarehouseConfig) -> None:
        self.name = config.name
        self.kind = config.kind.value
        self.lots_tracked = config.lots_tracked
        self.negative_stock_allowed = config.negative_stock_allowed
        self.active = config.active

    @classmethod
    def from_config(cls, config: WarehouseConfig) -> WarehouseModel:
        model = cls(warehouse_id=config.warehouse_id)
        model.update_from(config)
        return model
