"""
Warehouse -- Static per-warehouse configuration and its read-only registry.

Responsibility:
    Describes how a warehouse treats stock (lot tracking, negative stock
    allowance, active flag) and resolves warehouse ids for the movement
    processor.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Configs are loaded by the caller
    and are immutable for the duration of a processing call.

Failure modes:
    - WarehouseNotFoundError / WarehouseInactiveError from
      ``WarehouseRegistry.require``.
    - ValueError when a registry is built from configs with duplicate ids.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum

from stock_kernel.exceptions import WarehouseInactiveError, WarehouseNotFoundError


class WarehouseKind(str, Enum):
    """Physical role of a warehouse. Informational only."""

    CENTRAL = "central"
    STORE = "store"
    TRANSIT = "transit"
    COUNTER = "counter"


@dataclass(frozen=True, slots=True)
class WarehouseConfig:
    """
    Configuration for a single warehouse.

    Contract:
        Read-only input to the movement processor.  ``lots_tracked``
        requires every line touching the warehouse to name a lot;
        ``negative_stock_allowed`` lets dispatches drive stock below zero.
    """

    warehouse_id: str
    lots_tracked: bool = False
    negative_stock_allowed: bool = False
    active: bool = True
    name: str | None = None
    kind: WarehouseKind = WarehouseKind.CENTRAL

    def __post_init__(self) -> None:
        if not self.warehouse_id:
            raise ValueError("warehouse_id is required")
        if isinstance(self.kind, str) and not isinstance(self.kind, WarehouseKind):
            object.__setattr__(self, "kind", WarehouseKind(self.kind))


class WarehouseRegistry(Mapping[str, WarehouseConfig]):
    """Immutable lookup of warehouse configs by id."""

    __slots__ = ("_by_id",)

    def __init__(self, configs: Iterable[WarehouseConfig] = ()):
        by_id: dict[str, WarehouseConfig] = {}
        for config in configs:
            if config.warehouse_id in by_id:
                raise ValueError(
                    f"Duplicate warehouse config: {config.warehouse_id}"
                )
            by_id[config.warehouse_id] = config
        self._by_id = by_id

    @classmethod
    def of(
        cls, warehouses: WarehouseRegistry | Iterable[WarehouseConfig]
    ) -> WarehouseRegistry:
        """Return ``warehouses`` as a registry, building one if needed."""
        if isinstance(warehouses, WarehouseRegistry):
            return warehouses
        return cls(warehouses)

    def __getitem__(self, warehouse_id: str) -> WarehouseConfig:
        return self._by_id[warehouse_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def require(self, warehouse_id: str) -> WarehouseConfig:
        """
        Resolve an active warehouse.

        Raises:
            WarehouseNotFoundError: if the id is not registered.
            WarehouseInactiveError: if the warehouse is inactive.
        """
        config = self._by_id.get(warehouse_id)
        if config is None:
            raise WarehouseNotFoundError(warehouse_id)
        if not config.active:
            raise WarehouseInactiveError(warehouse_id)
        return config

    def __repr__(self) -> str:
        return f"WarehouseRegistry({sorted(self._by_id)!r})"
