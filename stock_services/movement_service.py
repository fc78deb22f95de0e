"""
StockMovementService -- persists stock movements through the pure processor.

Responsibility:
    Loads the warehouse configuration and current ledger entries a movement
    can touch, runs MovementProcessor, and writes the touched entries plus
    the kardex lines on success.

Architecture position:
    Services -- imperative shell around stock_engines.movement.  Owns the
    ORM mapping for a single movement but NOT the transaction boundary:
    it flushes, the caller commits (usually via ``session_scope()``).

Invariants enforced:
    - Nothing is written when the processor rejects the movement.
    - Ledger rows carry a version column; a concurrent update detected at
      flush is raised as OptimisticLockError, never silently overwritten.
    - Kardex rows are inserted only (append-only listeners guard updates).

Failure modes:
    - OptimisticLockError: a ledger row changed since it was loaded.
    - ValueError: the processor received duplicate warehouse configs
      (cannot happen through this service; warehouse_id is unique).

Usage:
    with session_scope() as session:
        result = StockMovementService(session).apply(movement)
        if not result.is_success:
            report(result.error.code, result.error.details)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stock_config.schema import EngineSettings
from stock_engines.movement import MovementProcessor, MovementResult
from stock_kernel.domain.kardex import KardexLine
from stock_kernel.domain.movement import MovementRecord
from stock_kernel.domain.stock import StockKey, StockLedgerEntry
from stock_kernel.domain.warehouse import WarehouseConfig
from stock_kernel.exceptions import OptimisticLockError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.kardex import KardexLineModel
from stock_kernel.models.stock_ledger import StockLedgerEntryModel
from stock_kernel.models.warehouse import WarehouseModel

logger = get_logger("services.movement_service")


class StockMovementService:
    """
    Applies movements against the database-backed stock ledger.

    Args:
        session: SQLAlchemy session; the caller owns commit/rollback.
        settings: Engine settings for the processor.  Defaults to
            ``EngineSettings.default()``.
    """

    def __init__(self, session: Session, settings: EngineSettings | None = None):
        self._session = session
        self._processor = MovementProcessor(settings)

    @property
    def processor(self) -> MovementProcessor:
        return self._processor

    # ------------------------------------------------------------------
    # Warehouses
    # ------------------------------------------------------------------

    def register_warehouse(self, config: WarehouseConfig) -> WarehouseModel:
        """Insert or update a warehouse configuration."""
        model = self._session.execute(
            select(WarehouseModel).where(WarehouseModel.warehouse_id == config.warehouse_id)
        ).scalar_one_or_none()

        if model is None:
            model = WarehouseModel.from_config(config)
            self._session.add(model)
            created = True
        else:
            model.update_from(config)
            created = False

        self._session.flush()
        logger.info(
            "warehouse_registered",
            extra={
                "warehouse_id": config.warehouse_id,
                "created": created,
                "lots_tracked": config.lots_tracked,
                "negative_stock_allowed": config.negative_stock_allowed,
                "active": config.active,
            },
        )
        return model

    def get_warehouse(self, warehouse_id: str) -> WarehouseConfig | None:
        model = self._session.execute(
            select(WarehouseModel).where(WarehouseModel.warehouse_id == warehouse_id)
        ).scalar_one_or_none()
        return model.to_config() if model is not None else None

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def apply(self, movement: MovementRecord) -> MovementResult:
        """
        Apply one movement and stage the resulting rows in the session.

        Returns the processor's MovementResult.  On success the touched
        ledger entries and kardex lines are flushed; on failure the session
        is left untouched.

        Raises:
            OptimisticLockError: A ledger row was modified concurrently.
        """
        warehouse_ids = _referenced_warehouses(movement)
        warehouses = self._load_warehouses(warehouse_ids)
        models = self._load_entries(
            {line.product_id for line in movement.lines},
            warehouse_ids,
        )

        result = self._processor.apply(
            movement,
            [model.to_entry() for model in models.values()],
            [model.to_config() for model in warehouses],
        )
        if not result.is_success:
            return result

        self._write_entries(models, result.touched_entries)
        self._write_kardex(movement, result.kardex_lines)

        try:
            self._session.flush()
        except StaleDataError as exc:
            keys = ",".join(str(key) for key in result.touched_keys)
            logger.warning(
                "optimistic_lock_conflict",
                extra={"movement_id": movement.movement_id, "entries": keys},
            )
            raise OptimisticLockError("StockLedgerEntry", keys) from exc

        logger.info(
            "movement_persisted",
            extra={
                "movement_id": movement.movement_id,
                "entries_written": len(result.touched_entries),
                "kardex_lines_written": len(result.kardex_lines),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entry(self, product_id: str, warehouse_id: str) -> StockLedgerEntry | None:
        model = self._session.execute(
            select(StockLedgerEntryModel).where(
                StockLedgerEntryModel.product_id == product_id,
                StockLedgerEntryModel.warehouse_id == warehouse_id,
            )
        ).scalar_one_or_none()
        return model.to_entry() if model is not None else None

    def kardex_for(
        self,
        product_id: str,
        warehouse_id: str | None = None,
    ) -> list[KardexLine]:
        """Kardex history of a product, oldest first."""
        stmt = select(KardexLineModel).where(KardexLineModel.product_id == product_id)
        if warehouse_id is not None:
            stmt = stmt.where(KardexLineModel.warehouse_id == warehouse_id)
        stmt = stmt.order_by(
            KardexLineModel.movement_date,
            KardexLineModel.recorded_at,
            KardexLineModel.sequence,
        )
        return [model.to_line() for model in self._session.execute(stmt).scalars()]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_warehouses(self, warehouse_ids: set[str]) -> list[WarehouseModel]:
        if not warehouse_ids:
            return []
        return list(
            self._session.execute(
                select(WarehouseModel).where(WarehouseModel.warehouse_id.in_(warehouse_ids))
            ).scalars()
        )

    def _load_entries(
        self,
        product_ids: set[str],
        warehouse_ids: set[str],
    ) -> dict[StockKey, StockLedgerEntryModel]:
        if not product_ids or not warehouse_ids:
            return {}
        rows = self._session.execute(
            select(StockLedgerEntryModel).where(
                StockLedgerEntryModel.product_id.in_(product_ids),
                StockLedgerEntryModel.warehouse_id.in_(warehouse_ids),
            )
        ).scalars()
        return {StockKey(row.product_id, row.warehouse_id): row for row in rows}

    def _write_entries(
        self,
        models: dict[StockKey, StockLedgerEntryModel],
        entries: Iterable[StockLedgerEntry],
    ) -> None:
        for entry in entries:
            model = models.get(entry.key)
            if model is None:
                self._session.add(StockLedgerEntryModel.from_entry(entry))
            else:
                model.update_from(entry)

    def _write_kardex(
        self,
        movement: MovementRecord,
        lines: Iterable[KardexLine],
    ) -> None:
        recorded_at = datetime.now(timezone.utc)
        for line in lines:
            self._session.add(
                KardexLineModel.from_line(line, movement.movement_id, recorded_at)
            )


def _referenced_warehouses(movement: MovementRecord) -> set[str]:
    return {
        warehouse_id
        for warehouse_id in (movement.source_warehouse_id, movement.destination_warehouse_id)
        if warehouse_id
    }
