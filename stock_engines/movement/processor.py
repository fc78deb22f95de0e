"""
stock_engines.movement.processor -- Applies a stock movement to the ledger.

Responsibility:
    Transform ``(movement, current ledger entries, warehouse configs)``
    into ``(updated ledger entries, kardex lines)``.  Validates the
    movement, dispatches per movement kind, updates ledger entries line by
    line and assembles the kardex in processing order.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only stock_kernel domain types/errors, stock_config schema and
    sibling engine modules.  The caller loads the inputs and persists the
    result (see stock_services.movement_service).

Invariants enforced:
    - Atomicity: any failure yields a REJECTED result with no entries and
      no kardex lines; inputs are never mutated.
    - Sequential dependency: lines are processed strictly in list order
      and later lines see the ledger changes of earlier lines.
    - Transfer conservation: the destination receives exactly the
      dispatched quantity at the origin's average cost at dispatch time.
    - Valuation and lot-sum invariants (see valuation.py / lots.py).

Failure modes (all returned as MovementResult.failure):
    - InvalidStateError, EmptyMovementError, UnsupportedMovementKindError,
      InvalidQuantityError, MissingWarehouseReferenceError,
      WarehouseNotFoundError, WarehouseInactiveError,
      DuplicateStockEntryError (pre-validation).
    - MissingUnitCostError, MissingLotError, LotNotFoundError,
      InsufficientStockError, InsufficientLotStockError (per line).
    - ValueError (raised, not returned) if ``warehouses`` contains two
      configs with the same id.

Usage:
    from stock_engines.movement import MovementProcessor

    result = MovementProcessor().apply(movement, entries, warehouses)
    if result.is_success:
        storage.save(result.touched_entries, result.kardex_lines)
    else:
        reject(result.error.code, result.error.details)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, localcontext

from stock_config.schema import EngineSettings, PrecisionSettings
from stock_engines.movement import valuation
from stock_engines.movement.lots import dispatch_from_lots, receive_into_lots
from stock_engines.movement.result import MovementResult
from stock_engines.movement.valuation import ValuationChange
from stock_engines.tracer import traced_engine
from stock_kernel.domain.kardex import KardexDirection, KardexLine
from stock_kernel.domain.movement import (
    MovementKind,
    MovementLine,
    MovementRecord,
    MovementState,
)
from stock_kernel.domain.stock import StockKey, StockLedgerEntry
from stock_kernel.domain.values import (
    WORKING_PRECISION,
    ZERO,
    is_finite_non_negative,
    within_magnitude,
)
from stock_kernel.domain.warehouse import WarehouseConfig, WarehouseRegistry
from stock_kernel.exceptions import (
    DuplicateStockEntryError,
    EmptyMovementError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStateError,
    InventoryError,
    MissingUnitCostError,
    MissingWarehouseReferenceError,
    UnsupportedMovementKindError,
)
from stock_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.movement.processor")

_SOURCE = "source"
_DESTINATION = "destination"


@dataclass(frozen=True, slots=True)
class _PreparedLine:
    """A movement line with its quantity and unit cost quantized."""

    line: MovementLine
    quantity: Decimal
    unit_cost: Decimal | None


@dataclass(frozen=True, slots=True)
class _Targets:
    """Warehouses resolved for a movement."""

    source: WarehouseConfig | None
    destination: WarehouseConfig | None


class _WorkingLedger:
    """
    Copy-on-write view of the ledger during one processing call.

    Input entries keep their order; entries created by the movement are
    appended in first-touched order.  Only ``put`` adds keys.
    """

    def __init__(self, entries: Iterable[StockLedgerEntry]):
        self._entries: dict[StockKey, StockLedgerEntry] = {}
        for entry in entries:
            if entry.key in self._entries:
                raise DuplicateStockEntryError(entry.product_id, entry.warehouse_id)
            self._entries[entry.key] = entry
        self._touched: list[StockKey] = []

    def get(self, product_id: str, warehouse_id: str, reference: str) -> StockLedgerEntry:
        existing = self._entries.get(StockKey(product_id, warehouse_id))
        if existing is not None:
            return existing
        return StockLedgerEntry.empty(product_id, warehouse_id, reference)

    def put(self, entry: StockLedgerEntry) -> None:
        if entry.key not in self._touched:
            self._touched.append(entry.key)
        self._entries[entry.key] = entry

    def snapshot(self) -> tuple[StockLedgerEntry, ...]:
        return tuple(self._entries.values())

    @property
    def touched_keys(self) -> tuple[StockKey, ...]:
        return tuple(self._touched)


class _KardexBook:
    """Accumulates kardex lines in emission order; costs shown at ``cost_places``."""

    def __init__(self, movement: MovementRecord, kind: MovementKind, precision: PrecisionSettings):
        self._movement = movement
        self._kind = kind
        self._precision = precision
        self._lines: list[KardexLine] = []

    def record(
        self,
        change: ValuationChange,
        direction: KardexDirection,
        lot_code: str | None,
    ) -> KardexLine:
        entry = change.entry
        incoming = direction == KardexDirection.IN
        line = KardexLine(
            sequence=len(self._lines),
            product_id=entry.product_id,
            warehouse_id=entry.warehouse_id,
            movement_date=self._movement.movement_date,
            reference_document=self._movement.document,
            direction=direction,
            quantity_in=change.quantity if incoming else ZERO,
            quantity_out=ZERO if incoming else change.quantity,
            unit_cost=self._precision.cost(change.unit_cost),
            line_value=change.line_value,
            resulting_stock=entry.quantity_on_hand,
            resulting_average_cost=self._precision.cost(entry.average_unit_cost),
            resulting_valuation=entry.total_valuation,
            lot_code=lot_code,
            movement_kind=self._kind,
        )
        self._lines.append(line)
        return line

    @property
    def lines(self) -> tuple[KardexLine, ...]:
        return tuple(self._lines)


class MovementProcessor:
    """
    Stateless movement engine.

    Contract:
        No I/O, no database access, fully deterministic.  The only state
        is the immutable precision configuration.
    Guarantees:
        - ``apply`` returns a full result or a rejection, never a partial
          ledger.
        - Kardex lines come back in processing order; a transfer line
          yields OUT (origin) then IN (destination).
    Non-goals:
        - Does not decide when movements happen, persist results, resolve
          concurrent writers or price purchases.
    """

    def __init__(self, settings: EngineSettings | None = None):
        self._settings = settings or EngineSettings.default()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def precision(self) -> PrecisionSettings:
        return self._settings.precision

    @traced_engine("stock_movement", "1.0", fingerprint_fields=("movement", "current_entries"))
    def apply(
        self,
        movement: MovementRecord,
        current_entries: Iterable[StockLedgerEntry],
        warehouses: WarehouseRegistry | Iterable[WarehouseConfig],
    ) -> MovementResult:
        """
        Apply ``movement`` to the ledger snapshot ``current_entries``.

        Args:
            movement: The proposed movement (must be APPLIED).
            current_entries: Ledger entries for the affected pairs.  Pairs
                not present are treated as zero stock.
            warehouses: Warehouse configs, as a registry or any iterable.

        Returns:
            MovementResult -- APPLIED with the full updated snapshot and
            kardex lines, or REJECTED with a typed error.
        """
        registry = WarehouseRegistry.of(warehouses)
        with LogContext.bind(
            movement_id=movement.movement_id,
            reference_document=movement.document,
        ):
            try:
                with localcontext() as ctx:
                    ctx.prec = WORKING_PRECISION
                    ledger, book = self._process(movement, current_entries, registry)
            except InventoryError as exc:
                logger.warning("movement_rejected", extra={
                    "error_code": exc.code,
                    "error_message": str(exc),
                    "kind": _kind_label(movement.kind),
                    "line_count": len(movement.lines),
                    **{f"error_{k}": v for k, v in exc.details.items()},
                })
                return MovementResult.failure(exc)

            result = MovementResult.success(
                entries=ledger.snapshot(),
                kardex_lines=book.lines,
                touched_keys=ledger.touched_keys,
            )
            logger.info("movement_applied", extra={
                "kind": _kind_label(movement.kind),
                "line_count": len(movement.lines),
                "kardex_line_count": len(result.kardex_lines),
                "touched_entry_count": len(result.touched_keys),
            })
            return result

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def _process(
        self,
        movement: MovementRecord,
        current_entries: Iterable[StockLedgerEntry],
        registry: WarehouseRegistry,
    ) -> tuple[_WorkingLedger, _KardexBook]:
        kind = self._validate_header(movement)
        prepared = tuple(self._prepare_line(kind, line) for line in movement.lines)
        targets = self._resolve_targets(movement, kind, prepared, registry)
        ledger = _WorkingLedger(current_entries)
        book = _KardexBook(movement, kind, self.precision)

        for item in prepared:
            if kind == MovementKind.RECEIPT:
                self._receive(
                    ledger, book, movement, targets.destination, item, _line_cost(item)
                )
            elif kind == MovementKind.ISSUE:
                self._dispatch(ledger, book, movement, targets.source, item)
            elif kind == MovementKind.TRANSFER:
                self._transfer(ledger, book, movement, targets, item)
            elif item.quantity > ZERO:
                self._receive(
                    ledger, book, movement, targets.destination, item, _line_cost(item)
                )
            else:
                self._dispatch(
                    ledger, book, movement, targets.source,
                    replace(item, quantity=-item.quantity),
                )

        return ledger, book

    # ------------------------------------------------------------------
    # Pre-validation
    # ------------------------------------------------------------------

    def _validate_header(self, movement: MovementRecord) -> MovementKind:
        if movement.state != MovementState.APPLIED:
            raise InvalidStateError(movement.movement_id, _kind_label(movement.state))
        if not movement.lines:
            raise EmptyMovementError(movement.movement_id)
        try:
            return MovementKind(movement.kind)
        except ValueError:
            raise UnsupportedMovementKindError(
                movement.movement_id, _kind_label(movement.kind)
            ) from None

    def _prepare_line(self, kind: MovementKind, line: MovementLine) -> _PreparedLine:
        """Quantize quantity and unit cost, enforcing the sign rule."""
        if not within_magnitude(line.quantity):
            raise InvalidQuantityError(
                line.product_id, line.quantity, "quantity must be finite and below 1E+15"
            )
        quantity = self.precision.quantity(line.quantity)
        if kind == MovementKind.ADJUSTMENT:
            if quantity == ZERO:
                raise InvalidQuantityError(
                    line.product_id, quantity, "adjustment quantity cannot be zero"
                )
        elif quantity <= ZERO:
            raise InvalidQuantityError(
                line.product_id, quantity, "quantity must be greater than zero"
            )

        unit_cost = line.unit_cost
        if _usable_cost(unit_cost):
            unit_cost = self.precision.cost(unit_cost)
        return _PreparedLine(line=line, quantity=quantity, unit_cost=unit_cost)

    def _resolve_targets(
        self,
        movement: MovementRecord,
        kind: MovementKind,
        prepared: tuple[_PreparedLine, ...],
        registry: WarehouseRegistry,
    ) -> _Targets:
        if kind == MovementKind.RECEIPT:
            needs_source, needs_destination = False, True
        elif kind == MovementKind.ISSUE:
            needs_source, needs_destination = True, False
        elif kind == MovementKind.TRANSFER:
            needs_source, needs_destination = True, True
        else:
            needs_source = any(item.quantity < ZERO for item in prepared)
            needs_destination = any(item.quantity > ZERO for item in prepared)

        label = kind.value.upper()
        if needs_source and not movement.source_warehouse_id:
            raise MissingWarehouseReferenceError(movement.movement_id, label, _SOURCE)
        if needs_destination and not movement.destination_warehouse_id:
            raise MissingWarehouseReferenceError(movement.movement_id, label, _DESTINATION)

        source = registry.require(movement.source_warehouse_id) if needs_source else None
        destination = (
            registry.require(movement.destination_warehouse_id)
            if needs_destination
            else None
        )
        return _Targets(source=source, destination=destination)

    # ------------------------------------------------------------------
    # Per-line handlers
    # ------------------------------------------------------------------

    def _receive(
        self,
        ledger: _WorkingLedger,
        book: _KardexBook,
        movement: MovementRecord,
        warehouse: WarehouseConfig,
        item: _PreparedLine,
        unit_cost: Decimal,
        line_value: Decimal | None = None,
        expiry_fallback: date | None = None,
    ) -> ValuationChange:
        line = item.line
        entry = ledger.get(line.product_id, warehouse.warehouse_id, movement.document)
        if warehouse.lots_tracked:
            lots = receive_into_lots(
                entry,
                line.lot_code,
                item.quantity,
                line.expiry_date or expiry_fallback,
            )
            entry = replace(entry, lots=lots)

        change = valuation.receive(
            entry, item.quantity, unit_cost, self.precision, movement.document, line_value
        )
        ledger.put(change.entry)
        book.record(change, KardexDirection.IN, line.lot_code)

        logger.debug("stock_received", extra={
            "product_id": line.product_id,
            "warehouse_id": warehouse.warehouse_id,
            "quantity": str(item.quantity),
            "unit_cost": str(unit_cost),
            "resulting_stock": str(change.entry.quantity_on_hand),
            "resulting_average_cost": str(change.entry.average_unit_cost),
        })
        return change

    def _dispatch(
        self,
        ledger: _WorkingLedger,
        book: _KardexBook,
        movement: MovementRecord,
        warehouse: WarehouseConfig,
        item: _PreparedLine,
    ) -> ValuationChange:
        line = item.line
        entry = ledger.get(line.product_id, warehouse.warehouse_id, movement.document)

        if not warehouse.negative_stock_allowed and item.quantity > entry.available_quantity:
            raise InsufficientStockError(
                product_id=line.product_id,
                warehouse_id=warehouse.warehouse_id,
                requested=item.quantity,
                available=entry.available_quantity,
            )
        if warehouse.lots_tracked:
            lots = dispatch_from_lots(
                entry,
                line.lot_code,
                item.quantity,
                warehouse.negative_stock_allowed,
            )
            entry = replace(entry, lots=lots)

        change = valuation.dispatch(entry, item.quantity, self.precision, movement.document)
        ledger.put(change.entry)
        book.record(change, KardexDirection.OUT, line.lot_code)

        logger.debug("stock_dispatched", extra={
            "product_id": line.product_id,
            "warehouse_id": warehouse.warehouse_id,
            "quantity": str(item.quantity),
            "unit_cost": str(change.unit_cost),
            "resulting_stock": str(change.entry.quantity_on_hand),
        })
        return change

    def _transfer(
        self,
        ledger: _WorkingLedger,
        book: _KardexBook,
        movement: MovementRecord,
        targets: _Targets,
        item: _PreparedLine,
    ) -> None:
        line = item.line
        expiry = None
        if targets.source.lots_tracked and line.lot_code:
            origin = ledger.get(line.product_id, targets.source.warehouse_id, movement.document)
            bucket = origin.find_lot(line.lot_code)
            expiry = bucket.expiry_date if bucket else None

        out = self._dispatch(ledger, book, movement, targets.source, item)
        # Destination takes the origin's average cost and the exact value that
        # left the origin, never a cost on the line.
        self._receive(
            ledger, book, movement, targets.destination, item, out.unit_cost,
            line_value=out.line_value,
            expiry_fallback=expiry,
        )


def apply_movement(
    movement: MovementRecord,
    current_entries: Iterable[StockLedgerEntry],
    warehouses: WarehouseRegistry | Iterable[WarehouseConfig],
    settings: EngineSettings | None = None,
) -> MovementResult:
    """Apply ``movement`` with a one-off processor."""
    return MovementProcessor(settings).apply(movement, current_entries, warehouses)


def _kind_label(value: object) -> str:
    return str(getattr(value, "value", value))


def _usable_cost(value: Decimal | None) -> bool:
    return is_finite_non_negative(value) and within_magnitude(value)


def _line_cost(item: _PreparedLine) -> Decimal:
    """The unit cost a receiving line carries; rejected when unusable."""
    if not _usable_cost(item.unit_cost):
        raise MissingUnitCostError(item.line.product_id, item.unit_cost)
    return item.unit_cost
