"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A rejected stock movement must be reported to the user precisely
("insufficient stock in warehouse X for product Y"), not as a generic
error.  Callers therefore need to:
  1. Catch by type, not by parsing messages
  2. Read a machine-readable CODE attribute (API-safe)
  3. Read structured DATA (product, warehouse, quantities)

Example - WRONG way to handle errors:
    try:
        processor.apply(...).unwrap()
    except Exception as e:
        if "stock" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way (what this module enables):
    result = processor.apply(...)
    if not result.is_success and result.error.code == InsufficientStockError.code:
        notify(result.error.details["warehouse_id"], result.error.details["product_id"])

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InventoryError:

    InventoryError (base)
    |
    +-- MovementValidationError
    |   +-- InvalidStateError
    |   +-- EmptyMovementError
    |   +-- MissingWarehouseReferenceError
    |   +-- InvalidQuantityError
    |   +-- MissingUnitCostError
    |   +-- UnsupportedMovementKindError
    |   +-- DuplicateStockEntryError
    |
    +-- WarehouseError
    |   +-- WarehouseNotFoundError
    |   +-- WarehouseInactiveError
    |
    +-- LotError
    |   +-- MissingLotError
    |   +-- LotNotFoundError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |   +-- InsufficientLotStockError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                          | When Raised
------------|-------------------------------|------------------------------------------
Movement    | INVALID_STATE                 | Movement is not APPLIED
            | EMPTY_MOVEMENT                | Movement has no line items
            | MISSING_WAREHOUSE_REFERENCE   | Source/destination id absent for the kind
            | INVALID_QUANTITY              | Non-positive, zero adjustment or out-of-range quantity
            | MISSING_UNIT_COST             | Receipt line without usable unit cost
            | UNSUPPORTED_MOVEMENT_KIND     | Kind outside RECEIPT/ISSUE/TRANSFER/ADJUSTMENT
            | DUPLICATE_STOCK_ENTRY         | Two ledger entries share a product/warehouse
------------|-------------------------------|------------------------------------------
Warehouse   | WAREHOUSE_NOT_FOUND           | Referenced warehouse not configured
            | WAREHOUSE_INACTIVE            | Referenced warehouse is inactive
------------|-------------------------------|------------------------------------------
Lot         | MISSING_LOT                   | Lot-tracked warehouse, line has no lot code
            | LOT_NOT_FOUND                 | Dispatch from a lot the entry does not hold
------------|-------------------------------|------------------------------------------
Stock       | INSUFFICIENT_STOCK            | Would go negative, warehouse disallows it
            | INSUFFICIENT_LOT_STOCK        | Lot bucket would go negative
------------|-------------------------------|------------------------------------------
Concurrency | OPTIMISTIC_LOCK_CONFLICT      | Ledger entry changed by another writer
------------|-------------------------------|------------------------------------------
Immutability| IMMUTABILITY_VIOLATION        | Update/delete of a persisted kardex line

===============================================================================
HANDLING PATTERNS
===============================================================================

The movement processor raises these internally and converts them into a
failure ``MovementResult`` at its boundary, so engine callers normally
inspect ``result.error.code``.  ``MovementResult.unwrap()`` re-raises the
original exception for callers that prefer exception flow.

ConcurrencyError and ImmutabilityError are raised by the persistence
layer only; the pure engine never produces them.
"""

from decimal import Decimal


class InventoryError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_ERROR"

    @property
    def details(self) -> dict:
        """Structured attributes carried by this error."""
        return {k: v for k, v in vars(self).items() if not k.startswith("_")}


# Movement validation exceptions


class MovementValidationError(InventoryError):
    """Base exception for malformed or unprocessable movements."""

    code: str = "MOVEMENT_VALIDATION_ERROR"


class InvalidStateError(MovementValidationError):
    """Movement is not in APPLIED state."""

    code: str = "INVALID_STATE"

    def __init__(self, movement_id: str, state: str):
        self.movement_id = movement_id
        self.state = state
        super().__init__(
            f"Movement {movement_id} must be APPLIED to be processed, got {state}"
        )


class EmptyMovementError(MovementValidationError):
    """Movement has no line items."""

    code: str = "EMPTY_MOVEMENT"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(f"Movement {movement_id} has no line items")


class MissingWarehouseReferenceError(MovementValidationError):
    """Required source or destination warehouse id is absent."""

    code: str = "MISSING_WAREHOUSE_REFERENCE"

    def __init__(self, movement_id: str, kind: str, role: str):
        self.movement_id = movement_id
        self.kind = kind
        self.role = role
        super().__init__(
            f"{kind} movement {movement_id} requires a {role} warehouse"
        )


class InvalidQuantityError(MovementValidationError):
    """Line quantity violates the sign rule for the movement kind."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, product_id: str, quantity: Decimal, reason: str):
        self.product_id = product_id
        self.quantity = quantity
        self.reason = reason
        super().__init__(
            f"Invalid quantity {quantity} for product {product_id}: {reason}"
        )


class MissingUnitCostError(MovementValidationError):
    """Receipt-type line lacks a finite, non-negative unit cost."""

    code: str = "MISSING_UNIT_COST"

    def __init__(self, product_id: str, unit_cost: Decimal | None):
        self.product_id = product_id
        self.unit_cost = unit_cost
        super().__init__(
            f"Receipt of product {product_id} requires a finite non-negative "
            f"unit cost, got {unit_cost}"
        )


class UnsupportedMovementKindError(MovementValidationError):
    """Movement kind is outside the supported set."""

    code: str = "UNSUPPORTED_MOVEMENT_KIND"

    def __init__(self, movement_id: str, kind: str):
        self.movement_id = movement_id
        self.kind = kind
        super().__init__(f"Unsupported movement kind {kind!r} on {movement_id}")


class DuplicateStockEntryError(MovementValidationError):
    """Two supplied ledger entries share the same product/warehouse key."""

    code: str = "DUPLICATE_STOCK_ENTRY"

    def __init__(self, product_id: str, warehouse_id: str):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        super().__init__(
            f"Duplicate stock entry for product {product_id} "
            f"in warehouse {warehouse_id}"
        )


# Warehouse exceptions


class WarehouseError(InventoryError):
    """Base exception for warehouse lookup errors."""

    code: str = "WAREHOUSE_ERROR"


class WarehouseNotFoundError(WarehouseError):
    """Referenced warehouse is not configured."""

    code: str = "WAREHOUSE_NOT_FOUND"

    def __init__(self, warehouse_id: str):
        self.warehouse_id = warehouse_id
        super().__init__(f"Warehouse not found: {warehouse_id}")


class WarehouseInactiveError(WarehouseError):
    """Referenced warehouse is inactive."""

    code: str = "WAREHOUSE_INACTIVE"

    def __init__(self, warehouse_id: str):
        self.warehouse_id = warehouse_id
        super().__init__(f"Warehouse {warehouse_id} is inactive")


# Lot exceptions


class LotError(InventoryError):
    """Base exception for lot bucket errors."""

    code: str = "LOT_ERROR"


class MissingLotError(LotError):
    """Warehouse tracks lots but the line carries no lot code."""

    code: str = "MISSING_LOT"

    def __init__(self, product_id: str, warehouse_id: str):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        super().__init__(
            f"Warehouse {warehouse_id} tracks lots: a lot code is required "
            f"for product {product_id}"
        )


class LotNotFoundError(LotError):
    """Dispatch references a lot the ledger entry does not hold."""

    code: str = "LOT_NOT_FOUND"

    def __init__(self, product_id: str, warehouse_id: str, lot_code: str):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.lot_code = lot_code
        super().__init__(
            f"Lot {lot_code} not found for product {product_id} "
            f"in warehouse {warehouse_id}"
        )


# Stock level exceptions


class StockError(InventoryError):
    """Base exception for stock level violations."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """Dispatch would drive available stock negative."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        requested: Decimal,
        available: Decimal,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock in warehouse {warehouse_id} for product "
            f"{product_id}: requested {requested}, available {available}"
        )


class InsufficientLotStockError(StockError):
    """Dispatch would drive a lot bucket negative."""

    code: str = "INSUFFICIENT_LOT_STOCK"

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        lot_code: str,
        requested: Decimal,
        available: Decimal,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.lot_code = lot_code
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock in lot {lot_code} of product {product_id} "
            f"in warehouse {warehouse_id}: requested {requested}, "
            f"available {available}"
        )


# Concurrency exceptions


class ConcurrencyError(InventoryError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability exceptions


class ImmutabilityError(InventoryError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Kardex lines are append-only once persisted.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
