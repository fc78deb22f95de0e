"""
Tests for movement pre-validation.

Every rejection must carry its typed error code and leave the result empty.
"""

from decimal import Decimal

import pytest

from stock_engines.movement import MovementStatus
from stock_kernel.domain.movement import MovementKind, MovementLine, MovementState
from stock_kernel.domain.stock import StockLedgerEntry
from stock_kernel.domain.warehouse import WarehouseConfig
from stock_kernel.exceptions import (
    InvalidStateError,
    MovementValidationError,
    WarehouseError,
)


def _receipt_line(quantity="1", unit_cost="1.00", **kwargs):
    return MovementLine("SKU-1", quantity, unit_cost=unit_cost, **kwargs)


class TestHeaderValidation:
    """State, emptiness and kind are checked before any line."""

    @pytest.mark.parametrize("state", [MovementState.PENDING, MovementState.VOIDED])
    def test_non_applied_state_rejected(self, processor, make_movement, warehouses, state):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line()],
            destination="WH-CENTRAL",
            state=state,
        )

        result = processor.apply(movement, [], warehouses)

        assert result.status == MovementStatus.REJECTED
        assert result.error.code == "INVALID_STATE"
        assert isinstance(result.exception, InvalidStateError)
        assert isinstance(result.exception, MovementValidationError)

    def test_state_checked_before_lines(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.RECEIPT,
            [],
            destination="WH-CENTRAL",
            state=MovementState.PENDING,
        )

        assert processor.apply(movement, [], warehouses).error.code == "INVALID_STATE"

    def test_empty_movement_rejected(self, processor, make_movement, warehouses):
        movement = make_movement(MovementKind.RECEIPT, [], destination="WH-CENTRAL")

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "EMPTY_MOVEMENT"
        assert result.error.details == {"movement_id": movement.movement_id}

    def test_unknown_kind_rejected(self, processor, make_movement, warehouses):
        movement = make_movement("loan", [_receipt_line()], destination="WH-CENTRAL")

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "UNSUPPORTED_MOVEMENT_KIND"
        assert result.error.details["kind"] == "loan"

    def test_kind_given_as_value_string(self, processor, make_movement, warehouses):
        movement = make_movement("receipt", [_receipt_line()], destination="WH-CENTRAL")

        assert processor.apply(movement, [], warehouses).is_success


class TestLineValidation:
    """Quantity sign rules and unit cost requirements."""

    @pytest.mark.parametrize("quantity", ["0", "-1", "0.00001"])
    def test_receipt_quantity_must_be_positive(self, processor, make_movement, warehouses, quantity):
        """0.00001 rounds to zero at four places."""
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line(quantity=quantity)],
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "INVALID_QUANTITY"

    def test_issue_quantity_must_be_positive(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.ISSUE,
            [MovementLine("SKU-1", "-2")],
            source="WH-CENTRAL",
        )

        assert processor.apply(movement, [], warehouses).error.code == "INVALID_QUANTITY"

    def test_adjustment_quantity_cannot_be_zero(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.ADJUSTMENT,
            [MovementLine("SKU-1", "0", unit_cost="1")],
            source="WH-CENTRAL",
            destination="WH-CENTRAL",
        )

        assert processor.apply(movement, [], warehouses).error.code == "INVALID_QUANTITY"

    @pytest.mark.parametrize("quantity", ["NaN", "Infinity"])
    def test_non_finite_quantity_rejected(self, processor, make_movement, warehouses, quantity):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line(quantity=Decimal(quantity))],
            destination="WH-CENTRAL",
        )

        assert processor.apply(movement, [], warehouses).error.code == "INVALID_QUANTITY"

    @pytest.mark.parametrize(
        ("kind", "quantity"),
        [(MovementKind.RECEIPT, "1E+25"), (MovementKind.ADJUSTMENT, "-1E+15")],
    )
    def test_out_of_range_quantity_rejected(
        self, processor, make_movement, warehouses, kind, quantity
    ):
        movement = make_movement(
            kind,
            [_receipt_line(quantity=quantity)],
            source="WH-CENTRAL",
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.status == MovementStatus.REJECTED
        assert result.error.code == "INVALID_QUANTITY"
        assert result.entries == ()

    def test_large_in_range_receipt_is_exact(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line(quantity="999999999999999.9999", unit_cost="999999.999999")],
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.is_success
        entry = result.entry_for("SKU-1", "WH-CENTRAL")
        assert entry.total_valuation == Decimal("999999999998999999900.000000")

    @pytest.mark.parametrize("unit_cost", [None, "-0.01", "NaN", "1E+25"])
    def test_receipt_requires_valid_unit_cost(self, processor, make_movement, warehouses, unit_cost):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line(unit_cost=unit_cost)],
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "MISSING_UNIT_COST"
        assert result.error.details["product_id"] == "SKU-1"

    def test_positive_adjustment_requires_unit_cost(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.ADJUSTMENT,
            [MovementLine("SKU-1", "2")],
            destination="WH-CENTRAL",
        )

        assert processor.apply(movement, [], warehouses).error.code == "MISSING_UNIT_COST"

    def test_negative_adjustment_needs_no_unit_cost(self, processor, make_movement, warehouses):
        current = StockLedgerEntry("SKU-1", "WH-CENTRAL", "5", "2", "10")
        movement = make_movement(
            MovementKind.ADJUSTMENT,
            [MovementLine("SKU-1", "-2")],
            source="WH-CENTRAL",
        )

        assert processor.apply(movement, [current], warehouses).is_success


class TestWarehouseReferences:
    """Required warehouse ids per kind, and their resolution."""

    @pytest.mark.parametrize(
        "kind, source, destination, role",
        [
            (MovementKind.RECEIPT, "WH-CENTRAL", None, "destination"),
            (MovementKind.ISSUE, None, "WH-CENTRAL", "source"),
            (MovementKind.TRANSFER, None, "WH-STORE", "source"),
            (MovementKind.TRANSFER, "WH-CENTRAL", None, "destination"),
        ],
    )
    def test_missing_reference(
        self, processor, make_movement, warehouses, kind, source, destination, role
    ):
        movement = make_movement(
            kind, [_receipt_line()], source=source, destination=destination
        )

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "MISSING_WAREHOUSE_REFERENCE"
        assert result.error.details["role"] == role
        assert result.error.details["kind"] == kind.value.upper()

    def test_negative_adjustment_needs_source(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.ADJUSTMENT,
            [MovementLine("SKU-1", "-1")],
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "MISSING_WAREHOUSE_REFERENCE"
        assert result.error.details["role"] == "source"

    def test_unneeded_reference_is_ignored(self, processor, make_movement, warehouses):
        """A receipt naming an unknown source still succeeds."""
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line()],
            source="WH-NOWHERE",
            destination="WH-CENTRAL",
        )

        assert processor.apply(movement, [], warehouses).is_success

    def test_unknown_warehouse(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line()],
            destination="WH-NOWHERE",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.error.code == "WAREHOUSE_NOT_FOUND"
        assert result.error.details == {"warehouse_id": "WH-NOWHERE"}
        assert isinstance(result.exception, WarehouseError)

    def test_inactive_warehouse(self, processor, make_movement, warehouses):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line()],
            destination="WH-CLOSED",
        )

        assert processor.apply(movement, [], warehouses).error.code == "WAREHOUSE_INACTIVE"

    def test_inactive_transfer_destination(self, processor, make_movement, warehouses):
        current = StockLedgerEntry("SKU-1", "WH-CENTRAL", "5", "2", "10")
        movement = make_movement(
            MovementKind.TRANSFER,
            [MovementLine("SKU-1", "1")],
            source="WH-CENTRAL",
            destination="WH-CLOSED",
        )

        result = processor.apply(movement, [current], warehouses)

        assert result.error.code == "WAREHOUSE_INACTIVE"
        assert result.entries == ()


class TestInputValidation:
    """Malformed processor inputs."""

    def test_duplicate_ledger_entries_rejected(self, processor, make_movement, warehouses):
        entry = StockLedgerEntry("SKU-1", "WH-CENTRAL", "5", "2", "10")
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line()],
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [entry, entry], warehouses)

        assert result.error.code == "DUPLICATE_STOCK_ENTRY"

    def test_duplicate_warehouse_configs_raise(self, processor, make_movement):
        movement = make_movement(
            MovementKind.RECEIPT,
            [_receipt_line()],
            destination="WH-CENTRAL",
        )

        with pytest.raises(ValueError, match="Duplicate warehouse"):
            processor.apply(
                movement,
                [],
                [WarehouseConfig("WH-CENTRAL"), WarehouseConfig("WH-CENTRAL")],
            )
