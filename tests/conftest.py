"""
Pytest fixtures for the stock ledger test suite.

Provides:
- Warehouse configurations covering every policy combination
- A movement factory with sequential movement ids
- In-memory SQLite sessions for the service tests
- Structured log capture
"""

import itertools
import json
import logging
from datetime import date
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from stock_engines.movement import MovementProcessor
from stock_kernel.db.engine import create_tables, get_session, init_engine_from_url, reset_engine
from stock_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from stock_kernel.domain.movement import MovementLine, MovementRecord, MovementState
from stock_kernel.domain.warehouse import WarehouseConfig, WarehouseKind
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

MOVEMENT_DATE = date(2024, 3, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, processor):
            processor.apply(...)
            logs = captured_logs()
            assert any(r["message"] == "movement_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Warehouse fixtures
# =============================================================================


@pytest.fixture
def central() -> WarehouseConfig:
    return WarehouseConfig("WH-CENTRAL", name="Central warehouse")


@pytest.fixture
def store() -> WarehouseConfig:
    return WarehouseConfig("WH-STORE", name="Downtown store", kind=WarehouseKind.STORE)


@pytest.fixture
def lot_warehouse() -> WarehouseConfig:
    return WarehouseConfig("WH-LOTS", lots_tracked=True, name="Pharmacy")


@pytest.fixture
def second_lot_warehouse() -> WarehouseConfig:
    return WarehouseConfig("WH-LOTS-2", lots_tracked=True, kind=WarehouseKind.STORE)


@pytest.fixture
def overdraft_warehouse() -> WarehouseConfig:
    return WarehouseConfig("WH-OVERDRAFT", negative_stock_allowed=True)


@pytest.fixture
def closed_warehouse() -> WarehouseConfig:
    return WarehouseConfig("WH-CLOSED", active=False)


@pytest.fixture
def warehouses(
    central,
    store,
    lot_warehouse,
    second_lot_warehouse,
    overdraft_warehouse,
    closed_warehouse,
) -> list[WarehouseConfig]:
    return [
        central,
        store,
        lot_warehouse,
        second_lot_warehouse,
        overdraft_warehouse,
        closed_warehouse,
    ]


# =============================================================================
# Movement fixtures
# =============================================================================


@pytest.fixture
def processor() -> MovementProcessor:
    return MovementProcessor()


@pytest.fixture
def make_movement():
    """
    Build APPLIED movements with sequential ids.

    Usage::

        movement = make_movement(
            MovementKind.RECEIPT,
            [MovementLine("SKU-1", "10", unit_cost="2.00")],
            destination="WH-CENTRAL",
        )
    """
    counter = itertools.count(1)

    def _make(
        kind,
        lines: list[MovementLine],
        source: str | None = None,
        destination: str | None = None,
        state=MovementState.APPLIED,
        reference: str | None = None,
        movement_date: date = MOVEMENT_DATE,
        **kwargs,
    ) -> MovementRecord:
        return MovementRecord(
            movement_id=f"MOV-{next(counter):04d}",
            kind=kind,
            state=state,
            movement_date=movement_date,
            lines=lines,
            source_warehouse_id=source,
            destination_warehouse_id=destination,
            reference_document=reference,
            **kwargs,
        )

    return _make


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def _immutability_listeners():
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test; never committed."""
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        reset_engine()
