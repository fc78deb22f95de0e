"""Tests for the structured logging system (stock_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from stock_kernel.domain.movement import MovementKind
from stock_kernel.exceptions import LotNotFoundError
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Each test configures logging from scratch."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _configured() -> tuple[logging.Logger, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler)
    return get_logger("test"), stream


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestStructuredFormatter:
    """One JSON object per record."""

    def test_basic_fields(self):
        logger, stream = _configured()
        logger.info("stock_received")

        (record,) = _records(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "stock_received"
        assert record["logger"] == "stock_kernel.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        logger, stream = _configured()
        logger.info(
            "movement_applied",
            extra={
                "quantity": Decimal("1.5000"),
                "movement_date": date(2024, 3, 1),
                "kind": MovementKind.TRANSFER,
                "line_count": 2,
            },
        )

        (record,) = _records(stream)
        assert record["quantity"] == "1.5000"
        assert record["movement_date"] == "2024-03-01"
        assert record["kind"] == "transfer"
        assert record["line_count"] == 2

    def test_context_fields_included(self):
        logger, stream = _configured()
        LogContext.set(movement_id="MOV-1", reference_document="PO-9")
        logger.info("with_context")

        (record,) = _records(stream)
        assert record["movement_id"] == "MOV-1"
        assert record["reference_document"] == "PO-9"

    def test_no_context_fields_when_empty(self):
        logger, stream = _configured()
        logger.info("bare")

        (record,) = _records(stream)
        assert "movement_id" not in record
        assert "correlation_id" not in record

    def test_inventory_error_fields_extracted(self):
        logger, stream = _configured()
        try:
            raise LotNotFoundError("SKU-1", "WH-LOTS", "L-9")
        except LotNotFoundError:
            logger.error("lot_failure", exc_info=True)

        (record,) = _records(stream)
        assert record["exc_type"] == "LotNotFoundError"
        assert record["exc_code"] == "LOT_NOT_FOUND"
        assert record["exc_lot_code"] == "L-9"
        assert record["exc_warehouse_id"] == "WH-LOTS"
        assert "traceback" in record

    def test_debug_filtered_at_info(self):
        logger, stream = _configured()
        logger.debug("hidden")
        logger.warning("shown")

        assert [r["message"] for r in _records(stream)] == ["shown"]

    def test_formatter_usable_standalone(self):
        formatter = StructuredFormatter()
        record = logging.LogRecord("stock_kernel.x", logging.INFO, __file__, 1, "msg", (), None)

        assert json.loads(formatter.format(record))["message"] == "msg"


class TestLogContext:
    """Context propagation."""

    def test_set_is_additive(self):
        LogContext.set(movement_id="MOV-1")
        LogContext.set(actor_id="clerk-7")

        assert LogContext.get_all() == {"movement_id": "MOV-1", "actor_id": "clerk-7"}

    def test_clear(self):
        LogContext.set(correlation_id="x", trace_id="t")
        LogContext.clear()

        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(movement_id="outer")
        with LogContext.bind(movement_id="inner", reference_document="DOC"):
            assert LogContext.get_all() == {"movement_id": "inner", "reference_document": "DOC"}
        assert LogContext.get_all() == {"movement_id": "outer"}

    def test_bind_skips_none(self):
        with LogContext.bind(movement_id="MOV-1", reference_document=None):
            assert "reference_document" not in LogContext.get_all()


class TestConfigureLogging:
    """Initialization."""

    def test_idempotent(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        configure_logging(handler=logging.StreamHandler(StringIO()))

        assert len(logging.getLogger("stock_kernel").handlers) == 1

    def test_child_logger_names(self):
        assert get_logger("engines.movement").name == "stock_kernel.engines.movement"

    def test_children_inherit_level(self):
        stream = StringIO()
        configure_logging(handler=logging.StreamHandler(stream), level=logging.DEBUG)
        get_logger("deep.nested").debug("nested_debug")

        (record,) = _records(stream)
        assert record["logger"] == "stock_kernel.deep.nested"
