"""Tests for the structured logging system (inventory_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


@pytest.fixture
def emitted():
    """Configure logging at INFO into a buffer; call the result to read records back."""
    handler, stream = _make_handler()
    configure_logging(handler=handler)
    return lambda: [json.loads(line) for line in stream.getvalue().splitlines() if line]


log = get_logger("test")


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_base_fields(self, emitted):
        log.info("hello")

        (record,) = emitted()
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_kernel.test"
        assert "ts" in record

    def test_extra_and_context_fields(self, emitted):
        LogContext.set(tenant_id="tenant-1", store_id="store-a")
        log.info("moved", extra={"lots_consumed": 2, "product_id": "sku-1"})

        (record,) = emitted()
        assert record["lots_consumed"] == 2
        assert record["product_id"] == "sku-1"
        assert record["tenant_id"] == "tenant-1"
        assert record["store_id"] == "store-a"

    def test_decimal_and_uuid_serialized(self, emitted):
        uid = uuid4()
        log.info("typed", extra={"lot_id": uid, "quantity": Decimal("2.50")})

        (record,) = emitted()
        assert record["lot_id"] == str(uid)
        assert record["quantity"] == "2.50"

    def test_kernel_exception_fields_extracted(self, emitted):
        from inventory_kernel.exceptions import SameStoreTransferError

        try:
            raise SameStoreTransferError("store-a")
        except SameStoreTransferError:
            log.error("transfer_error", exc_info=True)

        (record,) = emitted()
        assert record["exc_type"] == "SameStoreTransferError"
        assert record["exc_code"] == "SAME_STORE"
        assert record["exc_store_id"] == "store-a"
        assert "traceback" in record

    def test_plain_exception_has_no_code(self, emitted):
        try:
            raise ValueError("boom")
        except ValueError:
            log.exception("failed")

        (record,) = emitted()
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record

    def test_debug_filtered_at_info(self, emitted):
        log.info("first")
        log.warning("second", extra={"k": "v"})
        log.debug("third")

        assert [r["message"] for r in emitted()] == ["first", "second"]



# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_set_and_get(self):
        LogContext.set(correlation_id="x", transfer_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "transfer_id": "y"}

    def test_clear(self):
        LogContext.set(actor_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(store_id="outer")
        with LogContext.bind(store_id="inner"):
            assert LogContext.get_all()["store_id"] == "inner"
        assert LogContext.get_all()["store_id"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(transfer_id="temp"):
            assert LogContext.get_all()["transfer_id"] == "temp"
        assert "transfer_id" not in LogContext.get_all()

    def test_bind_ignores_none_values(self):
        LogContext.set(actor_id="kept")
        with LogContext.bind(actor_id=None, tenant_id="t"):
            assert LogContext.get_all() == {"actor_id": "kept", "tenant_id": "t"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="warehouse_id"):
            LogContext.set(warehouse_id="w-1")
        with pytest.raises(ValueError):
            with LogContext.bind(warehouse_id="w-1"):
                pass


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        root = logging.getLogger("inventory_kernel")
        # pytest's own capture handlers may also sit on this logger
        structured = [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]
        assert structured == [h1]
        assert h2 not in root.handlers

    def test_reset_removes_only_structured_handlers(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        root = logging.getLogger("inventory_kernel")
        foreign = logging.NullHandler()
        root.addHandler(foreign)
        try:
            reset_logging()

            assert handler not in root.handlers
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)

    def test_get_logger_returns_child(self):
        assert get_logger("services.transfer").name == "inventory_kernel.services.transfer"

    def test_child_inherits_level(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = json.loads(stream.getvalue().splitlines()[0])
        assert record["logger"] == "inventory_kernel.deep.nested.module"
