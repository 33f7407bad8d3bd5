"""
Tests for the pure FIFO deduction planner.

Tests cover:
- Oldest-first consumption and the walk stopping once covered
- Tie-breaking by lot id
- Exhausted lots skipped
- Weighted average cost of the consumed portion
- Shortfall reporting instead of raising
- Input validation
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from inventory_engines.fifo import (
    FifoDeductionResult,
    LotSnapshot,
    available_quantity,
    fifo_order,
    plan_fifo_deduction,
)

T0 = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


def _lot(n: int, remaining, cost, minutes: int | None = None) -> LotSnapshot:
    return LotSnapshot(
        lot_id=UUID(int=n),
        import_date=T0 + timedelta(minutes=n if minutes is None else minutes),
        remaining_quantity=Decimal(str(remaining)),
        unit_cost=Decimal(str(cost)),
    )


class TestFifoOrdering:
    def test_oldest_lot_consumed_first(self):
        """Lots [5,5,5] at t1<t2<t3, request 7: t1 emptied, 2 from t2, t3 untouched."""
        lots = [_lot(3, 5, 10), _lot(1, 5, 10), _lot(2, 5, 10)]

        result = plan_fifo_deduction(lots, quantity=Decimal("7"))

        assert [d.lot_id for d in result.deductions] == [UUID(int=1), UUID(int=2)]
        assert [d.quantity for d in result.deductions] == [Decimal("5"), Decimal("2")]
        assert [d.remaining_after for d in result.deductions] == [Decimal("0"), Decimal("3")]

    def test_same_import_date_ordered_by_lot_id(self):
        lots = [_lot(9, 4, 1, minutes=0), _lot(2, 4, 2, minutes=0)]

        result = plan_fifo_deduction(lots, quantity=Decimal("5"))

        assert result.deductions[0].lot_id == UUID(int=2)
        assert result.deductions[0].quantity == Decimal("4")
        assert result.deductions[1].lot_id == UUID(int=9)
        assert result.deductions[1].quantity == Decimal("1")

    def test_exhausted_lots_skipped(self):
        lots = [_lot(1, 0, 99), _lot(2, 3, 5)]

        result = plan_fifo_deduction(lots, quantity=Decimal("2"))

        assert len(result.deductions) == 1
        assert result.deductions[0].lot_id == UUID(int=2)

    def test_fifo_order_excludes_exhausted(self):
        ordered = fifo_order([_lot(2, 1, 1), _lot(1, 0, 1), _lot(3, 2, 1, minutes=0)])
        assert [lot.lot_id for lot in ordered] == [UUID(int=3), UUID(int=2)]

    def test_exact_cover_stops_walk(self):
        lots = [_lot(1, 5, 10), _lot(2, 5, 20)]

        result = plan_fifo_deduction(lots, quantity=Decimal("5"))

        assert len(result.deductions) == 1
        assert result.is_complete


class TestWeightedAverage:
    def test_weighted_average_over_consumed_lots(self):
        """5 @ 10 + 2 @ 20 moves 7 units at 90/7."""
        lots = [_lot(1, 5, 10), _lot(2, 10, 20)]

        result = plan_fifo_deduction(lots, quantity=Decimal("7"))

        assert result.total_quantity == Decimal("7")
        assert result.total_cost == Decimal("90")
        assert result.weighted_average_cost == Decimal(90) / Decimal(7)

    def test_single_lot_cost_is_lot_cost(self):
        result = plan_fifo_deduction([_lot(1, 10, 5000)], quantity=Decimal("10"))

        assert result.weighted_average_cost == Decimal("5000")
        assert result.deductions[0].total_cost == Decimal("50000")

    def test_fractional_quantities(self):
        lots = [_lot(1, "1.5", "2.00"), _lot(2, "1", "4.00")]

        result = plan_fifo_deduction(lots, quantity=Decimal("2"))

        assert result.total_cost == Decimal("5.00")
        assert result.weighted_average_cost == Decimal("2.5")

    def test_empty_result_average_is_zero(self):
        result = FifoDeductionResult(
            requested_quantity=Decimal("1"),
            deductions=(),
            shortfall=Decimal("1"),
        )
        assert result.weighted_average_cost == Decimal("0")


class TestShortfall:
    def test_insufficient_lots_report_shortfall(self):
        lots = [_lot(1, 3, 10), _lot(2, 2, 10)]

        result = plan_fifo_deduction(lots, quantity=Decimal("8"))

        assert not result.is_complete
        assert result.shortfall == Decimal("3")
        assert result.total_quantity == Decimal("5")

    def test_no_lots_full_shortfall(self):
        result = plan_fifo_deduction([], quantity=Decimal("4"))

        assert result.deductions == ()
        assert result.shortfall == Decimal("4")

    def test_available_quantity(self):
        assert available_quantity([_lot(1, 3, 1), _lot(2, 0, 1), _lot(3, "0.5", 1)]) == Decimal("3.5")


class TestValidation:
    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_non_positive_quantity_rejected(self, quantity):
        with pytest.raises(ValueError, match="positive"):
            plan_fifo_deduction([_lot(1, 5, 1)], quantity=quantity)

    def test_negative_remaining_rejected(self):
        with pytest.raises(ValueError, match="remaining_quantity"):
            _lot(1, -1, 1)

    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError, match="unit_cost"):
            _lot(1, 1, -1)


class TestEngineTrace:
    def test_invocation_emits_trace(self, captured_logs):
        plan_fifo_deduction([_lot(1, 5, 1)], quantity=Decimal("1"))

        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "fifo_deduction"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_fingerprint_is_deterministic(self):
        from inventory_engines.tracer import compute_input_fingerprint

        a = compute_input_fingerprint(("quantity",), {"quantity": Decimal("7")})
        b = compute_input_fingerprint(("quantity",), {"quantity": Decimal("7")})
        c = compute_input_fingerprint(("quantity",), {"quantity": Decimal("8")})
        assert a == b
        assert a != c

    def test_positional_and_keyword_calls_fingerprint_alike(self, captured_logs):
        lots = [_lot(1, 5, 1)]
        plan_fifo_deduction(lots, Decimal("2"))
        plan_fifo_deduction(lots, quantity=Decimal("2"))

        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
