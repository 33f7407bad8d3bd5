"""
inventory_engines.fifo -- FIFO deduction planner.

Responsibility:
    Given the lots of one product at one store and a quantity to move, decide
    how much to take from each lot (oldest first) and what the moved quantity
    costs.  The planner only computes; LotLedgerService applies the plan to
    locked rows.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    MUST NOT import inventory_kernel.models, sessions, or services.

Invariants enforced:
    - FIFO order: lots are consumed by import_date ascending, ties broken
      by lot id so the walk is deterministic.
    - Bounded takes: 0 < take <= lot.remaining_quantity for every deduction.
    - Conservation: total_quantity + shortfall == requested quantity.
    - Weighted average: weighted_average_cost == total_cost / total_quantity,
      computed in Decimal from the lots actually consumed; zero when nothing
      moved.

Failure modes:
    - ValueError on a non-positive requested quantity.
    - ValueError from LotSnapshot on negative remaining quantity or cost.
    - An unsatisfiable request is NOT an error here: the result carries the
      unsatisfied ``shortfall`` and the caller decides.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine

_ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class LotSnapshot:
    """Point-in-time view of a lot as the planner needs it."""

    lot_id: UUID
    import_date: datetime
    remaining_quantity: Decimal
    unit_cost: Decimal

    def __post_init__(self) -> None:
        if self.remaining_quantity < 0:
            raise ValueError(
                f"Lot {self.lot_id} remaining_quantity cannot be negative: "
                f"{self.remaining_quantity}"
            )
        if self.unit_cost < 0:
            raise ValueError(f"Lot {self.lot_id} unit_cost cannot be negative: {self.unit_cost}")

    @property
    def is_available(self) -> bool:
        return self.remaining_quantity > 0


@dataclass(frozen=True, slots=True)
class LotDeduction:
    """Quantity taken from one lot at that lot's unit cost."""

    lot_id: UUID
    quantity: Decimal
    unit_cost: Decimal
    remaining_after: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class FifoDeductionResult:
    requested_quantity: Decimal
    deductions: tuple[LotDeduction, ...]
    shortfall: Decimal

    @property
    def total_quantity(self) -> Decimal:
        return sum((d.quantity for d in self.deductions), _ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((d.total_cost for d in self.deductions), _ZERO)

    @property
    def weighted_average_cost(self) -> Decimal:
        moved = self.total_quantity
        if moved == 0:
            return _ZERO
        return self.total_cost / moved

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0


def fifo_order(lots: Iterable[LotSnapshot]) -> list[LotSnapshot]:
    """Available lots, oldest first."""
    return sorted(
        (lot for lot in lots if lot.is_available),
        key=lambda lot: (lot.import_date, lot.lot_id),
    )


def available_quantity(lots: Iterable[LotSnapshot]) -> Decimal:
    return sum((lot.remaining_quantity for lot in lots if lot.is_available), _ZERO)


@traced_engine("fifo_deduction", "1.0", fingerprint_fields=("quantity",))
def plan_fifo_deduction(
    lots: Iterable[LotSnapshot],
    quantity: Decimal,
) -> FifoDeductionResult:
    """
    Plan a FIFO deduction of ``quantity`` across ``lots``.

    Exhausted lots are skipped.  The walk stops as soon as the request is
    covered, so later lots are untouched.

    Args:
        lots: Candidate lots of one product at one store, in any order.
        quantity: Quantity to deduct (> 0).

    Returns:
        FifoDeductionResult with one LotDeduction per lot touched.

    Raises:
        ValueError: If quantity <= 0.
    """
    if quantity <= 0:
        raise ValueError(f"Deduction quantity must be positive, got {quantity}")

    remaining = quantity
    deductions: list[LotDeduction] = []
    for lot in fifo_order(lots):
        if remaining <= 0:
            break
        take = min(lot.remaining_quantity, remaining)
        deductions.append(
            LotDeduction(
                lot_id=lot.lot_id,
                quantity=take,
                unit_cost=lot.unit_cost,
                remaining_after=lot.remaining_quantity - take,
            )
        )
        remaining -= take

    return FifoDeductionResult(
        requested_quantity=quantity,
        deductions=tuple(deductions),
        shortfall=remaining,
    )
