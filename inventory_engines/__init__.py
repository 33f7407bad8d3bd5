"""
Module: inventory_engines
Responsibility:
    Pure calculation engines for the stock ledger.  Higher layers
    (inventory_kernel.services, inventory_services) import from here.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    MUST NOT import inventory_services or database sessions.

Invariants enforced:
    - Purity: engines never read the clock; timestamps arrive as inputs.
    - Decimal-only arithmetic for quantities and costs.
    - Determinism: identical inputs always produce identical outputs.
"""

from inventory_engines.fifo import (
    FifoDeductionResult,
    LotDeduction,
    LotSnapshot,
    available_quantity,
    fifo_order,
    plan_fifo_deduction,
)
from inventory_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "FifoDeductionResult",
    "LotDeduction",
    "LotSnapshot",
    "available_quantity",
    "fifo_order",
    "plan_fifo_deduction",
    "compute_input_fingerprint",
    "traced_engine",
]
