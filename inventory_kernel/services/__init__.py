"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.lot_ledger import LotLedgerService
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.transfer_number import (
    TransferNumberGenerator,
    format_transfer_number,
    month_prefix,
)

__all__ = [
    "LotLedgerService",
    "SequenceService",
    "TransferNumberGenerator",
    "format_transfer_number",
    "month_prefix",
]
