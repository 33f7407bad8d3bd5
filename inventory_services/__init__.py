"""
Module: inventory_services
Responsibility:
    Stateful orchestration over the inventory kernel.  Services here own
    transaction boundaries: they commit on success and roll back on failure.

Architecture position:
    Services -- above inventory_kernel and inventory_engines, beside
    inventory_config.
"""

from inventory_services.transfer_boundary import (
    BoundaryResponse,
    handle_transfer_request,
    parse_transfer_request,
)
from inventory_services.transfer_service import InventoryTransferService

__all__ = [
    "BoundaryResponse",
    "InventoryTransferService",
    "handle_transfer_request",
    "parse_transfer_request",
]
