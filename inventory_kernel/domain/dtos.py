"""
Domain DTOs -- value objects exchanged between the transfer boundary,
services and selectors.

Architecture position:
    Kernel > Domain -- pure frozen dataclasses, zero I/O.

Notes:
    A requested transfer line maps to one TransferredItem, which in turn
    carries one ConsumedLot per source lot the FIFO walk touched
    (RequestedLine 1 --> N ConsumedLot).  Quantities and costs are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from inventory_kernel.domain.origin import LotOrigin

UNKNOWN_PRODUCT_NAME = "Unknown Product"


@dataclass(frozen=True, slots=True)
class StoreRef:
    """Store as seen by the kernel: identity plus owning tenant."""

    id: str
    tenant_id: str
    name: str


@dataclass(frozen=True, slots=True)
class ProductRef:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class TransferItemInput:
    """One requested line of a transfer."""

    product_id: str
    quantity: Decimal
    unit_id: str


@dataclass(frozen=True, slots=True)
class TransferRequest:
    source_store_id: str
    destination_store_id: str
    items: tuple[TransferItemInput, ...]
    notes: str | None = None
    created_by: str | None = None


@dataclass(frozen=True, slots=True)
class StockShortfall:
    """A product whose available stock does not cover the request."""

    product_id: str
    product_name: str
    requested_quantity: Decimal
    available_quantity: Decimal

    @property
    def missing_quantity(self) -> Decimal:
        return self.requested_quantity - self.available_quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "requestedQuantity": self.requested_quantity,
            "availableQuantity": self.available_quantity,
        }


@dataclass(frozen=True, slots=True)
class StockCheckResult:
    sufficient: bool
    shortfalls: tuple[StockShortfall, ...] = ()


@dataclass(frozen=True, slots=True)
class PurchaseLotDTO:
    """Read-side view of a purchase lot."""

    id: UUID
    product_id: str
    store_id: str
    import_date: datetime
    original_quantity: Decimal
    remaining_quantity: Decimal
    unit_cost: Decimal
    unit_id: str
    origin: LotOrigin
    created_at: datetime

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity <= 0


@dataclass(frozen=True, slots=True)
class ConsumedLot:
    """One source-lot deduction made on behalf of a transfer line."""

    source_lot_id: UUID
    destination_lot_id: UUID
    transfer_item_id: UUID
    quantity: Decimal
    unit_cost: Decimal


@dataclass(frozen=True, slots=True)
class TransferredItem:
    """Per requested line: total moved and its weighted-average unit cost."""

    product_id: str
    product_name: str
    quantity: Decimal
    cost: Decimal
    unit_id: str
    consumed_lots: tuple[ConsumedLot, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "cost": self.cost,
            "unitId": self.unit_id,
        }


@dataclass(frozen=True, slots=True)
class TransferResult:
    success: bool
    transfer_id: UUID
    transfer_number: str
    message: str
    transferred_items: tuple[TransferredItem, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "transferId": str(self.transfer_id),
            "transferNumber": self.transfer_number,
            "message": self.message,
            "transferredItems": [i.to_dict() for i in self.transferred_items],
        }
