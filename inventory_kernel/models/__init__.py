"""ORM models. Importing this package registers every table on Base.metadata."""

from inventory_kernel.models.purchase_lot import PurchaseLot
from inventory_kernel.models.reference import Product, Store
from inventory_kernel.models.sequence import SequenceCounter
from inventory_kernel.models.transfer import (
    InventoryTransfer,
    InventoryTransferItem,
    TransferStatus,
)

__all__ = [
    "PurchaseLot",
    "InventoryTransfer",
    "InventoryTransferItem",
    "TransferStatus",
    "Store",
    "Product",
    "SequenceCounter",
]
