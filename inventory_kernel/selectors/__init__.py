"""Read-only query selectors for the inventory kernel."""

from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.reference_selector import (
    ProductDirectory,
    SqlProductDirectory,
    SqlStoreDirectory,
    StoreDirectory,
)
from inventory_kernel.selectors.stock_selector import StockPosition, StockSelector
from inventory_kernel.selectors.transfer_selector import (
    TransferDirection,
    TransferDTO,
    TransferItemDTO,
    TransferPage,
    TransferSelector,
)

__all__ = [
    "BaseSelector",
    "ProductDirectory",
    "SqlProductDirectory",
    "SqlStoreDirectory",
    "StoreDirectory",
    "StockPosition",
    "StockSelector",
    "TransferDirection",
    "TransferDTO",
    "TransferItemDTO",
    "TransferPage",
    "TransferSelector",
]
