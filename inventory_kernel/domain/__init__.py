"""Domain layer - pure value objects and the clock abstraction."""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    UNKNOWN_PRODUCT_NAME,
    ConsumedLot,
    ProductRef,
    PurchaseLotDTO,
    StockCheckResult,
    StockShortfall,
    StoreRef,
    TransferItemInput,
    TransferRequest,
    TransferResult,
    TransferredItem,
)
from inventory_kernel.domain.origin import LotOrigin, OriginType

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "LotOrigin",
    "OriginType",
    "UNKNOWN_PRODUCT_NAME",
    "ConsumedLot",
    "ProductRef",
    "PurchaseLotDTO",
    "StockCheckResult",
    "StockShortfall",
    "StoreRef",
    "TransferItemInput",
    "TransferRequest",
    "TransferResult",
    "TransferredItem",
]
