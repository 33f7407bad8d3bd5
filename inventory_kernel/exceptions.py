"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Stock movements must fail precisely. A caller that rejects a transfer has to
tell the user *which* products are short and *why* a store pair was refused,
without parsing message strings.

Every error therefore:
  1. Has its own exception class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.transfer_inventory(...)
    except Exception as e:
        if "Insufficient" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way (what this module enables):
    try:
        service.transfer_inventory(...)
    except InsufficientStockError as e:
        api_response(code=e.code, details=[s.to_dict() for s in e.shortfalls])

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- TransferValidationError
    |   +-- MissingStoreIdsError
    |   +-- MissingItemsError
    |   +-- InvalidTransferItemError
    |   +-- StoreValidationError
    |       +-- SourceStoreNotFoundError
    |       +-- DestinationStoreNotFoundError
    |       +-- StoresNotSameTenantError
    |       +-- SameStoreTransferError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |
    +-- LotError
    |   +-- InvalidLotError
    |
    +-- SequenceError
    |   +-- TransferNumberExhaustedError
    |
    +-- TransferIntegrityError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Request         | MISSING_STORE_IDS             | Source or destination id absent
                | MISSING_ITEMS                 | Items missing, not a list, or empty
                | INVALID_ITEM                  | Item lacks productId/unitId or qty <= 0
----------------|-------------------------------|---------------------------------------
Store           | SOURCE_STORE_NOT_FOUND        | Source store id unknown
                | DEST_STORE_NOT_FOUND          | Destination store id unknown
                | STORES_NOT_SAME_TENANT        | Stores owned by different tenants
                | SAME_STORE                    | Source and destination are equal
----------------|-------------------------------|---------------------------------------
Stock           | INSUFFICIENT_STOCK            | One or more products short
----------------|-------------------------------|---------------------------------------
Lot             | INVALID_LOT                   | Lot quantity <= 0 or cost < 0
----------------|-------------------------------|---------------------------------------
Sequence        | TRANSFER_NUMBER_EXHAUSTED     | Monthly sequence passed its width
----------------|-------------------------------|---------------------------------------
Integrity       | TRANSFER_INTEGRITY_VIOLATION  | Reference data vanished mid-transfer
----------------|-------------------------------|---------------------------------------
Immutability    | IMMUTABILITY_VIOLATION        | Modifying an append-only record

===============================================================================
HANDLING PATTERNS
===============================================================================

1. Validation errors (TransferValidationError) are client-caused and leave no
   side effects; report ``code`` and the message.

2. InsufficientStockError depends on live data; ``shortfalls`` lists every
   short product in one response.

3. TransferIntegrityError and ImmutabilityViolationError indicate a lost race
   or corrupted data; the transaction has already been rolled back.

===============================================================================
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from inventory_kernel.domain.dtos import StockShortfall


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Request / transfer validation


class TransferValidationError(InventoryKernelError):
    """Base exception for client-caused transfer validation failures."""

    code: str = "TRANSFER_VALIDATION_ERROR"


class MissingStoreIdsError(TransferValidationError):
    """Source or destination store id was not supplied."""

    code: str = "MISSING_STORE_IDS"

    def __init__(self) -> None:
        super().__init__("Source and destination store IDs are required")


class MissingItemsError(TransferValidationError):
    """Transfer request carries no items."""

    code: str = "MISSING_ITEMS"

    def __init__(self) -> None:
        super().__init__("At least one item is required for transfer")


class InvalidTransferItemError(TransferValidationError):
    """A requested item is malformed."""

    code: str = "INVALID_ITEM"

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(
            f"Item {index} is invalid ({reason}): each item must have "
            "productId, quantity (> 0), and unitId"
        )


class StoreValidationError(TransferValidationError):
    """Base exception for store-pair validation failures."""

    code: str = "STORE_VALIDATION_ERROR"


class SourceStoreNotFoundError(StoreValidationError):
    """Source store does not exist."""

    code: str = "SOURCE_STORE_NOT_FOUND"

    def __init__(self, store_id: str):
        self.store_id = store_id
        super().__init__(f"Source store not found: {store_id}")


class DestinationStoreNotFoundError(StoreValidationError):
    """Destination store does not exist."""

    code: str = "DEST_STORE_NOT_FOUND"

    def __init__(self, store_id: str):
        self.store_id = store_id
        super().__init__(f"Destination store not found: {store_id}")


class StoresNotSameTenantError(StoreValidationError):
    """Source and destination stores belong to different tenants."""

    code: str = "STORES_NOT_SAME_TENANT"

    def __init__(
        self,
        source_store_id: str,
        destination_store_id: str,
        source_tenant_id: str,
        destination_tenant_id: str,
    ):
        self.source_store_id = source_store_id
        self.destination_store_id = destination_store_id
        self.source_tenant_id = source_tenant_id
        self.destination_tenant_id = destination_tenant_id
        super().__init__(
            f"Stores do not belong to the same tenant: "
            f"{source_store_id} ({source_tenant_id}) -> "
            f"{destination_store_id} ({destination_tenant_id})"
        )


class SameStoreTransferError(StoreValidationError):
    """Source and destination are the same store."""

    code: str = "SAME_STORE"

    def __init__(self, store_id: str):
        self.store_id = store_id
        super().__init__(
            f"Source and destination stores cannot be the same: {store_id}"
        )


# Stock exceptions


class StockError(InventoryKernelError):
    """Base exception for stock-level errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """
    One or more requested products are short at the source store.

    Carries the complete list of shortfalls, never just the first one.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, shortfalls: Sequence[StockShortfall]):
        self.shortfalls = tuple(shortfalls)
        details = "; ".join(
            f"{s.product_name}: requested {s.requested_quantity}, "
            f"available {s.available_quantity}"
            for s in self.shortfalls
        )
        super().__init__(f"Insufficient stock for transfer: {details}")


# Lot exceptions


class LotError(InventoryKernelError):
    """Base exception for purchase lot errors."""

    code: str = "LOT_ERROR"


class InvalidLotError(LotError):
    """Lot attributes violate creation rules."""

    code: str = "INVALID_LOT"

    def __init__(self, product_id: str, store_id: str, reason: str):
        self.product_id = product_id
        self.store_id = store_id
        self.reason = reason
        super().__init__(
            f"Invalid lot for product {product_id} at store {store_id}: {reason}"
        )


# Sequence exceptions


class SequenceError(InventoryKernelError):
    """Base exception for sequence allocation errors."""

    code: str = "SEQUENCE_ERROR"


class TransferNumberExhaustedError(SequenceError):
    """The monthly transfer-number sequence ran past its fixed width."""

    code: str = "TRANSFER_NUMBER_EXHAUSTED"

    def __init__(self, prefix: str, max_sequence: int):
        self.prefix = prefix
        self.max_sequence = max_sequence
        super().__init__(
            f"Transfer number sequence exhausted for {prefix}: "
            f"more than {max_sequence} transfers this month"
        )


# Integrity exceptions


class TransferIntegrityError(InventoryKernelError):
    """
    Reference data disappeared or lots changed while a transfer executed.

    Fatal: indicates a lost race or a referential-integrity violation. The
    whole transfer transaction is rolled back.
    """

    code: str = "TRANSFER_INTEGRITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Transfer integrity violation on {entity_type} {entity_id}: {reason}"
        )


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    Transfers and transfer items are immutable from creation; purchase lots
    may only have their remaining quantity reduced.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
