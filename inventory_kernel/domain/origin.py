"""
LotOrigin -- tagged provenance of a purchase lot.

Responsibility:
    Record where a lot came from: a purchase (optionally tied to a purchase
    order) or an inbound inter-store transfer.  The two references are
    mutually exclusive; modelling them as one tagged value makes that a
    type-level fact instead of a convention over two nullable columns.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - TRANSFER origins always carry a reference id.
    - A lot never references both a purchase order and a source transfer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class OriginType(str, Enum):
    """How a lot entered a store."""

    PURCHASE = "purchase"
    TRANSFER = "transfer"


@dataclass(frozen=True, slots=True)
class LotOrigin:
    """
    Immutable provenance reference.

    ``reference_id`` is the purchase order id for PURCHASE (may be None for
    opening stock or receipts without an order) and the transfer id for
    TRANSFER.
    """

    origin_type: OriginType
    reference_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.origin_type, OriginType):
            raise ValueError(
                f"origin_type must be OriginType, got {type(self.origin_type)}"
            )
        if self.origin_type is OriginType.TRANSFER and not self.reference_id:
            raise ValueError("Transfer origin requires a source transfer id")

    def __str__(self) -> str:
        return f"{self.origin_type.value}:{self.reference_id or '-'}"

    @classmethod
    def purchased(cls, purchase_order_id: str | UUID | None = None) -> LotOrigin:
        """Lot received from a supplier."""
        ref = str(purchase_order_id) if purchase_order_id is not None else None
        return cls(OriginType.PURCHASE, ref)

    @classmethod
    def transferred_in(cls, transfer_id: str | UUID) -> LotOrigin:
        """Lot created at a destination store by an inter-store transfer."""
        return cls(OriginType.TRANSFER, str(transfer_id))

    @property
    def purchase_order_id(self) -> str | None:
        if self.origin_type is OriginType.PURCHASE:
            return self.reference_id
        return None

    @property
    def source_transfer_id(self) -> str | None:
        if self.origin_type is OriginType.TRANSFER:
            return self.reference_id
        return None

    @property
    def is_transfer(self) -> bool:
        return self.origin_type is OriginType.TRANSFER
