"""
Module: inventory_kernel.models.transfer
Responsibility: ORM persistence for inter-store inventory transfers and their
    items.  A transfer header records one movement between two stores of the
    same tenant; each item records one deduction from one source lot.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    T1 -- Distinct stores.  source_store_id <> destination_store_id (CHECK).
    T2 -- Unique transfer number (UNIQUE constraint).
    T3 -- Append-only.  Headers and items are never updated or deleted after
          creation (ORM listeners in db/immutability.py).
    T4 -- Lot fan-out.  One item row per source lot consumed; a requested
          line spanning several lots yields several item rows.

Audit relevance:
    source_lot_id on every item plus source_transfer_id on every destination
    lot give a complete cost trail from destination stock back to the
    original purchase lot.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString


class TransferStatus(str, Enum):
    """Transfers complete atomically; there is no pending state."""

    COMPLETED = "completed"


class InventoryTransfer(Base):
    """Header row for one inventory movement between two stores."""

    __tablename__ = "inventory_transfers"

    __table_args__ = (
        Index("idx_inventory_transfer_source", "source_store_id"),
        Index("idx_inventory_transfer_destination", "destination_store_id"),
        Index("idx_inventory_transfer_date", "transfer_date"),
        CheckConstraint(
            "source_store_id <> destination_store_id",
            name="ck_inventory_transfer_distinct_stores",
        ),
    )

    source_store_id: Mapped[str] = mapped_column(String(100), nullable=False)

    destination_store_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # INVARIANT T2: unique, TF{YYYY}{MM}{SEQ}
    transfer_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    transfer_date: Mapped[datetime] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransferStatus.COMPLETED.value,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    items: Mapped[list[InventoryTransferItem]] = relationship(
        back_populates="transfer",
        order_by="InventoryTransferItem.created_at",
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryTransfer {self.transfer_number}: "
            f"{self.source_store_id} -> {self.destination_store_id}>"
        )


class InventoryTransferItem(Base):
    """One source-lot deduction within a transfer."""

    __tablename__ = "inventory_transfer_items"

    __table_args__ = (
        Index("idx_inventory_transfer_item_transfer", "transfer_id"),
        Index("idx_inventory_transfer_item_source_lot", "source_lot_id"),
        CheckConstraint("quantity > 0", name="ck_inventory_transfer_item_positive_qty"),
    )

    transfer_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_transfers.id"),
        nullable=False,
    )

    product_id: Mapped[str] = mapped_column(String(100), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    # Unit cost of the specific source lot this row drew from
    cost: Mapped[Decimal] = mapped_column(nullable=False)

    unit_id: Mapped[str] = mapped_column(String(100), nullable=False)

    source_lot_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("purchase_lots.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    transfer: Mapped[InventoryTransfer] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return (
            f"<InventoryTransferItem {self.id}: product={self.product_id} "
            f"qty={self.quantity} @ {self.cost} from lot {self.source_lot_id}>"
        )
