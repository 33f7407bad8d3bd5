"""
Module: inventory_kernel.models.purchase_lot
Responsibility: ORM persistence for purchase lots -- the atomic unit of stock.
    Each lot is a batch of one product held at one store, received at a
    specific unit cost, with a remaining quantity that FIFO deductions draw
    down.
Architecture position: Kernel > Models.  May import from db/ and domain/
    value objects only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    L1 -- Positive lot quantity.  original_quantity > 0 (CHECK + ledger).
    L2 -- Non-negative cost.  unit_cost >= 0 (CHECK + ledger).
    L3 -- Bounded remaining.  0 <= remaining_quantity <= original_quantity
          (CHECK constraints + ORM listener in db/immutability.py).
    L4 -- Monotonic remaining.  remaining_quantity never increases after
          creation (ORM listener).
    L5 -- Exclusive provenance.  A lot never references both a purchase
          order and a source transfer (CHECK); TRANSFER lots always carry
          their source transfer id.
    L6 -- FIFO ordering support.  (store_id, product_id, import_date) index.
    L7 -- Retention.  Exhausted lots are kept; deletes are rejected.

Failure modes:
    - IntegrityError on CHECK violations written outside the ORM.
    - ImmutabilityViolationError from the ORM listeners on illegal updates.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.dtos import PurchaseLotDTO
from inventory_kernel.domain.origin import LotOrigin, OriginType


class PurchaseLot(Base):
    """
    Persistent storage for purchase lots.

    Contract:
        Lots are created by receiving (purchase) or by an inbound transfer and
        mutated only by FIFO deduction, which lowers remaining_quantity.
        unit_cost, original_quantity, import_date and provenance are frozen
        at creation.

    Non-goals:
        - No expiry or batch-recall tracking.
        - No multi-currency costing; unit_cost is in the tenant's currency.
    """

    __tablename__ = "purchase_lots"

    __table_args__ = (
        # Query: FIFO walk for one product at one store
        Index("idx_purchase_lot_fifo", "store_id", "product_id", "import_date"),
        # Query: lots created by a transfer
        Index("idx_purchase_lot_source_transfer", "source_transfer_id"),
        # Query: lots received against a purchase order
        Index("idx_purchase_lot_purchase_order", "purchase_order_id"),
        CheckConstraint("original_quantity > 0", name="ck_purchase_lot_positive_qty"),
        CheckConstraint("unit_cost >= 0", name="ck_purchase_lot_non_negative_cost"),
        CheckConstraint(
            "remaining_quantity >= 0 AND remaining_quantity <= original_quantity",
            name="ck_purchase_lot_remaining_bounds",
        ),
        CheckConstraint(
            "purchase_order_id IS NULL OR source_transfer_id IS NULL",
            name="ck_purchase_lot_exclusive_origin",
        ),
        CheckConstraint(
            "origin_type <> 'transfer' OR source_transfer_id IS NOT NULL",
            name="ck_purchase_lot_transfer_origin_ref",
        ),
    )

    product_id: Mapped[str] = mapped_column(String(100), nullable=False)

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # FIFO ordering key
    import_date: Mapped[datetime] = mapped_column(nullable=False)

    # INVARIANT L1: original_quantity > 0
    original_quantity: Mapped[Decimal] = mapped_column(nullable=False)

    # INVARIANT L3/L4: 0 <= remaining <= original, non-increasing
    remaining_quantity: Mapped[Decimal] = mapped_column(nullable=False)

    # INVARIANT L2: unit_cost >= 0, immutable
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    unit_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # INVARIANT L5: provenance (tagged by origin_type)
    origin_type: Mapped[str] = mapped_column(String(20), nullable=False)

    purchase_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    source_transfer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_transfers.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    @property
    def origin(self) -> LotOrigin:
        if self.origin_type == OriginType.TRANSFER.value:
            return LotOrigin.transferred_in(self.source_transfer_id)
        return LotOrigin.purchased(self.purchase_order_id)

    @origin.setter
    def origin(self, value: LotOrigin) -> None:
        self.origin_type = value.origin_type.value
        self.purchase_order_id = value.purchase_order_id
        self.source_transfer_id = (
            UUID(value.source_transfer_id) if value.source_transfer_id else None
        )

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity <= 0

    def to_dto(self) -> PurchaseLotDTO:
        return PurchaseLotDTO(
            id=self.id,
            product_id=self.product_id,
            store_id=self.store_id,
            import_date=self.import_date,
            original_quantity=self.original_quantity,
            remaining_quantity=self.remaining_quantity,
            unit_cost=self.unit_cost,
            unit_id=self.unit_id,
            origin=self.origin,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<PurchaseLot {self.id}: product={self.product_id} store={self.store_id} "
            f"remaining={self.remaining_quantity}/{self.original_quantity} @ {self.unit_cost}>"
        )
