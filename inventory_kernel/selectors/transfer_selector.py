"""
Transfer history selector.

Provides read-only access to completed transfers:

- get_transfer(): one transfer with store names and its items.
- find_by_store(): paginated transfers touching a store, with item counts,
  filtered by direction (outgoing, incoming or both), newest first.
- get_items(): the item rows of one transfer, one per consumed source lot.

Returns DTOs (frozen dataclasses), never ORM instances.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import aliased

from inventory_kernel.domain.dtos import UNKNOWN_PRODUCT_NAME
from inventory_kernel.models.purchase_lot import PurchaseLot
from inventory_kernel.models.reference import Product, Store
from inventory_kernel.models.transfer import InventoryTransfer, InventoryTransferItem
from inventory_kernel.selectors.base import BaseSelector


class TransferDirection(str, Enum):
    SOURCE = "source"
    DESTINATION = "destination"
    BOTH = "both"


@dataclass(frozen=True)
class TransferItemDTO:
    """Data transfer object for one transfer item row."""

    id: UUID
    transfer_id: UUID
    product_id: str
    product_name: str
    quantity: Decimal
    cost: Decimal
    unit_id: str
    source_lot_id: UUID | None
    created_at: datetime

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.cost


@dataclass(frozen=True)
class TransferDTO:
    """Data transfer object for a transfer header (items optional)."""

    id: UUID
    transfer_number: str
    source_store_id: str
    source_store_name: str | None
    destination_store_id: str
    destination_store_name: str | None
    transfer_date: datetime
    status: str
    notes: str | None
    created_by: str | None
    created_at: datetime
    item_count: int = 0
    items: tuple[TransferItemDTO, ...] = ()

    @property
    def total_quantity(self) -> Decimal:
        return sum((i.quantity for i in self.items), Decimal("0"))


@dataclass(frozen=True)
class TransferPage:
    transfers: tuple[TransferDTO, ...]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class TransferSelector(BaseSelector[InventoryTransfer]):
    """Selector for transfer headers and items."""

    def _header_query(self):
        source = aliased(Store)
        destination = aliased(Store)
        item_count = (
            select(func.count(InventoryTransferItem.id))
            .where(InventoryTransferItem.transfer_id == InventoryTransfer.id)
            .correlate(InventoryTransfer)
            .scalar_subquery()
        )
        return (
            select(InventoryTransfer, source.name, destination.name, item_count)
            .outerjoin(source, source.id == InventoryTransfer.source_store_id)
            .outerjoin(destination, destination.id == InventoryTransfer.destination_store_id)
        )

    @staticmethod
    def _to_dto(
        transfer: InventoryTransfer,
        source_name: str | None,
        destination_name: str | None,
        item_count: int,
        items: tuple[TransferItemDTO, ...] = (),
    ) -> TransferDTO:
        return TransferDTO(
            id=transfer.id,
            transfer_number=transfer.transfer_number,
            source_store_id=transfer.source_store_id,
            source_store_name=source_name,
            destination_store_id=transfer.destination_store_id,
            destination_store_name=destination_name,
            transfer_date=transfer.transfer_date,
            status=transfer.status,
            notes=transfer.notes,
            created_by=transfer.created_by,
            created_at=transfer.created_at,
            item_count=item_count,
            items=items,
        )

    def get_transfer(self, transfer_id: UUID) -> TransferDTO | None:
        """Get a transfer by id, with store names and items."""
        row = self.session.execute(
            self._header_query().where(InventoryTransfer.id == transfer_id)
        ).first()
        if row is None:
            return None
        transfer, source_name, destination_name, item_count = row
        return self._to_dto(
            transfer,
            source_name,
            destination_name,
            item_count,
            tuple(self.get_items(transfer_id)),
        )

    def get_by_number(self, transfer_number: str) -> TransferDTO | None:
        transfer_id = self.session.execute(
            select(InventoryTransfer.id).where(
                InventoryTransfer.transfer_number == transfer_number
            )
        ).scalar_one_or_none()
        return self.get_transfer(transfer_id) if transfer_id else None

    def find_by_store(
        self,
        store_id: str,
        direction: TransferDirection | str = TransferDirection.BOTH,
        page: int = 1,
        page_size: int = 20,
    ) -> TransferPage:
        """
        Transfers touching ``store_id``, newest first.

        Raises:
            ValueError: Unknown direction, or page/page_size below 1.
        """
        direction = TransferDirection(direction)
        if page < 1 or page_size < 1:
            raise ValueError(f"page and page_size must be >= 1 (got {page}, {page_size})")

        if direction is TransferDirection.SOURCE:
            condition = InventoryTransfer.source_store_id == store_id
        elif direction is TransferDirection.DESTINATION:
            condition = InventoryTransfer.destination_store_id == store_id
        else:
            condition = or_(
                InventoryTransfer.source_store_id == store_id,
                InventoryTransfer.destination_store_id == store_id,
            )

        total = self.session.execute(
            select(func.count()).select_from(InventoryTransfer).where(condition)
        ).scalar_one()

        rows = self.session.execute(
            self._header_query()
            .where(condition)
            .order_by(
                InventoryTransfer.transfer_date.desc(),
                InventoryTransfer.transfer_number.desc(),
            )
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()

        return TransferPage(
            transfers=tuple(self._to_dto(*row) for row in rows),
            total=total,
            page=page,
            page_size=page_size,
        )

    def get_items(self, transfer_id: UUID) -> list[TransferItemDTO]:
        rows = self.session.execute(
            select(InventoryTransferItem, Product.name)
            .outerjoin(Product, Product.id == InventoryTransferItem.product_id)
            .outerjoin(PurchaseLot, PurchaseLot.id == InventoryTransferItem.source_lot_id)
            .where(InventoryTransferItem.transfer_id == transfer_id)
            # Within a product, rows follow the FIFO order their source lots were drawn in
            .order_by(
                InventoryTransferItem.created_at,
                InventoryTransferItem.product_id,
                PurchaseLot.import_date,
                PurchaseLot.id,
            )
        ).all()
        return [
            TransferItemDTO(
                id=item.id,
                transfer_id=item.transfer_id,
                product_id=item.product_id,
                product_name=name or UNKNOWN_PRODUCT_NAME,
                quantity=item.quantity,
                cost=item.cost,
                unit_id=item.unit_id,
                source_lot_id=item.source_lot_id,
                created_at=item.created_at,
            )
            for item, name in rows
        ]
