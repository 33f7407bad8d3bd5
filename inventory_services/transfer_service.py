"""
Inventory Transfer Service (``inventory_services.transfer_service``).

Responsibility
--------------
Moves stock between two stores of the same tenant.  Validates the store
pair and the requested quantities, then in ONE transaction deducts source
lots oldest-first, lands each consumed portion as a new lot at the
destination (same unit cost, provenance = this transfer), and records the
transfer header plus one item row per consumed source lot.

Architecture
------------
Layer: **Services** -- stateful orchestration owning the transaction.

1. Store and product lookups through ``StoreDirectory`` / ``ProductDirectory``.
2. ``StockSelector`` for the batch sufficiency check.
3. ``TransferNumberGenerator`` for ``TF{YYYY}{MM}{SEQ}`` numbers.
4. ``LotLedgerService`` for row locks, FIFO deduction and lot creation.

Invariants
----------
- Atomicity: header, items, source-lot deductions, destination lots and the
  transfer-number counter commit together or not at all.
- No negative stock: sufficiency is re-validated after the candidate lots
  are locked, so a concurrent transfer cannot overdraw a lot.
- Deadlock avoidance: lots of all requested products are locked up front in
  sorted product order.
- Conservation: per product, quantity deducted at the source equals quantity
  created at the destination equals quantity requested.

Failure Modes
-------------
- ``StoreValidationError`` subclasses and ``InsufficientStockError`` before any
  write.
- ``InsufficientStockError`` under lock when a concurrent transfer won the race.
- ``TransferIntegrityError`` if a product vanishes mid-transfer.
- Any exception triggers ``session.rollback()`` before re-raise.

Usage::

    service = InventoryTransferService(session, clock=clock)
    result = service.transfer_inventory(
        source_store_id="store-a",
        destination_store_id="store-b",
        items=[TransferItemInput("sku-1", Decimal("10"), "pcs")],
        created_by="user-42",
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_config.settings import InventorySettings
from inventory_kernel.db.types import to_decimal
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    UNKNOWN_PRODUCT_NAME,
    ConsumedLot,
    StockCheckResult,
    StockShortfall,
    StoreRef,
    TransferItemInput,
    TransferredItem,
    TransferResult,
)
from inventory_kernel.domain.origin import LotOrigin
from inventory_kernel.exceptions import (
    DestinationStoreNotFoundError,
    InsufficientStockError,
    InvalidTransferItemError,
    MissingItemsError,
    MissingStoreIdsError,
    SameStoreTransferError,
    SourceStoreNotFoundError,
    StoresNotSameTenantError,
    TransferIntegrityError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.purchase_lot import PurchaseLot
from inventory_kernel.models.transfer import (
    InventoryTransfer,
    InventoryTransferItem,
    TransferStatus,
)
from inventory_kernel.selectors.reference_selector import (
    ProductDirectory,
    SqlProductDirectory,
    SqlStoreDirectory,
    StoreDirectory,
)
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_kernel.services.lot_ledger import LotLedgerService
from inventory_kernel.services.transfer_number import TransferNumberGenerator

logger = get_logger("services.transfer")


def _requested_by_product(items: Sequence[TransferItemInput]) -> dict[str, Decimal]:
    requested: dict[str, Decimal] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, Decimal("0")) + item.quantity
    return requested


class InventoryTransferService:
    """
    Orchestrates inter-store transfers through the lot ledger.

    Contract
    --------
    ``transfer_inventory`` either moves every requested line in full and
    commits, or raises and leaves the database exactly as it was.

    Guarantees
    ----------
    - Every requested line yields one ``TransferredItem`` whose ``cost`` is
      the weighted average unit cost of the source lots actually consumed.
    - Every consumed source lot yields one transfer item row and one
      destination lot carrying the source lot's unit cost.
    - Destination lots are dated with the transfer timestamp.

    Non-goals
    ---------
    - No in-transit state: transfers complete atomically.
    - No unit conversion: the requested unit is recorded as given.
    - Does NOT implement the FIFO algorithm -- that lives in
      ``inventory_engines.fifo``.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(
        self,
        session: Session,
        stores: StoreDirectory | None = None,
        products: ProductDirectory | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], UUID] = uuid4,
        number_prefix: str = "TF",
        sequence_width: int = 4,
        unknown_product_name: str = UNKNOWN_PRODUCT_NAME,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._id_factory = id_factory
        self._stores = stores or SqlStoreDirectory(session)
        self._products = products or SqlProductDirectory(session)
        self._unknown_product_name = unknown_product_name

        self._stock = StockSelector(session)
        self._ledger = LotLedgerService(session, self._clock, id_factory)
        self._numbers = TransferNumberGenerator(
            session,
            self._clock,
            prefix=number_prefix,
            width=sequence_width,
        )

    @classmethod
    def from_settings(
        cls,
        session: Session,
        settings: InventorySettings,
        clock: Clock | None = None,
    ) -> InventoryTransferService:
        return cls(
            session,
            clock=clock,
            number_prefix=settings.transfer_number_prefix,
            sequence_width=settings.transfer_sequence_width,
            unknown_product_name=settings.unknown_product_name,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_stores_same_tenant(
        self,
        source_store_id: str,
        destination_store_id: str,
    ) -> tuple[StoreRef, StoreRef]:
        """
        Check that both stores exist, share a tenant and differ.

        Checks run in this order: source exists, destination exists, same
        tenant, distinct stores.  No side effects.

        Raises:
            SourceStoreNotFoundError, DestinationStoreNotFoundError,
            StoresNotSameTenantError, SameStoreTransferError.
        """
        source = self._stores.get_store(source_store_id)
        if source is None:
            raise SourceStoreNotFoundError(source_store_id)

        destination = self._stores.get_store(destination_store_id)
        if destination is None:
            raise DestinationStoreNotFoundError(destination_store_id)

        if source.tenant_id != destination.tenant_id:
            raise StoresNotSameTenantError(
                source_store_id=source.id,
                destination_store_id=destination.id,
                source_tenant_id=source.tenant_id,
                destination_tenant_id=destination.tenant_id,
            )

        if source.id == destination.id:
            raise SameStoreTransferError(source.id)

        return source, destination

    def check_available_stock(
        self,
        store_id: str,
        items: Sequence[TransferItemInput],
    ) -> StockCheckResult:
        """Batch sufficiency check reporting every short product."""
        return self._stock.check_available_stock(
            store_id,
            items,
            products=self._products,
            unknown_product_name=self._unknown_product_name,
        )

    @staticmethod
    def _normalize_items(items: Sequence[TransferItemInput]) -> tuple[TransferItemInput, ...]:
        if not items:
            raise MissingItemsError()
        normalized = []
        for index, item in enumerate(items):
            if not item.product_id:
                raise InvalidTransferItemError(index, "missing productId")
            if not item.unit_id:
                raise InvalidTransferItemError(index, "missing unitId")
            try:
                quantity = to_decimal(item.quantity)
            except ValueError as exc:
                raise InvalidTransferItemError(index, str(exc)) from exc
            if quantity <= 0:
                raise InvalidTransferItemError(index, f"quantity must be positive, got {quantity}")
            normalized.append(TransferItemInput(item.product_id, quantity, item.unit_id))
        return tuple(normalized)

    # =========================================================================
    # Transfer
    # =========================================================================

    def transfer_inventory(
        self,
        source_store_id: str,
        destination_store_id: str,
        items: Sequence[TransferItemInput],
        notes: str | None = None,
        created_by: str | None = None,
    ) -> TransferResult:
        """
        Transfer ``items`` from the source store to the destination store.

        Preconditions:
            - Both store ids are given and name stores of one tenant.
            - ``items`` is non-empty; each quantity > 0.

        Postconditions:
            - Source lots reduced oldest-first by exactly the requested
              quantities; matching destination lots created.
            - Session committed on success, rolled back on any failure.

        Raises:
            TransferValidationError: Bad request or store pair (no side effects).
            InsufficientStockError: One or more products short, listing all.
            TransferIntegrityError: Reference data vanished mid-transfer.
        """
        if not source_store_id or not destination_store_id:
            raise MissingStoreIdsError()
        items = self._normalize_items(items)

        with LogContext.bind(store_id=source_store_id, actor_id=created_by):
            logger.info(
                "transfer_started",
                extra={
                    "source_store_id": source_store_id,
                    "destination_store_id": destination_store_id,
                    "item_count": len(items),
                },
            )
            try:
                source, destination = self.validate_stores_same_tenant(
                    source_store_id, destination_store_id
                )

                check = self.check_available_stock(source.id, items)
                if not check.sufficient:
                    logger.warning(
                        "transfer_rejected_insufficient_stock",
                        extra={"shortfalls": [s.to_dict() for s in check.shortfalls]},
                    )
                    raise InsufficientStockError(check.shortfalls)

                with LogContext.bind(tenant_id=source.tenant_id):
                    result = self._execute(source, destination, items, notes, created_by)

                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "transfer_completed",
                extra={
                    "transfer_id": str(result.transfer_id),
                    "transfer_number": result.transfer_number,
                    "item_count": len(result.transferred_items),
                    "lots_consumed": sum(len(i.consumed_lots) for i in result.transferred_items),
                },
            )
            return result

    def _execute(
        self,
        source: StoreRef,
        destination: StoreRef,
        items: tuple[TransferItemInput, ...],
        notes: str | None,
        created_by: str | None,
    ) -> TransferResult:
        now = self._clock.now()
        transfer_id = self._id_factory()

        with LogContext.bind(transfer_id=str(transfer_id)):
            # Lock order: source lots by product id, then the monthly counter.
            # A request rejected here never touches the counter row.
            locked = self._ledger.lock_products(source.id, [i.product_id for i in items])
            self._revalidate_locked_stock(locked, items)

            transfer_number = self._numbers.next_number(now)
            transfer = InventoryTransfer(
                id=transfer_id,
                source_store_id=source.id,
                destination_store_id=destination.id,
                transfer_number=transfer_number,
                transfer_date=now,
                status=TransferStatus.COMPLETED.value,
                notes=notes,
                created_by=created_by,
                created_at=now,
            )
            self._session.add(transfer)
            # Header must exist before destination lots reference it
            self._session.flush()

            transferred = tuple(
                self._transfer_line(transfer, destination, item, now)
                for item in items
            )

        return TransferResult(
            success=True,
            transfer_id=transfer.id,
            transfer_number=transfer_number,
            message=f"Successfully transferred {len(items)} item(s)",
            transferred_items=transferred,
        )

    def _revalidate_locked_stock(
        self,
        locked: dict[str, list[PurchaseLot]],
        items: tuple[TransferItemInput, ...],
    ) -> None:
        shortfalls = []
        for product_id, quantity in _requested_by_product(items).items():
            available = sum(
                (lot.remaining_quantity for lot in locked.get(product_id, ())),
                Decimal("0"),
            )
            if available < quantity:
                product = self._products.get_product(product_id)
                shortfalls.append(
                    StockShortfall(
                        product_id=product_id,
                        product_name=product.name if product else self._unknown_product_name,
                        requested_quantity=quantity,
                        available_quantity=available,
                    )
                )
        if shortfalls:
            logger.warning(
                "transfer_stock_changed_under_lock",
                extra={"shortfalls": [s.to_dict() for s in shortfalls]},
            )
            raise InsufficientStockError(shortfalls)

    def _transfer_line(
        self,
        transfer: InventoryTransfer,
        destination: StoreRef,
        item: TransferItemInput,
        now: datetime,
    ) -> TransferredItem:
        product = self._products.get_product(item.product_id)
        if product is None:
            raise TransferIntegrityError(
                entity_type="Product",
                entity_id=item.product_id,
                reason="product disappeared while the transfer was executing",
            )

        plan = self._ledger.deduct_fifo(
            transfer.source_store_id,
            item.product_id,
            item.quantity,
            product_name=product.name,
        )

        consumed = []
        for deduction in plan.deductions:
            destination_lot = self._ledger.receive_lot(
                store_id=destination.id,
                product_id=item.product_id,
                quantity=deduction.quantity,
                unit_cost=deduction.unit_cost,
                unit_id=item.unit_id,
                import_date=now,
                origin=LotOrigin.transferred_in(transfer.id),
            )
            row = InventoryTransferItem(
                id=self._id_factory(),
                transfer_id=transfer.id,
                product_id=item.product_id,
                quantity=deduction.quantity,
                cost=deduction.unit_cost,
                unit_id=item.unit_id,
                source_lot_id=deduction.lot_id,
                created_at=now,
            )
            self._session.add(row)
            consumed.append(
                ConsumedLot(
                    source_lot_id=deduction.lot_id,
                    destination_lot_id=destination_lot.id,
                    transfer_item_id=row.id,
                    quantity=deduction.quantity,
                    unit_cost=deduction.unit_cost,
                )
            )
        self._session.flush()

        logger.info(
            "transfer_line_moved",
            extra={
                "product_id": item.product_id,
                "quantity": str(plan.total_quantity),
                "weighted_average_cost": str(plan.weighted_average_cost),
                "lots_consumed": len(consumed),
            },
        )
        return TransferredItem(
            product_id=item.product_id,
            product_name=product.name,
            quantity=plan.total_quantity,
            cost=plan.weighted_average_cost,
            unit_id=item.unit_id,
            consumed_lots=tuple(consumed),
        )
