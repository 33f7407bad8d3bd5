"""
LotLedgerService -- the write side of the purchase-lot ledger.

Responsibility:
    Creates purchase lots (receiving stock or landing an inbound transfer)
    and applies FIFO deductions to locked lot rows.  The deduction plan
    itself comes from the pure ``inventory_engines.fifo`` planner.

Architecture position:
    Kernel > Services -- imperative shell around the FIFO engine.
    Called by InventoryTransferService.  Does NOT commit; the caller owns
    the transaction.

Invariants enforced:
    - L1/L2: lots are created with quantity > 0 and unit_cost >= 0.
    - No negative stock: a deduction is applied only when the plan covers
      the full quantity; otherwise nothing changes and
      InsufficientStockError is raised.
    - Lock-then-read: candidate lots are loaded with ``SELECT ... FOR UPDATE``
      and ``populate_existing`` so the plan is computed from the locked,
      current rows.

Failure modes:
    - InvalidLotError on bad lot attributes.
    - InsufficientStockError when locked stock no longer covers a request.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_engines.fifo import FifoDeductionResult, LotSnapshot, plan_fifo_deduction
from inventory_kernel.db.types import to_decimal
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import UNKNOWN_PRODUCT_NAME, StockShortfall
from inventory_kernel.domain.origin import LotOrigin
from inventory_kernel.exceptions import InsufficientStockError, InvalidLotError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.purchase_lot import PurchaseLot

logger = get_logger("services.lot_ledger")


class LotLedgerService:
    """
    Lot creation and FIFO deduction against the ``purchase_lots`` table.

    Contract:
        ``receive_lot`` adds one lot and flushes.  ``deduct_fifo`` either
        deducts the full quantity oldest-first or raises without touching
        any lot.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - No LIFO, specific identification or standard costing.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_factory: Callable[[], UUID] = uuid4,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._id_factory = id_factory

    def receive_lot(
        self,
        store_id: str,
        product_id: str,
        quantity: Decimal | int | str,
        unit_cost: Decimal | int | str,
        unit_id: str,
        import_date: datetime | None = None,
        origin: LotOrigin | None = None,
    ) -> PurchaseLot:
        """
        Create a lot with remaining_quantity == original_quantity.

        Args:
            import_date: FIFO key; defaults to now.
            origin: Provenance; defaults to a purchase without order reference.

        Raises:
            InvalidLotError: quantity <= 0, unit_cost < 0, or missing unit.
        """
        try:
            qty = to_decimal(quantity)
            cost = to_decimal(unit_cost)
        except (TypeError, ValueError) as exc:
            raise InvalidLotError(product_id, store_id, str(exc)) from exc

        if qty <= 0:
            raise InvalidLotError(product_id, store_id, f"quantity must be positive, got {qty}")
        if cost < 0:
            raise InvalidLotError(product_id, store_id, f"unit_cost cannot be negative, got {cost}")
        if not unit_id:
            raise InvalidLotError(product_id, store_id, "unit_id is required")

        now = self._clock.now()
        lot = PurchaseLot(
            id=self._id_factory(),
            product_id=product_id,
            store_id=store_id,
            import_date=import_date or now,
            original_quantity=qty,
            remaining_quantity=qty,
            unit_cost=cost,
            unit_id=unit_id,
            created_at=now,
        )
        lot.origin = origin or LotOrigin.purchased()
        self._session.add(lot)
        self._session.flush()

        logger.info(
            "purchase_lot_received",
            extra={
                "lot_id": str(lot.id),
                "store_id": store_id,
                "product_id": product_id,
                "quantity": str(qty),
                "unit_cost": str(cost),
                "origin": str(lot.origin),
            },
        )
        return lot

    def lock_available_lots(self, store_id: str, product_id: str) -> list[PurchaseLot]:
        """
        Lock and return non-exhausted lots in FIFO order.

        Rows stay locked until the caller's transaction ends.
        """
        return list(
            self._session.execute(
                select(PurchaseLot)
                .where(
                    PurchaseLot.store_id == store_id,
                    PurchaseLot.product_id == product_id,
                    PurchaseLot.remaining_quantity > 0,
                )
                .order_by(PurchaseLot.import_date, PurchaseLot.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def lock_products(
        self,
        store_id: str,
        product_ids: Iterable[str],
    ) -> dict[str, list[PurchaseLot]]:
        """
        Lock the available lots of several products at one store.

        Products are locked in sorted id order so two transfers touching
        overlapping products always acquire row locks in the same order.
        """
        locked: dict[str, list[PurchaseLot]] = {}
        for product_id in sorted(set(product_ids)):
            locked[product_id] = self.lock_available_lots(store_id, product_id)
        logger.debug(
            "purchase_lots_locked",
            extra={
                "store_id": store_id,
                "products": list(locked),
                "lot_count": sum(len(v) for v in locked.values()),
            },
        )
        return locked

    def deduct_fifo(
        self,
        store_id: str,
        product_id: str,
        quantity: Decimal,
        product_name: str = UNKNOWN_PRODUCT_NAME,
    ) -> FifoDeductionResult:
        """
        Deduct ``quantity`` oldest-first and return the applied plan.

        Raises:
            InsufficientStockError: The locked lots do not cover ``quantity``.
                No lot is modified.
        """
        lots = self.lock_available_lots(store_id, product_id)
        plan = plan_fifo_deduction(
            [
                LotSnapshot(
                    lot_id=lot.id,
                    import_date=lot.import_date,
                    remaining_quantity=lot.remaining_quantity,
                    unit_cost=lot.unit_cost,
                )
                for lot in lots
            ],
            quantity=quantity,
        )

        if not plan.is_complete:
            logger.warning(
                "fifo_deduction_insufficient_stock",
                extra={
                    "store_id": store_id,
                    "product_id": product_id,
                    "requested": str(quantity),
                    "available": str(plan.total_quantity),
                },
            )
            raise InsufficientStockError([
                StockShortfall(
                    product_id=product_id,
                    product_name=product_name,
                    requested_quantity=quantity,
                    available_quantity=plan.total_quantity,
                )
            ])

        by_id = {lot.id: lot for lot in lots}
        for deduction in plan.deductions:
            by_id[deduction.lot_id].remaining_quantity = deduction.remaining_after
        self._session.flush()

        logger.info(
            "fifo_deduction_applied",
            extra={
                "store_id": store_id,
                "product_id": product_id,
                "quantity": str(plan.total_quantity),
                "lots_consumed": len(plan.deductions),
                "total_cost": str(plan.total_cost),
            },
        )
        return plan
