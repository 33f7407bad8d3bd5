"""
ORM-Level Immutability Enforcement for the stock ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

Stock history must be auditable. A transfer that happened must stay exactly
as it was recorded, and a purchase lot's cost must never be rewritten after
units have been moved out of it at that cost.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, ImmutabilityViolationError is raised and the caller's
transaction is rolled back by the owning service.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | Rule
-----------------------|-----------------------------------------------------
InventoryTransfer      | ALWAYS immutable, never deleted (append-only trail)
InventoryTransferItem  | ALWAYS immutable, never deleted
PurchaseLot            | Only remaining_quantity may change, and only
                       | downwards, never below zero.  Never deleted.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY - never in production):

    unregister_immutability_listeners()

===============================================================================
"""

from decimal import Decimal

from sqlalchemy import event, inspect

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Lot attributes frozen at creation
_LOT_FROZEN_FIELDS = (
    "product_id",
    "store_id",
    "import_date",
    "original_quantity",
    "unit_cost",
    "unit_id",
    "origin_type",
    "purchase_order_id",
    "source_transfer_id",
    "created_at",
)


def _changed_fields(target, fields=None) -> list[str]:
    state = inspect(target)
    changed = []
    for attr in state.attrs:
        if fields is not None and attr.key not in fields:
            continue
        if attr.history.has_changes():
            changed.append(attr.key)
    return changed


def _check_transfer_immutability(mapper, connection, target):
    """Transfers are append-only from the moment they are inserted."""
    changed = _changed_fields(target)
    # Relationship collection appends do not touch the header row
    changed = [f for f in changed if f != "items"]
    if changed:
        logger.error(
            "transfer_modification_blocked",
            extra={"transfer_id": str(target.id), "fields": changed},
        )
        raise ImmutabilityViolationError(
            entity_type="InventoryTransfer",
            entity_id=str(target.id),
            reason=f"Transfers are append-only; attempted to change {changed}",
        )


def _check_transfer_delete(mapper, connection, target):
    logger.error("transfer_delete_blocked", extra={"transfer_id": str(target.id)})
    raise ImmutabilityViolationError(
        entity_type="InventoryTransfer",
        entity_id=str(target.id),
        reason="Transfers cannot be deleted",
    )


def _check_transfer_item_immutability(mapper, connection, target):
    changed = [f for f in _changed_fields(target) if f != "transfer"]
    if changed:
        logger.error(
            "transfer_item_modification_blocked",
            extra={"transfer_item_id": str(target.id), "fields": changed},
        )
        raise ImmutabilityViolationError(
            entity_type="InventoryTransferItem",
            entity_id=str(target.id),
            reason=f"Transfer items are append-only; attempted to change {changed}",
        )


def _check_transfer_item_delete(mapper, connection, target):
    logger.error("transfer_item_delete_blocked", extra={"transfer_item_id": str(target.id)})
    raise ImmutabilityViolationError(
        entity_type="InventoryTransferItem",
        entity_id=str(target.id),
        reason="Transfer items cannot be deleted",
    )


def _check_purchase_lot_immutability(mapper, connection, target):
    """
    Only remaining_quantity may change, and only downwards to >= 0.
    """
    frozen = _changed_fields(target, _LOT_FROZEN_FIELDS)
    if frozen:
        logger.error(
            "purchase_lot_frozen_field_modification_blocked",
            extra={"lot_id": str(target.id), "fields": frozen},
        )
        raise ImmutabilityViolationError(
            entity_type="PurchaseLot",
            entity_id=str(target.id),
            reason=f"Fields frozen at creation cannot change: {frozen}",
        )

    history = inspect(target).attrs.remaining_quantity.history
    if not history.has_changes():
        return

    old_values = history.deleted or ()
    new_value = target.remaining_quantity
    if new_value < Decimal("0"):
        raise ImmutabilityViolationError(
            entity_type="PurchaseLot",
            entity_id=str(target.id),
            reason=f"remaining_quantity cannot be negative (got {new_value})",
        )
    for old_value in old_values:
        if old_value is not None and new_value > old_value:
            logger.error(
                "purchase_lot_remaining_increase_blocked",
                extra={
                    "lot_id": str(target.id),
                    "old_remaining": str(old_value),
                    "new_remaining": str(new_value),
                },
            )
            raise ImmutabilityViolationError(
                entity_type="PurchaseLot",
                entity_id=str(target.id),
                reason=(
                    f"remaining_quantity can only decrease "
                    f"({old_value} -> {new_value})"
                ),
            )


def _check_purchase_lot_delete(mapper, connection, target):
    logger.error("purchase_lot_delete_blocked", extra={"lot_id": str(target.id)})
    raise ImmutabilityViolationError(
        entity_type="PurchaseLot",
        entity_id=str(target.id),
        reason="Purchase lots are retained for traceability and cannot be deleted",
    )


def _listener_table():
    from inventory_kernel.models.purchase_lot import PurchaseLot
    from inventory_kernel.models.transfer import InventoryTransfer, InventoryTransferItem

    return (
        (InventoryTransfer, "before_update", _check_transfer_immutability),
        (InventoryTransfer, "before_delete", _check_transfer_delete),
        (InventoryTransferItem, "before_update", _check_transfer_item_immutability),
        (InventoryTransferItem, "before_delete", _check_transfer_item_delete),
        (PurchaseLot, "before_update", _check_purchase_lot_immutability),
        (PurchaseLot, "before_delete", _check_purchase_lot_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are left alone.
    """
    for target, identifier, fn in _listener_table():
        if not event.contains(target, identifier, fn):
            event.listen(target, identifier, fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners():
    """
    Unregister all immutability enforcement event listeners.

    WARNING: Only use this in tests that specifically need to bypass
    immutability checks.
    """
    for target, identifier, fn in _listener_table():
        if event.contains(target, identifier, fn):
            event.remove(target, identifier, fn)
    logger.debug("immutability_listeners_unregistered")
