"""
Transfer request boundary (``inventory_services.transfer_boundary``).

Responsibility
--------------
Turns the body of a ``POST /inventory-transfer`` request into a
``TransferRequest``, runs it through ``InventoryTransferService`` and maps
the outcome to an HTTP status and JSON body.  No web framework is bundled;
any HTTP layer can serve a ``BoundaryResponse``.

Status mapping
--------------
=====  =========================  ==========================================
Code   ``code`` in body           Raised by
=====  =========================  ==========================================
400    MISSING_STORE_IDS          sourceStoreId / destinationStoreId absent
400    MISSING_ITEMS              items absent, not a list, or empty
400    INVALID_ITEM               item lacks productId / unitId, qty <= 0
400    STORES_NOT_SAME_TENANT     any store-pair failure; ``reason`` holds
                                  the specific kind (SAME_STORE, ...)
400    INSUFFICIENT_STOCK         ``details`` lists every shortfall
400    <error code>               other client-caused validation errors
500    TRANSFER_FAILED            anything else
200    --                         the camelCase ``TransferResult``
=====  =========================  ==========================================
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from inventory_kernel.db.types import to_decimal
from inventory_kernel.domain.dtos import TransferItemInput, TransferRequest
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidTransferItemError,
    MissingItemsError,
    MissingStoreIdsError,
    StoresNotSameTenantError,
    StoreValidationError,
    TransferValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_services.transfer_service import InventoryTransferService

logger = get_logger("services.transfer_boundary")

TRANSFER_FAILED = "TRANSFER_FAILED"


class _BodyEncoder(json.JSONEncoder):
    """Decimals go out as JSON numbers: int when integral, float otherwise."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            if obj == obj.to_integral_value():
                return int(obj)
            return float(obj)
        return super().default(obj)


@dataclass(frozen=True)
class BoundaryResponse:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_json(self) -> str:
        return json.dumps(self.body, cls=_BodyEncoder)


def _parse_item(index: int, raw: Any) -> TransferItemInput:
    if not isinstance(raw, Mapping):
        raise InvalidTransferItemError(index, "not an object")
    product_id = raw.get("productId")
    unit_id = raw.get("unitId")
    if not product_id:
        raise InvalidTransferItemError(index, "missing productId")
    if not unit_id:
        raise InvalidTransferItemError(index, "missing unitId")
    if raw.get("quantity") is None:
        raise InvalidTransferItemError(index, "missing quantity")
    try:
        quantity = to_decimal(raw["quantity"])
    except ValueError as exc:
        raise InvalidTransferItemError(index, str(exc)) from exc
    if quantity <= 0:
        raise InvalidTransferItemError(index, f"quantity must be positive, got {quantity}")
    return TransferItemInput(product_id=str(product_id), quantity=quantity, unit_id=str(unit_id))


def parse_transfer_request(
    payload: Mapping[str, Any],
    actor_id: str | None = None,
) -> TransferRequest:
    """
    Validate the request body shape.

    Raises:
        MissingStoreIdsError, MissingItemsError, InvalidTransferItemError.
    """
    source = payload.get("sourceStoreId")
    destination = payload.get("destinationStoreId")
    if not source or not destination:
        raise MissingStoreIdsError()

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise MissingItemsError()

    return TransferRequest(
        source_store_id=str(source),
        destination_store_id=str(destination),
        items=tuple(_parse_item(i, raw) for i, raw in enumerate(items)),
        notes=payload.get("notes"),
        created_by=actor_id,
    )


def _error_body(exc: Exception, code: str) -> dict[str, Any]:
    return {"error": str(exc), "code": code}


def handle_transfer_request(
    payload: Mapping[str, Any],
    service: InventoryTransferService,
    actor_id: str | None = None,
) -> BoundaryResponse:
    """Serve one transfer request; never raises."""
    with LogContext.bind(actor_id=actor_id):
        try:
            request = parse_transfer_request(payload, actor_id)
            result = service.transfer_inventory(
                source_store_id=request.source_store_id,
                destination_store_id=request.destination_store_id,
                items=request.items,
                notes=request.notes,
                created_by=request.created_by,
            )
        except StoreValidationError as exc:
            logger.info("transfer_request_rejected", extra={"code": exc.code})
            body = _error_body(exc, StoresNotSameTenantError.code)
            body["reason"] = exc.code
            return BoundaryResponse(400, body)
        except InsufficientStockError as exc:
            logger.info("transfer_request_rejected", extra={"code": exc.code})
            body = _error_body(exc, exc.code)
            body["details"] = [s.to_dict() for s in exc.shortfalls]
            return BoundaryResponse(400, body)
        except TransferValidationError as exc:
            logger.info("transfer_request_rejected", extra={"code": exc.code})
            return BoundaryResponse(400, _error_body(exc, exc.code))
        except Exception as exc:
            logger.exception("transfer_request_failed")
            message = str(exc) or "Failed to transfer inventory"
            return BoundaryResponse(500, {"error": message, "code": TRANSFER_FAILED})

        return BoundaryResponse(200, result.to_dict())
