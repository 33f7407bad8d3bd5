"""
Module: inventory_kernel.db.types
Responsibility: The UTC datetime column type and the decimal coercion helper
    shared by models, services and the request boundary.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for quantities or costs.  Every quantity and monetary column
      is Numeric(38, 9); to_decimal() converts inbound numbers through their
      string form so binary float artefacts never reach the ledger.
    - Timestamps are timezone-aware UTC on every backend.  UTCDateTime
      re-attaches UTC to naive values returned by backends without timezone
      support (SQLite).

Failure modes:
    - ValueError from to_decimal() on non-numeric, NaN or infinite input.
    - ValueError from UTCDateTime when binding a naive datetime.
"""

from datetime import UTC
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as UTC.

    Contract:
        Accepts only timezone-aware datetimes on bind and always returns
        timezone-aware UTC datetimes on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        return value.astimezone(UTC)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce an inbound number to Decimal.

    Floats are converted via ``str()`` so that 0.1 becomes Decimal("0.1")
    rather than its binary expansion.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    else:
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result
