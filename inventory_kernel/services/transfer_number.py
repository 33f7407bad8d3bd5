"""
TransferNumberGenerator -- human-readable transfer numbers.

Responsibility:
    Allocates ``TF{YYYY}{MM}{SEQ}`` numbers (SEQ zero-padded, 4 digits by
    default).  SEQ restarts at 1 every calendar month and increases
    strictly within a month.

Architecture position:
    Kernel > Services.  Runs inside the transfer transaction; the counter
    increment commits or rolls back with the transfer.

Invariants enforced:
    - Uniqueness within a year-month: one locked counter row per month
      (``transfer_number:TF{YYYY}{MM}``) via SequenceService.
    - Continuity with existing data: a month's counter is seeded from the
      greatest transfer number already stored with that prefix.
    - Fixed width: SEQ never exceeds its width, so string order equals
      numeric order.

Failure modes:
    - TransferNumberExhaustedError once a month has used every SEQ value.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import TransferNumberExhaustedError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.transfer import InventoryTransfer
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.transfer_number")

SEQUENCE_NAME_PREFIX = "transfer_number:"


def month_prefix(at: datetime, prefix: str = "TF") -> str:
    """``TF`` + four-digit year + two-digit month of ``at``."""
    return f"{prefix}{at.year:04d}{at.month:02d}"


def format_transfer_number(month: str, sequence: int, width: int = 4) -> str:
    return f"{month}{sequence:0{width}d}"


def parse_sequence(transfer_number: str, month: str) -> int:
    """Trailing SEQ of a number carrying ``month``; 0 when it has no numeric suffix."""
    if not transfer_number.startswith(month):
        return 0
    suffix = transfer_number[len(month):]
    return int(suffix) if suffix.isdigit() else 0


class TransferNumberGenerator:
    """
    Allocates transfer numbers within the caller's transaction.

    Contract:
        ``next_number()`` returns a number never returned before for the same
        month, provided the caller commits.  Does NOT commit.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        prefix: str = "TF",
        width: int = 4,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._prefix = prefix
        self._width = width
        self._sequences = SequenceService(session)

    @property
    def max_sequence(self) -> int:
        return 10**self._width - 1

    def _greatest_existing(self, month: str) -> int:
        latest = self._session.execute(
            select(func.max(InventoryTransfer.transfer_number)).where(
                InventoryTransfer.transfer_number.like(f"{month}%")
            )
        ).scalar_one_or_none()
        return parse_sequence(latest, month) if latest else 0

    def next_number(self, at: datetime | None = None) -> str:
        """
        Allocate the next number for the month of ``at`` (default: now).

        Raises:
            TransferNumberExhaustedError: The month's SEQ space is used up.
        """
        at = at or self._clock.now()
        month = month_prefix(at, self._prefix)
        sequence = self._sequences.next_value(
            SEQUENCE_NAME_PREFIX + month,
            seed=lambda: self._greatest_existing(month),
        )
        if sequence > self.max_sequence:
            logger.error(
                "transfer_number_exhausted",
                extra={"prefix": month, "max_sequence": self.max_sequence},
            )
            raise TransferNumberExhaustedError(month, self.max_sequence)

        number = format_transfer_number(month, sequence, self._width)
        logger.debug("transfer_number_allocated", extra={"transfer_number": number})
        return number
