"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Read journaled movements back as MovementRecord DTOs, in
    ledger order, for replay and audit.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Results are ordered by ``sequence`` (the original append order).
    - Every row is re-validated by MovementRecord construction; a row that
      breaks the balance rule raises LedgerIntegrityError instead of being
      silently loaded.
    - Timestamps come back timezone-aware (UTC is assumed for backends such
      as SQLite that drop the offset).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select

from inventory_kernel.domain.movements import MovementRecord, MovementType
from inventory_kernel.models.movement import StockMovementModel
from inventory_kernel.selectors.base import BaseSelector


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_record(row: StockMovementModel) -> MovementRecord:
    """Convert an ORM row to the immutable domain record."""
    return MovementRecord(
        id=row.id,
        sequence=row.sequence,
        item_id=row.item_id,
        type=MovementType(row.movement_type),
        quantity=row.quantity,
        unit=row.unit,
        balance_before=row.balance_before,
        balance_after=row.balance_after,
        timestamp=_aware(row.occurred_at),
        location=row.location,
        reference=row.reference,
        operator=row.operator,
        reason=row.reason,
    )


class MovementSelector(BaseSelector[StockMovementModel]):
    """Read-only queries over the stock_movements table."""

    def all(self) -> list[MovementRecord]:
        """Every journaled movement in sequence order."""
        rows = self.session.scalars(
            select(StockMovementModel).order_by(StockMovementModel.sequence)
        )
        return [to_record(row) for row in rows]

    def for_item(self, item_id: str) -> list[MovementRecord]:
        """One item's movements in sequence order."""
        rows = self.session.scalars(
            select(StockMovementModel)
            .where(StockMovementModel.item_id == item_id)
            .order_by(StockMovementModel.sequence)
        )
        return [to_record(row) for row in rows]

    def count(self) -> int:
        return self.session.scalar(
            select(func.count()).select_from(StockMovementModel)
        ) or 0

    def max_sequence(self) -> int:
        """Highest journaled sequence, 0 when the journal is empty."""
        return self.session.scalar(
            select(func.max(StockMovementModel.sequence))
        ) or 0
