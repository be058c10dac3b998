"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for stock ledger movements.  Each row is the
    durable copy of one MovementRecord, written once by the SQL movement
    journal so the in-memory ledger can be replayed after a restart.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain value objects only.

Invariants enforced:
    - Append-only: rows are inserted by SqlMovementJournal.write and never
      updated or deleted by kernel code.
    - ``sequence`` is unique; it is the ledger position and the replay order.
    - (item_id, sequence) index supports per-item history reads.

Failure modes:
    - IntegrityError on a duplicate id or sequence (a record journaled twice).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base
from inventory_kernel.domain.movements import MovementRecord


class StockMovementModel(Base):
    """
    Persistent storage for one stock movement.

    Non-goals:
        - Does not store derived stock levels; those are always recomputed
          from the movements.
        - Does not enforce the balance rule at the database level; records are
          validated by MovementRecord before they reach the journal and again
          when they are loaded.
    """

    __tablename__ = "stock_movements"

    __table_args__ = (
        Index("idx_stock_movement_item_sequence", "item_id", "sequence"),
        Index("idx_stock_movement_occurred_at", "occurred_at"),
    )

    sequence: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    item_id: Mapped[str] = mapped_column(String(100), nullable=False)

    movement_type: Mapped[str] = mapped_column(String(10), nullable=False)

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)

    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)

    operator: Mapped[str | None] = mapped_column(String(100), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @classmethod
    def from_record(cls, record: MovementRecord) -> StockMovementModel:
        return cls(
            id=record.id,
            sequence=record.sequence,
            item_id=record.item_id,
            movement_type=record.type.value,
            quantity=record.quantity,
            unit=record.unit,
            balance_before=record.balance_before,
            balance_after=record.balance_after,
            occurred_at=record.timestamp,
            location=record.location,
            reference=record.reference,
            operator=record.operator,
            reason=record.reason,
        )

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.sequence} {self.item_id} "
            f"{self.movement_type} {self.quantity}>"
        )
