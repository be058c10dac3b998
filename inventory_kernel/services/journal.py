"""
MovementJournal -- durable SQL mirror of the in-memory stock ledger.

Responsibility:
    Persist every MovementRecord the LedgerStore accepts, and hand the
    records back in ledger order so a fresh LedgerStore can be replayed
    after a restart.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by LedgerStore.append (write) and by application start-up code
    (load_all + LedgerStore.replay).

Invariants enforced:
    - Append-only: the journal inserts rows; it never updates or deletes.
    - All-or-nothing: each write runs in its own session_scope; a failure
      rolls back and propagates so the LedgerStore does not publish the
      record in memory.

Failure modes:
    - sqlalchemy.exc.IntegrityError on a duplicate sequence or id.
    - Any driver error during commit propagates unchanged.

Audit relevance:
    The journal is the restart source of truth.  ``load_all`` re-validates
    every row through MovementRecord construction and LedgerStore.replay
    re-checks the per-item balance chain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import session_scope
from inventory_kernel.domain.movements import MovementRecord
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import StockMovementModel
from inventory_kernel.selectors.movement_selector import MovementSelector

logger = get_logger("services.journal")


@runtime_checkable
class MovementJournal(Protocol):
    """Anything the LedgerStore can write accepted records to."""

    def write(self, record: MovementRecord) -> None:
        ...


class SqlMovementJournal:
    """
    SQLAlchemy-backed MovementJournal.

    Contract:
        ``write`` returns only after the row is committed.
    Non-goals:
        - Does not allocate sequences; the LedgerStore does.
        - Does not enforce the balance chain across rows; replay does.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def write(self, record: MovementRecord) -> None:
        with session_scope(self._session_factory) as session:
            session.add(StockMovementModel.from_record(record))
        logger.debug("movement_journaled", extra={
            "movement_id": str(record.id),
            "item_id": record.item_id,
            "sequence": record.sequence,
        })

    def load_all(self) -> list[MovementRecord]:
        """All journaled records in sequence order."""
        with session_scope(self._session_factory) as session:
            records = MovementSelector(session).all()
        logger.info("journal_loaded", extra={"record_count": len(records)})
        return records

    def load_item(self, item_id: str) -> list[MovementRecord]:
        with session_scope(self._session_factory) as session:
            return MovementSelector(session).for_item(item_id)

    def count(self) -> int:
        with session_scope(self._session_factory) as session:
            return MovementSelector(session).count()
