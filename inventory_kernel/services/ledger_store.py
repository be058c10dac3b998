"""
LedgerStore -- append-only stock movement ledger with running balances.

Responsibility:
    Accept validated MovementInputs, compute each movement's balance chain,
    reject overdraws, assign ledger position and timestamp, and publish the
    immutable MovementRecord.  Everything else in the system (stock levels,
    classification, summaries) is derived from what this store holds.

Architecture position:
    Kernel > Services -- imperative shell around the pure domain rules in
    ``inventory_kernel.domain.movements``.  Owns the only mutable state in
    the kernel: the record arena, the per-item history index and the
    sequence counter.

Invariants enforced:
    - Append-only: records are never mutated or removed.
    - Balance chain: each record's balance_before equals the balance_after
      of the item's previous record (0 for the first).
    - No overdraw: an OUT larger than the current balance raises
      InsufficientStockError and leaves the store untouched.
    - Sequence monotonicity: every accepted record gets a sequence strictly
      greater than any earlier one.  A journal failure may leave a gap.
    - Per-item time order: an item's timestamps never decrease, so append
      order and chronological order agree.
    - Single writer per item: append holds a per-item lock for the whole
      compute-check-publish section.

Failure modes:
    - ValidationError: the argument is not a MovementInput.
    - InsufficientStockError: OUT overdraw.
    - LedgerIntegrityError: replay found a broken balance chain, a repeated
      sequence, or a timestamp that goes backwards.
    - Any journal exception propagates; the record is not published.

Audit relevance:
    Every accepted movement is logged as ``movement_appended`` and every
    rejected overdraw as ``movement_rejected_insufficient_stock``, with
    item, quantities and balances as structured fields.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.movements import (
    MovementInput,
    MovementRecord,
    apply_movement,
)
from inventory_kernel.domain.stock import DEFAULT_UNIT
from inventory_kernel.exceptions import (
    InsufficientStockError,
    LedgerIntegrityError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.filters import MovementFilter, filter_collection
from inventory_kernel.services.journal import MovementJournal

logger = get_logger("services.ledger_store")

LedgerListener = Callable[[str], None]


class LedgerStore:
    """
    In-memory stock ledger.

    Contract:
        ``append`` either publishes exactly one new MovementRecord or raises
        and changes nothing.

    Guarantees:
        - Readers never see a half-applied append: per-item histories are
          immutable tuples replaced in a single assignment.
        - Appends for different items only share the short sequence
          allocation section.

    Non-goals:
        - Does not know item configuration (min stock, cost); see ItemCatalog.
        - Does not cache stock levels; see BalanceProjector.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        journal: MovementJournal | None = None,
        default_unit: str = DEFAULT_UNIT,
    ):
        self._clock = clock or SystemClock()
        self._journal = journal
        self._default_unit = default_unit

        self._records: list[MovementRecord] = []
        self._histories: dict[str, list[MovementRecord]] = {}
        self._next_sequence = 1

        self._global_lock = threading.Lock()
        self._registry_lock = threading.Lock()
        self._item_locks: dict[str, threading.Lock] = {}
        self._listeners: list[LedgerListener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: LedgerListener) -> None:
        """Call ``listener(item_id)`` after each accepted movement."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: LedgerListener) -> None:
        self._listeners.remove(listener)

    def _notify(self, item_id: str) -> None:
        for listener in list(self._listeners):
            listener(item_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _lock_for(self, item_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._item_locks.get(item_id)
            if lock is None:
                lock = self._item_locks[item_id] = threading.Lock()
            return lock

    def append(self, movement: MovementInput) -> MovementRecord:
        """
        Record one movement.

        Preconditions:
            ``movement`` is a MovementInput (already validated on creation).

        Postconditions:
            The returned record is the item's newest history entry and its
            balance_after is the item's new balance.

        Raises:
            ValidationError: ``movement`` is not a MovementInput.
            InsufficientStockError: OUT quantity exceeds the balance.
        """
        if not isinstance(movement, MovementInput):
            raise ValidationError("movement", movement, "must be a MovementInput")

        item_id = movement.item_id
        with LogContext.bind(item_id=item_id, operator=movement.operator):
            with self._lock_for(item_id):
                history = self._histories.get(item_id, ())
                previous = history[-1] if history else None
                balance_before = previous.balance_after if previous else 0

                try:
                    balance_after = apply_movement(
                        item_id, movement.type, movement.quantity, balance_before
                    )
                except InsufficientStockError:
                    logger.warning("movement_rejected_insufficient_stock", extra={
                        "movement_type": movement.type.value,
                        "available": balance_before,
                        "requested": movement.quantity,
                    })
                    raise

                timestamp = self._clock.now()
                if previous is not None and timestamp < previous.timestamp:
                    timestamp = previous.timestamp

                with self._global_lock:
                    sequence = self._next_sequence
                    self._next_sequence += 1

                record = MovementRecord(
                    item_id=item_id,
                    type=movement.type,
                    quantity=movement.quantity,
                    balance_before=balance_before,
                    balance_after=balance_after,
                    timestamp=timestamp,
                    sequence=sequence,
                    unit=movement.unit or (previous.unit if previous else self._default_unit),
                    location=movement.location,
                    reference=movement.reference,
                    operator=movement.operator,
                    reason=movement.reason,
                )

                if self._journal is not None:
                    with LogContext.bind(movement_id=str(record.id)):
                        self._journal.write(record)

                with self._global_lock:
                    self._records.append(record)
                # Histories grow in place; item_history hands out copies.
                self._histories.setdefault(item_id, []).append(record)

            with LogContext.bind(movement_id=str(record.id)):
                logger.info("movement_appended", extra={
                    "sequence": record.sequence,
                    "movement_type": record.type.value,
                    "quantity": record.quantity,
                    "balance_before": record.balance_before,
                    "balance_after": record.balance_after,
                })

        self._notify(item_id)
        return record

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_movements(
        self, movement_filter: MovementFilter | None = None
    ) -> list[MovementRecord]:
        """All (or filtered) records, oldest first by timestamp then sequence."""
        with self._global_lock:
            snapshot = list(self._records)
        snapshot.sort(key=lambda r: r.sort_key)
        return filter_collection(snapshot, movement_filter)

    def item_history(self, item_id: str) -> tuple[MovementRecord, ...]:
        """One item's records in append (and chronological) order."""
        return tuple(self._histories.get(item_id, ()))

    def latest_balance(self, item_id: str) -> int:
        """balance_after of the item's newest record, 0 for unseen items."""
        history = self._histories.get(item_id, ())
        return history[-1].balance_after if history else 0

    def item_ids(self) -> list[str]:
        """Items with at least one movement, sorted."""
        return sorted(self._histories)

    @property
    def last_sequence(self) -> int:
        """Highest sequence handed out so far (0 for an empty ledger)."""
        with self._global_lock:
            return self._next_sequence - 1

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    @classmethod
    def replay(
        cls,
        records: Iterable[MovementRecord],
        *,
        clock: Clock | None = None,
        journal: MovementJournal | None = None,
        default_unit: str = DEFAULT_UNIT,
    ) -> LedgerStore:
        """
        Rebuild a store from previously recorded movements.

        Records are taken in sequence order and checked against the
        per-item balance chain.  They are not written to ``journal``;
        the journal is only used for movements appended afterwards.

        Raises:
            LedgerIntegrityError: repeated sequence, broken balance chain,
                or a timestamp earlier than the item's previous record.
        """
        store = cls(clock=clock, journal=journal, default_unit=default_unit)
        last_sequence = 0
        for record in sorted(records, key=lambda r: r.sequence):
            if record.sequence <= last_sequence:
                raise LedgerIntegrityError(
                    record.item_id, record.sequence, "sequence repeated or out of order"
                )
            history = store._histories.get(record.item_id, ())
            previous = history[-1] if history else None
            expected_before = previous.balance_after if previous else 0
            if record.balance_before != expected_before:
                logger.error("ledger_replay_chain_broken", extra={
                    "item_id": record.item_id,
                    "sequence": record.sequence,
                    "balance_before": record.balance_before,
                    "expected": expected_before,
                })
                raise LedgerIntegrityError(
                    record.item_id,
                    record.sequence,
                    f"balance_before {record.balance_before} does not continue "
                    f"previous balance_after {expected_before}",
                )
            if previous is not None and record.timestamp < previous.timestamp:
                raise LedgerIntegrityError(
                    record.item_id, record.sequence, "timestamp earlier than previous record"
                )
            store._records.append(record)
            store._histories.setdefault(record.item_id, []).append(record)
            last_sequence = record.sequence

        store._next_sequence = last_sequence + 1
        logger.info("ledger_replayed", extra={
            "record_count": len(store._records),
            "item_count": len(store._histories),
            "last_sequence": last_sequence,
        })
        return store
