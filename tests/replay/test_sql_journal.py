"""
Tests for the SQL movement journal (SQLite under tmp_path).

Covers:
- Write-through from the LedgerStore
- load_all / load_item ordering and timezone-aware timestamps
- Restart round trip: replay the journal and get identical stock levels
- Rows that break the balance rule are refused on load
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from inventory_kernel.db.engine import session_scope
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.movements import MovementType
from inventory_kernel.exceptions import InsufficientStockError, LedgerIntegrityError
from inventory_kernel.models.movement import StockMovementModel
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.balance_projector import BalanceProjector
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.ledger_store import LedgerStore


@pytest.fixture
def journaled_ledger(sql_journal):
    return LedgerStore(clock=DeterministicClock(), journal=sql_journal)


class TestSqlMovementJournal:

    def test_satisfies_protocol(self, sql_journal):
        assert isinstance(sql_journal, MovementJournal)

    def test_write_through(self, journaled_ledger, sql_journal, movement):
        first = journaled_ledger.append(movement(quantity=40, reference="PO-2024-015"))
        second = journaled_ledger.append(movement(type=MovementType.OUT, quantity=15))

        assert sql_journal.count() == 2
        assert sql_journal.load_all() == [first, second]

    def test_rejected_movement_not_journaled(self, journaled_ledger, sql_journal, movement):
        with pytest.raises(InsufficientStockError):
            journaled_ledger.append(movement(type=MovementType.OUT, quantity=1))
        assert sql_journal.count() == 0

    def test_load_item(self, journaled_ledger, sql_journal, movement):
        journaled_ledger.append(movement(item_id="A"))
        journaled_ledger.append(movement(item_id="B"))
        journaled_ledger.append(movement(item_id="A"))
        assert [r.sequence for r in sql_journal.load_item("A")] == [1, 3]

    def test_timestamps_come_back_aware(self, journaled_ledger, sql_journal, movement):
        journaled_ledger.append(movement())
        loaded = sql_journal.load_all()[0]
        assert loaded.timestamp.tzinfo is not None
        assert loaded.timestamp == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_max_sequence(self, journaled_ledger, journal_session_factory, movement):
        with session_scope(journal_session_factory) as session:
            assert MovementSelector(session).max_sequence() == 0
        journaled_ledger.append(movement())
        journaled_ledger.append(movement())
        with session_scope(journal_session_factory) as session:
            assert MovementSelector(session).max_sequence() == 2


class TestRestartRoundTrip:

    def test_replay_from_journal(self, journaled_ledger, sql_journal, catalog, movement):
        journaled_ledger.append(movement(item_id="ITM-001", quantity=100))
        journaled_ledger.append(movement(item_id="ITM-003", quantity=25, unit="kg"))
        journaled_ledger.append(movement(item_id="ITM-001", type=MovementType.OUT, quantity=85))
        before = BalanceProjector(journaled_ledger, catalog).stock_levels()

        restarted = LedgerStore.replay(
            sql_journal.load_all(), clock=DeterministicClock(), journal=sql_journal
        )
        after = BalanceProjector(restarted, catalog).stock_levels()

        assert [level.current_stock for level in after] == [15, 25]
        assert after == before

    def test_appends_after_restart_are_journaled(self, journaled_ledger, sql_journal, movement):
        journaled_ledger.append(movement(quantity=5))
        restarted = LedgerStore.replay(
            sql_journal.load_all(), clock=DeterministicClock(), journal=sql_journal
        )
        record = restarted.append(movement(quantity=5))
        assert record.sequence == 2
        assert [r.balance_after for r in sql_journal.load_all()] == [5, 10]

    def test_tampered_row_refused(self, journaled_ledger, sql_journal, journal_session_factory, movement):
        journaled_ledger.append(movement(quantity=5))
        with session_scope(journal_session_factory) as session:
            session.execute(update(StockMovementModel).values(balance_after=500))

        with pytest.raises(LedgerIntegrityError):
            sql_journal.load_all()
