"""
Tests for rebuilding a LedgerStore from recorded movements.

Covers:
- Replay yields the same balances and projections
- Appends after replay continue the sequence
- Corrupt input (broken chain, repeated sequence, time going backwards)
  raises LedgerIntegrityError
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.movements import MovementType
from inventory_kernel.exceptions import LedgerIntegrityError
from inventory_kernel.services.balance_projector import BalanceProjector
from inventory_kernel.services.ledger_store import LedgerStore


@pytest.fixture
def populated(movement):
    clock = DeterministicClock()
    store = LedgerStore(clock=clock)
    for item_id, type, quantity in [
        ("ITM-001", MovementType.IN, 100),
        ("ITM-003", MovementType.IN, 30),
        ("ITM-001", MovementType.OUT, 85),
        ("ITM-003", MovementType.OUT, 12),
        ("ITM-001", MovementType.RETURN, 3),
    ]:
        clock.advance(60)
        store.append(movement(item_id=item_id, type=type, quantity=quantity))
    return store


class TestReplay:

    def test_same_balances(self, populated):
        replayed = LedgerStore.replay(populated.list_movements())
        for item_id in populated.item_ids():
            assert replayed.latest_balance(item_id) == populated.latest_balance(item_id)
        assert replayed.item_ids() == populated.item_ids()
        assert len(replayed) == len(populated)

    def test_same_projection(self, populated, catalog):
        replayed = LedgerStore.replay(populated.list_movements())
        before = BalanceProjector(populated, catalog).stock_levels()
        after = BalanceProjector(replayed, catalog).stock_levels()
        assert after == before

    def test_input_order_irrelevant(self, populated):
        records = list(reversed(populated.list_movements()))
        replayed = LedgerStore.replay(records)
        assert [r.sequence for r in replayed.list_movements()] == [1, 2, 3, 4, 5]

    def test_sequence_continues(self, populated, movement):
        replayed = LedgerStore.replay(populated.list_movements(), clock=DeterministicClock())
        record = replayed.append(movement(item_id="ITM-001", type=MovementType.OUT, quantity=18))
        assert record.sequence == 6
        assert record.balance_before == 18
        assert record.balance_after == 0

    def test_empty(self):
        store = LedgerStore.replay([])
        assert len(store) == 0
        assert store.last_sequence == 0

    def test_logged(self, populated, captured_logs):
        LedgerStore.replay(populated.list_movements())
        entry = next(r for r in captured_logs() if r["message"] == "ledger_replayed")
        assert entry["record_count"] == 5
        assert entry["last_sequence"] == 5


class TestReplayIntegrity:

    def test_broken_chain(self, populated, captured_logs):
        records = populated.list_movements()
        # Drop the OUT 85: the RETURN no longer continues the chain.
        records = [r for r in records if r.sequence != 3]
        with pytest.raises(LedgerIntegrityError) as exc_info:
            LedgerStore.replay(records)
        assert exc_info.value.sequence == 5
        assert any(r["message"] == "ledger_replay_chain_broken" for r in captured_logs())

    def test_repeated_sequence(self, populated):
        records = populated.list_movements()
        duplicate = replace(records[1], item_id="ITM-009", balance_before=0, balance_after=30)
        with pytest.raises(LedgerIntegrityError, match="sequence"):
            LedgerStore.replay(records + [duplicate])

    def test_timestamp_going_backwards(self, populated):
        records = populated.list_movements()
        last = records[-1]
        records[-1] = replace(last, timestamp=records[0].timestamp - timedelta(days=1))
        with pytest.raises(LedgerIntegrityError, match="timestamp"):
            LedgerStore.replay(records)
