"""
Pytest fixtures for the inventory ledger test suite.

Provides:
- Deterministic clock, item catalog, ledger and projector fixtures
- SQLite-backed movement journal sessions under tmp_path
- Captured structured logs as parsed JSON dicts
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from inventory_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.movements import MovementInput, MovementType
from inventory_kernel.domain.stock import ItemStockConfig
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.services.balance_projector import BalanceProjector
from inventory_kernel.services.item_catalog import ItemCatalog
from inventory_kernel.services.journal import SqlMovementJournal
from inventory_kernel.services.ledger_store import LedgerStore

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.append(...)
            logs = captured_logs()
            assert any(r["message"] == "movement_appended" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Kernel fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def steel_beam() -> ItemStockConfig:
    return ItemStockConfig(
        item_id="ITM-001",
        name="Steel Beam 6m",
        category="Raw Materials",
        min_stock=20,
        max_stock=100,
        unit="pcs",
        unit_cost=Decimal("200"),
        location="Warehouse A",
        supplier="Steel Corp Ltd",
    )


@pytest.fixture
def welding_rod() -> ItemStockConfig:
    return ItemStockConfig(
        item_id="ITM-003",
        name="Welding Rod",
        category="Consumables",
        min_stock=10,
        max_stock=50,
        unit="kg",
        unit_cost=Decimal("22.5"),
        location="Warehouse A",
    )


@pytest.fixture
def catalog(steel_beam, welding_rod) -> ItemCatalog:
    return ItemCatalog([steel_beam, welding_rod])


@pytest.fixture
def ledger(deterministic_clock) -> LedgerStore:
    return LedgerStore(clock=deterministic_clock)


@pytest.fixture
def projector(ledger, catalog) -> BalanceProjector:
    return BalanceProjector(ledger, catalog)


@pytest.fixture
def movement():
    """Factory for MovementInput with sensible defaults."""

    def _make(item_id="ITM-001", type=MovementType.IN, quantity=10, **kwargs):
        return MovementInput(item_id=item_id, type=type, quantity=quantity, **kwargs)

    return _make


# =============================================================================
# Journal fixtures (SQLite file per test)
# =============================================================================


@pytest.fixture
def journal_session_factory(tmp_path):
    init_engine_from_url(f"sqlite:///{tmp_path}/ledger.db")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def sql_journal(journal_session_factory) -> SqlMovementJournal:
    return SqlMovementJournal(journal_session_factory)
