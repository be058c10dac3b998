"""
inventory_services.bootstrap -- Build the service facades from configuration.

Responsibility:
    Turn an InventoryConfig into ready-to-use StockService and
    AnalyticsService instances: apply the configured log level, open the
    movement journal when a database URL is configured, and rebuild the
    ledger from what the journal already holds.

Architecture position:
    Services -- composition root.  The only place that reads
    ``log_level``, ``database_url`` and ``reporting_period_days`` and
    turns them into wiring.

Failure modes:
    - LedgerIntegrityError when the journaled history does not replay.
    - SQLAlchemy errors from an unreachable or invalid database URL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from inventory_config import get_active_config
from inventory_config.schema import InventoryConfig
from inventory_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from inventory_kernel.domain.clock import Clock
from inventory_kernel.logging_config import configure_logging, get_logger
from inventory_kernel.services.journal import SqlMovementJournal
from inventory_kernel.services.ledger_store import LedgerStore
from inventory_services.analytics_service import AnalyticsService
from inventory_services.stock_service import StockService

logger = get_logger("services.bootstrap")


@dataclass(frozen=True)
class InventoryServices:
    config: InventoryConfig
    stock: StockService
    analytics: AnalyticsService
    journal: SqlMovementJournal | None = None


def build_services(
    config: InventoryConfig | None = None,
    *,
    clock: Clock | None = None,
) -> InventoryServices:
    """
    Wire the services for ``config`` (the active configuration by default).

    With a ``database_url`` every accepted movement is journaled and the
    ledger starts from the journal's records; without one the ledger
    lives in memory only.
    """
    config = config or get_active_config()

    configure_logging(level=config.log_level)
    # configure_logging only acts once per process; the level still follows config.
    logging.getLogger("inventory_kernel").setLevel(config.log_level)

    journal = None
    ledger = None
    if config.database_url:
        init_engine_from_url(config.database_url)
        create_tables()
        journal = SqlMovementJournal(get_session_factory())
        ledger = LedgerStore.replay(
            journal.load_all(),
            clock=clock,
            journal=journal,
            default_unit=config.default_unit,
        )

    stock = StockService.from_config(config, clock=clock, journal=journal, ledger=ledger)
    analytics = AnalyticsService.from_config(config, stock, clock=clock)

    logger.info("services_built", extra={
        "config_id": config.config_id,
        "journaled": journal is not None,
        "replayed_records": len(stock.ledger),
        "reporting_period_days": config.reporting_period_days,
    })
    return InventoryServices(config=config, stock=stock, analytics=analytics, journal=journal)
