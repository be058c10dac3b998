"""
Module: inventory_services
Responsibility:
    JSON-contract facades over the inventory kernel and engines: the stock
    screen (StockService), the reports screen (AnalyticsService) and the
    configuration-driven wiring of both (build_services).

Architecture position:
    Services -- outermost layer.  May import inventory_kernel,
    inventory_engines and inventory_config.
"""

from inventory_services.analytics_service import AnalyticsService
from inventory_services.bootstrap import InventoryServices, build_services
from inventory_services.payloads import error_payload, to_json
from inventory_services.stock_service import StockService

__all__ = [
    "AnalyticsService",
    "InventoryServices",
    "StockService",
    "build_services",
    "error_payload",
    "to_json",
]
