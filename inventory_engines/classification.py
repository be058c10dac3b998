"""
inventory_engines.classification -- Stock health classification.

Responsibility:
    Label a stock balance Healthy, Low or Critical against the item's
    configured minimum, and answer the stock screen's status-filter
    question for a balance.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports kernel domain types and exceptions only.

Invariants enforced:
    - Rule order: ``current <= min * 0.5`` is Critical, otherwise
      ``current <= min`` is Low, otherwise Healthy.  A minimum of 0 is not
      special-cased (a balance of 0 against a minimum of 0 is Critical).
    - Half-thresholds are computed exactly in Decimal, so odd minimums
      never round.
    - Severity is monotonic non-increasing in ``current`` for a fixed
      minimum.

Failure modes:
    - ValidationError for negative or non-integer arguments.
    - StockConfigNotFoundError from ``classify_level`` when the level has
      no configured minimum.
"""

from __future__ import annotations

from decimal import Decimal

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.stock import StockLevel, StockStatus
from inventory_kernel.exceptions import StockConfigNotFoundError, ValidationError

CRITICAL_RATIO = Decimal("0.5")


def _require_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(name, value, "must be a non-negative integer")
    return value


def classify(current_stock: int, min_stock: int) -> StockStatus:
    """Classify a balance against a minimum."""
    current = _require_count("current_stock", current_stock)
    minimum = _require_count("min_stock", min_stock)
    if current <= minimum * CRITICAL_RATIO:
        return StockStatus.CRITICAL
    if current <= minimum:
        return StockStatus.LOW
    return StockStatus.HEALTHY


@traced_engine("classification", "1.0", fingerprint_fields=("level",))
def classify_level(level: StockLevel) -> StockStatus:
    """
    Classify a projected StockLevel.

    Raises:
        StockConfigNotFoundError: the level has no configured min_stock.
    """
    if level.min_stock is None:
        raise StockConfigNotFoundError(level.item_id)
    return classify(level.current_stock, level.min_stock)


def matches_status(current_stock: int, min_stock: int, status_filter: str) -> bool:
    """
    Status dropdown predicate for the stock screen.

    The dropdown options overlap: "low" matches everything at or under the
    minimum (critical items included), "critical" matches at or under half
    the minimum, "healthy" matches above the minimum and "all" matches
    everything.
    """
    key = status_filter.strip().lower()
    if key == "all":
        return True
    if key == "low":
        return current_stock <= min_stock
    if key == "critical":
        return current_stock <= min_stock * CRITICAL_RATIO
    if key == "healthy":
        return current_stock > min_stock
    raise ValidationError("status", status_filter, "must be one of all, low, critical, healthy")
