"""
inventory_engines.utilization -- Work center utilization and efficiency.

Responsibility:
    Label work center utilization (Optimal / Good / Poor) for the
    production report, and derive efficiency metrics (estimated versus
    actual hours, on-time rate) from completed work orders.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``utilization > 80`` is Optimal, ``> 50`` is Good, otherwise Poor.
      Boundaries are exclusive: exactly 80 is Good, exactly 50 is Poor.
    - Work order efficiency is ``estimated_hours / actual_hours * 100``; a
      work order is on time when ``actual_hours <= estimated_hours``.
    - Averages and rates are rounded to whole percent, half away from
      zero; empty groups report 0.

Failure modes:
    - ValidationError for utilization outside 0-100, negative downtime or
      hours, or a non-positive actual_hours.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.values import HUNDRED, WHOLE, round_percent, to_decimal
from inventory_kernel.exceptions import ValidationError

OPTIMAL_ABOVE = Decimal("80")
GOOD_ABOVE = Decimal("50")


class UtilizationStatus(str, Enum):
    OPTIMAL = "Optimal"
    GOOD = "Good"
    POOR = "Poor"


def classify_utilization(utilization: Decimal) -> UtilizationStatus:
    value = to_decimal(utilization, "utilization")
    if value > OPTIMAL_ABOVE:
        return UtilizationStatus.OPTIMAL
    if value > GOOD_ABOVE:
        return UtilizationStatus.GOOD
    return UtilizationStatus.POOR


@dataclass(frozen=True)
class WorkCenterFacts:
    """Period facts for one work center (utilization in percent)."""

    id: str
    name: str
    utilization: Decimal
    downtime: Decimal = Decimal("0")
    efficiency: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if not (Decimal("0") <= self.utilization <= HUNDRED):
            raise ValidationError("utilization", self.utilization, "must be between 0 and 100")
        if self.downtime < 0:
            raise ValidationError("downtime", self.downtime, "must not be negative")

    @classmethod
    def of(
        cls,
        id: str,
        name: str,
        utilization: object,
        downtime: object = 0,
        efficiency: object = 0,
    ) -> WorkCenterFacts:
        return cls(
            id=str(id),
            name=name,
            utilization=to_decimal(utilization, "utilization"),
            downtime=to_decimal(downtime, "downtime"),
            efficiency=to_decimal(efficiency, "efficiency"),
        )

    @property
    def status(self) -> UtilizationStatus:
        return classify_utilization(self.utilization)


# ---------------------------------------------------------------------------
# Efficiency metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkOrderFacts:
    """A completed work order with its time data."""

    work_center_id: str
    work_center_name: str
    estimated_hours: Decimal
    actual_hours: Decimal
    completed_on: date | None = None

    def __post_init__(self) -> None:
        if self.estimated_hours < 0:
            raise ValidationError("estimated_hours", self.estimated_hours, "must not be negative")
        if self.actual_hours <= 0:
            raise ValidationError("actual_hours", self.actual_hours, "must be greater than 0")

    @property
    def efficiency(self) -> Decimal:
        return self.estimated_hours / self.actual_hours * HUNDRED

    @property
    def is_on_time(self) -> bool:
        return self.actual_hours <= self.estimated_hours


@dataclass(frozen=True)
class EfficiencyStats:
    key: str
    avg_efficiency: int
    on_time_rate: int
    count: int
    # Display name for work center groups; the key is the work center id.
    label: str | None = None


@dataclass(frozen=True)
class EfficiencyMetrics:
    overall: EfficiencyStats
    by_work_center: tuple[EfficiencyStats, ...]
    over_time: tuple[EfficiencyStats, ...]


def _stats(
    key: str, orders: list[WorkOrderFacts], label: str | None = None
) -> EfficiencyStats:
    if not orders:
        return EfficiencyStats(key=key, avg_efficiency=0, on_time_rate=0, count=0, label=label)
    count = len(orders)
    total = sum((wo.efficiency for wo in orders), Decimal("0"))
    on_time = sum(1 for wo in orders if wo.is_on_time)
    return EfficiencyStats(
        key=key,
        avg_efficiency=int(round_percent(total / count, WHOLE)),
        on_time_rate=int(round_percent(Decimal(on_time) / count * HUNDRED, WHOLE)),
        count=count,
        label=label,
    )


@traced_engine("utilization", "1.0", fingerprint_fields=("work_orders",))
def efficiency_metrics(work_orders: Iterable[WorkOrderFacts]) -> EfficiencyMetrics:
    """
    Overall, per-work-center and per-day efficiency.

    Work orders are grouped by work center id, in first-seen order, and
    each group is labelled with the first name seen for that id.  Days
    are sorted ascending and orders without a completion date are left
    out of the per-day series.
    """
    orders = list(work_orders)
    by_center: dict[str, list[WorkOrderFacts]] = {}
    by_day: dict[date, list[WorkOrderFacts]] = {}
    for wo in orders:
        by_center.setdefault(wo.work_center_id, []).append(wo)
        if wo.completed_on is not None:
            by_day.setdefault(wo.completed_on, []).append(wo)

    return EfficiencyMetrics(
        overall=_stats("overall", orders),
        by_work_center=tuple(
            _stats(center_id, group, label=group[0].work_center_name)
            for center_id, group in by_center.items()
        ),
        over_time=tuple(
            _stats(day.isoformat(), by_day[day]) for day in sorted(by_day)
        ),
    )
