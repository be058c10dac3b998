"""
inventory_engines.metrics -- KPI snapshots with period-over-period change.

Responsibility:
    Turn already-fetched facts for a reporting period (and optionally the
    immediately preceding period) into a KPI snapshot: each metric's
    current value, previous value and percentage change.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes the variance and utilization fact types; produces values the
    analytics service renders to JSON.

Invariants enforced:
    - ``percentage_change`` is 0 when the previous value is None or 0;
      otherwise ``(current - previous) / previous * 100`` rounded to one
      decimal place, half away from zero.
    - ``KpiMetric.previous`` is None when there is no prior data (never 0).
    - When both facts carry a period, the prior period must be exactly
      ``period.previous()``: adjacent and of equal length.
    - Aggregation is stateless; identical inputs give identical snapshots.

Failure modes:
    - ValidationError for a non-adjacent prior period, an inverted period,
      or non-numeric metric values.

Audit relevance:
    Snapshot construction is traced via ``@traced_engine`` with a
    fingerprint of both fact sets.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from inventory_engines.tracer import traced_engine
from inventory_engines.utilization import WorkCenterFacts
from inventory_engines.variance import FinancialLineItem
from inventory_kernel.domain.values import HUNDRED, round_percent, to_decimal
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.metrics")

# (JSON name, PeriodFacts attribute)
KPI_METRICS: tuple[tuple[str, str], ...] = (
    ("ordersCompleted", "orders_completed"),
    ("totalRevenue", "total_revenue"),
    ("avgLeadTime", "avg_lead_time"),
    ("qualityScore", "quality_score"),
    ("onTimeDelivery", "on_time_delivery"),
    ("customerSatisfaction", "customer_satisfaction"),
)


def percentage_change(current: object, previous: object) -> Decimal:
    """Period-over-period change in percent, one decimal place."""
    if previous is None:
        return Decimal("0")
    prev = to_decimal(previous, "previous")
    if prev == 0:
        return Decimal("0")
    cur = to_decimal(current, "current")
    return round_percent((cur - prev) / prev * HUNDRED)


@dataclass(frozen=True)
class ReportingPeriod:
    """Inclusive date range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError("period", (self.start, self.end), "start must not be after end")

    @classmethod
    def trailing(cls, end: date, days: int) -> ReportingPeriod:
        """The ``days``-long period ending on ``end``."""
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValidationError("days", days, "must be a positive integer")
        return cls(start=end - timedelta(days=days - 1), end=end)

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1

    def previous(self) -> ReportingPeriod:
        """The immediately preceding period of equal length."""
        end = self.start - timedelta(days=1)
        return ReportingPeriod(start=end - timedelta(days=self.length_days - 1), end=end)

    def contains(self, moment: date | datetime) -> bool:
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end


@dataclass(frozen=True)
class ProductionPoint:
    """Planned versus actual output for one month of the trend chart."""

    month: str
    planned: int
    actual: int

    @property
    def efficiency(self) -> Decimal:
        """actual / planned in percent (one decimal), 0 when nothing was planned."""
        if self.planned == 0:
            return Decimal("0")
        return round_percent(Decimal(self.actual) / Decimal(self.planned) * HUNDRED)


@dataclass(frozen=True)
class PeriodFacts:
    """
    Facts for one reporting period, fetched by the caller.

    Every KPI value may be None (no data).  ``order_status`` maps an order
    status to its count.
    """

    period: ReportingPeriod | None = None
    orders_completed: Decimal | None = None
    total_revenue: Decimal | None = None
    avg_lead_time: Decimal | None = None
    quality_score: Decimal | None = None
    on_time_delivery: Decimal | None = None
    customer_satisfaction: Decimal | None = None
    work_centers: tuple[WorkCenterFacts, ...] = ()
    financial: tuple[FinancialLineItem, ...] = ()
    production_trend: tuple[ProductionPoint, ...] = ()
    order_status: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for _, attr in KPI_METRICS:
            value = getattr(self, attr)
            if value is not None and not isinstance(value, Decimal):
                raise ValidationError(attr, value, "must be a Decimal or None")

    def metric(self, name: str) -> Decimal | None:
        """KPI value by JSON name (e.g. "ordersCompleted")."""
        for json_name, attr in KPI_METRICS:
            if json_name == name:
                return getattr(self, attr)
        raise ValidationError("metric", name, "unknown KPI metric")


@dataclass(frozen=True)
class KpiMetric:
    name: str
    current: Decimal | None
    previous: Decimal | None
    change_percent: Decimal

    @property
    def has_history(self) -> bool:
        return self.previous is not None


@dataclass(frozen=True)
class KpiSnapshot:
    period: ReportingPeriod | None
    metrics: tuple[KpiMetric, ...]

    def __getitem__(self, name: str) -> KpiMetric:
        for metric in self.metrics:
            if metric.name == name:
                return metric
        raise KeyError(name)

    def to_kpi_block(self) -> dict[str, Decimal | None]:
        """Outbound ``kpi`` object: each metric and its ``prev`` twin."""
        block: dict[str, Decimal | None] = {}
        for metric in self.metrics:
            block[metric.name] = metric.current
            block["prev" + metric.name[0].upper() + metric.name[1:]] = metric.previous
        return block


@traced_engine("metrics", "1.0", fingerprint_fields=("facts", "prior_facts"))
def build_kpi_snapshot(
    facts: PeriodFacts,
    prior_facts: PeriodFacts | None = None,
) -> KpiSnapshot:
    """
    One KpiMetric per KPI name.

    Raises:
        ValidationError: prior_facts.period is not facts.period.previous().
    """
    if (
        prior_facts is not None
        and facts.period is not None
        and prior_facts.period is not None
        and prior_facts.period != facts.period.previous()
    ):
        logger.warning("kpi_prior_period_not_adjacent", extra={
            "period_start": facts.period.start,
            "period_end": facts.period.end,
            "prior_start": prior_facts.period.start,
            "prior_end": prior_facts.period.end,
        })
        raise ValidationError(
            "prior_facts",
            prior_facts.period,
            f"must be the period immediately before {facts.period.start}"
            f"..{facts.period.end} with equal length",
        )

    metrics = []
    for name, attr in KPI_METRICS:
        current = getattr(facts, attr)
        previous = getattr(prior_facts, attr) if prior_facts is not None else None
        change = (
            percentage_change(current, previous)
            if current is not None
            else Decimal("0")
        )
        metrics.append(KpiMetric(
            name=name,
            current=current,
            previous=previous,
            change_percent=change,
        ))
    return KpiSnapshot(period=facts.period, metrics=tuple(metrics))
