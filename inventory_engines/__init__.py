"""
Module: inventory_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines:
    stock classification, KPI snapshots, budget and cost variance, work
    center utilization and inventory summaries.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import inventory_kernel domain types, values and exceptions.
    MUST NOT import inventory_services.

Invariants enforced:
    - Purity: engines never read the clock; periods and dates are passed in.
    - Decimal-only arithmetic for money and percentages.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine calls are traced via ``@traced_engine`` (see
    ``inventory_engines.tracer``), emitting INVENTORY_ENGINE_TRACE records.
"""

from inventory_engines.classification import (
    CRITICAL_RATIO,
    classify,
    classify_level,
    matches_status,
)
from inventory_engines.cost import (
    CompletedOrderCost,
    CostAnalysis,
    CostGroup,
    CostGrouping,
    cost_analysis,
    cost_variance_percent,
)
from inventory_engines.metrics import (
    KPI_METRICS,
    KpiMetric,
    KpiSnapshot,
    PeriodFacts,
    ProductionPoint,
    ReportingPeriod,
    build_kpi_snapshot,
    percentage_change,
)
from inventory_engines.summary import (
    CategorySummary,
    CategoryMovements,
    MovementSummary,
    StockSummary,
    summarize_movements,
    summarize_movements_by_category,
    summarize_stock,
)
from inventory_engines.tracer import compute_input_fingerprint, traced_engine
from inventory_engines.utilization import (
    EfficiencyMetrics,
    EfficiencyStats,
    UtilizationStatus,
    WorkCenterFacts,
    WorkOrderFacts,
    classify_utilization,
    efficiency_metrics,
)
from inventory_engines.variance import (
    BudgetStatus,
    FinancialLineItem,
    FinancialRow,
    classify_budget_variance,
    financial_report,
    variance_percent,
)

__all__ = [
    "CRITICAL_RATIO",
    "classify",
    "classify_level",
    "matches_status",
    "CompletedOrderCost",
    "CostAnalysis",
    "CostGroup",
    "CostGrouping",
    "cost_analysis",
    "cost_variance_percent",
    "KPI_METRICS",
    "KpiMetric",
    "KpiSnapshot",
    "PeriodFacts",
    "ProductionPoint",
    "ReportingPeriod",
    "build_kpi_snapshot",
    "percentage_change",
    "CategorySummary",
    "CategoryMovements",
    "MovementSummary",
    "StockSummary",
    "summarize_movements",
    "summarize_movements_by_category",
    "summarize_stock",
    "compute_input_fingerprint",
    "traced_engine",
    "EfficiencyMetrics",
    "EfficiencyStats",
    "UtilizationStatus",
    "WorkCenterFacts",
    "WorkOrderFacts",
    "classify_utilization",
    "efficiency_metrics",
    "BudgetStatus",
    "FinancialLineItem",
    "FinancialRow",
    "classify_budget_variance",
    "financial_report",
    "variance_percent",
]
