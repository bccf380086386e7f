"""Data models for finsight-core.

- Transaction inputs (transactions.py)
- Derived analytics results (analytics.py)
"""

from finsight_core.models.transactions import (
    DateRange,
    TransactionRecord,
    TransactionType,
)
from finsight_core.models.analytics import (
    AggregateResult,
    AnomalyFlag,
    BudgetComparison,
    CategorySummary,
    ExpensePrediction,
    FinancialSummary,
    ForecastResult,
    Frequency,
    HeatmapCell,
    Insight,
    MonthlyTrend,
    NetWorthPoint,
    RecurringPattern,
    Severity,
    TransactionAnalysis,
)

__all__ = [
    # Inputs
    "DateRange",
    "TransactionRecord",
    "TransactionType",
    # Enumerations
    "Frequency",
    "Severity",
    # Results
    "AggregateResult",
    "AnomalyFlag",
    "BudgetComparison",
    "CategorySummary",
    "ExpensePrediction",
    "FinancialSummary",
    "ForecastResult",
    "HeatmapCell",
    "Insight",
    "MonthlyTrend",
    "NetWorthPoint",
    "RecurringPattern",
    "TransactionAnalysis",
]
