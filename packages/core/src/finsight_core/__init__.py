"""Finsight Core - Personal finance analytics and forecasting."""

__version__ = "0.1.0"

from .aggregation import AggregationEngine
from .anomaly import AnomalyDetector
from .classifier import CategoryClassifier
from .config import FinsightConfig
from .engine import FinanceAnalytics
from .forecast import ForecastEngine
from .insights import InsightComposer
from .models import (
    DateRange,
    ForecastResult,
    Insight,
    MonthlyTrend,
    RecurringPattern,
    TransactionRecord,
    TransactionType,
)
from .recurrence import RecurrencePatternDetector

__all__ = [
    "AggregationEngine",
    "AnomalyDetector",
    "CategoryClassifier",
    "DateRange",
    "FinanceAnalytics",
    "FinsightConfig",
    "ForecastEngine",
    "ForecastResult",
    "Insight",
    "InsightComposer",
    "MonthlyTrend",
    "RecurrencePatternDetector",
    "RecurringPattern",
    "TransactionRecord",
    "TransactionType",
]
