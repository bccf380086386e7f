"""Entry point used by the web layer.

FinanceAnalytics bundles the analytics components behind the small set of
operations the dashboard needs. It is stateless apart from the classifier's
keyword table, so one instance can serve concurrent requests.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

import structlog

from .aggregation import AggregationEngine
from .anomaly import AnomalyDetector
from .classifier import DEFAULT_CATEGORY_COLORS, CategoryClassifier
from .config import FinsightConfig
from .forecast import ForecastEngine
from .insights import InsightComposer, InsightEnricher
from .models import (
    AggregateResult,
    BudgetComparison,
    DateRange,
    FinancialSummary,
    ForecastResult,
    Insight,
    MonthlyTrend,
    RecurringPattern,
    TransactionRecord,
    TransactionType,
)
from .recurrence import RecurrencePatternDetector

logger = structlog.get_logger()

DEFAULT_LOOKBACK_MONTHS = 12


class FinanceAnalytics:
    """
    Facade over the categorization, aggregation and detection components.

    Example:
        analytics = FinanceAnalytics.from_config(FinsightConfig())
        trends = analytics.monthly_trends(records)
        forecast = analytics.forecast_next_month(trends)
    """

    def __init__(
        self,
        classifier: Optional[CategoryClassifier] = None,
        aggregation: Optional[AggregationEngine] = None,
        forecast_engine: Optional[ForecastEngine] = None,
        recurrence_detector: Optional[RecurrencePatternDetector] = None,
        anomaly_detector: Optional[AnomalyDetector] = None,
        insight_composer: Optional[InsightComposer] = None,
        lookback_months: int = DEFAULT_LOOKBACK_MONTHS,
    ):
        self.classifier = classifier or CategoryClassifier()
        self.aggregation = aggregation or AggregationEngine(DEFAULT_CATEGORY_COLORS)
        self.forecast_engine = forecast_engine or ForecastEngine()
        self.recurrence_detector = recurrence_detector or RecurrencePatternDetector()
        self.anomaly_detector = anomaly_detector or AnomalyDetector()
        self.insight_composer = insight_composer or InsightComposer(aggregation=self.aggregation)
        self.lookback_months = lookback_months

    @classmethod
    def from_config(
        cls,
        config: FinsightConfig,
        enricher: Optional[InsightEnricher] = None,
    ) -> "FinanceAnalytics":
        """Build every component from settings.

        Raises:
            ConfigurationError: If the keyword table is invalid.
        """
        aggregation = AggregationEngine(config.category_colors)
        analytics = cls(
            classifier=CategoryClassifier(
                keyword_table=config.keyword_table,
                default_category=config.default_category,
            ),
            aggregation=aggregation,
            forecast_engine=ForecastEngine(
                min_months=config.forecast.min_months,
                window_months=config.forecast.window_months,
            ),
            recurrence_detector=RecurrencePatternDetector(
                min_occurrences=config.recurrence.min_occurrences,
                interval_tolerance=config.recurrence.interval_tolerance,
                amount_tolerance=config.recurrence.amount_tolerance,
            ),
            anomaly_detector=AnomalyDetector(
                multiplier=config.anomaly.multiplier,
                min_category_size=config.anomaly.min_category_size,
                default_category=config.default_category,
            ),
            insight_composer=InsightComposer(
                budget_alert_threshold=config.insights.budget_alert_threshold,
                aggregation=aggregation,
                enricher=enricher,
            ),
            lookback_months=config.recurrence.lookback_months,
        )
        logger.info(
            "analytics_initialized",
            env=config.env,
            keywords=len(analytics.classifier.keyword_table),
            enricher=enricher is not None,
        )
        return analytics

    def classify(self, description: Optional[str]) -> str:
        return self.classifier.classify(description)

    def categorize(self, records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
        """Fill in missing category names using the classifier.

        Records that already carry a category are returned unchanged.
        """
        return [
            r if r.category_name else r.model_copy(update={"category_name": self.classify(r.description)})
            for r in records
        ]

    def aggregate(
        self,
        transactions: Iterable[TransactionRecord],
        type: TransactionType,
        date_range: Optional[DateRange] = None,
    ) -> AggregateResult:
        return self.aggregation.aggregate(transactions, type, date_range)

    def monthly_trends(self, transactions: Iterable[TransactionRecord]) -> list[MonthlyTrend]:
        return self.aggregation.monthly_trends(transactions)

    def forecast_next_month(
        self,
        trends: Iterable[MonthlyTrend],
        today: Optional[date] = None,
    ) -> Optional[ForecastResult]:
        return self.forecast_engine.forecast(trends, today=today)

    def detect_recurring(
        self,
        transactions: Iterable[TransactionRecord],
        as_of: Optional[date] = None,
    ) -> list[RecurringPattern]:
        """Recurring patterns; with ``as_of``, only the trailing lookback window is used."""
        if as_of is not None:
            window = DateRange.trailing_months(self.lookback_months, as_of)
            transactions = self.aggregation.filter_records(transactions, date_range=window)
        return self.recurrence_detector.detect(transactions)

    def detect_anomalies(self, transactions: Iterable[TransactionRecord]) -> list[TransactionRecord]:
        return self.anomaly_detector.detect(transactions)

    def compose_insights(
        self,
        transactions: Iterable[TransactionRecord],
        trends: Sequence[MonthlyTrend],
        anomalies: Sequence[TransactionRecord],
    ) -> list[Insight]:
        return self.insight_composer.compose(transactions, trends, anomalies)

    def budget_comparison(
        self,
        transactions: Iterable[TransactionRecord],
        budgets: Mapping[str, Decimal],
        date_range: Optional[DateRange] = None,
    ) -> list[BudgetComparison]:
        return self.aggregation.budget_comparison(transactions, budgets, date_range)

    def summarize(
        self,
        transactions: Iterable[TransactionRecord],
        date_range: DateRange,
        today: Optional[date] = None,
    ) -> FinancialSummary:
        """Financial summary for ``date_range`` with the next-month forecast attached."""
        transactions = list(transactions)
        summary = self.aggregation.financial_summary(transactions, date_range)
        forecast = self.forecast_engine.forecast(summary.monthly_trends, today=today)
        return summary.model_copy(update={"forecast": forecast})
