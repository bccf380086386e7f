"""Template-driven spending insights.

InsightComposer turns the outputs of the aggregation and anomaly components
into dashboard-ready Insight objects. All text is built from templates.

An optional enricher (for example a wrapper around a hosted text model) may
be attached. It receives a one-line financial summary and returns extra
recommendation strings. Enrichers report service failures by raising
EnrichmentError; any other exception is wrapped in one. Enrichment is best
effort: the failure is logged, the enricher output is dropped and the
template insights are returned as usual.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

import structlog

from .aggregation import AggregationEngine
from .exceptions import EnrichmentError, ValidationError
from .models import (
    Insight,
    MonthlyTrend,
    Severity,
    TransactionRecord,
    TransactionType,
)
from .money import round_money, sum_decimals

logger = structlog.get_logger()

InsightEnricher = Callable[[str], Iterable[str]]

DEFAULT_BUDGET_ALERT_THRESHOLD = Decimal("5000")

BUDGET_RECOMMENDATIONS = (
    "Review your largest expense categories",
    "Consider setting spending limits",
    "Look for subscription services you might not need",
)


def financial_summary_text(transactions: Sequence[TransactionRecord]) -> str:
    """One-line totals summary used as enricher input."""
    income = sum_decimals(t.amount for t in transactions if t.type == TransactionType.INCOME)
    expenses = sum_decimals(t.abs_amount for t in transactions if t.type == TransactionType.EXPENSE)
    return (
        f"Total income: ${round_money(income)}, "
        f"Total expenses: ${round_money(expenses)}, "
        f"Net: ${round_money(income - expenses)}, "
        f"Transaction count: {len(transactions)}"
    )


class InsightComposer:
    """
    Build insights from transactions, monthly trends and detected anomalies.

    Args:
        budget_alert_threshold: Average monthly expense above which a
            HIGH-severity budget alert is raised.
        aggregation: Engine used for weekday grouping.
        enricher: Optional callable producing extra recommendation text.
    """

    def __init__(
        self,
        budget_alert_threshold: Decimal = DEFAULT_BUDGET_ALERT_THRESHOLD,
        aggregation: Optional[AggregationEngine] = None,
        enricher: Optional[InsightEnricher] = None,
    ):
        self.budget_alert_threshold = Decimal(budget_alert_threshold)
        self.aggregation = aggregation or AggregationEngine()
        self.enricher = enricher

    def compose(
        self,
        transactions: Iterable[TransactionRecord],
        trends: Sequence[MonthlyTrend],
        anomalies: Sequence[TransactionRecord],
        months_in_window: Optional[int] = None,
    ) -> list[Insight]:
        """
        Compose all insights for a window.

        Args:
            transactions: Transactions in the window.
            trends: Monthly trends for the same window.
            anomalies: Output of AnomalyDetector.detect.
            months_in_window: Divisor for the monthly average. Defaults to
                the number of trends, else the number of distinct months
                with expenses.

        Raises:
            ValidationError: If months_in_window is given and not positive.
        """
        if months_in_window is not None and months_in_window <= 0:
            raise ValidationError(
                "months_in_window must be positive",
                field="months_in_window",
                value=months_in_window,
                constraint="> 0",
            )
        transactions = list(transactions)
        insights: list[Insight] = []

        peak = self.peak_spending_day(transactions)
        if peak is not None:
            insights.append(peak)

        months = months_in_window or self._months_in_window(transactions, trends)
        alert = self.budget_alert(transactions, months)
        if alert is not None:
            insights.append(alert)

        summary = self.anomaly_summary(anomalies)
        if summary is not None:
            insights.append(summary)

        if self.enricher is not None:
            insights.extend(self._enrich(transactions))

        logger.info("insights_composed", insights=len(insights), months=months)
        return insights

    def peak_spending_day(self, transactions: Iterable[TransactionRecord]) -> Optional[Insight]:
        """LOW-severity insight naming the weekday with the highest spend."""
        by_day = self.aggregation.spending_by_weekday(transactions)
        if not by_day:
            return None
        day, amount = max(by_day.items(), key=lambda item: item[1])
        return Insight(
            type="SPENDING_PATTERN",
            title="Peak Spending Day",
            description=f"You spend the most on {day}s",
            severity=Severity.LOW,
            impact_amount=round_money(amount),
            confidence=0.8,
        )

    def budget_alert(
        self, transactions: Iterable[TransactionRecord], months: int
    ) -> Optional[Insight]:
        """HIGH-severity insight when average monthly spend exceeds the threshold."""
        if months <= 0:
            return None
        total = sum_decimals(
            t.abs_amount for t in transactions if t.type == TransactionType.EXPENSE
        )
        if total / months <= self.budget_alert_threshold:
            return None
        average = round_money(total / months)
        return Insight(
            type="BUDGET_ALERT",
            title="High Monthly Spending",
            description=f"Your average monthly expenses are ${average}",
            severity=Severity.HIGH,
            impact_amount=average,
            recommendations=list(BUDGET_RECOMMENDATIONS),
        )

    def anomaly_summary(self, anomalies: Sequence[TransactionRecord]) -> Optional[Insight]:
        """MEDIUM-severity insight counting unusual transactions."""
        if not anomalies:
            return None
        count = len(anomalies)
        noun = "transaction" if count == 1 else "transactions"
        return Insight(
            type="ANOMALY_DETECTION",
            title="Unusual Spending Detected",
            description=f"Found {count} unusual {noun} in the selected period",
            severity=Severity.MEDIUM,
            impact_amount=round_money(sum_decimals(a.abs_amount for a in anomalies)),
            confidence=0.7,
        )

    @staticmethod
    def _months_in_window(
        transactions: Sequence[TransactionRecord], trends: Sequence[MonthlyTrend]
    ) -> int:
        if trends:
            return len(trends)
        return len({t.year_month for t in transactions if t.type == TransactionType.EXPENSE})

    def _enrich(self, transactions: Sequence[TransactionRecord]) -> list[Insight]:
        summary = financial_summary_text(transactions)
        try:
            texts = [text.strip() for text in self.enricher(summary) if text and text.strip()]
        except Exception as e:
            error = self._as_enrichment_error(e)
            logger.warning(
                "insight_enrichment_failed",
                error=error.message,
                error_type=type(e).__name__,
                details=error.details,
            )
            return []
        return [
            Insight(
                type="ML_RECOMMENDATION",
                title="AI-Generated Insight",
                description=text,
                severity=Severity.MEDIUM,
                confidence=0.7,
            )
            for text in texts
        ]

    def _as_enrichment_error(self, error: Exception) -> EnrichmentError:
        if isinstance(error, EnrichmentError):
            return error
        name = getattr(self.enricher, "__name__", type(self.enricher).__name__)
        return EnrichmentError(
            f"Insight enricher {name} failed",
            enricher=name,
            api_error=str(error),
        )
