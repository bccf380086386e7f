"""Next-month income and expense forecasting.

ForecastEngine fits an ordinary least squares line through the most recent
monthly totals and projects one step ahead. The confidence band is the
larger of the two series' population standard deviations.

All arithmetic is done in Decimal so results are reproducible to the cent.
"""

import statistics
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

import structlog

from .exceptions import ValidationError
from .models import (
    ExpensePrediction,
    ForecastResult,
    MonthlyTrend,
    TransactionRecord,
    TransactionType,
)
from .money import ZERO, round_money, sum_decimals

logger = structlog.get_logger()

FORECAST_METHOD = "LINEAR_REGRESSION"
DEFAULT_MIN_MONTHS = 3
DEFAULT_WINDOW_MONTHS = 6

TREND_NOTICE_THRESHOLD = Decimal("0.1")


def linear_projection(values: Sequence[Decimal]) -> Decimal:
    """
    Fit ``y = m*x + b`` over x = 1..n and evaluate at x = n + 1.

    A single point projects to itself.
    """
    n = len(values)
    if n == 0:
        return ZERO
    sum_x = Decimal(n * (n + 1) // 2)
    sum_x2 = Decimal(n * (n + 1) * (2 * n + 1) // 6)
    sum_y = sum_decimals(values)
    sum_xy = sum_decimals(Decimal(x) * y for x, y in enumerate(values, start=1))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope * (n + 1) + intercept


def next_month(today: date) -> tuple[int, int]:
    """(year, month) of the month after ``today``."""
    if today.month == 12:
        return today.year + 1, 1
    return today.year, today.month + 1


class ForecastEngine:
    """
    Project next month's income and expenses from monthly trends.

    Example:
        engine = ForecastEngine()
        result = engine.forecast(trends)
        if result is None:
            ...  # fewer than three months of history
    """

    def __init__(
        self,
        min_months: int = DEFAULT_MIN_MONTHS,
        window_months: int = DEFAULT_WINDOW_MONTHS,
    ):
        """
        Args:
            min_months: Months of history required before forecasting.
            window_months: Most recent months used for the regression.

        Raises:
            ValidationError: If the window is smaller than the minimum.
        """
        if min_months < 2:
            raise ValidationError(
                "min_months must be at least 2",
                field="min_months",
                value=min_months,
                constraint=">= 2",
            )
        if window_months < min_months:
            raise ValidationError(
                "window_months must be at least min_months",
                field="window_months",
                value=window_months,
                constraint=f">= {min_months}",
            )
        self.min_months = min_months
        self.window_months = window_months

    def forecast(
        self,
        trends: Iterable[MonthlyTrend],
        today: Optional[date] = None,
    ) -> Optional[ForecastResult]:
        """
        Forecast the month after ``today``.

        Args:
            trends: Monthly totals, in any order.
            today: Reference date; defaults to the current date.

        Returns:
            ForecastResult, or None when fewer than ``min_months`` months
            are available.
        """
        ordered = sorted(trends, key=lambda t: t.key)
        if len(ordered) < self.min_months:
            logger.info(
                "forecast_insufficient_data",
                months=len(ordered),
                required=self.min_months,
            )
            return None

        window = ordered[-self.window_months:]
        income = [t.income for t in window]
        expenses = [abs(t.expenses) for t in window]

        projected_income = round_money(max(linear_projection(income), ZERO))
        projected_expenses = round_money(max(linear_projection(expenses), ZERO))

        margin = max(statistics.pstdev(income), statistics.pstdev(expenses))
        projected_net = projected_income - projected_expenses

        target_year, target_month = next_month(today or date.today())

        result = ForecastResult(
            target_year=target_year,
            target_month=target_month,
            projected_income=projected_income,
            projected_expenses=projected_expenses,
            projected_net=round_money(projected_net),
            confidence_lower_bound=round_money(projected_net - margin),
            confidence_upper_bound=round_money(projected_net + margin),
            method=FORECAST_METHOD,
        )
        logger.info(
            "forecast_computed",
            window=len(window),
            target=f"{target_year}-{target_month:02d}",
            income=str(result.projected_income),
            expenses=str(result.projected_expenses),
            margin=str(round_money(margin)),
        )
        return result

    def predict_category_expenses(
        self,
        records: Iterable[TransactionRecord],
        days_ahead: int,
        today: Optional[date] = None,
        default_category: str = "Other",
    ) -> list[ExpensePrediction]:
        """
        Per-category expense projection over the next ``days_ahead`` days.

        Each category's daily average over its observed span is scaled by
        the relative change between the older and newer halves of its
        transactions.

        Raises:
            ValidationError: If days_ahead is not positive.

        Returns:
            Predictions sorted by predicted amount, highest first.
        """
        if days_ahead <= 0:
            raise ValidationError(
                "days_ahead must be positive",
                field="days_ahead",
                value=days_ahead,
                constraint="> 0",
            )
        reference = today or date.today()

        by_category: dict[str, list[TransactionRecord]] = defaultdict(list)
        for record in records:
            if record.type == TransactionType.EXPENSE:
                by_category[record.category_name or default_category].append(record)

        predictions = [
            self._predict_category(name, items, days_ahead, reference)
            for name, items in by_category.items()
        ]
        predictions.sort(key=lambda p: p.predicted_amount, reverse=True)
        logger.info("category_predictions_computed", categories=len(predictions), days_ahead=days_ahead)
        return predictions

    def _predict_category(
        self,
        category: str,
        records: list[TransactionRecord],
        days_ahead: int,
        today: date,
    ) -> ExpensePrediction:
        ordered = sorted(records, key=lambda r: r.date)
        total = sum_decimals(r.abs_amount for r in ordered)
        days_covered = (ordered[-1].date - ordered[0].date).days + 1
        daily_average = total / max(days_covered, 1)

        trend = self._half_split_trend(ordered)
        predicted = round_money(daily_average * (1 + trend) * days_ahead)

        return ExpensePrediction(
            prediction_date=today + timedelta(days=days_ahead),
            predicted_amount=predicted,
            category_name=category,
            confidence=self._prediction_confidence(len(ordered)),
            insights=self._prediction_insights(category, total / len(ordered), trend),
        )

    @staticmethod
    def _half_split_trend(ordered: list[TransactionRecord]) -> Decimal:
        """Relative change of the newer half's mean amount over the older half's."""
        if len(ordered) < 2:
            return ZERO
        middle = len(ordered) // 2
        older = [r.abs_amount for r in ordered[:middle]]
        newer = [r.abs_amount for r in ordered[middle:]]
        older_mean = sum_decimals(older) / len(older)
        newer_mean = sum_decimals(newer) / len(newer)
        if older_mean <= 0:
            return ZERO
        return (newer_mean - older_mean) / older_mean

    @staticmethod
    def _prediction_confidence(sample_size: int) -> float:
        if sample_size < 3:
            return 0.3
        if sample_size < 10:
            return 0.6
        return 0.8

    @staticmethod
    def _prediction_insights(category: str, average: Decimal, trend: Decimal) -> list[str]:
        if trend > TREND_NOTICE_THRESHOLD:
            movement = f"Spending in {category} is trending upward by {trend * 100:.1f}%"
        elif trend < -TREND_NOTICE_THRESHOLD:
            movement = f"Spending in {category} is trending downward by {abs(trend) * 100:.1f}%"
        else:
            movement = f"Spending in {category} is relatively stable"
        return [movement, f"Average transaction amount: ${round_money(average)}"]
