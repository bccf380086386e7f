"""Tests for next-month forecasting and category expense prediction."""

from datetime import date
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from finsight_core.exceptions import ValidationError
from finsight_core.forecast import ForecastEngine, linear_projection, next_month
from finsight_core.models import MonthlyTrend, TransactionRecord, TransactionType


def trend(year: int, month: int, income: str, expenses: str) -> MonthlyTrend:
    """Build a trend from positive expense magnitudes."""
    return MonthlyTrend(
        year=year,
        month=month,
        income=Decimal(income),
        expenses=-Decimal(expenses),
    )


def expense(day: date, amount: str, category=None) -> TransactionRecord:
    return TransactionRecord(
        date=day,
        description="card purchase",
        amount=-Decimal(amount),
        type=TransactionType.EXPENSE,
        category_name=category,
    )


@pytest.fixture
def five_months() -> list[MonthlyTrend]:
    return [
        trend(2024, 6, "3000.00", "451.45"),
        trend(2024, 7, "3100.00", "340.80"),
        trend(2024, 8, "3200.00", "633.00"),
        trend(2024, 11, "3300.00", "517.25"),
        trend(2024, 12, "3350.00", "857.00"),
    ]


class TestLinearProjection:
    """Test suite for the least squares helper."""

    def test_straight_line(self):
        """Points on a line project exactly."""
        values = [Decimal("10"), Decimal("20"), Decimal("30")]
        assert linear_projection(values) == Decimal("40")

    def test_flat_series(self):
        assert linear_projection([Decimal("5")] * 4) == Decimal("5")

    def test_single_point(self):
        """One point projects to itself."""
        assert linear_projection([Decimal("7.5")]) == Decimal("7.5")

    def test_empty(self):
        assert linear_projection([]) == Decimal("0")


class TestNextMonth:
    """Test suite for target month calculation."""

    def test_mid_year(self):
        assert next_month(date(2025, 8, 15)) == (2025, 9)

    def test_december_rolls_over(self):
        """December rolls into January of the next year."""
        assert next_month(date(2025, 12, 31)) == (2026, 1)


class TestForecast:
    """Test suite for ForecastEngine.forecast."""

    def test_reference_history(self, five_months):
        """Five months of history produce the expected projection."""
        result = ForecastEngine().forecast(five_months, today=date(2025, 8, 15))

        assert result is not None
        assert result.target_year == 2025
        assert result.target_month == 9
        assert result.month_name == "September"
        assert result.method == "LINEAR_REGRESSION"
        assert result.projected_income == Decimal("3460.00")
        assert result.projected_expenses == Decimal("856.17")
        assert result.projected_net == Decimal("2603.83")
        assert result.confidence_lower_bound == Decimal("2427.65")
        assert result.confidence_upper_bound == Decimal("2780.01")

    def test_net_is_income_minus_expenses(self, five_months):
        result = ForecastEngine().forecast(five_months, today=date(2025, 8, 15))
        assert result.projected_net == result.projected_income - result.projected_expenses
        assert result.confidence_upper_bound >= result.confidence_lower_bound

    def test_insufficient_history_returns_none(self):
        """Two months of data are not enough."""
        trends = [trend(2025, 1, "3000", "500"), trend(2025, 2, "3000", "500")]

        with capture_logs() as logs:
            result = ForecastEngine().forecast(trends, today=date(2025, 3, 1))

        assert result is None
        assert logs[0]["event"] == "forecast_insufficient_data"
        assert logs[0]["months"] == 2

    def test_empty_history_returns_none(self):
        assert ForecastEngine().forecast([]) is None

    def test_december_target_rolls_year(self, five_months):
        result = ForecastEngine().forecast(five_months, today=date(2025, 12, 10))
        assert (result.target_year, result.target_month) == (2026, 1)
        assert result.month_name == "January"

    def test_unsorted_input(self, five_months):
        """Trend order does not matter."""
        engine = ForecastEngine()
        forward = engine.forecast(five_months, today=date(2025, 8, 15))
        backward = engine.forecast(list(reversed(five_months)), today=date(2025, 8, 15))
        assert forward == backward

    def test_window_uses_latest_months(self):
        """Only the most recent window_months months are fitted."""
        trends = [trend(2024, m, "100000", "90000") for m in (1, 2)]
        trends += [trend(2024, m, "1000", "500") for m in range(3, 9)]

        result = ForecastEngine(window_months=6).forecast(trends, today=date(2024, 8, 20))

        assert result.projected_income == Decimal("1000.00")
        assert result.projected_expenses == Decimal("500.00")
        assert result.confidence_lower_bound == result.confidence_upper_bound == Decimal("500.00")

    def test_negative_projection_clamped_to_zero(self):
        """A falling series never projects below zero."""
        trends = [
            trend(2025, 1, "3000", "100"),
            trend(2025, 2, "2000", "100"),
            trend(2025, 3, "500", "100"),
        ]

        result = ForecastEngine().forecast(trends, today=date(2025, 3, 31))

        assert result.projected_income == Decimal("0.00")
        assert result.projected_expenses == Decimal("100.00")
        assert result.projected_net == Decimal("-100.00")

    def test_invalid_configuration(self):
        """The window must cover the minimum history."""
        with pytest.raises(ValidationError):
            ForecastEngine(min_months=1)
        with pytest.raises(ValidationError) as exc_info:
            ForecastEngine(min_months=4, window_months=3)
        assert exc_info.value.field == "window_months"


class TestCategoryPredictions:
    """Test suite for per-category expense predictions."""

    @pytest.fixture
    def records(self) -> list[TransactionRecord]:
        return [
            expense(date(2025, 1, 1), "10", "Food & Dining"),
            expense(date(2025, 1, 10), "10", "Food & Dining"),
            expense(date(2025, 1, 20), "20", "Food & Dining"),
            expense(date(2025, 1, 30), "20", "Food & Dining"),
            expense(date(2025, 1, 15), "50", "Shopping"),
        ]

    def test_predictions_sorted_by_amount(self, records):
        predictions = ForecastEngine().predict_category_expenses(
            records, days_ahead=30, today=date(2025, 2, 1)
        )

        assert [p.category_name for p in predictions] == ["Shopping", "Food & Dining"]

    def test_trend_scales_daily_average(self, records):
        """Newer half is double the older half, so the daily rate doubles."""
        predictions = ForecastEngine().predict_category_expenses(
            records, days_ahead=30, today=date(2025, 2, 1)
        )
        food = next(p for p in predictions if p.category_name == "Food & Dining")

        assert food.predicted_amount == Decimal("120.00")
        assert food.confidence == 0.6
        assert food.prediction_date == date(2025, 3, 3)
        assert food.insights == [
            "Spending in Food & Dining is trending upward by 100.0%",
            "Average transaction amount: $15.00",
        ]

    def test_single_transaction_category(self, records):
        predictions = ForecastEngine().predict_category_expenses(
            records, days_ahead=30, today=date(2025, 2, 1)
        )
        shopping = predictions[0]

        assert shopping.predicted_amount == Decimal("1500.00")
        assert shopping.confidence == 0.3
        assert shopping.insights[0] == "Spending in Shopping is relatively stable"

    def test_uncategorized_uses_default(self):
        predictions = ForecastEngine().predict_category_expenses(
            [expense(date(2025, 1, 1), "5")], days_ahead=7, today=date(2025, 1, 2)
        )
        assert predictions[0].category_name == "Other"

    def test_non_positive_horizon_raises(self, records):
        with pytest.raises(ValidationError) as exc_info:
            ForecastEngine().predict_category_expenses(records, days_ahead=0)
        assert exc_info.value.details["constraint"] == "> 0"
