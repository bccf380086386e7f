"""Tests for the aggregation engine."""

from datetime import date
from decimal import Decimal

import pytest

from finsight_core.aggregation import AggregationEngine
from finsight_core.exceptions import ValidationError
from finsight_core.models import (
    DateRange,
    MonthlyTrend,
    TransactionRecord,
    TransactionType,
)

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE
TRANSFER = TransactionType.TRANSFER


def txn(day: date, amount: str, type: TransactionType, category=None, description="test"):
    return TransactionRecord(
        date=day,
        description=description,
        amount=Decimal(amount),
        type=type,
        category_name=category,
    )


@pytest.fixture
def records() -> list[TransactionRecord]:
    """Three months of income, expenses and a transfer."""
    return [
        txn(date(2025, 1, 3), "3000.00", INCOME, "Salary"),
        txn(date(2025, 1, 5), "-100.00", EXPENSE, "Food & Dining"),
        txn(date(2025, 1, 10), "-300.00", EXPENSE, "Shopping"),
        txn(date(2025, 2, 3), "3000.00", INCOME, "Salary"),
        txn(date(2025, 2, 7), "-100.00", EXPENSE, "Food & Dining"),
        txn(date(2025, 2, 10), "-500.00", TRANSFER, "Transfer"),
        txn(date(2025, 3, 15), "-50.00", EXPENSE),
    ]


@pytest.fixture
def engine() -> AggregationEngine:
    return AggregationEngine({"Shopping": "#45B7D1"})


class TestTotals:
    """Test suite for totals and breakdowns."""

    def test_total_by_type(self, engine: AggregationEngine, records):
        """Totals are signed sums per type."""
        assert engine.total_by_type(records, INCOME) == Decimal("6000.00")
        assert engine.total_by_type(records, EXPENSE) == Decimal("-550.00")

    def test_total_by_type_empty(self, engine: AggregationEngine):
        """An empty list totals zero."""
        assert engine.total_by_type([], EXPENSE) == Decimal("0")

    def test_category_breakdown(self, engine: AggregationEngine, records):
        """Categories are summed by absolute amount and sorted largest first."""
        breakdown = engine.category_breakdown(records, EXPENSE)

        assert [s.category_name for s in breakdown] == [
            "Shopping",
            "Food & Dining",
            "Uncategorized",
        ]
        assert [s.total_amount for s in breakdown] == [
            Decimal("300.00"),
            Decimal("200.00"),
            Decimal("50.00"),
        ]
        assert [s.percentage for s in breakdown] == [
            Decimal("54.55"),
            Decimal("36.36"),
            Decimal("9.09"),
        ]

    def test_breakdown_colors(self, engine: AggregationEngine, records):
        """Colors come from the injected map; unknown categories get None."""
        colors = {s.category_name: s.color for s in engine.category_breakdown(records, EXPENSE)}
        assert colors["Shopping"] == "#45B7D1"
        assert colors["Food & Dining"] is None

    def test_breakdown_conserves_total(self, engine: AggregationEngine, records):
        """Category amounts add up to the type total."""
        breakdown = engine.category_breakdown(records, EXPENSE)
        total = sum(s.total_amount for s in breakdown)
        assert total == abs(engine.total_by_type(records, EXPENSE))

    def test_breakdown_zero_grand_total(self, engine: AggregationEngine):
        """Percentages are zero when everything sums to zero."""
        zero = [txn(date(2025, 1, 1), "0", EXPENSE, "Other")]
        breakdown = engine.category_breakdown(zero, EXPENSE)

        assert len(breakdown) == 1
        assert breakdown[0].percentage == Decimal("0")


class TestMonthlyTrends:
    """Test suite for monthly trends."""

    def test_trends_merge_and_sort(self, engine: AggregationEngine, records):
        """Income and expense series merge by month in ascending order."""
        trends = engine.monthly_trends(records)

        assert [(t.year, t.month) for t in trends] == [(2025, 1), (2025, 2), (2025, 3)]
        assert trends[0].income == Decimal("3000.00")
        assert trends[0].expenses == Decimal("-400.00")
        assert trends[0].net_amount == Decimal("2600.00")

    def test_month_with_only_expenses(self, engine: AggregationEngine, records):
        """A month without income gets zero income."""
        march = engine.monthly_trends(records)[-1]

        assert march.income == Decimal("0")
        assert march.expenses == Decimal("-50.00")
        assert march.net_amount == Decimal("-50.00")

    def test_transfers_are_ignored(self, engine: AggregationEngine, records):
        """Transfers do not affect February's expenses."""
        february = engine.monthly_trends(records)[1]
        assert february.expenses == Decimal("-100.00")

    def test_trends_for_distant_years(self, engine: AggregationEngine):
        """Well-formed records from any year aggregate without errors."""
        records = [
            txn(date(1850, 6, 1), "-10.00", EXPENSE),
            txn(date(2101, 1, 5), "-20.00", EXPENSE),
        ]

        trends = engine.monthly_trends(records)

        assert [t.key for t in trends] == [(1850, 6), (2101, 1)]

    def test_net_equals_income_plus_expenses(self, engine: AggregationEngine, records):
        for trend in engine.monthly_trends(records):
            assert trend.net_amount == trend.income + trend.expenses
            assert trend.expenses <= 0

    def test_aggregate_with_date_range(self, engine: AggregationEngine, records):
        """aggregate restricts to the window and type."""
        february = DateRange.month_of(2025, 2)
        result = engine.aggregate(records, EXPENSE, february)

        assert result.total == Decimal("-100.00")
        assert [s.category_name for s in result.by_category] == ["Food & Dining"]
        assert result.by_category[0].percentage == Decimal("100")
        assert len(result.monthly_trends) == 1
        assert result.monthly_trends[0].income == Decimal("0")

    def test_aggregate_is_idempotent(self, engine: AggregationEngine, records):
        """Running twice on the same input gives the same output."""
        first = engine.aggregate(records, EXPENSE)
        second = engine.aggregate(records, EXPENSE)
        assert first == second


class TestDashboardAggregates:
    """Test suite for weekday, heatmap, net worth and budget views."""

    def test_spending_by_weekday(self, engine: AggregationEngine, records):
        """Expenses are grouped by weekday name, Monday first."""
        by_day = engine.spending_by_weekday(records)

        assert list(by_day) == ["Friday", "Saturday", "Sunday"]
        assert by_day["Friday"] == Decimal("400.00")

    def test_expense_heatmap(self, engine: AggregationEngine, records):
        """Heatmap cells are ordered by category then weekday."""
        cells = engine.expense_heatmap(records)

        assert [(c.category_name, c.day_of_week, c.amount) for c in cells] == [
            ("Food & Dining", "Friday", Decimal("100.00")),
            ("Food & Dining", "Sunday", Decimal("100.00")),
            ("Shopping", "Friday", Decimal("300.00")),
            ("Uncategorized", "Saturday", Decimal("50.00")),
        ]

    def test_net_worth_trend(self, engine: AggregationEngine, records):
        """Net worth accumulates monthly net amounts."""
        points = engine.net_worth_trend(engine.monthly_trends(records))

        assert [p.cumulative_net_worth for p in points] == [
            Decimal("2600.00"),
            Decimal("5500.00"),
            Decimal("5450.00"),
        ]
        assert [p.trend_direction for p in points] == ["up", "up", "down"]

    def test_net_worth_trend_sorts_input(self, engine: AggregationEngine):
        trends = [
            MonthlyTrend(year=2025, month=2, income=Decimal("10")),
            MonthlyTrend(year=2025, month=1, income=Decimal("5")),
        ]
        points = engine.net_worth_trend(trends)
        assert [p.month for p in points] == [1, 2]

    def test_budget_comparison(self, engine: AggregationEngine, records):
        """Budgets are compared against actual category spend."""
        comparisons = engine.budget_comparison(
            records,
            {"Shopping": Decimal("250"), "Food & Dining": Decimal("500"), "Travel": Decimal("0")},
        )

        by_name = {c.category_name: c for c in comparisons}
        assert set(by_name) == {"Shopping", "Food & Dining"}
        assert by_name["Shopping"].percentage_difference == Decimal("20")
        assert by_name["Shopping"].status_color == "#ff4d4f"
        assert by_name["Shopping"].category_color == "#45B7D1"
        assert by_name["Food & Dining"].percentage_difference == Decimal("-60")
        assert by_name["Food & Dining"].status_color == "#52c41a"

    def test_budget_comparison_unspent_category(self, engine: AggregationEngine, records):
        """A budgeted category with no spend has actual zero."""
        comparisons = engine.budget_comparison(records, {"Travel": Decimal("200")})
        assert comparisons[0].actual_amount == Decimal("0")

    def test_budget_comparison_float_budget(self, engine: AggregationEngine, records):
        """Float budgets convert through their decimal text, not binary expansion."""
        comparisons = engine.budget_comparison(records, {"Shopping": 0.1})
        assert comparisons[0].budget_amount == Decimal("0.1")

    def test_top_expense_categories(self, engine: AggregationEngine, records):
        top = engine.top_expense_categories(records, limit=2)
        assert [s.category_name for s in top] == ["Shopping", "Food & Dining"]

    def test_average_monthly_expenses(self, engine: AggregationEngine, records):
        """Average is rounded half-up to cents."""
        assert engine.average_monthly_expenses(records, 3) == Decimal("183.33")

    def test_average_monthly_expenses_invalid_months(self, engine: AggregationEngine, records):
        with pytest.raises(ValidationError) as exc_info:
            engine.average_monthly_expenses(records, 0)
        assert exc_info.value.field == "months"

    def test_financial_summary(self, engine: AggregationEngine, records):
        """Summary totals cover the window; trends cover all history."""
        summary = engine.financial_summary(records, DateRange.month_of(2025, 1))

        assert summary.total_income == Decimal("3000.00")
        assert summary.total_expenses == Decimal("-400.00")
        assert summary.net_income == Decimal("2600.00")
        assert summary.transaction_count == 3
        assert len(summary.expenses_by_category) == 2
        assert [s.category_name for s in summary.income_by_category] == ["Salary"]
        assert len(summary.monthly_trends) == 3
        assert summary.forecast is None
