"""Totals, category breakdowns and monthly trends over transaction lists.

All functions are pure: they read the records they are given and build new
result models. Callers filter the list to one user or account beforehand.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping, Optional

import structlog

from .exceptions import ValidationError
from .models import (
    AggregateResult,
    BudgetComparison,
    CategorySummary,
    DateRange,
    FinancialSummary,
    HeatmapCell,
    MonthlyTrend,
    NetWorthPoint,
    TransactionRecord,
    TransactionType,
)
from .money import ZERO, percentage_of, round_money, sum_decimals, to_decimal

logger = structlog.get_logger()

UNCATEGORIZED = "Uncategorized"

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def category_of(record: TransactionRecord, default: str = UNCATEGORIZED) -> str:
    return record.category_name or default


class AggregationEngine:
    """
    Sum and group transactions by type, category, month and weekday.

    Category colors are injected so that breakdowns can be rendered without
    another lookup; categories missing from the map get ``None``.
    """

    def __init__(self, category_colors: Optional[Mapping[str, str]] = None):
        self.category_colors = dict(category_colors or {})

    def filter_records(
        self,
        records: Iterable[TransactionRecord],
        type: Optional[TransactionType] = None,
        date_range: Optional[DateRange] = None,
    ) -> list[TransactionRecord]:
        """Keep records matching ``type`` and falling inside ``date_range``."""
        return [
            r
            for r in records
            if (type is None or r.type == type)
            and (date_range is None or date_range.contains(r.date))
        ]

    def total_by_type(
        self, records: Iterable[TransactionRecord], type: TransactionType
    ) -> Decimal:
        """Signed sum of amounts for one transaction type (0 if none)."""
        return sum_decimals(r.amount for r in records if r.type == type)

    def category_breakdown(
        self, records: Iterable[TransactionRecord], type: TransactionType
    ) -> list[CategorySummary]:
        """
        Group one transaction type by category.

        Each category total is a sum of absolute amounts. Percentages are
        shares of the grand total, rounded to 4 decimals before scaling
        by 100, and all 0 when the grand total is 0.

        Returns:
            Summaries sorted by total descending, then by name.
        """
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for record in records:
            if record.type == type:
                totals[category_of(record)] += record.abs_amount

        grand_total = sum_decimals(totals.values())
        summaries = [
            CategorySummary(
                category_name=name,
                total_amount=amount,
                percentage=percentage_of(amount, grand_total),
                color=self.category_colors.get(name),
            )
            for name, amount in totals.items()
        ]
        summaries.sort(key=lambda s: (-s.total_amount, s.category_name))
        return summaries

    def monthly_trends(self, records: Iterable[TransactionRecord]) -> list[MonthlyTrend]:
        """
        Income and expense totals per calendar month.

        The income and expense series are built separately and merged on
        (year, month); a month present in only one series gets 0 on the
        other side. Transfers are ignored.
        """
        income: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        expenses: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)

        for record in records:
            if record.type == TransactionType.INCOME:
                income[record.year_month] += record.amount
            elif record.type == TransactionType.EXPENSE:
                expenses[record.year_month] += record.abs_amount

        keys = sorted(set(income) | set(expenses))
        return [
            MonthlyTrend(
                year=year,
                month=month,
                income=income.get((year, month), ZERO),
                expenses=-expenses.get((year, month), ZERO),
            )
            for year, month in keys
        ]

    def aggregate(
        self,
        records: Iterable[TransactionRecord],
        type: TransactionType,
        date_range: Optional[DateRange] = None,
    ) -> AggregateResult:
        """Total, category breakdown and monthly trends for one type in a window."""
        window = self.filter_records(records, type=type, date_range=date_range)
        result = AggregateResult(
            total=self.total_by_type(window, type),
            by_category=self.category_breakdown(window, type),
            monthly_trends=self.monthly_trends(window),
        )
        logger.info(
            "aggregate_computed",
            type=type.value,
            records=len(window),
            total=str(result.total),
            categories=len(result.by_category),
        )
        return result

    def spending_by_weekday(self, records: Iterable[TransactionRecord]) -> dict[str, Decimal]:
        """Absolute expense totals keyed by weekday name, Monday first.

        Only weekdays with at least one expense appear.
        """
        totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for record in records:
            if record.type == TransactionType.EXPENSE:
                totals[record.date.weekday()] += record.abs_amount
        return {WEEKDAY_NAMES[day]: totals[day] for day in sorted(totals)}

    def expense_heatmap(
        self,
        records: Iterable[TransactionRecord],
        date_range: Optional[DateRange] = None,
    ) -> list[HeatmapCell]:
        """Expense totals per (category, weekday), ordered by category then weekday."""
        window = self.filter_records(records, TransactionType.EXPENSE, date_range)
        totals: dict[tuple[str, int], Decimal] = defaultdict(lambda: ZERO)
        for record in window:
            totals[(category_of(record), record.date.weekday())] += record.abs_amount

        return [
            HeatmapCell(
                category_name=category,
                day_of_week=WEEKDAY_NAMES[day],
                amount=amount,
            )
            for (category, day), amount in sorted(totals.items())
        ]

    def net_worth_trend(self, trends: Iterable[MonthlyTrend]) -> list[NetWorthPoint]:
        """Cumulative monthly net, starting from zero."""
        points: list[NetWorthPoint] = []
        cumulative = ZERO
        for trend in sorted(trends, key=lambda t: t.key):
            previous = cumulative
            cumulative += trend.net_amount
            points.append(
                NetWorthPoint(
                    year=trend.year,
                    month=trend.month,
                    monthly_net=trend.net_amount,
                    cumulative_net_worth=cumulative,
                    net_worth_change=cumulative - previous,
                )
            )
        return points

    def budget_comparison(
        self,
        records: Iterable[TransactionRecord],
        budgets: Mapping[str, Decimal],
        date_range: Optional[DateRange] = None,
    ) -> list[BudgetComparison]:
        """
        Compare expense totals against per-category budgets.

        Args:
            records: Transactions to compare.
            budgets: Monthly budget amount per category name. Categories
                with a missing or non-positive budget are skipped.
            date_range: Window to compare, usually one calendar month.

        Returns:
            One comparison per budgeted category, in ``budgets`` order.
        """
        actual = {
            s.category_name: s.total_amount
            for s in self.category_breakdown(
                self.filter_records(records, TransactionType.EXPENSE, date_range),
                TransactionType.EXPENSE,
            )
        }
        comparisons = [
            BudgetComparison(
                category_name=name,
                budget_amount=to_decimal(budget),
                actual_amount=actual.get(name, ZERO),
                category_color=self.category_colors.get(name),
            )
            for name, budget in budgets.items()
            if budget is not None and to_decimal(budget) > 0
        ]
        over = sum(1 for c in comparisons if c.actual_amount > c.budget_amount)
        logger.info("budget_comparison_computed", categories=len(comparisons), over_budget=over)
        return comparisons

    def top_expense_categories(
        self, records: Iterable[TransactionRecord], limit: int = 5
    ) -> list[CategorySummary]:
        """The ``limit`` largest expense categories."""
        return self.category_breakdown(records, TransactionType.EXPENSE)[:limit]

    def average_monthly_expenses(
        self, records: Iterable[TransactionRecord], months: int
    ) -> Decimal:
        """Absolute expense total divided by ``months``, rounded to cents.

        Raises:
            ValidationError: If months is not positive.
        """
        if months <= 0:
            raise ValidationError(
                "months must be positive",
                field="months",
                value=months,
                constraint="> 0",
            )
        total = abs(self.total_by_type(records, TransactionType.EXPENSE))
        return round_money(total / months)

    def financial_summary(
        self,
        records: Iterable[TransactionRecord],
        date_range: DateRange,
    ) -> FinancialSummary:
        """
        Dashboard summary for a window.

        Totals and breakdowns cover ``date_range``; monthly trends cover
        every record supplied so the chart shows full history.
        """
        records = list(records)
        window = self.filter_records(records, date_range=date_range)

        total_income = self.total_by_type(window, TransactionType.INCOME)
        total_expenses = -abs(self.total_by_type(window, TransactionType.EXPENSE))

        return FinancialSummary(
            total_income=total_income,
            total_expenses=total_expenses,
            net_income=total_income + total_expenses,
            transaction_count=len(window),
            expenses_by_category=self.category_breakdown(window, TransactionType.EXPENSE),
            income_by_category=self.category_breakdown(window, TransactionType.INCOME),
            monthly_trends=self.monthly_trends(records),
        )
