"""Derived analytics models.

Every model here is a pure computation output: built fresh per call,
frozen, and never persisted by the core.
"""

from calendar import month_name
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from finsight_core.models.transactions import TransactionRecord
from finsight_core.money import percentage_of

FROZEN = {"frozen": True}

NO_BUDGET_COLOR = "#1890ff"
UNDER_BUDGET_COLOR = "#52c41a"
OVER_BUDGET_COLOR = "#ff4d4f"


def _month_label(month: int) -> str:
    return month_name[month] if 1 <= month <= 12 else ""


class Frequency(str, Enum):
    """Cadence of a recurring transaction."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"


class Severity(str, Enum):
    """How urgently an insight should be surfaced."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class CategorySummary(BaseModel):
    """Per-category subtotal and share of the group total."""

    model_config = FROZEN

    category_name: str
    total_amount: Decimal = Field(description="Sum of absolute amounts")
    percentage: Decimal = Field(description="Share of the group total (0-100)")
    color: Optional[str] = None


class MonthlyTrend(BaseModel):
    """Income and expenses for one calendar month.

    ``expenses`` is always stored negative (or zero), so ``net_amount`` is
    simply ``income + expenses``.
    """

    model_config = FROZEN

    year: int = Field(ge=1)
    month: int = Field(ge=1, le=12)
    income: Decimal = Field(default=Decimal("0"))
    expenses: Decimal = Field(default=Decimal("0"), le=Decimal("0"))

    @computed_field
    @property
    def net_amount(self) -> Decimal:
        return self.income + self.expenses

    @computed_field
    @property
    def month_name(self) -> str:
        return _month_label(self.month)

    @computed_field
    @property
    def savings_rate(self) -> Decimal:
        """Net as a percentage of income; 0 when there is no income."""
        return percentage_of(self.net_amount, self.income)

    @property
    def key(self) -> tuple[int, int]:
        return self.year, self.month


class AggregateResult(BaseModel):
    """Totals for one transaction type over a window."""

    model_config = FROZEN

    total: Decimal
    by_category: list[CategorySummary] = Field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)


class ForecastResult(BaseModel):
    """Projected income and expenses for the month after the reference date."""

    model_config = FROZEN

    target_year: int
    target_month: int = Field(ge=1, le=12)
    projected_income: Decimal = Field(ge=Decimal("0"))
    projected_expenses: Decimal = Field(
        ge=Decimal("0"),
        description="Projected expense magnitude (positive)",
    )
    projected_net: Decimal
    confidence_lower_bound: Decimal
    confidence_upper_bound: Decimal
    method: str = "LINEAR_REGRESSION"

    @computed_field
    @property
    def month_name(self) -> str:
        return _month_label(self.target_month)


class RecurringPattern(BaseModel):
    """A cluster of transactions recurring at a steady cadence."""

    model_config = FROZEN

    merchant_key: str
    representative_description: str
    average_amount: Decimal
    frequency: Frequency
    interval_days: int = Field(gt=0)
    occurrence_count: int = Field(ge=2)
    first_date: date
    last_date: date
    next_expected_date: date
    all_dates: list[date]
    category_name: str


class AnomalyFlag(BaseModel):
    """A transaction whose amount is far above its category mean."""

    model_config = FROZEN

    transaction: TransactionRecord
    category_name: str
    category_mean: Decimal
    deviation_ratio: Decimal = Field(
        description="abs(amount) divided by the category mean",
    )


class Insight(BaseModel):
    """A human-readable observation for the dashboard."""

    model_config = FROZEN

    type: str
    title: str
    description: str
    severity: Severity
    impact_amount: Optional[Decimal] = None
    recommendations: list[str] = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class BudgetComparison(BaseModel):
    """Actual spending in a category against its monthly budget."""

    model_config = FROZEN

    category_name: str
    budget_amount: Decimal
    actual_amount: Decimal
    category_color: Optional[str] = None

    @computed_field
    @property
    def percentage_difference(self) -> Decimal:
        """Positive when over budget, negative when under."""
        if self.budget_amount <= 0:
            return Decimal("0")
        return percentage_of(abs(self.actual_amount) - self.budget_amount, self.budget_amount)

    @computed_field
    @property
    def status_color(self) -> str:
        if self.budget_amount == 0:
            return NO_BUDGET_COLOR
        if abs(self.actual_amount) <= self.budget_amount:
            return UNDER_BUDGET_COLOR
        return OVER_BUDGET_COLOR


class NetWorthPoint(BaseModel):
    """Running total of monthly net income."""

    model_config = FROZEN

    year: int
    month: int = Field(ge=1, le=12)
    monthly_net: Decimal
    cumulative_net_worth: Decimal
    net_worth_change: Decimal

    @computed_field
    @property
    def month_name(self) -> str:
        return _month_label(self.month)

    @computed_field
    @property
    def trend_direction(self) -> str:
        if self.net_worth_change > 0:
            return "up"
        if self.net_worth_change < 0:
            return "down"
        return "flat"


class HeatmapCell(BaseModel):
    """Expense total for one category on one weekday."""

    model_config = FROZEN

    category_name: str
    day_of_week: str
    amount: Decimal = Field(ge=Decimal("0"))


class ExpensePrediction(BaseModel):
    """Projected spend in a single category over a horizon."""

    model_config = FROZEN

    prediction_date: date
    predicted_amount: Decimal
    category_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    insights: list[str] = Field(default_factory=list)
    model: str = "Linear Trend + Historical Average"


class TransactionAnalysis(BaseModel):
    """Keyword-based analysis of a single description."""

    model_config = FROZEN

    description: Optional[str]
    suggested_category: str
    confidence: float = Field(ge=0.0, le=1.0)
    keywords: list[str] = Field(default_factory=list)


class FinancialSummary(BaseModel):
    """Dashboard summary for a window."""

    model_config = FROZEN

    total_income: Decimal
    total_expenses: Decimal = Field(le=Decimal("0"))
    net_income: Decimal
    transaction_count: int = Field(ge=0)
    expenses_by_category: list[CategorySummary] = Field(default_factory=list)
    income_by_category: list[CategorySummary] = Field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
    forecast: Optional[ForecastResult] = None
