"""Configuration for finsight-core.

Pydantic Settings-based configuration with environment variable and .env
support. The analytics components never load settings on their own: the
hosting application builds a FinsightConfig and passes it to
``FinanceAnalytics.from_config``.

Usage:
    from finsight_core.config import FinsightConfig

    config = FinsightConfig()
    print(config.forecast.window_months)
    print(config.insights.budget_alert_threshold)
"""

from decimal import Decimal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .classifier import DEFAULT_CATEGORY, DEFAULT_CATEGORY_COLORS, DEFAULT_KEYWORD_TABLE


class ForecastConfig(BaseSettings):
    """Forecast settings.

    Environment Variables:
        FINSIGHT_FORECAST_MIN_MONTHS: Months of history required to forecast
        FINSIGHT_FORECAST_WINDOW_MONTHS: Most recent months used for regression
    """

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_FORECAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    min_months: int = Field(
        default=3,
        ge=2,
        le=24,
        description="Months of trend data required before forecasting",
    )
    window_months: int = Field(
        default=6,
        ge=2,
        le=36,
        description="Most recent months used as the regression window",
    )

    @model_validator(mode="after")
    def window_covers_minimum(self) -> "ForecastConfig":
        """The regression window must hold at least the minimum history."""
        if self.window_months < self.min_months:
            raise ValueError("window_months must be >= min_months")
        return self


class RecurrenceConfig(BaseSettings):
    """Recurring-transaction detection settings.

    Environment Variables:
        FINSIGHT_RECURRENCE_MIN_OCCURRENCES: Smallest cluster treated as a pattern
        FINSIGHT_RECURRENCE_INTERVAL_TOLERANCE: Allowed relative gap deviation
        FINSIGHT_RECURRENCE_AMOUNT_TOLERANCE: Allowed relative amount deviation
        FINSIGHT_RECURRENCE_LOOKBACK_MONTHS: Trailing window for detection
    """

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_RECURRENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    min_occurrences: int = Field(default=3, ge=2)
    interval_tolerance: Decimal = Field(default=Decimal("0.30"), gt=0, le=1)
    amount_tolerance: Decimal = Field(default=Decimal("0.20"), gt=0, le=1)
    lookback_months: int = Field(default=12, ge=1, le=60)


class AnomalyConfig(BaseSettings):
    """Anomaly detection settings.

    Environment Variables:
        FINSIGHT_ANOMALY_MULTIPLIER: Multiple of the category mean that flags a transaction
        FINSIGHT_ANOMALY_MIN_CATEGORY_SIZE: Smallest category eligible for flagging
    """

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_ANOMALY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    multiplier: Decimal = Field(default=Decimal("2.5"), gt=1)
    min_category_size: int = Field(default=2, ge=2)


class InsightConfig(BaseSettings):
    """Insight settings.

    Environment Variables:
        FINSIGHT_INSIGHTS_BUDGET_ALERT_THRESHOLD: Monthly spend that triggers a budget alert
    """

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_INSIGHTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    budget_alert_threshold: Decimal = Field(default=Decimal("5000"), ge=0)


class FinsightConfig(BaseSettings):
    """Root configuration for finsight-core.

    Environment Variables:
        FINSIGHT_ENV: Environment name (development, staging, production, test)
        FINSIGHT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        FINSIGHT_DEFAULT_CATEGORY: Category used when nothing matches

    The keyword table and category colors are plain values; override them
    in code rather than through the environment.

    Example:
        config = FinsightConfig(
            forecast=ForecastConfig(window_months=12),
            keyword_table=[("rent", "Housing"), ("netflix", "Entertainment")],
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production, test)",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")
    default_category: str = Field(default=DEFAULT_CATEGORY)
    keyword_table: list[tuple[str, str]] = Field(
        default_factory=lambda: list(DEFAULT_KEYWORD_TABLE),
        description="Ordered (keyword, category) pairs; first match wins",
    )
    category_colors: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_COLORS),
    )

    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    recurrence: RecurrenceConfig = Field(default_factory=RecurrenceConfig)
    anomaly: AnomalyConfig = Field(default_factory=AnomalyConfig)
    insights: InsightConfig = Field(default_factory=InsightConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @field_validator("default_category")
    @classmethod
    def validate_default_category(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Default category cannot be empty")
        return v.strip()
