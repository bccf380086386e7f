"""Transaction input models for the analytics core.

These are the records a collaborator hands to the core after parsing an
upload or loading rows from storage. They are plain immutable values: no
ORM state, no user context. Callers scope the list to a single user or
account before passing it in.
"""

from calendar import monthrange
import datetime
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from finsight_core.money import round_money


class TransactionType(str, Enum):
    """Direction of a transaction."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class TransactionRecord(BaseModel):
    """A single parsed transaction.

    Amounts are signed: expenses are normally negative and income positive,
    though the analytics only rely on ``type`` and ``abs_amount`` where the
    sign could be ambiguous.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2025-01-15",
                    "description": "NETFLIX.COM SUBSCRIPTION",
                    "amount": "-15.99",
                    "type": "EXPENSE",
                    "category_name": "Entertainment",
                    "reference": "TXN-2025-0001",
                }
            ]
        },
    }

    date: datetime.date = Field(description="The date the transaction occurred or was posted")
    description: Optional[str] = Field(
        default=None,
        description="Free-text description from the statement or user entry",
    )
    amount: Decimal = Field(
        description="Signed amount with 2-decimal precision",
    )
    type: TransactionType = Field(description="Income, expense or transfer")
    category_name: Optional[str] = Field(
        default=None,
        description="Resolved category name, if any",
    )
    reference: Optional[str] = Field(
        default=None,
        description="Bank or statement reference",
    )

    @field_validator("amount")
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        """Round amounts to cents, half-up."""
        return round_money(v)

    @computed_field
    @property
    def abs_amount(self) -> Decimal:
        """Absolute value of the amount."""
        return abs(self.amount)

    @property
    def year_month(self) -> tuple[int, int]:
        return self.date.year, self.date.month


class DateRange(BaseModel):
    """An inclusive date window."""

    model_config = {"frozen": True}

    start: date = Field(description="First day of the window (inclusive)")
    end: date = Field(description="Last day of the window (inclusive)")

    @field_validator("end")
    @classmethod
    def end_not_before_start(cls, v, info):
        """Validate that end is not before start."""
        if "start" in info.data and v < info.data["start"]:
            raise ValueError("end must be on or after start")
        return v

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def trailing_months(cls, months: int, as_of: Optional[date] = None) -> "DateRange":
        """Window covering the ``months`` calendar months before ``as_of``.

        The start day is clamped to the length of the target month, so
        ``trailing_months(1, date(2025, 3, 31))`` starts on 2025-02-28.
        """
        if months < 0:
            raise ValueError("months must not be negative")
        end = as_of or date.today()
        total = end.year * 12 + (end.month - 1) - months
        year, month = divmod(total, 12)
        month += 1
        day = min(end.day, monthrange(year, month)[1])
        return cls(start=date(year, month, day), end=end)

    @classmethod
    def month_of(cls, year: int, month: int) -> "DateRange":
        """The full calendar month."""
        return cls(
            start=date(year, month, 1),
            end=date(year, month, monthrange(year, month)[1]),
        )
